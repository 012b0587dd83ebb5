"""Playbook routes — playbook catalog, executions and step progress."""

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...dependencies import get_incident_store
from ...models import IncidentCategory, IncidentSeverity, PlaybookSearchFilters, PlaybookStatus, ResponderRole

router = APIRouter(prefix="/playbooks", tags=["playbooks"])


# --- Request bodies ---

class PlaybookStepRequest(BaseModel):
    id: Optional[str] = None
    step_number: int = 0
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    instructions: str = ""
    estimated_duration: int = Field(default=0, ge=0)
    required_role: ResponderRole = ResponderRole.SecurityAnalyst
    dependencies: list[str] = []
    automation_script: Optional[str] = None
    verification_criteria: list[str] = []


class CreatePlaybookRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    category: IncidentCategory = IncidentCategory.Other
    severity_threshold: IncidentSeverity = IncidentSeverity.Medium
    steps: list[PlaybookStepRequest] = []
    estimated_duration: int = Field(default=0, ge=0)
    required_roles: list[ResponderRole] = []
    prerequisites: list[str] = []
    success_criteria: list[str] = []
    created_by: str = "system"
    version: str = "1.0"
    active: bool = True


class ExecutePlaybookRequest(BaseModel):
    incident_id: str = Field(min_length=1)
    executor: str = "system"


class StepUpdateRequest(BaseModel):
    status: Optional[PlaybookStatus] = None
    executed_by: Optional[str] = None
    notes: Optional[str] = None
    output: Optional[dict[str, str]] = None
    completed_at: Optional[datetime] = None


# --- Endpoints ---

@router.get("/")
async def list_playbooks(
    category: Optional[IncidentCategory] = None,
    severity_threshold: Optional[IncidentSeverity] = None,
    active_only: bool = False,
    store=Depends(get_incident_store),
):
    filters = PlaybookSearchFilters(
        category=category, severity_threshold=severity_threshold, active_only=active_only
    )
    return store.search_playbooks(filters)


@router.post("/", status_code=201)
async def create_playbook(body: CreatePlaybookRequest, store=Depends(get_incident_store)):
    playbook_id = store.create_playbook(body)
    return store.get_playbook(playbook_id)


@router.get("/executions/{execution_id}")
async def get_execution(execution_id: str, store=Depends(get_incident_store)):
    execution = store.get_execution(execution_id)
    if execution is None:
        raise HTTPException(status_code=404, detail="Execution not found")
    return execution


@router.patch("/executions/{execution_id}/steps/{step_id}")
async def update_step(
    execution_id: str,
    step_id: str,
    body: StepUpdateRequest,
    store=Depends(get_incident_store),
):
    """Update one step; unset fields are left alone."""
    fields: dict[str, Any] = body.model_dump(exclude_none=True)
    if not store.update_step_execution(execution_id, step_id, fields):
        raise HTTPException(status_code=404, detail="Execution step not found")
    return store.get_execution(execution_id)


@router.get("/{playbook_id}")
async def get_playbook(playbook_id: str, store=Depends(get_incident_store)):
    playbook = store.get_playbook(playbook_id)
    if playbook is None:
        raise HTTPException(status_code=404, detail="Playbook not found")
    return playbook


@router.post("/{playbook_id}/execute", status_code=201)
async def execute_playbook(playbook_id: str, body: ExecutePlaybookRequest, store=Depends(get_incident_store)):
    execution_id = store.execute_playbook(body.incident_id, playbook_id, body.executor)
    if execution_id is None:
        raise HTTPException(status_code=404, detail="Incident or playbook not found")
    return store.get_execution(execution_id)
