"""Forensic investigation routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...dependencies import get_incident_store

router = APIRouter(prefix="/investigations", tags=["investigations"])


class StartInvestigationRequest(BaseModel):
    incident_id: str = Field(min_length=1)
    investigator: str = Field(min_length=1)
    scope: str = ""
    tools_used: list[str] = []


class FindingRequest(BaseModel):
    category: str = Field(min_length=1)
    description: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    evidence_references: list[str] = []
    impact: str = ""
    recommendations: list[str] = []


class AttributionRequest(BaseModel):
    threat_actor: Optional[str] = None
    campaign: Optional[str] = None
    techniques: list[str] = []
    tools: list[str] = []
    infrastructure: list[str] = []
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    evidence: list[str] = []


class CompleteInvestigationRequest(BaseModel):
    report_path: Optional[str] = None


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail="Investigation not found")


@router.get("/")
async def list_investigations(store=Depends(get_incident_store)):
    return store.get_all_investigations()


@router.post("/", status_code=201)
async def start_investigation(body: StartInvestigationRequest, store=Depends(get_incident_store)):
    investigation_id = store.start_investigation(
        body.incident_id, body.investigator, body.scope, tools_used=body.tools_used or None
    )
    if investigation_id is None:
        raise HTTPException(status_code=404, detail="Incident not found")
    return store.get_investigation(investigation_id)


@router.get("/{investigation_id}")
async def get_investigation(investigation_id: str, store=Depends(get_incident_store)):
    investigation = store.get_investigation(investigation_id)
    if investigation is None:
        raise _not_found()
    return investigation


@router.post("/{investigation_id}/findings", status_code=201)
async def add_finding(investigation_id: str, body: FindingRequest, store=Depends(get_incident_store)):
    finding_id = store.add_forensic_finding(investigation_id, body)
    if not finding_id:
        raise _not_found()
    return {"id": finding_id}


@router.put("/{investigation_id}/attribution")
async def set_attribution(investigation_id: str, body: AttributionRequest, store=Depends(get_incident_store)):
    if not store.set_attribution(investigation_id, body):
        raise _not_found()
    return store.get_investigation(investigation_id).attribution


@router.post("/{investigation_id}/complete")
async def complete_investigation(
    investigation_id: str, body: CompleteInvestigationRequest, store=Depends(get_incident_store)
):
    if store.get_investigation(investigation_id) is None:
        raise _not_found()
    if not store.complete_investigation(investigation_id, body.report_path):
        raise HTTPException(status_code=409, detail="Investigation already completed")
    return store.get_investigation(investigation_id)


@router.get("/{investigation_id}/report")
async def get_forensics_report(investigation_id: str, store=Depends(get_incident_store)):
    report = store.generate_forensics_report(investigation_id)
    if report is None:
        raise _not_found()
    return report
