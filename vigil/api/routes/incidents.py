"""Incident routes — lifecycle operations and every incident-owned record."""

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from ...dependencies import get_incident_store
from ...models import (
    CommunicationChannel,
    EvidenceType,
    IncidentCategory,
    IncidentSearchFilters,
    IncidentSeverity,
    IncidentStatus,
)

router = APIRouter(prefix="/incidents", tags=["incidents"])


def _not_found(what: str = "Incident") -> HTTPException:
    return HTTPException(status_code=404, detail=f"{what} not found")


# --- Request bodies ---

class CreateIncidentRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(default="", max_length=10000)
    category: IncidentCategory = IncidentCategory.Other
    severity: IncidentSeverity = IncidentSeverity.Medium
    priority: int = Field(default=3, ge=1, le=5)
    detected_at: Optional[datetime] = None
    reported_by: str = ""
    assigned_to: str = ""
    incident_commander: str = ""
    affected_systems: list[str] = []
    affected_users: list[str] = []
    indicators: list[str] = []
    tags: list[str] = []
    cost_estimate: float = 0.0
    sla_breach: bool = False
    compliance_requirements: list[str] = []
    metadata: dict[str, str] = {}


class AssignRequest(BaseModel):
    responder_id: str = Field(min_length=1)
    actor: str = "system"


class EscalateRequest(BaseModel):
    severity: IncidentSeverity
    reason: str = ""
    actor: str = "system"


class CloseRequest(BaseModel):
    resolution_notes: str = ""
    actor: str = "system"


class TimelineEventRequest(BaseModel):
    event_type: str = Field(min_length=1, max_length=100)
    description: str = ""
    actor: str = "system"
    details: dict[str, str] = {}


class EvidenceRequest(BaseModel):
    name: str = Field(min_length=1)
    evidence_type: EvidenceType = EvidenceType.LogFile
    description: str = ""
    source_system: str = ""
    collected_by: str = ""
    file_path: str = ""
    file_size: int = Field(default=0, ge=0)
    hash_md5: str = ""
    hash_sha256: str = ""
    tags: list[str] = []
    metadata: dict[str, str] = {}


class CustodyRequest(BaseModel):
    action: str = Field(min_length=1)
    person: str = ""
    location: str = ""
    notes: str = ""


class AnalysisRequest(BaseModel):
    analyst: str = ""
    analysis_type: str = ""
    findings: str = ""
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    tools_used: list[str] = []
    artifacts: list[str] = []
    recommendations: list[str] = []


class ChecklistItemRequest(BaseModel):
    description: str = Field(min_length=1)


class TaskRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    assigned_to: str = ""
    due_date: Optional[datetime] = None
    priority: int = Field(default=3, ge=1, le=5)
    category: str = ""
    dependencies: list[str] = []
    checklist: list[ChecklistItemRequest] = []
    notes: str = ""


class TaskStatusRequest(BaseModel):
    status: str = Field(min_length=1, max_length=50)
    completed_by: Optional[str] = None
    item_id: Optional[str] = None


class CompleteItemRequest(BaseModel):
    completed_by: str = "system"


class CommunicationRequest(BaseModel):
    channel: CommunicationChannel = CommunicationChannel.Email
    sender: str = "system"
    recipients: list[str] = []
    subject: str = ""
    message: str = ""
    attachments: list[str] = []


class ContainmentRequest(BaseModel):
    action: str = Field(min_length=1)
    description: str = ""
    implemented_by: str = "system"
    effectiveness: str = ""
    side_effects: list[str] = []
    rollback_plan: str = ""


class EradicationRequest(BaseModel):
    action: str = Field(min_length=1)
    description: str = ""
    target_systems: list[str] = []
    implemented_by: str = "system"
    verification_method: str = ""
    success: bool = False


class RecoveryRequest(BaseModel):
    action: str = Field(min_length=1)
    description: str = ""
    systems_restored: list[str] = []
    implemented_by: str = "system"
    validation_tests: list[str] = []
    success: bool = False


class ActionItemRequest(BaseModel):
    description: str = Field(min_length=1)
    assigned_to: str = ""
    due_date: Optional[datetime] = None
    status: str = "open"
    priority: int = Field(default=3, ge=1, le=5)


class LessonRequest(BaseModel):
    category: str = ""
    description: str = Field(min_length=1)
    root_cause: str = ""
    recommendations: list[str] = []
    action_items: list[ActionItemRequest] = []
    priority: int = Field(default=3, ge=1, le=5)


class ExternalNotificationRequest(BaseModel):
    recipient: str = Field(min_length=1)
    notification_type: str = ""
    sent_by: str = "system"
    content: str = ""
    delivery_status: str = "sent"
    response_required: bool = False
    response_deadline: Optional[datetime] = None


class ImpactRequest(BaseModel):
    business_impact: str = ""
    technical_impact: str = ""
    financial_impact: float = 0.0
    reputation_impact: str = ""
    compliance_impact: str = ""
    affected_customers: int = Field(default=0, ge=0)
    affected_systems_count: int = Field(default=0, ge=0)
    data_compromised: bool = False
    service_disruption: bool = False
    estimated_downtime: int = Field(default=0, ge=0)


class ResponderAssignRequest(BaseModel):
    responder_id: str = Field(min_length=1)


# --- Incidents ---

@router.get("/")
async def list_incidents(
    q: Optional[str] = None,
    severity: Optional[IncidentSeverity] = None,
    status: Optional[IncidentStatus] = None,
    category: Optional[IncidentCategory] = None,
    assigned_to: Optional[str] = None,
    tags: Optional[list[str]] = Query(None),
    created_from: Optional[datetime] = None,
    created_to: Optional[datetime] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    store=Depends(get_incident_store),
):
    """List incidents, optionally searched by ``q`` and narrowed by filters."""
    date_range = None
    if created_from is not None or created_to is not None:
        date_range = {
            "start": created_from or datetime.min,
            "end": created_to or datetime.max,
        }
    filters = IncidentSearchFilters.model_validate({
        "severity": severity,
        "status": status,
        "category": category,
        "assigned_to": assigned_to,
        "tags": tags or [],
        "date_range": date_range,
    })
    incidents = store.filter_incidents(filters)
    if q:
        matched = {i.id for i in store.search_incidents(q)}
        incidents = [i for i in incidents if i.id in matched]
    return incidents[offset:offset + limit]


@router.post("/", status_code=201)
async def create_incident(body: CreateIncidentRequest, store=Depends(get_incident_store)):
    incident_id = store.create_incident(body)
    return store.get_incident(incident_id)


@router.get("/{incident_id}")
async def get_incident(incident_id: str, store=Depends(get_incident_store)):
    incident = store.get_incident(incident_id)
    if incident is None:
        raise _not_found()
    return incident


@router.patch("/{incident_id}")
async def update_incident(
    incident_id: str,
    fields: dict[str, Any] = Body(...),
    store=Depends(get_incident_store),
):
    """Shallow-merge arbitrary incident fields."""
    if not store.update_incident(incident_id, fields):
        raise _not_found()
    return store.get_incident(incident_id)


@router.post("/{incident_id}/assign")
async def assign_incident(incident_id: str, body: AssignRequest, store=Depends(get_incident_store)):
    if not store.assign_incident(incident_id, body.responder_id, actor=body.actor):
        raise _not_found()
    return store.get_incident(incident_id)


@router.post("/{incident_id}/escalate")
async def escalate_incident(incident_id: str, body: EscalateRequest, store=Depends(get_incident_store)):
    if not store.escalate_incident(incident_id, body.severity, body.reason, actor=body.actor):
        raise _not_found()
    return store.get_incident(incident_id)


@router.post("/{incident_id}/close")
async def close_incident(incident_id: str, body: CloseRequest, store=Depends(get_incident_store)):
    if not store.close_incident(incident_id, body.resolution_notes, actor=body.actor):
        raise _not_found()
    return store.get_incident(incident_id)


@router.get("/{incident_id}/timeline")
async def get_timeline(incident_id: str, store=Depends(get_incident_store)):
    incident = store.get_incident(incident_id)
    if incident is None:
        raise _not_found()
    return incident.timeline


@router.post("/{incident_id}/timeline", status_code=201)
async def add_timeline_event(incident_id: str, body: TimelineEventRequest, store=Depends(get_incident_store)):
    event_id = store.add_timeline_event(
        incident_id, body.event_type, body.description, actor=body.actor, details=body.details
    )
    if not event_id:
        raise _not_found()
    return {"id": event_id}


@router.get("/{incident_id}/report", response_class=PlainTextResponse)
async def get_incident_report(incident_id: str, store=Depends(get_incident_store)):
    report = store.generate_incident_report(incident_id)
    if report is None:
        raise _not_found()
    return report


# --- Evidence ---

@router.post("/{incident_id}/evidence", status_code=201)
async def add_evidence(incident_id: str, body: EvidenceRequest, store=Depends(get_incident_store)):
    evidence_id = store.add_evidence(incident_id, body)
    if not evidence_id:
        raise _not_found()
    return {"id": evidence_id}


@router.post("/{incident_id}/evidence/{evidence_id}/custody", status_code=201)
async def add_custody_record(
    incident_id: str, evidence_id: str, body: CustodyRequest, store=Depends(get_incident_store)
):
    if not store.add_custody_record(incident_id, evidence_id, body):
        raise _not_found("Evidence")
    return {"success": True}


@router.post("/{incident_id}/evidence/{evidence_id}/analysis", status_code=201)
async def add_analysis_result(
    incident_id: str, evidence_id: str, body: AnalysisRequest, store=Depends(get_incident_store)
):
    analysis_id = store.add_analysis_result(incident_id, evidence_id, body)
    if not analysis_id:
        raise _not_found("Evidence")
    return {"id": analysis_id}


# --- Tasks ---

@router.post("/{incident_id}/tasks", status_code=201)
async def add_task(incident_id: str, body: TaskRequest, store=Depends(get_incident_store)):
    task_id = store.add_task(incident_id, body)
    if not task_id:
        raise _not_found()
    return {"id": task_id}


@router.patch("/{incident_id}/tasks/{task_id}/status")
async def update_task_status(
    incident_id: str, task_id: str, body: TaskStatusRequest, store=Depends(get_incident_store)
):
    if not store.update_task_status(
        incident_id, task_id, body.status, completed_by=body.completed_by, item_id=body.item_id
    ):
        raise _not_found("Task")
    return {"success": True}


@router.post("/{incident_id}/tasks/{task_id}/checklist", status_code=201)
async def add_checklist_item(
    incident_id: str, task_id: str, body: ChecklistItemRequest, store=Depends(get_incident_store)
):
    item_id = store.add_checklist_item(incident_id, task_id, body.description)
    if not item_id:
        raise _not_found("Task")
    return {"id": item_id}


@router.post("/{incident_id}/tasks/{task_id}/checklist/{item_id}/complete")
async def complete_checklist_item(
    incident_id: str,
    task_id: str,
    item_id: str,
    body: CompleteItemRequest,
    store=Depends(get_incident_store),
):
    if not store.complete_checklist_item(incident_id, task_id, item_id, body.completed_by):
        raise _not_found("Checklist item")
    return {"success": True}


# --- Communications, response actions, lessons ---

@router.post("/{incident_id}/communications", status_code=201)
async def add_communication(incident_id: str, body: CommunicationRequest, store=Depends(get_incident_store)):
    communication_id = store.add_communication(incident_id, body)
    if not communication_id:
        raise _not_found()
    return {"id": communication_id}


@router.post("/{incident_id}/containment", status_code=201)
async def add_containment_action(incident_id: str, body: ContainmentRequest, store=Depends(get_incident_store)):
    action_id = store.add_containment_action(incident_id, body)
    if not action_id:
        raise _not_found()
    return {"id": action_id}


@router.post("/{incident_id}/eradication", status_code=201)
async def add_eradication_action(incident_id: str, body: EradicationRequest, store=Depends(get_incident_store)):
    action_id = store.add_eradication_action(incident_id, body)
    if not action_id:
        raise _not_found()
    return {"id": action_id}


@router.post("/{incident_id}/recovery", status_code=201)
async def add_recovery_action(incident_id: str, body: RecoveryRequest, store=Depends(get_incident_store)):
    action_id = store.add_recovery_action(incident_id, body)
    if not action_id:
        raise _not_found()
    return {"id": action_id}


@router.post("/{incident_id}/lessons", status_code=201)
async def add_lesson_learned(incident_id: str, body: LessonRequest, store=Depends(get_incident_store)):
    lesson_id = store.add_lesson_learned(incident_id, body)
    if not lesson_id:
        raise _not_found()
    return {"id": lesson_id}


@router.post("/{incident_id}/lessons/{lesson_id}/action-items", status_code=201)
async def add_action_item(
    incident_id: str, lesson_id: str, body: ActionItemRequest, store=Depends(get_incident_store)
):
    item_id = store.add_action_item(incident_id, lesson_id, body)
    if not item_id:
        raise _not_found("Lesson")
    return {"id": item_id}


@router.post("/{incident_id}/notifications", status_code=201)
async def add_external_notification(
    incident_id: str, body: ExternalNotificationRequest, store=Depends(get_incident_store)
):
    notification_id = store.add_external_notification(incident_id, body)
    if not notification_id:
        raise _not_found()
    return {"id": notification_id}


@router.put("/{incident_id}/impact")
async def set_impact_assessment(incident_id: str, body: ImpactRequest, store=Depends(get_incident_store)):
    if not store.set_impact_assessment(incident_id, body):
        raise _not_found()
    return store.get_incident(incident_id).impact_assessment


# --- Responders, playbooks, investigations on an incident ---

@router.post("/{incident_id}/responders")
async def assign_responder(incident_id: str, body: ResponderAssignRequest, store=Depends(get_incident_store)):
    if not store.assign_responder_to_incident(incident_id, body.responder_id):
        raise _not_found("Incident or responder")
    return store.get_incident(incident_id).responders


@router.get("/{incident_id}/executions")
async def list_executions(incident_id: str, store=Depends(get_incident_store)):
    if store.get_incident(incident_id) is None:
        raise _not_found()
    return store.get_executions_for_incident(incident_id)


@router.get("/{incident_id}/investigations")
async def list_investigations(incident_id: str, store=Depends(get_incident_store)):
    if store.get_incident(incident_id) is None:
        raise _not_found()
    return store.get_investigations_for_incident(incident_id)


# --- Rules ---

@router.post("/{incident_id}/automation/evaluate")
async def evaluate_automation(incident_id: str, store=Depends(get_incident_store)):
    if store.get_incident(incident_id) is None:
        raise _not_found()
    return {"executed_rules": store.evaluate_automation_rules(incident_id)}


@router.post("/{incident_id}/escalation/evaluate")
async def evaluate_escalation(incident_id: str, store=Depends(get_incident_store)):
    if store.get_incident(incident_id) is None:
        raise _not_found()
    return {"fired_rules": store.evaluate_escalation_rules(incident_id)}
