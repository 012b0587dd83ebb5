"""Incident model and the records it owns.

Every nested record is owned by exactly one incident. Responders appear here
as copies taken at assignment time; the authoritative responder lives in the
store's responder registry.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from .enums import (
    CommunicationChannel,
    EvidenceType,
    IncidentCategory,
    IncidentSeverity,
    IncidentStatus,
)
from .responder import Responder
from .types import UTCDateTime


def _unique(values: list[str]) -> list[str]:
    """Drop duplicates while keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class TimelineEvent(BaseModel):
    """Append-only audit entry. Never edited once it is on a timeline."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    event_type: str
    description: str = ""
    actor: str = "system"
    source: str = "system"
    details: dict[str, str] = {}
    automated: bool = True


class CustodyRecord(BaseModel):
    timestamp: datetime
    action: str = ""
    person: str = ""
    location: str = ""
    notes: str = ""


class AnalysisResult(BaseModel):
    id: str
    timestamp: datetime
    analyst: str = ""
    analysis_type: str = ""
    findings: str = ""
    confidence: float = 0.0
    tools_used: list[str] = []
    artifacts: list[str] = []
    recommendations: list[str] = []


class Evidence(BaseModel):
    id: str
    name: str = ""
    evidence_type: EvidenceType = EvidenceType.LogFile
    description: str = ""
    source_system: str = ""
    collected_by: str = ""
    collected_at: datetime
    file_path: str = ""
    file_size: int = 0
    hash_md5: str = ""
    hash_sha256: str = ""
    chain_of_custody: list[CustodyRecord] = []
    analysis_results: list[AnalysisResult] = []
    tags: list[str] = []
    metadata: dict[str, str] = {}


class ChecklistItem(BaseModel):
    id: str
    description: str = ""
    completed: bool = False
    status: str = "pending"  # pending, completed
    completed_by: Optional[str] = None
    completed_at: Optional[datetime] = None


class Task(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    assigned_to: str = ""
    created_at: datetime
    due_date: Optional[UTCDateTime] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    status: str = "pending"
    priority: int = 3
    category: str = ""
    dependencies: list[str] = []
    checklist: list[ChecklistItem] = []
    notes: str = ""


class Communication(BaseModel):
    id: str
    timestamp: datetime
    channel: CommunicationChannel = CommunicationChannel.Email
    sender: str = "system"
    recipients: list[str] = []
    subject: str = ""
    message: str = ""
    attachments: list[str] = []
    status: str = "sent"


class ImpactAssessment(BaseModel):
    business_impact: str = ""
    technical_impact: str = ""
    financial_impact: float = 0.0
    reputation_impact: str = ""
    compliance_impact: str = ""
    affected_customers: int = 0
    affected_systems_count: int = 0
    data_compromised: bool = False
    service_disruption: bool = False
    estimated_downtime: int = 0  # minutes


class ContainmentAction(BaseModel):
    id: str
    action: str = ""
    description: str = ""
    implemented_by: str = "system"
    implemented_at: datetime
    effectiveness: str = ""
    side_effects: list[str] = []
    rollback_plan: str = ""


class EradicationAction(BaseModel):
    id: str
    action: str = ""
    description: str = ""
    target_systems: list[str] = []
    implemented_by: str = "system"
    implemented_at: datetime
    verification_method: str = ""
    success: bool = False


class RecoveryAction(BaseModel):
    id: str
    action: str = ""
    description: str = ""
    systems_restored: list[str] = []
    implemented_by: str = "system"
    implemented_at: datetime
    validation_tests: list[str] = []
    success: bool = False


class ActionItem(BaseModel):
    id: str
    description: str = ""
    assigned_to: str = ""
    due_date: Optional[UTCDateTime] = None
    status: str = "open"
    priority: int = 3


class LessonLearned(BaseModel):
    id: str
    category: str = ""
    description: str = ""
    root_cause: str = ""
    recommendations: list[str] = []
    action_items: list[ActionItem] = []
    priority: int = 3


class ExternalNotification(BaseModel):
    id: str
    recipient: str = ""
    notification_type: str = ""
    sent_at: datetime
    sent_by: str = "system"
    content: str = ""
    delivery_status: str = "sent"
    response_required: bool = False
    response_deadline: Optional[UTCDateTime] = None


class Incident(BaseModel):
    """Root aggregate tracking a security event from detection to closure.

    ``validate_assignment`` keeps severity, status and category inside their
    enums even when fields are merged in after creation.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str
    title: str = ""
    description: str = ""
    category: IncidentCategory = IncidentCategory.Other
    severity: IncidentSeverity = IncidentSeverity.Medium
    status: IncidentStatus = IncidentStatus.New
    priority: int = 3
    created_at: datetime
    updated_at: datetime
    detected_at: UTCDateTime
    reported_by: str = ""
    assigned_to: str = ""
    incident_commander: str = ""
    affected_systems: list[str] = []
    affected_users: list[str] = []
    indicators: list[str] = []
    tags: list[str] = []
    timeline: list[TimelineEvent] = []
    responders: list[Responder] = []
    evidence: list[Evidence] = []
    tasks: list[Task] = []
    communications: list[Communication] = []
    impact_assessment: Optional[ImpactAssessment] = None
    containment_actions: list[ContainmentAction] = []
    eradication_actions: list[EradicationAction] = []
    recovery_actions: list[RecoveryAction] = []
    lessons_learned: list[LessonLearned] = []
    external_notifications: list[ExternalNotification] = []
    cost_estimate: float = 0.0
    sla_breach: bool = False
    compliance_requirements: list[str] = []
    resolution_notes: Optional[str] = None
    metadata: dict[str, str] = {}

    @field_validator("affected_systems", "affected_users", "indicators", "tags")
    @classmethod
    def _as_set(cls, v: list[str]) -> list[str]:
        return _unique(v)

    def find_evidence(self, evidence_id: str) -> Optional[Evidence]:
        return next((e for e in self.evidence if e.id == evidence_id), None)

    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def find_lesson(self, lesson_id: str) -> Optional[LessonLearned]:
        return next((lesson for lesson in self.lessons_learned if lesson.id == lesson_id), None)
