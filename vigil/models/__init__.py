"""Pydantic record models for the incident store."""

from .enums import (
    CommunicationChannel,
    EvidenceType,
    IncidentCategory,
    IncidentSeverity,
    IncidentStatus,
    PlaybookStatus,
    ResponderRole,
    TERMINAL_STATUSES,
)
from .responder import Responder
from .incident import (
    ActionItem,
    AnalysisResult,
    ChecklistItem,
    Communication,
    ContainmentAction,
    CustodyRecord,
    EradicationAction,
    Evidence,
    ExternalNotification,
    ImpactAssessment,
    Incident,
    LessonLearned,
    RecoveryAction,
    Task,
    TimelineEvent,
)
from .playbook import PlaybookExecution, PlaybookStep, ResponsePlaybook, StepExecution
from .forensics import Attribution, ForensicFinding, ForensicInvestigation
from .rules import AutomationRule, EscalationRule, RuleAction, TriggerConditions
from .filters import (
    DateRange,
    IncidentSearchFilters,
    PlaybookSearchFilters,
    ResponderSearchFilters,
)

__all__ = [
    "CommunicationChannel",
    "EvidenceType",
    "IncidentCategory",
    "IncidentSeverity",
    "IncidentStatus",
    "PlaybookStatus",
    "ResponderRole",
    "TERMINAL_STATUSES",
    "Responder",
    "ActionItem",
    "AnalysisResult",
    "ChecklistItem",
    "Communication",
    "ContainmentAction",
    "CustodyRecord",
    "EradicationAction",
    "Evidence",
    "ExternalNotification",
    "ImpactAssessment",
    "Incident",
    "LessonLearned",
    "RecoveryAction",
    "Task",
    "TimelineEvent",
    "PlaybookExecution",
    "PlaybookStep",
    "ResponsePlaybook",
    "StepExecution",
    "Attribution",
    "ForensicFinding",
    "ForensicInvestigation",
    "AutomationRule",
    "EscalationRule",
    "RuleAction",
    "TriggerConditions",
    "DateRange",
    "IncidentSearchFilters",
    "PlaybookSearchFilters",
    "ResponderSearchFilters",
]
