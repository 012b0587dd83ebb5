"""Automation and escalation rules evaluated against incidents."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, model_validator

from .enums import CommunicationChannel, IncidentCategory, IncidentSeverity


class TriggerConditions(BaseModel):
    severity: Optional[IncidentSeverity] = None
    category: Optional[IncidentCategory] = None


ACTION_ASSIGN_RESPONDER = "assign_responder"
ACTION_EXECUTE_PLAYBOOK = "execute_playbook"
ACTION_SEND_NOTIFICATION = "send_notification"

_REQUIRED_PARAMETERS = {
    ACTION_ASSIGN_RESPONDER: "responder_id",
    ACTION_EXECUTE_PLAYBOOK: "playbook_id",
}


class RuleAction(BaseModel):
    """One step a rule performs. Unrecognised types are kept and skipped at run time."""

    type: str
    parameters: dict[str, str] = {}

    @model_validator(mode="after")
    def _check_parameters(self):
        required = _REQUIRED_PARAMETERS.get(self.type)
        if required and not self.parameters.get(required, "").strip():
            raise ValueError(f"{self.type} action needs a {required} parameter")
        if self.type == ACTION_SEND_NOTIFICATION and "channel" in self.parameters:
            CommunicationChannel(self.parameters["channel"])
        return self


class AutomationRule(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    trigger_conditions: TriggerConditions = TriggerConditions()
    actions: list[RuleAction] = []
    enabled: bool = True
    execution_count: int = 0
    last_triggered: Optional[datetime] = None
    created_at: datetime


class EscalationRule(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    trigger_severity: IncidentSeverity = IncidentSeverity.High
    time_threshold_minutes: int = 60
    escalate_to_severity: Optional[IncidentSeverity] = None
    escalation_contacts: list[str] = []
    notification_channel: CommunicationChannel = CommunicationChannel.Email
    enabled: bool = True
    triggered_incidents: list[str] = []  # fires at most once per incident
    execution_count: int = 0
    last_triggered: Optional[datetime] = None
    created_at: datetime
