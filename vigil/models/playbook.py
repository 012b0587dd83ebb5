"""Response playbooks and their executions against incidents."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .enums import IncidentCategory, IncidentSeverity, PlaybookStatus, ResponderRole


class PlaybookStep(BaseModel):
    id: str
    step_number: int = 0
    title: str = ""
    description: str = ""
    instructions: str = ""
    estimated_duration: int = 0  # minutes
    required_role: ResponderRole = ResponderRole.SecurityAnalyst
    dependencies: list[str] = []
    automation_script: Optional[str] = None
    verification_criteria: list[str] = []


class ResponsePlaybook(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    category: IncidentCategory = IncidentCategory.Other
    severity_threshold: IncidentSeverity = IncidentSeverity.Medium
    steps: list[PlaybookStep] = []
    estimated_duration: int = 0
    required_roles: list[ResponderRole] = []
    prerequisites: list[str] = []
    success_criteria: list[str] = []
    created_by: str = "system"
    created_at: datetime
    version: str = "1.0"
    active: bool = True


class StepExecution(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    step_id: str
    executed_by: str = ""
    started_at: datetime
    completed_at: Optional[datetime] = None
    status: PlaybookStatus = PlaybookStatus.NotStarted
    notes: str = ""
    output: dict[str, str] = {}


class PlaybookExecution(BaseModel):
    """One run of a playbook. The execution is InProgress while its steps
    progress independently from NotStarted."""

    id: str
    incident_id: str
    playbook_id: str
    started_by: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    status: PlaybookStatus = PlaybookStatus.InProgress
    step_executions: list[StepExecution] = []
    notes: str = ""

    def find_step(self, step_id: str) -> Optional[StepExecution]:
        return next((s for s in self.step_executions if s.step_id == step_id), None)
