"""Automation and escalation rule routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...dependencies import get_incident_store
from ...models import CommunicationChannel, IncidentSeverity, RuleAction, TriggerConditions

router = APIRouter(prefix="/rules", tags=["rules"])


class CreateAutomationRuleRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    trigger_conditions: TriggerConditions = TriggerConditions()
    actions: list[RuleAction] = []
    enabled: bool = True


class CreateEscalationRuleRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""
    trigger_severity: IncidentSeverity = IncidentSeverity.High
    time_threshold_minutes: int = Field(default=60, ge=0)
    escalate_to_severity: Optional[IncidentSeverity] = None
    escalation_contacts: list[str] = []
    notification_channel: CommunicationChannel = CommunicationChannel.Email
    enabled: bool = True


class ExecuteRuleRequest(BaseModel):
    incident_id: str = Field(min_length=1)


@router.get("/automation")
async def list_automation_rules(store=Depends(get_incident_store)):
    return store.get_all_automation_rules()


@router.post("/automation", status_code=201)
async def create_automation_rule(body: CreateAutomationRuleRequest, store=Depends(get_incident_store)):
    rule_id = store.create_automation_rule(body)
    return store.get_automation_rule(rule_id)


@router.post("/automation/{rule_id}/execute")
async def execute_automation_rule(rule_id: str, body: ExecuteRuleRequest, store=Depends(get_incident_store)):
    """Run a rule's actions against an incident regardless of its trigger."""
    if not store.execute_automation_rule(rule_id, body.incident_id):
        raise HTTPException(status_code=404, detail="Rule or incident not found")
    return store.get_automation_rule(rule_id)


@router.get("/escalation")
async def list_escalation_rules(store=Depends(get_incident_store)):
    return store.get_all_escalation_rules()


@router.post("/escalation", status_code=201)
async def create_escalation_rule(body: CreateEscalationRuleRequest, store=Depends(get_incident_store)):
    rule_id = store.create_escalation_rule(body)
    return store.get_escalation_rule(rule_id)
