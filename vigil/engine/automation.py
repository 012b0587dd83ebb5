"""Rule matching for automation and escalation rules."""

from datetime import datetime, timedelta

from ..models.enums import TERMINAL_STATUSES
from ..models.incident import Incident
from ..models.rules import AutomationRule, EscalationRule

MATCH_ANY = "any"
MATCH_ALL = "all"


def rule_matches(rule: AutomationRule, incident: Incident, mode: str = MATCH_ANY) -> bool:
    """Check an enabled rule's trigger conditions against an incident.

    ``any`` fires when at least one specified condition holds, ``all`` only
    when every one does. A rule with no conditions never fires.
    """
    if not rule.enabled:
        return False

    conditions = rule.trigger_conditions
    checks = []
    if conditions.severity is not None:
        checks.append(incident.severity == conditions.severity)
    if conditions.category is not None:
        checks.append(incident.category == conditions.category)

    if not checks:
        return False
    if mode == MATCH_ALL:
        return all(checks)
    return any(checks)


def escalation_due(rule: EscalationRule, incident: Incident, now: datetime) -> bool:
    """An escalation fires once per incident, after the incident has been
    open at the trigger severity for ``time_threshold_minutes``."""
    if not rule.enabled or incident.id in rule.triggered_incidents:
        return False
    if incident.status in TERMINAL_STATUSES:
        return False
    if incident.severity != rule.trigger_severity:
        return False
    return now - incident.created_at >= timedelta(minutes=rule.time_threshold_minutes)
