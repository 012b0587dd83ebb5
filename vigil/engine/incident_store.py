"""Incident Store — the single in-memory registry for incident response.

Every incident mutation goes through this class so the timeline stays a
complete audit log: each successful mutation bumps ``updated_at`` and appends
exactly one TimelineEvent. Unknown ids are reported through the return value
(``False``, ``None`` or ``""``) rather than raised.
"""

import functools
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel

from ..bridge.contracts import ForensicsReport, IncidentDashboard, IncidentMetrics, ResponseTeamMetrics
from ..models.enums import CommunicationChannel, IncidentSeverity, IncidentStatus, PlaybookStatus
from ..models.filters import IncidentSearchFilters, PlaybookSearchFilters, ResponderSearchFilters
from ..models.forensics import Attribution, ForensicFinding, ForensicInvestigation
from ..models.incident import (
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
from ..models.playbook import PlaybookExecution, PlaybookStep, ResponsePlaybook, StepExecution
from ..models.responder import Responder
from ..models.rules import (
    ACTION_ASSIGN_RESPONDER,
    ACTION_EXECUTE_PLAYBOOK,
    ACTION_SEND_NOTIFICATION,
    AutomationRule,
    EscalationRule,
    RuleAction,
)
from ..utils.clock import MonotonicClock
from ..utils.logging import get_logger
from . import analytics, automation
from .lifecycle import InvalidTransitionError, can_transition
from .reports import render_incident_report
from .repository import Repository, generate_id

logger = get_logger("engine.incident_store")

# Owned collections. Only the store's add_* operations may grow them.
NESTED_COLLECTIONS = frozenset({
    "timeline",
    "responders",
    "evidence",
    "tasks",
    "communications",
    "containment_actions",
    "eradication_actions",
    "recovery_actions",
    "lessons_learned",
    "external_notifications",
})
PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at"}) | NESTED_COLLECTIONS

DEFAULT_FORENSIC_TOOLS = ["EnCase", "Volatility", "Wireshark"]

FieldMap = Optional[Union[dict, BaseModel]]


def _synchronized(method):
    """Serialize a store operation on the store's re-entrant lock."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


def _as_dict(fields: FieldMap) -> dict:
    if fields is None:
        return {}
    if isinstance(fields, BaseModel):
        return fields.model_dump(exclude_unset=True)
    return dict(fields)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return value.model_dump_json()
    if isinstance(value, (list, tuple, set)):
        return ", ".join(_stringify(v) for v in value)
    return str(value)


def _copy(record):
    return record.model_copy(deep=True) if record is not None else None


class IncidentStore:
    """Creates, mutates and queries incidents and everything hanging off them.

    One re-entrant lock serializes all public operations, so the store can sit
    behind a concurrent web server. Reads hand out deep copies; callers never
    hold a reference into the store's state.
    """

    def __init__(
        self,
        event_bus=None,
        clock: Optional[MonotonicClock] = None,
        enforce_transitions: bool = False,
        automation_match_mode: str = automation.MATCH_ANY,
        deadline_limit: int = 10,
    ):
        self._event_bus = event_bus
        self._clock = clock or MonotonicClock()
        self.enforce_transitions = enforce_transitions
        self.automation_match_mode = automation_match_mode
        self.deadline_limit = deadline_limit
        self._lock = threading.RLock()

        self._incidents: Repository[Incident] = Repository("incident")
        self._responders: Repository[Responder] = Repository("responder")
        self._playbooks: Repository[ResponsePlaybook] = Repository("playbook")
        self._executions: Repository[PlaybookExecution] = Repository("playbook_execution")
        self._investigations: Repository[ForensicInvestigation] = Repository("investigation")
        self._automation_rules: Repository[AutomationRule] = Repository("automation_rule")
        self._escalation_rules: Repository[EscalationRule] = Repository("escalation_rule")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record(
        self,
        incident: Incident,
        event_type: str,
        description: str,
        actor: str = "system",
        source: str = "system",
        details: Optional[dict] = None,
        automated: bool = True,
        at: Optional[datetime] = None,
    ) -> TimelineEvent:
        """Bump ``updated_at`` and append one timeline event."""
        now = at or self._clock.now()
        event = TimelineEvent(
            id=generate_id("evt"),
            timestamp=now,
            event_type=event_type,
            description=description,
            actor=actor or "system",
            source=source,
            details={k: _stringify(v) for k, v in (details or {}).items()},
            automated=automated,
        )
        incident.timeline.append(event)
        incident.updated_at = now

        if self._event_bus is not None:
            self._event_bus.publish({
                "event": event_type,
                "incident_id": incident.id,
                "event_id": event.id,
                "timestamp": now.isoformat(),
            })
        return event

    def _guard_transition(self, incident: Incident, target: IncidentStatus) -> None:
        if self.enforce_transitions and not can_transition(incident.status, target):
            raise InvalidTransitionError(incident.id, incident.status, target)

    # ------------------------------------------------------------------
    # Incidents
    # ------------------------------------------------------------------

    @_synchronized
    def create_incident(self, fields: FieldMap = None) -> str:
        data = _as_dict(fields)
        for key in PROTECTED_FIELDS:
            data.pop(key, None)

        now = self._clock.now()
        if data.get("detected_at") is None:
            data["detected_at"] = now

        incident = Incident(id=generate_id("inc"), created_at=now, updated_at=now, **data)
        self._record(
            incident,
            "incident_created",
            "Incident created",
            actor=incident.reported_by or "system",
            at=now,
        )
        self._incidents.add(incident)

        logger.info("incident_created", id=incident.id, severity=incident.severity.value, title=incident.title)
        return incident.id

    @_synchronized
    def get_incident(self, incident_id: str) -> Optional[Incident]:
        return _copy(self._incidents.get(incident_id))

    @_synchronized
    def get_all_incidents(self) -> list[Incident]:
        return [_copy(i) for i in self._incidents]

    @_synchronized
    def get_incidents_by_status(self, status: IncidentStatus) -> list[Incident]:
        status = IncidentStatus(status)
        return [_copy(i) for i in self._incidents if i.status == status]

    @_synchronized
    def get_incidents_by_severity(self, severity: IncidentSeverity) -> list[Incident]:
        severity = IncidentSeverity(severity)
        return [_copy(i) for i in self._incidents if i.severity == severity]

    @_synchronized
    def update_incident(self, incident_id: str, fields: FieldMap, actor: str = "system") -> bool:
        """Shallow-merge ``fields`` into the incident.

        The merge is validated as a whole before anything is written, so an
        illegal enum value leaves the incident untouched.
        """
        incident = self._incidents.get(incident_id)
        if incident is None:
            return False

        accepted = {}
        for key, value in _as_dict(fields).items():
            if key in PROTECTED_FIELDS or key not in Incident.model_fields:
                logger.warning("incident_update_field_ignored", id=incident_id, field=key)
                continue
            accepted[key] = value

        merged = Incident.model_validate({**incident.model_dump(), **accepted})
        if "status" in accepted:
            self._guard_transition(incident, merged.status)

        for key in accepted:
            setattr(incident, key, getattr(merged, key))

        self._record(
            incident,
            "incident_updated",
            "Incident updated",
            actor=actor,
            source="api",
            details={key: getattr(incident, key) for key in accepted},
        )
        logger.info("incident_updated", id=incident_id, fields=sorted(accepted))
        return True

    @_synchronized
    def assign_incident(self, incident_id: str, responder_id: str, actor: str = "system") -> bool:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return False
        if responder_id not in self._responders:
            logger.warning("incident_assigned_unknown_responder", id=incident_id, responder_id=responder_id)

        self._guard_transition(incident, IncidentStatus.Assigned)
        incident.assigned_to = responder_id
        incident.status = IncidentStatus.Assigned

        self._record(
            incident,
            "incident_assigned",
            f"Incident assigned to {responder_id}",
            actor=actor,
            source="assignment",
            details={"assignee": responder_id},
        )
        logger.info("incident_assigned", id=incident_id, assignee=responder_id)
        return True

    @_synchronized
    def escalate_incident(
        self,
        incident_id: str,
        new_severity: IncidentSeverity,
        reason: str = "",
        actor: str = "system",
    ) -> bool:
        """Overwrite severity. De-escalation is allowed."""
        incident = self._incidents.get(incident_id)
        if incident is None:
            return False

        new_severity = IncidentSeverity(new_severity)
        old_severity = incident.severity
        incident.severity = new_severity

        self._record(
            incident,
            "incident_escalated",
            f"Incident escalated from {old_severity.value} to {new_severity.value}: {reason}",
            actor=actor,
            source="escalation",
            details={"old_severity": old_severity, "new_severity": new_severity, "reason": reason},
            automated=False,
        )
        logger.info("incident_escalated", id=incident_id, old=old_severity.value, new=new_severity.value)
        return True

    @_synchronized
    def close_incident(self, incident_id: str, resolution_notes: str = "", actor: str = "system") -> bool:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return False

        self._guard_transition(incident, IncidentStatus.Closed)
        incident.status = IncidentStatus.Closed
        incident.resolution_notes = resolution_notes

        self._record(
            incident,
            "incident_closed",
            f"Incident closed: {resolution_notes}",
            actor=actor,
            source="closure",
            details={"resolution_notes": resolution_notes},
            automated=False,
        )
        logger.info("incident_closed", id=incident_id)
        return True

    @_synchronized
    def search_incidents(self, query: str) -> list[Incident]:
        needle = (query or "").lower()
        results = []
        for incident in self._incidents:
            if (
                needle in incident.title.lower()
                or needle in incident.description.lower()
                or any(needle in tag.lower() for tag in incident.tags)
            ):
                results.append(_copy(incident))
        return results

    @_synchronized
    def filter_incidents(self, filters: Union[IncidentSearchFilters, dict, None] = None) -> list[Incident]:
        if filters is None:
            filters = IncidentSearchFilters()
        elif isinstance(filters, dict):
            filters = IncidentSearchFilters.model_validate(filters)

        results = []
        for incident in self._incidents:
            if filters.severity is not None and incident.severity != filters.severity:
                continue
            if filters.status is not None and incident.status != filters.status:
                continue
            if filters.category is not None and incident.category != filters.category:
                continue
            if filters.assigned_to is not None and incident.assigned_to != filters.assigned_to:
                continue
            if filters.tags and not set(filters.tags) & set(incident.tags):
                continue
            if filters.date_range is not None and not filters.date_range.contains(incident.created_at):
                continue
            results.append(_copy(incident))
        return results

    # ------------------------------------------------------------------
    # Evidence
    # ------------------------------------------------------------------

    @_synchronized
    def add_evidence(self, incident_id: str, fields: FieldMap = None) -> str:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return ""

        data = _as_dict(fields)
        for key in ("id", "chain_of_custody", "analysis_results"):
            data.pop(key, None)
        now = self._clock.now()
        data["collected_at"] = now

        evidence = Evidence(id=generate_id("evd"), **data)
        incident.evidence.append(evidence)

        self._record(
            incident,
            "evidence_added",
            f"Evidence added: {evidence.id}",
            actor=evidence.collected_by or "forensics",
            source="evidence_collection",
            details={"evidence_id": evidence.id, "evidence_type": evidence.evidence_type},
            automated=False,
            at=now,
        )
        logger.info("evidence_added", incident_id=incident_id, evidence_id=evidence.id)
        return evidence.id

    @_synchronized
    def add_custody_record(self, incident_id: str, evidence_id: str, fields: FieldMap = None) -> bool:
        incident = self._incidents.get(incident_id)
        evidence = incident.find_evidence(evidence_id) if incident else None
        if evidence is None:
            return False

        data = _as_dict(fields)
        now = self._clock.now()
        data["timestamp"] = now
        record = CustodyRecord(**data)
        evidence.chain_of_custody.append(record)

        self._record(
            incident,
            "custody_recorded",
            f"Custody {record.action or 'transfer'} recorded for evidence {evidence_id}",
            actor=record.person or "forensics",
            source="evidence_collection",
            details={"evidence_id": evidence_id, "action": record.action, "location": record.location},
            automated=False,
            at=now,
        )
        return True

    @_synchronized
    def add_analysis_result(self, incident_id: str, evidence_id: str, fields: FieldMap = None) -> str:
        incident = self._incidents.get(incident_id)
        evidence = incident.find_evidence(evidence_id) if incident else None
        if evidence is None:
            return ""

        data = _as_dict(fields)
        data.pop("id", None)
        now = self._clock.now()
        data["timestamp"] = now
        result = AnalysisResult(id=generate_id("anl"), **data)
        evidence.analysis_results.append(result)

        self._record(
            incident,
            "analysis_added",
            f"Analysis {result.analysis_type or 'result'} added to evidence {evidence_id}",
            actor=result.analyst or "forensics",
            source="forensics",
            details={"evidence_id": evidence_id, "analysis_id": result.id, "confidence": result.confidence},
            automated=False,
            at=now,
        )
        return result.id

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    @_synchronized
    def add_task(self, incident_id: str, fields: FieldMap = None) -> str:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return ""

        data = _as_dict(fields)
        data.pop("id", None)
        checklist = []
        for item in data.pop("checklist", None) or []:
            item = {"description": item} if isinstance(item, str) else _as_dict(item)
            item["id"] = generate_id("chk")
            checklist.append(ChecklistItem(**item))

        now = self._clock.now()
        data["created_at"] = now
        task = Task(id=generate_id("task"), checklist=checklist, **data)
        incident.tasks.append(task)

        self._record(
            incident,
            "task_added",
            f"Task added: {task.id}",
            source="task_management",
            details={"task_id": task.id, "title": task.title, "assigned_to": task.assigned_to},
            automated=False,
            at=now,
        )
        return task.id

    @_synchronized
    def update_task_status(
        self,
        incident_id: str,
        task_id: str,
        status: str,
        completed_by: Optional[str] = None,
        item_id: Optional[str] = None,
    ) -> bool:
        """Set a task's status, or one checklist item's status when
        ``item_id`` is given. ``"completed"`` stamps who and when."""
        incident = self._incidents.get(incident_id)
        task = incident.find_task(task_id) if incident else None
        if task is None:
            return False

        target = task
        if item_id is not None:
            target = next((i for i in task.checklist if i.id == item_id), None)
            if target is None:
                return False

        now = self._clock.now()
        target.status = status
        if status == "completed":
            target.completed_at = now
            target.completed_by = completed_by
        else:
            target.completed_at = None
            target.completed_by = None
        if isinstance(target, ChecklistItem):
            target.completed = status == "completed"

        details = {"task_id": task_id, "status": status}
        if item_id is not None:
            details["item_id"] = item_id
        self._record(
            incident,
            "task_status_updated",
            f"Task {task_id} marked {status}",
            actor=completed_by or "system",
            source="task_management",
            details=details,
            automated=False,
            at=now,
        )
        return True

    @_synchronized
    def add_checklist_item(self, incident_id: str, task_id: str, description: str) -> str:
        incident = self._incidents.get(incident_id)
        task = incident.find_task(task_id) if incident else None
        if task is None:
            return ""

        item = ChecklistItem(id=generate_id("chk"), description=description)
        task.checklist.append(item)
        self._record(
            incident,
            "checklist_item_added",
            f"Checklist item added to task {task_id}",
            source="task_management",
            details={"task_id": task_id, "item_id": item.id},
            automated=False,
        )
        return item.id

    def complete_checklist_item(self, incident_id: str, task_id: str, item_id: str, completed_by: str) -> bool:
        return self.update_task_status(incident_id, task_id, "completed", completed_by=completed_by, item_id=item_id)

    # ------------------------------------------------------------------
    # Responders
    # ------------------------------------------------------------------

    @_synchronized
    def add_responder(self, fields: FieldMap = None) -> str:
        data = _as_dict(fields)
        data.pop("id", None)
        data["assigned_at"] = self._clock.now()
        responder = Responder(id=generate_id("rsp"), **data)
        self._responders.add(responder)
        logger.info("responder_added", id=responder.id, role=responder.role.value)
        return responder.id

    @_synchronized
    def get_responder(self, responder_id: str) -> Optional[Responder]:
        return _copy(self._responders.get(responder_id))

    @_synchronized
    def get_all_responders(self) -> list[Responder]:
        return [_copy(r) for r in self._responders]

    @_synchronized
    def search_responders(self, filters: Union[ResponderSearchFilters, dict, None] = None) -> list[Responder]:
        if filters is None:
            filters = ResponderSearchFilters()
        elif isinstance(filters, dict):
            filters = ResponderSearchFilters.model_validate(filters)

        wanted = set(filters.skills)
        results = []
        for responder in self._responders:
            if filters.role is not None and responder.role != filters.role:
                continue
            if wanted and wanted.isdisjoint(responder.skills):
                continue
            if filters.active_only and not responder.active:
                continue
            results.append(_copy(responder))
        return results

    @_synchronized
    def assign_responder_to_incident(self, incident_id: str, responder_id: str, actor: str = "system") -> bool:
        """Attach a copy of a registered responder. Idempotent per responder."""
        incident = self._incidents.get(incident_id)
        responder = self._responders.get(responder_id)
        if incident is None or responder is None:
            return False
        if any(r.id == responder_id for r in incident.responders):
            return True

        incident.responders.append(_copy(responder))
        self._record(
            incident,
            "responder_assigned",
            f"Responder {responder.name or responder_id} joined the response",
            actor=actor,
            source="assignment",
            details={"responder_id": responder_id, "role": responder.role},
        )
        return True

    # ------------------------------------------------------------------
    # Communications, actions, lessons, notifications
    # ------------------------------------------------------------------

    @_synchronized
    def add_communication(self, incident_id: str, fields: FieldMap = None) -> str:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return ""

        data = _as_dict(fields)
        data.pop("id", None)
        now = self._clock.now()
        data["timestamp"] = now
        communication = Communication(id=generate_id("comm"), **data)
        incident.communications.append(communication)

        self._record(
            incident,
            "communication_sent",
            f"Communication sent via {communication.channel.value}: {communication.subject}",
            actor=communication.sender,
            source="communications",
            details={
                "communication_id": communication.id,
                "channel": communication.channel,
                "recipients": communication.recipients,
            },
            automated=False,
            at=now,
        )
        return communication.id

    def _add_action(self, incident_id: str, fields: FieldMap, model, prefix: str, collection: str, event_type: str) -> str:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return ""

        data = _as_dict(fields)
        data.pop("id", None)
        now = self._clock.now()
        data["implemented_at"] = now
        action = model(id=generate_id(prefix), **data)
        getattr(incident, collection).append(action)

        self._record(
            incident,
            event_type,
            f"{event_type.replace('_', ' ').capitalize()}: {action.action}",
            actor=action.implemented_by,
            source="response",
            details={"action_id": action.id, "action": action.action},
            automated=False,
            at=now,
        )
        return action.id

    @_synchronized
    def add_containment_action(self, incident_id: str, fields: FieldMap = None) -> str:
        return self._add_action(incident_id, fields, ContainmentAction, "cont", "containment_actions", "containment_action")

    @_synchronized
    def add_eradication_action(self, incident_id: str, fields: FieldMap = None) -> str:
        return self._add_action(incident_id, fields, EradicationAction, "erad", "eradication_actions", "eradication_action")

    @_synchronized
    def add_recovery_action(self, incident_id: str, fields: FieldMap = None) -> str:
        return self._add_action(incident_id, fields, RecoveryAction, "rec", "recovery_actions", "recovery_action")

    @_synchronized
    def add_lesson_learned(self, incident_id: str, fields: FieldMap = None) -> str:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return ""

        data = _as_dict(fields)
        data.pop("id", None)
        items = [
            ActionItem(**{**_as_dict(item), "id": generate_id("act")})
            for item in data.pop("action_items", None) or []
        ]
        lesson = LessonLearned(id=generate_id("lsn"), action_items=items, **data)
        incident.lessons_learned.append(lesson)

        self._record(
            incident,
            "lesson_learned",
            f"Lesson learned recorded: {lesson.category or lesson.id}",
            source="post_incident",
            details={"lesson_id": lesson.id, "category": lesson.category},
            automated=False,
        )
        return lesson.id

    @_synchronized
    def add_action_item(self, incident_id: str, lesson_id: str, fields: FieldMap = None) -> str:
        incident = self._incidents.get(incident_id)
        lesson = incident.find_lesson(lesson_id) if incident else None
        if lesson is None:
            return ""

        data = _as_dict(fields)
        data.pop("id", None)
        item = ActionItem(id=generate_id("act"), **data)
        lesson.action_items.append(item)

        self._record(
            incident,
            "action_item_added",
            f"Action item added to lesson {lesson_id}",
            source="post_incident",
            details={"lesson_id": lesson_id, "action_item_id": item.id, "assigned_to": item.assigned_to},
            automated=False,
        )
        return item.id

    @_synchronized
    def add_external_notification(self, incident_id: str, fields: FieldMap = None) -> str:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return ""

        data = _as_dict(fields)
        data.pop("id", None)
        now = self._clock.now()
        data["sent_at"] = now
        notification = ExternalNotification(id=generate_id("ntf"), **data)
        incident.external_notifications.append(notification)

        self._record(
            incident,
            "external_notification_sent",
            f"External notification sent to {notification.recipient}",
            actor=notification.sent_by,
            source="communications",
            details={
                "notification_id": notification.id,
                "recipient": notification.recipient,
                "notification_type": notification.notification_type,
            },
            automated=False,
            at=now,
        )
        return notification.id

    @_synchronized
    def set_impact_assessment(self, incident_id: str, fields: FieldMap = None, actor: str = "system") -> bool:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return False

        assessment = ImpactAssessment(**_as_dict(fields))
        incident.impact_assessment = assessment
        self._record(
            incident,
            "impact_assessed",
            "Impact assessment updated",
            actor=actor,
            source="assessment",
            details={
                "financial_impact": assessment.financial_impact,
                "affected_customers": assessment.affected_customers,
                "data_compromised": assessment.data_compromised,
            },
            automated=False,
        )
        return True

    @_synchronized
    def add_timeline_event(
        self,
        incident_id: str,
        event_type: str,
        description: str = "",
        actor: str = "system",
        details: Optional[dict] = None,
    ) -> str:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return ""
        event = self._record(
            incident, event_type, description, actor=actor, source="manual", details=details, automated=False
        )
        return event.id

    # ------------------------------------------------------------------
    # Playbooks
    # ------------------------------------------------------------------

    @_synchronized
    def create_playbook(self, fields: FieldMap = None) -> str:
        data = _as_dict(fields)
        data.pop("id", None)

        steps = []
        for index, step in enumerate(data.pop("steps", None) or []):
            step = _as_dict(step)
            if not step.get("id"):
                step["id"] = generate_id("step")
            if not step.get("step_number"):
                step["step_number"] = index + 1
            steps.append(PlaybookStep(**step))

        if not data.get("estimated_duration"):
            data["estimated_duration"] = sum(s.estimated_duration for s in steps)
        if not data.get("required_roles"):
            data["required_roles"] = list(dict.fromkeys(s.required_role for s in steps))
        data["created_at"] = self._clock.now()

        playbook = ResponsePlaybook(id=generate_id("pb"), steps=steps, **data)
        self._playbooks.add(playbook)
        logger.info("playbook_created", id=playbook.id, name=playbook.name, steps=len(steps))
        return playbook.id

    @_synchronized
    def get_playbook(self, playbook_id: str) -> Optional[ResponsePlaybook]:
        return _copy(self._playbooks.get(playbook_id))

    @_synchronized
    def get_all_playbooks(self) -> list[ResponsePlaybook]:
        return [_copy(p) for p in self._playbooks]

    @_synchronized
    def search_playbooks(self, filters: Union[PlaybookSearchFilters, dict, None] = None) -> list[ResponsePlaybook]:
        if filters is None:
            filters = PlaybookSearchFilters()
        elif isinstance(filters, dict):
            filters = PlaybookSearchFilters.model_validate(filters)

        results = []
        for playbook in self._playbooks:
            if filters.category is not None and playbook.category != filters.category:
                continue
            if filters.severity_threshold is not None and playbook.severity_threshold != filters.severity_threshold:
                continue
            if filters.active_only and not playbook.active:
                continue
            results.append(_copy(playbook))
        return results

    @_synchronized
    def execute_playbook(self, incident_id: str, playbook_id: str, executor: str = "system") -> Optional[str]:
        """Start a run of ``playbook_id`` against an incident.

        The execution is InProgress at once; each step starts NotStarted and
        progresses on its own through update_step_execution.
        """
        incident = self._incidents.get(incident_id)
        playbook = self._playbooks.get(playbook_id)
        if incident is None or playbook is None:
            return None

        now = self._clock.now()
        execution = PlaybookExecution(
            id=generate_id("exec"),
            incident_id=incident_id,
            playbook_id=playbook_id,
            started_by=executor,
            started_at=now,
            step_executions=[
                StepExecution(step_id=step.id, started_at=now, status=PlaybookStatus.NotStarted)
                for step in playbook.steps
            ],
        )
        self._executions.add(execution)

        self._record(
            incident,
            "playbook_started",
            f"Started playbook: {playbook.name}",
            actor=executor,
            source="playbook_execution",
            details={"playbook_id": playbook_id, "execution_id": execution.id},
            automated=False,
            at=now,
        )
        logger.info("playbook_started", incident_id=incident_id, playbook_id=playbook_id, execution_id=execution.id)
        return execution.id

    @_synchronized
    def get_execution(self, execution_id: str) -> Optional[PlaybookExecution]:
        return _copy(self._executions.get(execution_id))

    @_synchronized
    def get_executions_for_incident(self, incident_id: str) -> list[PlaybookExecution]:
        return [_copy(e) for e in self._executions if e.incident_id == incident_id]

    @_synchronized
    def update_step_execution(self, execution_id: str, step_id: str, fields: FieldMap) -> bool:
        """Merge fields into one step. Any step transition is allowed.

        When every step is Completed or Skipped the execution completes; a step
        moving back out of those states reopens it.
        """
        execution = self._executions.get(execution_id)
        step = execution.find_step(step_id) if execution else None
        if step is None:
            return False

        data = _as_dict(fields)
        data.pop("step_id", None)
        merged = StepExecution.model_validate({**step.model_dump(), **data})

        now = self._clock.now()
        if merged.status == PlaybookStatus.Completed and "completed_at" not in data:
            merged.completed_at = now
        for key in StepExecution.model_fields:
            setattr(step, key, getattr(merged, key))

        done = {PlaybookStatus.Completed, PlaybookStatus.Skipped}
        finished = bool(execution.step_executions) and all(s.status in done for s in execution.step_executions)
        event_type = "playbook_step_updated"
        if finished and execution.status != PlaybookStatus.Completed:
            execution.status = PlaybookStatus.Completed
            execution.completed_at = now
            event_type = "playbook_completed"
        elif not finished and execution.status == PlaybookStatus.Completed:
            execution.status = PlaybookStatus.InProgress
            execution.completed_at = None

        incident = self._incidents.get(execution.incident_id)
        if incident is not None:
            self._record(
                incident,
                event_type,
                f"Playbook step {step_id} is {step.status.value}",
                actor=step.executed_by or execution.started_by,
                source="playbook_execution",
                details={"execution_id": execution_id, "step_id": step_id, "status": step.status},
                automated=False,
                at=now,
            )
        return True

    # ------------------------------------------------------------------
    # Forensics
    # ------------------------------------------------------------------

    @_synchronized
    def start_investigation(
        self,
        incident_id: str,
        investigator: str,
        scope: str = "",
        tools_used: Optional[list[str]] = None,
    ) -> Optional[str]:
        """Open a forensic investigation. Several may run per incident."""
        incident = self._incidents.get(incident_id)
        if incident is None:
            return None

        now = self._clock.now()
        investigation = ForensicInvestigation(
            id=generate_id("inv"),
            incident_id=incident_id,
            investigator=investigator,
            started_at=now,
            scope=scope,
            tools_used=list(tools_used) if tools_used else list(DEFAULT_FORENSIC_TOOLS),
        )
        self._investigations.add(investigation)

        self._record(
            incident,
            "investigation_started",
            "Forensic investigation started",
            actor=investigator,
            source="forensics",
            details={"investigation_id": investigation.id, "scope": scope},
            automated=False,
            at=now,
        )
        logger.info("investigation_started", incident_id=incident_id, investigation_id=investigation.id)
        return investigation.id

    @_synchronized
    def get_investigation(self, investigation_id: str) -> Optional[ForensicInvestigation]:
        return _copy(self._investigations.get(investigation_id))

    @_synchronized
    def get_all_investigations(self) -> list[ForensicInvestigation]:
        return [_copy(i) for i in self._investigations]

    @_synchronized
    def get_investigations_for_incident(self, incident_id: str) -> list[ForensicInvestigation]:
        return [_copy(i) for i in self._investigations if i.incident_id == incident_id]

    @_synchronized
    def add_forensic_finding(self, investigation_id: str, fields: FieldMap = None) -> str:
        investigation = self._investigations.get(investigation_id)
        if investigation is None:
            return ""

        data = _as_dict(fields)
        data.pop("id", None)
        finding = ForensicFinding(id=generate_id("fnd"), **data)
        investigation.findings.append(finding)
        for ref in finding.evidence_references:
            if ref not in investigation.evidence_collected:
                investigation.evidence_collected.append(ref)

        incident = self._incidents.get(investigation.incident_id)
        if incident is not None:
            self._record(
                incident,
                "forensic_finding_added",
                f"Forensic finding: {finding.category}",
                actor=investigation.investigator,
                source="forensics",
                details={"investigation_id": investigation_id, "finding_id": finding.id},
                automated=False,
            )
        return finding.id

    @_synchronized
    def set_attribution(self, investigation_id: str, fields: FieldMap = None) -> bool:
        investigation = self._investigations.get(investigation_id)
        if investigation is None:
            return False

        investigation.attribution = Attribution(**_as_dict(fields))

        incident = self._incidents.get(investigation.incident_id)
        if incident is not None:
            self._record(
                incident,
                "attribution_set",
                f"Attribution recorded: {investigation.attribution.threat_actor or 'unknown actor'}",
                actor=investigation.investigator,
                source="forensics",
                details={
                    "investigation_id": investigation_id,
                    "threat_actor": investigation.attribution.threat_actor,
                    "confidence": investigation.attribution.confidence,
                },
                automated=False,
            )
        return True

    @_synchronized
    def complete_investigation(self, investigation_id: str, report_path: Optional[str] = None) -> bool:
        investigation = self._investigations.get(investigation_id)
        if investigation is None or investigation.completed_at is not None:
            return False

        now = self._clock.now()
        investigation.completed_at = now
        investigation.report_path = report_path

        incident = self._incidents.get(investigation.incident_id)
        if incident is not None:
            self._record(
                incident,
                "investigation_completed",
                "Forensic investigation completed",
                actor=investigation.investigator,
                source="forensics",
                details={"investigation_id": investigation_id, "findings": len(investigation.findings)},
                automated=False,
                at=now,
            )
        logger.info("investigation_completed", investigation_id=investigation_id)
        return True

    # ------------------------------------------------------------------
    # Automation and escalation
    # ------------------------------------------------------------------

    @_synchronized
    def create_automation_rule(self, fields: FieldMap = None) -> str:
        data = _as_dict(fields)
        for key in ("id", "execution_count", "last_triggered"):
            data.pop(key, None)
        data["created_at"] = self._clock.now()
        rule = AutomationRule(id=generate_id("rule"), **data)
        self._automation_rules.add(rule)
        logger.info("automation_rule_created", id=rule.id, name=rule.name)
        return rule.id

    @_synchronized
    def get_automation_rule(self, rule_id: str) -> Optional[AutomationRule]:
        return _copy(self._automation_rules.get(rule_id))

    @_synchronized
    def get_all_automation_rules(self) -> list[AutomationRule]:
        return [_copy(r) for r in self._automation_rules]

    @_synchronized
    def create_escalation_rule(self, fields: FieldMap = None) -> str:
        data = _as_dict(fields)
        for key in ("id", "execution_count", "last_triggered", "triggered_incidents"):
            data.pop(key, None)
        data["created_at"] = self._clock.now()
        rule = EscalationRule(id=generate_id("esc"), **data)
        self._escalation_rules.add(rule)
        logger.info("escalation_rule_created", id=rule.id, name=rule.name)
        return rule.id

    @_synchronized
    def get_escalation_rule(self, rule_id: str) -> Optional[EscalationRule]:
        return _copy(self._escalation_rules.get(rule_id))

    @_synchronized
    def get_all_escalation_rules(self) -> list[EscalationRule]:
        return [_copy(r) for r in self._escalation_rules]

    @_synchronized
    def evaluate_automation_rules(self, incident_id: str) -> list[str]:
        """Run every enabled rule whose trigger matches; return their ids."""
        incident = self._incidents.get(incident_id)
        if incident is None:
            return []

        matched = [
            rule.id
            for rule in self._automation_rules
            if automation.rule_matches(rule, incident, self.automation_match_mode)
        ]
        executed = [rule_id for rule_id in matched if self.execute_automation_rule(rule_id, incident_id)]
        if executed:
            logger.info("automation_rules_executed", incident_id=incident_id, rules=executed)
        return executed

    @_synchronized
    def execute_automation_rule(self, rule_id: str, incident_id: str) -> bool:
        """Run a rule's actions against an incident.

        Every action is planned before any of them is applied, so a rule whose
        parameters cannot be honoured fails without touching the incident.
        """
        rule = self._automation_rules.get(rule_id)
        incident = self._incidents.get(incident_id)
        if rule is None or incident is None:
            return False

        actor = f"automation:{rule.name or rule.id}"
        steps = [self._plan_rule_action(rule, action, incident, actor) for action in rule.actions]
        for step in steps:
            if step is not None:
                step()

        rule.execution_count += 1
        rule.last_triggered = self._clock.now()
        logger.info("automation_rule_executed", rule_id=rule_id, incident_id=incident_id)
        return True

    def _plan_rule_action(self, rule: AutomationRule, action: RuleAction, incident: Incident, actor: str):
        params = action.parameters
        if action.type == ACTION_ASSIGN_RESPONDER:
            return functools.partial(self._run_assign_action, rule.id, incident.id, params["responder_id"], actor)
        if action.type == ACTION_EXECUTE_PLAYBOOK:
            return functools.partial(self._run_playbook_action, rule.id, incident.id, params["playbook_id"], actor)
        if action.type == ACTION_SEND_NOTIFICATION:
            payload = {
                "channel": CommunicationChannel(params.get("channel", CommunicationChannel.Email.value)),
                "sender": actor,
                "recipients": [r.strip() for r in params.get("recipients", "").split(",") if r.strip()],
                "subject": params.get("subject", f"Incident {incident.title}"),
                "message": params.get("message", ""),
            }
            return functools.partial(self.add_communication, incident.id, payload)

        logger.warning("automation_action_unknown", rule_id=rule.id, action_type=action.type)
        return None

    def _run_assign_action(self, rule_id: str, incident_id: str, responder_id: str, actor: str) -> None:
        if not self.assign_responder_to_incident(incident_id, responder_id, actor=actor):
            logger.warning("automation_responder_unknown", rule_id=rule_id, responder_id=responder_id)

    def _run_playbook_action(self, rule_id: str, incident_id: str, playbook_id: str, actor: str) -> None:
        if self.execute_playbook(incident_id, playbook_id, executor=actor) is None:
            logger.warning("automation_playbook_unknown", rule_id=rule_id, playbook_id=playbook_id)

    @_synchronized
    def evaluate_escalation_rules(self, incident_id: str) -> list[str]:
        """Fire escalation rules that are due for this incident."""
        incident = self._incidents.get(incident_id)
        if incident is None:
            return []

        fired = []
        for rule in self._escalation_rules:
            if not automation.escalation_due(rule, incident, self._clock.peek()):
                continue

            reason = f"Escalation rule '{rule.name or rule.id}' after {rule.time_threshold_minutes} minutes"
            target = rule.escalate_to_severity
            if target is not None and target != incident.severity:
                self.escalate_incident(incident_id, target, reason, actor="escalation")
            if rule.escalation_contacts:
                self.add_communication(incident_id, {
                    "channel": rule.notification_channel,
                    "sender": "escalation",
                    "recipients": rule.escalation_contacts,
                    "subject": f"Escalation: {incident.title}",
                    "message": reason,
                })

            rule.triggered_incidents.append(incident_id)
            rule.execution_count += 1
            rule.last_triggered = self._clock.now()
            fired.append(rule.id)
            logger.info("escalation_rule_fired", rule_id=rule.id, incident_id=incident_id)
        return fired

    # ------------------------------------------------------------------
    # Analytics and reports
    # ------------------------------------------------------------------

    @_synchronized
    def generate_incident_metrics(self) -> IncidentMetrics:
        return analytics.incident_metrics(self._incidents.values(), self._responders.values())

    @_synchronized
    def generate_incident_dashboard(self) -> IncidentDashboard:
        return analytics.incident_dashboard(
            self._incidents.values(),
            self._responders.values(),
            now=self._clock.peek(),
            deadline_limit=self.deadline_limit,
        )

    @_synchronized
    def generate_response_team_metrics(self) -> ResponseTeamMetrics:
        return analytics.response_team_metrics(self._incidents.values(), self._responders.values())

    @_synchronized
    def generate_forensics_report(self, investigation_id: str) -> Optional[ForensicsReport]:
        investigation = self._investigations.get(investigation_id)
        if investigation is None:
            return None
        report = analytics.forensics_report(investigation, self._incidents.get(investigation.incident_id))
        return report.model_copy(deep=True)

    @_synchronized
    def generate_incident_report(self, incident_id: str) -> Optional[str]:
        incident = self._incidents.get(incident_id)
        if incident is None:
            return None
        return render_incident_report(incident)
