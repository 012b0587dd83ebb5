"""Incident analytics — pure aggregations recomputed on every call.

Nothing here is cached or mutates its inputs; the store passes in snapshots
taken under its lock.
"""

from collections import Counter
from datetime import datetime
from typing import Iterable, Optional

from ..bridge.contracts import (
    DashboardSummary,
    ForensicsReport,
    IncidentDashboard,
    IncidentMetrics,
    RecentIncident,
    ResponseTeamMetrics,
    UpcomingDeadline,
)
from ..models.enums import (
    TERMINAL_STATUSES,
    IncidentCategory,
    IncidentSeverity,
    IncidentStatus,
)
from ..models.forensics import ForensicInvestigation
from ..models.incident import Incident
from ..models.responder import Responder

TOP_AFFECTED_SYSTEMS = 5
RECENT_INCIDENTS = 10
TRENDING_INDICATORS = 10


def _is_open(incident: Incident) -> bool:
    return incident.status not in TERMINAL_STATUSES


def _distribution(values: Iterable[str], keys: Iterable[str]) -> dict[str, int]:
    counts = {key: 0 for key in keys}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return counts


def average_resolution_hours(incidents: list[Incident]) -> float:
    """Mean of ``updated_at - created_at`` over Closed/Resolved incidents."""
    durations = [
        (i.updated_at - i.created_at).total_seconds() / 3600
        for i in incidents
        if i.status in TERMINAL_STATUSES
    ]
    if not durations:
        return 0.0
    return round(sum(durations) / len(durations), 2)


def _staffs(incident: Incident, responder_id: str) -> bool:
    return incident.assigned_to == responder_id or any(r.id == responder_id for r in incident.responders)


def _workload_by_responder(incidents: list[Incident], responders: list[Responder]) -> dict[str, int]:
    return {r.name or r.id: sum(1 for i in incidents if _staffs(i, r.id)) for r in responders}


def _utilization_by_role(incidents: list[Incident], responders: list[Responder]) -> dict[str, float]:
    headcount = Counter(r.role.value for r in responders)
    staffed: Counter = Counter()
    for incident in incidents:
        if not _is_open(incident):
            continue
        for role in {r.role.value for r in incident.responders}:
            staffed[role] += 1
    return {role: round(staffed[role] / count * 100, 2) for role, count in headcount.items()}


def incident_metrics(incidents: list[Incident], responders: list[Responder]) -> IncidentMetrics:
    total = len(incidents)
    closed = sum(1 for i in incidents if not _is_open(i))
    total_cost = sum(i.cost_estimate for i in incidents)
    breaches = sum(1 for i in incidents if i.sla_breach)

    systems = Counter(s for i in incidents for s in i.affected_systems)

    return IncidentMetrics(
        total_incidents=total,
        open_incidents=total - closed,
        closed_incidents=closed,
        average_resolution_time=average_resolution_hours(incidents),
        incidents_by_severity=dict(Counter(i.severity.value for i in incidents)),
        incidents_by_category=dict(Counter(i.category.value for i in incidents)),
        incidents_by_status=dict(Counter(i.status.value for i in incidents)),
        sla_compliance_rate=round((total - breaches) / total * 100, 2) if total else 100.0,
        cost_per_incident=total_cost / total if total else 0.0,
        total_cost=total_cost,
        top_affected_systems=[name for name, _ in systems.most_common(TOP_AFFECTED_SYSTEMS)],
        response_team_utilization=_utilization_by_role(incidents, responders),
    )


def incident_dashboard(
    incidents: list[Incident],
    responders: list[Responder],
    now: datetime,
    deadline_limit: int = 10,
) -> IncidentDashboard:
    """Dashboard snapshot. Deadlines are sorted soonest-first before the cap."""
    open_incidents = [i for i in incidents if _is_open(i)]

    recent = sorted(incidents, key=lambda i: i.created_at, reverse=True)[:RECENT_INCIDENTS]

    deadlines = []
    for incident in incidents:
        for task in incident.tasks:
            if task.due_date is None or task.status == "completed" or task.due_date <= now:
                continue
            deadlines.append((task.due_date, incident, task))
    deadlines.sort(key=lambda entry: entry[0])

    indicators = Counter(ioc for i in open_incidents for ioc in i.indicators)

    return IncidentDashboard(
        summary=DashboardSummary(
            total_incidents=len(incidents),
            open_incidents=len(open_incidents),
            critical_incidents=sum(1 for i in open_incidents if i.severity == IncidentSeverity.Critical),
            sla_breaches=sum(1 for i in incidents if i.sla_breach),
            average_resolution_time=average_resolution_hours(incidents),
        ),
        recent_incidents=[
            RecentIncident(
                id=i.id,
                title=i.title,
                severity=i.severity.value,
                status=i.status.value,
                created_at=i.created_at.isoformat(),
                assigned_to=i.assigned_to,
            )
            for i in recent
        ],
        severity_distribution=_distribution((i.severity.value for i in incidents), (s.value for s in IncidentSeverity)),
        category_distribution=_distribution((i.category.value for i in incidents), (c.value for c in IncidentCategory)),
        status_distribution=_distribution((i.status.value for i in incidents), (s.value for s in IncidentStatus)),
        team_workload=_workload_by_responder(incidents, responders),
        trending_indicators=[ioc for ioc, _ in indicators.most_common(TRENDING_INDICATORS)],
        upcoming_deadlines=[
            UpcomingDeadline(
                incident_id=incident.id,
                incident_title=incident.title,
                task_id=task.id,
                task_title=task.title,
                due_date=due.isoformat(),
                assigned_to=task.assigned_to,
                status=task.status,
            )
            for due, incident, task in deadlines[:max(deadline_limit, 0)]
        ],
    )


def response_team_metrics(incidents: list[Incident], responders: list[Responder]) -> ResponseTeamMetrics:
    workload_by_role: Counter = Counter()
    for incident in incidents:
        for role in {r.role.value for r in incident.responders}:
            workload_by_role[role] += 1

    skills = Counter(skill for r in responders for skill in set(r.skills))
    team_size = len(responders)

    return ResponseTeamMetrics(
        team_size=team_size,
        active_responders=sum(1 for r in responders if r.active),
        utilization_by_role=_utilization_by_role(incidents, responders),
        workload_by_role=dict(workload_by_role),
        workload_by_responder=_workload_by_responder(incidents, responders),
        skill_coverage={skill: round(n / team_size * 100, 2) for skill, n in skills.items()},
    )


def forensics_report(investigation: ForensicInvestigation, incident: Optional[Incident]) -> ForensicsReport:
    referenced = set(investigation.evidence_collected)
    for finding in investigation.findings:
        referenced.update(finding.evidence_references)

    evidence = []
    if incident is not None:
        evidence = [e for e in incident.evidence if e.id in referenced] if referenced else list(incident.evidence)

    recommendations: list[str] = []
    for finding in investigation.findings:
        for rec in finding.recommendations:
            if rec not in recommendations:
                recommendations.append(rec)

    duration = None
    if investigation.completed_at is not None:
        duration = round((investigation.completed_at - investigation.started_at).total_seconds() / 3600, 2)

    return ForensicsReport(
        investigation_id=investigation.id,
        incident_id=investigation.incident_id,
        incident_title=incident.title if incident else "",
        investigator=investigation.investigator,
        scope=investigation.scope,
        methodology=investigation.methodology,
        started_at=investigation.started_at.isoformat(),
        completed_at=investigation.completed_at.isoformat() if investigation.completed_at else None,
        duration_hours=duration,
        tools_used=investigation.tools_used,
        findings=investigation.findings,
        evidence=evidence,
        attribution=investigation.attribution,
        recommendations=recommendations,
        report_path=investigation.report_path,
    )
