"""Bridge contracts — Pydantic models defining analytics and report shapes."""
from __future__ import annotations

from typing import Optional
from pydantic import BaseModel

from ..models.forensics import Attribution, ForensicFinding
from ..models.incident import Evidence


# ── Metrics ──
class IncidentMetrics(BaseModel):
    total_incidents: int = 0
    open_incidents: int = 0
    closed_incidents: int = 0
    average_resolution_time: float = 0.0  # hours
    incidents_by_severity: dict[str, int] = {}
    incidents_by_category: dict[str, int] = {}
    incidents_by_status: dict[str, int] = {}
    sla_compliance_rate: float = 100.0
    cost_per_incident: float = 0.0
    total_cost: float = 0.0
    top_affected_systems: list[str] = []
    response_team_utilization: dict[str, float] = {}


# ── Dashboard ──
class DashboardSummary(BaseModel):
    total_incidents: int = 0
    open_incidents: int = 0
    critical_incidents: int = 0
    sla_breaches: int = 0
    average_resolution_time: float = 0.0


class RecentIncident(BaseModel):
    id: str
    title: str
    severity: str
    status: str
    created_at: str
    assigned_to: str = ""


class UpcomingDeadline(BaseModel):
    incident_id: str
    incident_title: str
    task_id: str
    task_title: str
    due_date: str
    assigned_to: str = ""
    status: str = "pending"


class IncidentDashboard(BaseModel):
    summary: DashboardSummary
    recent_incidents: list[RecentIncident] = []
    severity_distribution: dict[str, int] = {}
    category_distribution: dict[str, int] = {}
    status_distribution: dict[str, int] = {}
    team_workload: dict[str, int] = {}
    trending_indicators: list[str] = []
    upcoming_deadlines: list[UpcomingDeadline] = []


# ── Response team ──
class ResponseTeamMetrics(BaseModel):
    team_size: int = 0
    active_responders: int = 0
    utilization_by_role: dict[str, float] = {}
    workload_by_role: dict[str, int] = {}
    workload_by_responder: dict[str, int] = {}
    skill_coverage: dict[str, float] = {}


# ── Forensics ──
class ForensicsReport(BaseModel):
    investigation_id: str
    incident_id: str
    incident_title: str = ""
    investigator: str
    scope: str = ""
    methodology: str = ""
    started_at: str
    completed_at: Optional[str] = None
    duration_hours: Optional[float] = None
    tools_used: list[str] = []
    findings: list[ForensicFinding] = []
    evidence: list[Evidence] = []
    attribution: Optional[Attribution] = None
    recommendations: list[str] = []
    report_path: Optional[str] = None
