"""Forensic investigation records."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .incident import TimelineEvent


class ForensicFinding(BaseModel):
    id: str
    category: str = ""
    description: str = ""
    confidence: float = 0.0
    evidence_references: list[str] = []
    impact: str = ""
    recommendations: list[str] = []


class Attribution(BaseModel):
    threat_actor: Optional[str] = None
    campaign: Optional[str] = None
    techniques: list[str] = []
    tools: list[str] = []
    infrastructure: list[str] = []
    confidence: float = 0.0
    evidence: list[str] = []


class ForensicInvestigation(BaseModel):
    """Owned by one incident. Extended or completed, never removed."""

    id: str
    incident_id: str
    investigator: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    scope: str = ""
    methodology: str = "Standard forensic methodology"
    tools_used: list[str] = []
    evidence_collected: list[str] = []
    findings: list[ForensicFinding] = []
    timeline_reconstruction: list[TimelineEvent] = []
    attribution: Optional[Attribution] = None
    report_path: Optional[str] = None
