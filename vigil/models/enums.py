"""Closed enumerations shared by every incident-response record.

Wire values are the member names exactly as dashboards destructure them
(``"InProgress"``, never ``"in_progress"``).
"""

from enum import Enum


class IncidentSeverity(str, Enum):
    Info = "Info"
    Low = "Low"
    Medium = "Medium"
    High = "High"
    Critical = "Critical"


class IncidentStatus(str, Enum):
    New = "New"
    Assigned = "Assigned"
    InProgress = "InProgress"
    Investigating = "Investigating"
    Contained = "Contained"
    Eradicated = "Eradicated"
    Recovering = "Recovering"
    Resolved = "Resolved"
    Closed = "Closed"
    Reopened = "Reopened"


class IncidentCategory(str, Enum):
    Malware = "Malware"
    Phishing = "Phishing"
    DataBreach = "DataBreach"
    DenialOfService = "DenialOfService"
    Unauthorized = "Unauthorized"
    SystemCompromise = "SystemCompromise"
    NetworkIntrusion = "NetworkIntrusion"
    InsiderThreat = "InsiderThreat"
    PhysicalSecurity = "PhysicalSecurity"
    Compliance = "Compliance"
    Other = "Other"


class ResponderRole(str, Enum):
    IncidentCommander = "IncidentCommander"
    LeadInvestigator = "LeadInvestigator"
    ForensicsAnalyst = "ForensicsAnalyst"
    SecurityAnalyst = "SecurityAnalyst"
    NetworkAnalyst = "NetworkAnalyst"
    SystemAdministrator = "SystemAdministrator"
    CommunicationsLead = "CommunicationsLead"
    LegalCounsel = "LegalCounsel"
    ComplianceOfficer = "ComplianceOfficer"
    ExecutiveSponsor = "ExecutiveSponsor"


class EvidenceType(str, Enum):
    DiskImage = "DiskImage"
    MemoryDump = "MemoryDump"
    NetworkCapture = "NetworkCapture"
    LogFile = "LogFile"
    Registry = "Registry"
    FileSystem = "FileSystem"
    Database = "Database"
    Email = "Email"
    Document = "Document"
    Screenshot = "Screenshot"
    Video = "Video"
    Audio = "Audio"
    Mobile = "Mobile"
    Cloud = "Cloud"


class PlaybookStatus(str, Enum):
    NotStarted = "NotStarted"
    InProgress = "InProgress"
    Completed = "Completed"
    Failed = "Failed"
    Skipped = "Skipped"
    Paused = "Paused"


class CommunicationChannel(str, Enum):
    Email = "Email"
    Slack = "Slack"
    Teams = "Teams"
    Phone = "Phone"
    SMS = "SMS"
    WebPortal = "WebPortal"
    Dashboard = "Dashboard"
    API = "API"


# Statuses that count as "done" for metrics and dashboards.
TERMINAL_STATUSES = (IncidentStatus.Closed, IncidentStatus.Resolved)
