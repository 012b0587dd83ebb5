"""Search filters. Omitted fields are not applied."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .enums import IncidentCategory, IncidentSeverity, IncidentStatus, ResponderRole
from .types import UTCDateTime


class DateRange(BaseModel):
    start: UTCDateTime
    end: UTCDateTime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class IncidentSearchFilters(BaseModel):
    severity: Optional[IncidentSeverity] = None
    status: Optional[IncidentStatus] = None
    category: Optional[IncidentCategory] = None
    assigned_to: Optional[str] = None
    tags: list[str] = []
    date_range: Optional[DateRange] = None


class ResponderSearchFilters(BaseModel):
    role: Optional[ResponderRole] = None
    skills: list[str] = []
    active_only: bool = False


class PlaybookSearchFilters(BaseModel):
    category: Optional[IncidentCategory] = None
    severity_threshold: Optional[IncidentSeverity] = None
    active_only: bool = False
