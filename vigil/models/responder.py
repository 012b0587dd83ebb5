"""Responder model: a response-team member kept in its own registry."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from .enums import ResponderRole


class Responder(BaseModel):
    id: str
    name: str = ""
    email: str = ""
    role: ResponderRole = ResponderRole.SecurityAnalyst
    phone: Optional[str] = None
    availability: str = "available"
    skills: list[str] = []
    contact_info: dict[str, str] = {}
    assigned_at: datetime
    active: bool = True
