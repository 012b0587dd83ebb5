"""Responder registry routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ...dependencies import get_incident_store
from ...models import ResponderRole, ResponderSearchFilters

router = APIRouter(prefix="/responders", tags=["responders"])


class CreateResponderRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = ""
    role: ResponderRole = ResponderRole.SecurityAnalyst
    phone: Optional[str] = None
    availability: str = "available"
    skills: list[str] = []
    contact_info: dict[str, str] = {}
    active: bool = True


@router.get("/")
async def list_responders(
    role: Optional[ResponderRole] = None,
    skills: Optional[list[str]] = Query(None),
    active_only: bool = False,
    store=Depends(get_incident_store),
):
    """List responders. ``skills`` matches any of the given skills."""
    filters = ResponderSearchFilters(role=role, skills=skills or [], active_only=active_only)
    return store.search_responders(filters)


@router.post("/", status_code=201)
async def create_responder(body: CreateResponderRequest, store=Depends(get_incident_store)):
    responder_id = store.add_responder(body)
    return store.get_responder(responder_id)


@router.get("/{responder_id}")
async def get_responder(responder_id: str, store=Depends(get_incident_store)):
    responder = store.get_responder(responder_id)
    if responder is None:
        raise HTTPException(status_code=404, detail="Responder not found")
    return responder
