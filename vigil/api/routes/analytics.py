"""Analytics routes — metrics, dashboard and team snapshots."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...dependencies import get_event_bus, get_incident_store

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/metrics")
async def incident_metrics(store=Depends(get_incident_store)):
    return store.generate_incident_metrics()


@router.get("/dashboard")
async def incident_dashboard(store=Depends(get_incident_store)):
    return store.generate_incident_dashboard()


@router.get("/team")
async def response_team_metrics(store=Depends(get_incident_store)):
    return store.generate_response_team_metrics()


@router.get("/events")
async def recent_events(
    limit: int = Query(50, ge=1, le=500),
    incident_id: Optional[str] = Query(None),
    bus=Depends(get_event_bus),
):
    """Recent change notifications, for clients polling instead of streaming."""
    return bus.recent(limit, incident_id=incident_id)
