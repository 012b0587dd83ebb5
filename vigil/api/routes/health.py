"""Health check route."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ...dependencies import get_app_config, get_event_bus, get_incident_store

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(config=Depends(get_app_config), store=Depends(get_incident_store), bus=Depends(get_event_bus)):
    return {
        "name": config.app_name,
        "status": "operational",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "incidents": len(store.get_all_incidents()),
        "responders": len(store.get_all_responders()),
        "playbooks": len(store.get_all_playbooks()),
        "event_bus": bus.get_stats(),
    }
