"""Export routes — incident snapshots as CSV or JSON."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ...dependencies import get_exporter, get_incident_store
from ...export.exporter import SUPPORTED_FORMATS
from ...models import IncidentSearchFilters, IncidentSeverity, IncidentStatus

router = APIRouter(prefix="/export", tags=["export"])

MEDIA_TYPES = {"csv": "text/csv", "json": "application/json"}


@router.get("/incidents")
async def export_incidents(
    format: str = Query("json", pattern="^(csv|json)$"),
    severity: Optional[IncidentSeverity] = None,
    status: Optional[IncidentStatus] = None,
    save: bool = False,
    store=Depends(get_incident_store),
    exporter=Depends(get_exporter),
):
    """Download incidents. ``save=true`` also writes a copy to the export dir."""
    incidents = store.filter_incidents(IncidentSearchFilters(severity=severity, status=status))

    headers = {"Content-Disposition": f'attachment; filename="incidents.{format}"'}
    if save:
        headers["X-Export-Path"] = exporter.export_to_file(incidents, format)

    return Response(
        content=exporter.render(incidents, format),
        media_type=MEDIA_TYPES[format],
        headers=headers,
    )


@router.get("/formats")
async def export_formats():
    return {"formats": list(SUPPORTED_FORMATS)}
