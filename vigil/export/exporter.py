"""Incident exporter — CSV/JSON snapshots of the incident store."""

import csv
import io
import json
import os
from datetime import datetime, timezone
from pathlib import Path

from ..models.incident import Incident
from ..utils.logging import get_logger

logger = get_logger("export.exporter")

SUPPORTED_FORMATS = ("csv", "json")

CSV_COLUMNS = [
    "id",
    "title",
    "severity",
    "status",
    "category",
    "priority",
    "assigned_to",
    "reported_by",
    "affected_systems",
    "tags",
    "cost_estimate",
    "sla_breach",
    "created_at",
    "updated_at",
    "detected_at",
]


class IncidentExporter:
    """Serializes incidents to CSV or JSON text, optionally writing a file
    under ``export_dir``. CSV rows are flat summaries; JSON carries the full
    record including timeline and nested collections."""

    def __init__(self, export_dir: str = "exports") -> None:
        self._export_dir = export_dir

    def _ensure_export_dir(self) -> None:
        """Create the export directory if it does not exist."""
        Path(self._export_dir).mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _row(incident: Incident) -> dict:
        return {
            "id": incident.id,
            "title": incident.title,
            "severity": incident.severity.value,
            "status": incident.status.value,
            "category": incident.category.value,
            "priority": incident.priority,
            "assigned_to": incident.assigned_to,
            "reported_by": incident.reported_by,
            "affected_systems": ";".join(incident.affected_systems),
            "tags": ";".join(incident.tags),
            "cost_estimate": incident.cost_estimate,
            "sla_breach": incident.sla_breach,
            "created_at": incident.created_at.isoformat(),
            "updated_at": incident.updated_at.isoformat(),
            "detected_at": incident.detected_at.isoformat(),
        }

    def to_csv(self, incidents: list[Incident]) -> str:
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS)
        writer.writeheader()
        writer.writerows(self._row(i) for i in incidents)
        return buffer.getvalue()

    def to_json(self, incidents: list[Incident]) -> str:
        records = [i.model_dump(mode="json") for i in incidents]
        return json.dumps(records, indent=2)

    def render(self, incidents: list[Incident], export_format: str) -> str:
        if export_format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported export format '{export_format}', expected one of {SUPPORTED_FORMATS}")
        if export_format == "csv":
            return self.to_csv(incidents)
        return self.to_json(incidents)

    def export_to_file(self, incidents: list[Incident], export_format: str) -> str:
        """Write an export file and return its path."""
        content = self.render(incidents, export_format)
        self._ensure_export_dir()

        timestamp_str = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
        file_path = os.path.join(self._export_dir, f"incidents_{timestamp_str}.{export_format}")
        with open(file_path, "w", newline="", encoding="utf-8") as f:
            f.write(content)

        logger.info("export_written", path=file_path, format=export_format, count=len(incidents))
        return file_path
