"""Tests for record models and their wire format."""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from vigil.models import (
    DateRange,
    Incident,
    IncidentCategory,
    IncidentSeverity,
    IncidentStatus,
    PlaybookStatus,
    TimelineEvent,
)

NOW = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _incident(**fields):
    return Incident(id="inc_1", created_at=NOW, updated_at=NOW, detected_at=NOW, **fields)


class TestEnums:

    def test_wire_values_are_member_names(self):
        assert IncidentStatus.InProgress.value == "InProgress"
        assert PlaybookStatus.NotStarted.value == "NotStarted"
        assert [s.value for s in IncidentSeverity] == ["Info", "Low", "Medium", "High", "Critical"]


class TestIncident:

    def test_defaults(self):
        incident = _incident()

        assert incident.status == IncidentStatus.New
        assert incident.severity == IncidentSeverity.Medium
        assert incident.timeline == []

    def test_set_like_fields_drop_duplicates(self):
        incident = _incident(tags=["a", "b", "a"], indicators=["1.2.3.4", "1.2.3.4"])

        assert incident.tags == ["a", "b"]
        assert incident.indicators == ["1.2.3.4"]

    def test_assignment_is_validated(self):
        incident = _incident()
        with pytest.raises(ValidationError):
            incident.status = "Exploded"

    def test_json_uses_enum_values(self):
        data = json.loads(_incident(severity="Critical").model_dump_json())

        assert data["severity"] == "Critical"
        assert data["status"] == "New"

    def test_json_round_trip_restores_enums(self):
        incident = _incident(
            status="InProgress",
            severity="Critical",
            category="DataBreach",
            tags=["pii"],
            timeline=[TimelineEvent(id="evt_1", timestamp=NOW, event_type="incident_created")],
        )

        restored = Incident.model_validate_json(incident.model_dump_json())

        assert restored.model_dump() == incident.model_dump()
        assert restored.status is IncidentStatus.InProgress
        assert restored.severity is IncidentSeverity.Critical
        assert restored.category is IncidentCategory.DataBreach
        assert restored.timeline[0].timestamp == NOW

    def test_naive_detected_at_is_utc(self):
        incident = Incident(
            id="inc_1", created_at=NOW, updated_at=NOW, detected_at=datetime(2024, 3, 1, 8, 0)
        )
        assert incident.detected_at.tzinfo == timezone.utc


class TestTimelineEvent:

    def test_events_are_frozen(self):
        event = TimelineEvent(id="evt_1", timestamp=NOW, event_type="note")
        with pytest.raises(ValidationError):
            event.description = "rewritten"


class TestDateRange:

    def test_inclusive_bounds(self):
        window = DateRange(start=NOW, end=datetime(2024, 3, 2))

        assert window.contains(NOW)
        assert window.contains(datetime(2024, 3, 2, tzinfo=timezone.utc))
        assert not window.contains(datetime(2024, 3, 2, 0, 0, 1, tzinfo=timezone.utc))
