"""API tests — incident lifecycle and incident-owned records."""

import pytest

from vigil.dependencies import get_incident_store
from vigil.engine.incident_store import IncidentStore
from vigil.main import app

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/incidents"


# -----------------------------------------------------------------------
# Create / read / update
# -----------------------------------------------------------------------

async def test_create_incident(created_incident):
    assert created_incident["id"].startswith("inc_")
    assert created_incident["status"] == "New"
    assert created_incident["severity"] == "High"
    assert [e["event_type"] for e in created_incident["timeline"]] == ["incident_created"]


async def test_create_rejects_unknown_severity(client):
    resp = await client.post(f"{BASE}/", json={"title": "x", "severity": "Apocalyptic"})
    assert resp.status_code == 422
    assert resp.json()["error"] is True


async def test_get_unknown_incident_returns_envelope(client):
    resp = await client.get(f"{BASE}/inc_missing", headers={"X-Request-ID": "req-42"})

    assert resp.status_code == 404
    body = resp.json()
    assert body["detail"] == "Incident not found"
    assert body["status_code"] == 404
    assert body["request_id"] == "req-42"
    assert resp.headers["X-Request-ID"] == "req-42"


async def test_patch_merges_fields(client, created_incident):
    resp = await client.patch(f"{BASE}/{created_incident['id']}", json={
        "status": "Investigating",
        "cost_estimate": 2500.0,
        "timeline": [],
    })

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "Investigating"
    assert body["cost_estimate"] == 2500.0
    assert len(body["timeline"]) == 2
    assert body["timeline"][-1]["details"] == {"status": "Investigating", "cost_estimate": "2500.0"}


async def test_patch_with_bad_enum_leaves_incident_alone(client, created_incident):
    incident_id = created_incident["id"]
    resp = await client.patch(f"{BASE}/{incident_id}", json={"status": "Vaporized", "title": "changed"})
    assert resp.status_code == 422

    after = (await client.get(f"{BASE}/{incident_id}")).json()
    assert after["title"] == created_incident["title"]
    assert len(after["timeline"]) == 1


async def test_list_with_filters_and_search(client, created_incident):
    await client.post(f"{BASE}/", json={"title": "Lost laptop", "category": "PhysicalSecurity", "severity": "Low"})

    high = (await client.get(f"{BASE}/", params={"severity": "High"})).json()
    assert [i["id"] for i in high] == [created_incident["id"]]

    searched = (await client.get(f"{BASE}/", params={"q": "laptop"})).json()
    assert [i["title"] for i in searched] == ["Lost laptop"]

    tagged = (await client.get(f"{BASE}/", params=[("tags", "vpn"), ("tags", "nothing")])).json()
    assert len(tagged) == 1

    page = (await client.get(f"{BASE}/", params={"limit": 1, "offset": 1})).json()
    assert len(page) == 1


async def test_list_by_created_window(client, created_incident, fake_time):
    before = fake_time.current.isoformat()
    fake_time.advance(hours=1)
    await client.post(f"{BASE}/", json={"title": "later"})

    early = (await client.get(f"{BASE}/", params={"created_to": before})).json()
    assert [i["id"] for i in early] == [created_incident["id"]]


# -----------------------------------------------------------------------
# Lifecycle
# -----------------------------------------------------------------------

async def test_assign_escalate_close(client, created_incident):
    incident_id = created_incident["id"]

    resp = await client.post(f"{BASE}/{incident_id}/assign", json={"responder_id": "rsp_unknown"})
    assert resp.json()["status"] == "Assigned"
    assert resp.json()["assigned_to"] == "rsp_unknown"

    resp = await client.post(f"{BASE}/{incident_id}/escalate", json={"severity": "Critical", "reason": "spreading"})
    assert resp.json()["severity"] == "Critical"

    resp = await client.post(f"{BASE}/{incident_id}/close", json={"resolution_notes": "blocked proxy pool"})
    body = resp.json()
    assert body["status"] == "Closed"
    assert body["resolution_notes"] == "blocked proxy pool"
    assert [e["event_type"] for e in body["timeline"]][-3:] == [
        "incident_assigned",
        "incident_escalated",
        "incident_closed",
    ]


async def test_strict_mode_rejects_illegal_transition(client, clock):
    strict = IncidentStore(clock=clock, enforce_transitions=True)
    app.dependency_overrides[get_incident_store] = lambda: strict
    incident_id = strict.create_incident({"title": "x"})

    resp = await client.patch(f"{BASE}/{incident_id}", json={"status": "Resolved"})

    assert resp.status_code == 409
    assert "Cannot transition" in resp.json()["detail"]
    assert strict.get_incident(incident_id).status.value == "New"


async def test_timeline_and_report(client, created_incident):
    incident_id = created_incident["id"]
    resp = await client.post(f"{BASE}/{incident_id}/timeline", json={
        "event_type": "note",
        "description": "Called the ISP",
        "actor": "dana",
    })
    assert resp.status_code == 201

    timeline = (await client.get(f"{BASE}/{incident_id}/timeline")).json()
    assert timeline[-1]["source"] == "manual"
    assert timeline[-1]["automated"] is False

    report = await client.get(f"{BASE}/{incident_id}/report")
    assert report.headers["content-type"].startswith("text/plain")
    assert report.text.startswith("INCIDENT RESPONSE REPORT")
    assert "- vpn-gw-01" in report.text
    assert "Called the ISP" in report.text


# -----------------------------------------------------------------------
# Evidence and tasks
# -----------------------------------------------------------------------

async def test_evidence_with_custody_and_analysis(client, created_incident):
    incident_id = created_incident["id"]
    evidence_id = (await client.post(f"{BASE}/{incident_id}/evidence", json={
        "name": "VPN auth log",
        "evidence_type": "LogFile",
        "collected_by": "dana",
    })).json()["id"]

    resp = await client.post(
        f"{BASE}/{incident_id}/evidence/{evidence_id}/custody",
        json={"action": "transferred", "person": "sam", "location": "locker 3"},
    )
    assert resp.status_code == 201
    resp = await client.post(
        f"{BASE}/{incident_id}/evidence/{evidence_id}/analysis",
        json={"analyst": "sam", "analysis_type": "log review", "confidence": 0.8},
    )
    assert resp.status_code == 201

    evidence = (await client.get(f"{BASE}/{incident_id}")).json()["evidence"][0]
    assert evidence["chain_of_custody"][0]["person"] == "sam"
    assert evidence["analysis_results"][0]["confidence"] == 0.8

    missing = await client.post(f"{BASE}/{incident_id}/evidence/evd_missing/custody", json={"action": "x"})
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Evidence not found"


async def test_task_checklist_flow(client, created_incident):
    incident_id = created_incident["id"]
    task_id = (await client.post(f"{BASE}/{incident_id}/tasks", json={
        "title": "Reset exposed accounts",
        "checklist": [{"description": "Export account list"}],
    })).json()["id"]
    item_id = (await client.post(
        f"{BASE}/{incident_id}/tasks/{task_id}/checklist", json={"description": "Force password reset"}
    )).json()["id"]

    resp = await client.post(
        f"{BASE}/{incident_id}/tasks/{task_id}/checklist/{item_id}/complete", json={"completed_by": "dana"}
    )
    assert resp.status_code == 200

    resp = await client.patch(
        f"{BASE}/{incident_id}/tasks/{task_id}/status", json={"status": "completed", "completed_by": "dana"}
    )
    assert resp.status_code == 200

    task = (await client.get(f"{BASE}/{incident_id}")).json()["tasks"][0]
    assert task["status"] == "completed"
    assert task["completed_by"] == "dana"
    assert [i["completed"] for i in task["checklist"]] == [False, True]

    missing = await client.patch(f"{BASE}/{incident_id}/tasks/task_missing/status", json={"status": "completed"})
    assert missing.status_code == 404


# -----------------------------------------------------------------------
# Response records
# -----------------------------------------------------------------------

async def test_response_records(client, created_incident):
    incident_id = created_incident["id"]

    for path, body in [
        ("communications", {"channel": "Slack", "recipients": ["#ir"], "subject": "status"}),
        ("containment", {"action": "Block proxy ASN", "implemented_by": "net-team"}),
        ("eradication", {"action": "Rotate VPN PSK", "target_systems": ["vpn-gw-01"]}),
        ("recovery", {"action": "Re-enable VPN", "systems_restored": ["vpn-gw-01"]}),
        ("notifications", {"recipient": "regulator@example.gov", "notification_type": "regulatory"}),
    ]:
        resp = await client.post(f"{BASE}/{incident_id}/{path}", json=body)
        assert resp.status_code == 201, path

    lesson_id = (await client.post(f"{BASE}/{incident_id}/lessons", json={
        "category": "detection",
        "description": "MFA was not enforced on the VPN",
    })).json()["id"]
    resp = await client.post(
        f"{BASE}/{incident_id}/lessons/{lesson_id}/action-items",
        json={"description": "Enforce MFA", "assigned_to": "it-ops"},
    )
    assert resp.status_code == 201

    resp = await client.put(f"{BASE}/{incident_id}/impact", json={"affected_customers": 120, "data_compromised": True})
    assert resp.json()["affected_customers"] == 120

    incident = (await client.get(f"{BASE}/{incident_id}")).json()
    assert incident["communications"][0]["channel"] == "Slack"
    assert incident["containment_actions"][0]["action"] == "Block proxy ASN"
    assert len(incident["eradication_actions"]) == 1
    assert len(incident["recovery_actions"]) == 1
    assert incident["lessons_learned"][0]["action_items"][0]["description"] == "Enforce MFA"
    assert incident["external_notifications"][0]["recipient"] == "regulator@example.gov"
    assert incident["impact_assessment"]["data_compromised"] is True
    # create + 5 records + lesson + action item + impact
    assert len(incident["timeline"]) == 9


async def test_records_on_unknown_incident(client):
    resp = await client.post(f"{BASE}/inc_missing/containment", json={"action": "x"})
    assert resp.status_code == 404


async def test_assign_registered_responder(client, created_incident):
    responder = (await client.post("/api/v1/responders/", json={"name": "Dana Lee", "role": "ForensicsAnalyst"})).json()

    resp = await client.post(f"{BASE}/{created_incident['id']}/responders", json={"responder_id": responder["id"]})
    assert [r["name"] for r in resp.json()] == ["Dana Lee"]

    resp = await client.post(f"{BASE}/{created_incident['id']}/responders", json={"responder_id": "rsp_missing"})
    assert resp.status_code == 404
