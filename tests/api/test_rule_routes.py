"""API tests — automation and escalation rules."""

import pytest

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/rules"


async def test_automation_rule_on_new_critical_incident(client):
    responder = (await client.post("/api/v1/responders/", json={"name": "John Smith", "role": "IncidentCommander"})).json()
    rule = (await client.post(f"{BASE}/automation", json={
        "name": "Critical auto-assign",
        "trigger_conditions": {"severity": "Critical"},
        "actions": [{"type": "assign_responder", "parameters": {"responder_id": responder["id"]}}],
    })).json()
    incident = (await client.post("/api/v1/incidents/", json={"title": "DC compromise", "severity": "Critical"})).json()

    resp = await client.post(f"/api/v1/incidents/{incident['id']}/automation/evaluate")

    assert resp.json() == {"executed_rules": [rule["id"]]}
    incident = (await client.get(f"/api/v1/incidents/{incident['id']}")).json()
    assert [r["name"] for r in incident["responders"]] == ["John Smith"]
    rules = (await client.get(f"{BASE}/automation")).json()
    assert rules[0]["execution_count"] == 1


async def test_execute_rule_directly(client, created_incident):
    rule = (await client.post(f"{BASE}/automation", json={
        "name": "Notify SOC",
        "actions": [{"type": "send_notification", "parameters": {"recipients": "soc@example.com"}}],
    })).json()

    resp = await client.post(f"{BASE}/automation/{rule['id']}/execute", json={"incident_id": created_incident["id"]})

    assert resp.status_code == 200
    incident = (await client.get(f"/api/v1/incidents/{created_incident['id']}")).json()
    assert incident["communications"][0]["recipients"] == ["soc@example.com"]

    missing = await client.post(f"{BASE}/automation/rule_missing/execute", json={"incident_id": created_incident["id"]})
    assert missing.status_code == 404


async def test_escalation_rule_fires_after_threshold(client, created_incident, fake_time):
    rule = (await client.post(f"{BASE}/escalation", json={
        "name": "High for an hour",
        "trigger_severity": "High",
        "time_threshold_minutes": 60,
        "escalate_to_severity": "Critical",
    })).json()
    evaluate = f"/api/v1/incidents/{created_incident['id']}/escalation/evaluate"

    assert (await client.post(evaluate)).json() == {"fired_rules": []}

    fake_time.advance(minutes=61)
    assert (await client.post(evaluate)).json() == {"fired_rules": [rule["id"]]}
    assert (await client.post(evaluate)).json() == {"fired_rules": []}

    incident = (await client.get(f"/api/v1/incidents/{created_incident['id']}")).json()
    assert incident["severity"] == "Critical"
    assert len((await client.get(f"{BASE}/escalation")).json()) == 1


async def test_invalid_rule_body(client):
    resp = await client.post(f"{BASE}/automation", json={"name": "x", "trigger_conditions": {"severity": "Huge"}})
    assert resp.status_code == 422


async def test_rule_with_unknown_channel_is_rejected(client):
    resp = await client.post(f"{BASE}/automation", json={
        "name": "Page on-call",
        "actions": [{"type": "send_notification", "parameters": {"channel": "pager"}}],
    })

    assert resp.status_code == 422
    assert (await client.get(f"{BASE}/automation")).json() == []
