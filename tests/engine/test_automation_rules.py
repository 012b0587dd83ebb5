"""Tests for automation and escalation rules."""

import pytest
from pydantic import ValidationError

from vigil.engine.incident_store import IncidentStore
from vigil.models import IncidentSeverity


def _critical_malware_rule(store, responder_id, **extra):
    return store.create_automation_rule({
        "name": "Critical malware",
        "trigger_conditions": {"severity": "Critical", "category": "Malware"},
        "actions": [{"type": "assign_responder", "parameters": {"responder_id": responder_id}}],
        **extra,
    })


class TestAutomationMatching:

    def test_any_mode_matches_on_one_condition(self, store, responder_id):
        rule_id = _critical_malware_rule(store, responder_id)
        incident_id = store.create_incident({"title": "x", "severity": "Critical", "category": "Phishing"})

        assert store.evaluate_automation_rules(incident_id) == [rule_id]

    def test_all_mode_needs_every_condition(self, clock):
        store = IncidentStore(clock=clock, automation_match_mode="all")
        responder_id = store.add_responder({"name": "r"})
        rule_id = _critical_malware_rule(store, responder_id)

        partial = store.create_incident({"title": "x", "severity": "Critical", "category": "Phishing"})
        full = store.create_incident({"title": "y", "severity": "Critical", "category": "Malware"})

        assert store.evaluate_automation_rules(partial) == []
        assert store.evaluate_automation_rules(full) == [rule_id]

    def test_disabled_and_empty_rules_never_fire(self, store, responder_id):
        _critical_malware_rule(store, responder_id, enabled=False)
        store.create_automation_rule({"name": "catch-all", "actions": []})
        incident_id = store.create_incident({"title": "x", "severity": "Critical", "category": "Malware"})

        assert store.evaluate_automation_rules(incident_id) == []

    def test_unknown_incident(self, store):
        assert store.evaluate_automation_rules("inc_missing") == []


class TestAutomationActions:

    def test_assign_action_and_counters(self, store, responder_id):
        rule_id = _critical_malware_rule(store, responder_id)
        incident_id = store.create_incident({"title": "x", "severity": "Critical"})

        store.evaluate_automation_rules(incident_id)

        incident = store.get_incident(incident_id)
        assert [r.id for r in incident.responders] == [responder_id]
        assert incident.timeline[-1].actor == "automation:Critical malware"
        rule = store.get_automation_rule(rule_id)
        assert rule.execution_count == 1
        assert rule.last_triggered is not None

    def test_playbook_and_notification_actions(self, store, incident_id):
        playbook_id = store.create_playbook({"name": "Malware", "steps": [{"title": "triage"}]})
        rule_id = store.create_automation_rule({
            "name": "malware kit",
            "trigger_conditions": {"category": "Malware"},
            "actions": [
                {"type": "execute_playbook", "parameters": {"playbook_id": playbook_id}},
                {"type": "send_notification", "parameters": {"channel": "Slack", "recipients": "#ir, #soc"}},
                {"type": "page_the_ceo", "parameters": {}},
            ],
        })

        assert store.execute_automation_rule(rule_id, incident_id) is True

        assert len(store.get_executions_for_incident(incident_id)) == 1
        communication = store.get_incident(incident_id).communications[-1]
        assert communication.channel.value == "Slack"
        assert communication.recipients == ["#ir", "#soc"]

    def test_execute_unknown_ids(self, store, incident_id):
        assert store.execute_automation_rule("rule_missing", incident_id) is False

    def test_mixed_rule_applies_every_action(self, store, responder_id):
        rule_id = _critical_malware_rule(store, responder_id, actions=[
            {"type": "assign_responder", "parameters": {"responder_id": responder_id}},
            {"type": "send_notification", "parameters": {"channel": "SMS", "recipients": "+15550100"}},
        ])
        incident_id = store.create_incident({"title": "x", "severity": "Critical"})

        assert store.evaluate_automation_rules(incident_id) == [rule_id]

        incident = store.get_incident(incident_id)
        assert len(incident.responders) == 1
        assert incident.communications[-1].channel.value == "SMS"
        assert store.get_automation_rule(rule_id).execution_count == 1


class TestRuleActionValidation:

    @pytest.mark.parametrize("action", [
        {"type": "send_notification", "parameters": {"channel": "email"}},
        {"type": "assign_responder", "parameters": {}},
        {"type": "execute_playbook", "parameters": {"playbook_id": " "}},
    ])
    def test_bad_parameters_rejected_at_creation(self, store, responder_id, action):
        with pytest.raises(ValidationError):
            _critical_malware_rule(store, responder_id, actions=[
                {"type": "assign_responder", "parameters": {"responder_id": responder_id}},
                action,
            ])

        assert store.get_all_automation_rules() == []

    def test_rejected_rule_leaves_incidents_untouched(self, store, responder_id):
        incident_id = store.create_incident({"title": "x", "severity": "Critical"})
        with pytest.raises(ValidationError):
            _critical_malware_rule(store, responder_id, actions=[
                {"type": "assign_responder", "parameters": {"responder_id": responder_id}},
                {"type": "send_notification", "parameters": {"channel": "email"}},
            ])

        assert store.evaluate_automation_rules(incident_id) == []
        incident = store.get_incident(incident_id)
        assert incident.responders == []
        assert len(incident.timeline) == 1


class TestEscalationRules:

    @pytest.fixture
    def rule_id(self, store):
        return store.create_escalation_rule({
            "name": "Stale high",
            "trigger_severity": "High",
            "time_threshold_minutes": 30,
            "escalate_to_severity": "Critical",
            "escalation_contacts": ["ciso@example.com"],
        })

    def test_not_due_before_threshold(self, store, incident_id, rule_id, fake_time):
        fake_time.advance(minutes=29)
        assert store.evaluate_escalation_rules(incident_id) == []

    def test_fires_once_after_threshold(self, store, incident_id, rule_id, fake_time):
        fake_time.advance(minutes=31)

        assert store.evaluate_escalation_rules(incident_id) == [rule_id]

        incident = store.get_incident(incident_id)
        assert incident.severity == IncidentSeverity.Critical
        assert incident.communications[-1].recipients == ["ciso@example.com"]
        assert store.get_escalation_rule(rule_id).execution_count == 1

        store.update_incident(incident_id, {"severity": "High"})
        assert store.evaluate_escalation_rules(incident_id) == []

    def test_closed_incidents_do_not_escalate(self, store, incident_id, rule_id, fake_time):
        store.close_incident(incident_id, "done")
        fake_time.advance(hours=2)
        assert store.evaluate_escalation_rules(incident_id) == []
