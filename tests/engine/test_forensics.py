"""Tests for forensic investigations and the forensics report."""

import pytest


@pytest.fixture
def investigation_id(store, incident_id):
    return store.start_investigation(incident_id, "dana", "fs-02 and backup-01")


class TestInvestigations:

    def test_start_uses_default_toolkit(self, store, incident_id, investigation_id):
        investigation = store.get_investigation(investigation_id)

        assert investigation.incident_id == incident_id
        assert investigation.tools_used == ["EnCase", "Volatility", "Wireshark"]
        assert investigation.methodology == "Standard forensic methodology"
        assert investigation.completed_at is None
        assert store.get_incident(incident_id).timeline[-1].event_type == "investigation_started"

    def test_start_on_unknown_incident(self, store):
        assert store.start_investigation("inc_missing", "dana", "") is None
        assert store.get_all_investigations() == []

    def test_several_investigations_per_incident(self, store, incident_id, investigation_id):
        second = store.start_investigation(incident_id, "sam", "network", tools_used=["Zeek"])

        assert {i.id for i in store.get_investigations_for_incident(incident_id)} == {investigation_id, second}
        assert store.get_investigation(second).tools_used == ["Zeek"]

    def test_findings_track_evidence(self, store, incident_id, investigation_id):
        evidence_id = store.add_evidence(incident_id, {"name": "memory image"})
        finding_id = store.add_forensic_finding(investigation_id, {
            "category": "persistence",
            "description": "Scheduled task launches loader",
            "confidence": 0.9,
            "evidence_references": [evidence_id],
            "recommendations": ["Audit scheduled tasks"],
        })

        investigation = store.get_investigation(investigation_id)
        assert investigation.findings[0].id == finding_id
        assert investigation.evidence_collected == [evidence_id]
        assert store.add_forensic_finding("inv_missing", {"category": "x"}) == ""

    def test_attribution(self, store, investigation_id):
        assert store.set_attribution(investigation_id, {"threat_actor": "FIN7", "confidence": 0.6})
        assert store.get_investigation(investigation_id).attribution.threat_actor == "FIN7"
        assert store.set_attribution("inv_missing", {}) is False

    def test_complete_once(self, store, investigation_id):
        assert store.complete_investigation(investigation_id, "/reports/inv.pdf") is True
        assert store.complete_investigation(investigation_id) is False

        investigation = store.get_investigation(investigation_id)
        assert investigation.completed_at is not None
        assert investigation.report_path == "/reports/inv.pdf"


class TestForensicsReport:

    def test_report_gathers_findings_and_evidence(self, store, incident_id, investigation_id, fake_time):
        used = store.add_evidence(incident_id, {"name": "memory image"})
        store.add_evidence(incident_id, {"name": "unrelated pcap"})
        store.add_forensic_finding(investigation_id, {
            "category": "execution",
            "evidence_references": [used],
            "recommendations": ["Block hash", "Rotate keys"],
        })
        store.add_forensic_finding(investigation_id, {"category": "exfil", "recommendations": ["Rotate keys"]})
        store.set_attribution(investigation_id, {"threat_actor": "unknown"})
        fake_time.advance(hours=3)
        store.complete_investigation(investigation_id)

        report = store.generate_forensics_report(investigation_id)

        assert report.incident_title == "Ransomware on file server"
        assert len(report.findings) == 2
        assert [e.id for e in report.evidence] == [used]
        assert report.recommendations == ["Block hash", "Rotate keys"]
        assert report.attribution.threat_actor == "unknown"
        assert report.duration_hours == pytest.approx(3.0, abs=0.01)

    def test_report_unknown_investigation(self, store):
        assert store.generate_forensics_report("inv_missing") is None
