"""Sample responders, playbooks and rules for a fresh store."""

from ..utils.logging import get_logger

logger = get_logger("engine.seed")

DEFAULT_RESPONDERS = [
    {
        "name": "John Smith",
        "email": "john.smith@company.com",
        "role": "IncidentCommander",
        "phone": "+1-555-0123",
        "availability": "24/7",
        "skills": ["incident_management", "forensics"],
    },
    {
        "name": "Maria Garcia",
        "email": "maria.garcia@company.com",
        "role": "ForensicsAnalyst",
        "phone": "+1-555-0124",
        "availability": "business_hours",
        "skills": ["forensics", "malware_analysis", "memory_analysis"],
    },
    {
        "name": "Alex Chen",
        "email": "alex.chen@company.com",
        "role": "NetworkAnalyst",
        "availability": "on_call",
        "skills": ["network_analysis", "firewall", "ids"],
    },
]

DEFAULT_PLAYBOOKS = [
    {
        "name": "Malware Incident Response",
        "description": "Standard response playbook for malware infections",
        "category": "Malware",
        "severity_threshold": "Medium",
        "steps": [
            {
                "id": "malware-identify",
                "title": "Identify Infected Hosts",
                "description": "Determine which systems are infected",
                "instructions": "Correlate EDR alerts, scan for known hashes, review process trees",
                "estimated_duration": 45,
                "required_role": "SecurityAnalyst",
                "verification_criteria": ["Infected host list confirmed"],
            },
            {
                "id": "malware-isolate",
                "title": "Isolate Infected Hosts",
                "description": "Cut infected systems off from the network",
                "instructions": "Apply network quarantine, disable affected accounts",
                "estimated_duration": 30,
                "required_role": "NetworkAnalyst",
                "dependencies": ["malware-identify"],
                "verification_criteria": ["Hosts unreachable from production network"],
            },
            {
                "id": "malware-analyze",
                "title": "Analyze Sample",
                "description": "Capture and analyze the malware sample",
                "instructions": "Acquire memory dump, extract sample, run static and dynamic analysis",
                "estimated_duration": 120,
                "required_role": "ForensicsAnalyst",
                "dependencies": ["malware-isolate"],
                "verification_criteria": ["IOCs extracted", "Persistence mechanisms documented"],
            },
        ],
        "prerequisites": ["EDR console access"],
        "success_criteria": ["Malware removed", "IOCs shared"],
        "created_by": "security_team",
    },
    {
        "name": "Data Breach Response",
        "description": "Standard response playbook for data breach incidents",
        "category": "DataBreach",
        "severity_threshold": "Medium",
        "steps": [
            {
                "id": "breach-assess",
                "title": "Initial Assessment",
                "description": "Assess the scope and impact of the breach",
                "instructions": "Review logs, identify affected systems, estimate data exposure",
                "estimated_duration": 30,
                "required_role": "SecurityAnalyst",
                "verification_criteria": ["Impact assessment completed"],
            },
            {
                "id": "breach-contain",
                "title": "Containment",
                "description": "Contain the breach to prevent further damage",
                "instructions": "Isolate affected systems, revoke compromised credentials",
                "estimated_duration": 60,
                "required_role": "SystemAdministrator",
                "dependencies": ["breach-assess"],
                "automation_script": "containment_script.sh",
                "verification_criteria": ["Systems isolated", "Credentials revoked"],
            },
        ],
        "estimated_duration": 240,
        "required_roles": ["IncidentCommander", "SecurityAnalyst"],
        "prerequisites": ["Access to security tools"],
        "success_criteria": ["Breach contained", "Evidence preserved"],
        "created_by": "security_team",
    },
]


def seed_sample_data(store) -> dict:
    """Load default responders, playbooks and the auto-assignment rule.

    Skips anything already present by name, so calling it twice is harmless.
    """
    created = {"responders": 0, "playbooks": 0, "automation_rules": 0}

    known_responders = {r.name: r.id for r in store.get_all_responders()}
    for responder in DEFAULT_RESPONDERS:
        if responder["name"] not in known_responders:
            known_responders[responder["name"]] = store.add_responder(responder)
            created["responders"] += 1

    known_playbooks = {p.name for p in store.get_all_playbooks()}
    for playbook in DEFAULT_PLAYBOOKS:
        if playbook["name"] not in known_playbooks:
            store.create_playbook(playbook)
            created["playbooks"] += 1

    known_rules = {r.name for r in store.get_all_automation_rules()}
    if "Critical Incident Auto-Assignment" not in known_rules:
        store.create_automation_rule({
            "name": "Critical Incident Auto-Assignment",
            "description": "Put the incident commander on every critical incident",
            "trigger_conditions": {"severity": "Critical"},
            "actions": [
                {
                    "type": "assign_responder",
                    "parameters": {"responder_id": known_responders["John Smith"]},
                },
                {
                    "type": "send_notification",
                    "parameters": {
                        "channel": "Email",
                        "recipients": "soc@company.com",
                        "subject": "Critical incident opened",
                        "message": "A critical incident was auto-assigned to the incident commander.",
                    },
                },
            ],
        })
        created["automation_rules"] += 1

    logger.info("sample_data_seeded", **created)
    return created
