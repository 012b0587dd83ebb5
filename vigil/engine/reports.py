"""Plain-text incident report."""

from ..models.incident import Incident


def render_incident_report(incident: Incident) -> str:
    lines = [
        "INCIDENT RESPONSE REPORT",
        "========================",
        "",
        f"Incident ID: {incident.id}",
        f"Title: {incident.title}",
        f"Category: {incident.category.value}",
        f"Severity: {incident.severity.value}",
        f"Status: {incident.status.value}",
        f"Priority: {incident.priority}",
        f"Assigned To: {incident.assigned_to or 'Unassigned'}",
        f"Created: {incident.created_at.isoformat()}",
        f"Updated: {incident.updated_at.isoformat()}",
        f"Detected: {incident.detected_at.isoformat()}",
        "",
        "Description:",
        incident.description,
        "",
        "Affected Systems:",
    ]
    lines.extend(f"- {system}" for system in incident.affected_systems)

    lines += ["", "Indicators of Compromise:"]
    lines.extend(f"- {ioc}" for ioc in incident.indicators)

    if incident.responders:
        lines += ["", "Response Team:"]
        lines.extend(f"- {r.name} ({r.role.value})" for r in incident.responders)

    lines += ["", "Timeline:"]
    for event in incident.timeline:
        lines.append(f"- {event.timestamp.isoformat()}: {event.description} ({event.actor})")

    if incident.resolution_notes:
        lines += ["", "Resolution:", incident.resolution_notes]

    return "\n".join(lines) + "\n"
