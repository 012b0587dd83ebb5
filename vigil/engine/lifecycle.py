"""Incident status graph, enforced only when the store runs in strict mode."""

from ..models.enums import IncidentStatus as S

VALID_TRANSITIONS: dict[S, tuple[S, ...]] = {
    S.New: (S.Assigned, S.InProgress, S.Investigating, S.Closed),
    S.Assigned: (S.InProgress, S.Investigating, S.Closed),
    S.InProgress: (S.Assigned, S.Investigating, S.Contained, S.Resolved, S.Closed),
    S.Investigating: (S.Assigned, S.Contained, S.Resolved, S.Closed),
    S.Contained: (S.Assigned, S.Eradicated, S.Recovering, S.Resolved, S.Closed),
    S.Eradicated: (S.Assigned, S.Recovering, S.Resolved, S.Closed),
    S.Recovering: (S.Assigned, S.Resolved, S.Closed),
    S.Resolved: (S.Closed, S.Reopened),
    S.Closed: (S.Reopened,),
    S.Reopened: (S.Assigned, S.InProgress, S.Investigating, S.Closed),
}


class InvalidTransitionError(ValueError):
    """Raised in strict mode when a status change is not in the graph."""

    def __init__(self, incident_id: str, current: S, target: S):
        self.incident_id = incident_id
        self.current = current
        self.target = target
        allowed = [s.value for s in VALID_TRANSITIONS.get(current, ())]
        super().__init__(
            f"Cannot transition incident {incident_id} from {current.value} to {target.value}. Allowed: {allowed}"
        )


def can_transition(current: S, target: S) -> bool:
    if current == target:
        return True
    return target in VALID_TRANSITIONS.get(current, ())
