# backend/pdi_engine/domain/pdi/transitions.py
"""
Finite transition tables for inspections and defects.

Every status change in the engine goes through one of the pure functions
below, so the rules can be tested without any storage or ledger mechanics.
"""
from __future__ import annotations

from ..errors import InvalidTransition
from .enums import DefectStatus, InspectionStatus, SignoffOutcome

# Operator-driven moves (complete / administrative reopen).
INSPECTION_TRANSITIONS: dict[InspectionStatus, frozenset[InspectionStatus]] = {
    InspectionStatus.IN_PROGRESS: frozenset({InspectionStatus.COMPLETED}),
    InspectionStatus.COMPLETED: frozenset({InspectionStatus.APPROVED, InspectionStatus.REJECTED}),
    InspectionStatus.APPROVED: frozenset(),
    InspectionStatus.REJECTED: frozenset({InspectionStatus.IN_PROGRESS}),
}

# Sign-off driven moves: (current, outcome) -> next
SIGNOFF_TRANSITIONS: dict[tuple[InspectionStatus, SignoffOutcome], InspectionStatus] = {
    (InspectionStatus.COMPLETED, SignoffOutcome.APPROVE): InspectionStatus.APPROVED,
    (InspectionStatus.COMPLETED, SignoffOutcome.REJECT): InspectionStatus.REJECTED,
}

DEFECT_TRANSITIONS: dict[DefectStatus, frozenset[DefectStatus]] = {
    DefectStatus.OPEN: frozenset({DefectStatus.IN_PROGRESS, DefectStatus.RESOLVED, DefectStatus.CLOSED}),
    DefectStatus.IN_PROGRESS: frozenset({DefectStatus.OPEN, DefectStatus.RESOLVED, DefectStatus.CLOSED}),
    DefectStatus.RESOLVED: frozenset({DefectStatus.CLOSED, DefectStatus.OPEN}),
    DefectStatus.CLOSED: frozenset(),
}

_ROLE_OUTCOMES: dict[str, SignoffOutcome] = {
    "approve": SignoffOutcome.APPROVE,
    "approved": SignoffOutcome.APPROVE,
    "approver": SignoffOutcome.APPROVE,
    "reject": SignoffOutcome.REJECT,
    "rejected": SignoffOutcome.REJECT,
    "rejecter": SignoffOutcome.REJECT,
}


def can_transition(current: InspectionStatus, target: InspectionStatus) -> bool:
    return target in INSPECTION_TRANSITIONS.get(current, frozenset())


def require_transition(current: InspectionStatus, target: InspectionStatus, *, entity_id: str | None = None) -> None:
    if not can_transition(current, target):
        raise InvalidTransition(
            f"cannot transition inspection from {current.value} to {target.value}",
            entity_id=entity_id,
        )


def resolve_outcome(role: str, outcome: SignoffOutcome | str | None = None) -> SignoffOutcome:
    """Explicit outcome wins; otherwise the role name itself may carry it."""
    if outcome is not None:
        return SignoffOutcome(outcome)
    return _ROLE_OUTCOMES.get((role or "").strip().lower(), SignoffOutcome.ACKNOWLEDGE)


def next_status(
    current: InspectionStatus,
    outcome: SignoffOutcome,
    *,
    entity_id: str | None = None,
) -> InspectionStatus:
    """
    Status after a sign-off with `outcome` lands on an inspection in `current`.

    acknowledge never moves the inspection. approve/reject only apply to a
    completed inspection; anywhere else they are an InvalidTransition.
    """
    if outcome is SignoffOutcome.ACKNOWLEDGE:
        return current

    target = SIGNOFF_TRANSITIONS.get((current, outcome))
    if target is None:
        raise InvalidTransition(
            f"cannot record '{outcome.value}' sign-off on a {current.value} inspection",
            entity_id=entity_id,
        )
    return target


def next_defect_status(
    current: DefectStatus,
    target: DefectStatus,
    *,
    entity_id: str | None = None,
) -> DefectStatus:
    if target == current:
        return current
    if target not in DEFECT_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransition(
            f"cannot transition defect from {current.value} to {target.value}",
            entity_id=entity_id,
        )
    return target
