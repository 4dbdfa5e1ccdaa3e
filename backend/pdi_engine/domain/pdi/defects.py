# backend/pdi_engine/domain/pdi/defects.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..errors import ValidationError
from .common import clean_str, new_id, opt_str, utcnow
from .enums import DefectSeverity, DefectStatus, TaskPriority
from .inspections import Defect, Inspection
from .transitions import next_defect_status

# critical/high -> urgent follow-up, medium -> normal, low -> informational
SEVERITY_TO_PRIORITY: dict[DefectSeverity, TaskPriority] = {
    DefectSeverity.CRITICAL: TaskPriority.URGENT,
    DefectSeverity.HIGH: TaskPriority.URGENT,
    DefectSeverity.MEDIUM: TaskPriority.MEDIUM,
    DefectSeverity.LOW: TaskPriority.LOW,
}


def severity_priority(severity: DefectSeverity) -> TaskPriority:
    return SEVERITY_TO_PRIORITY[DefectSeverity(severity)]


def _coerce_severity(raw) -> DefectSeverity:
    try:
        return DefectSeverity(raw)
    except ValueError:
        allowed = ", ".join(s.value for s in DefectSeverity)
        raise ValidationError(f"invalid severity '{raw}' (expected one of: {allowed})")


def new_defect(
    inspection: Inspection,
    *,
    title: str,
    description: str = "",
    severity: DefectSeverity | str = DefectSeverity.MEDIUM,
    assigned_to: Optional[str] = None,
    item_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Defect:
    """
    Build a defect for `inspection` (not attached yet).

    Item status is never touched here: linking a defect to an item is
    informational only.
    """
    title = clean_str(title)
    if not title:
        raise ValidationError("defect title is required", entity_id=inspection.id)

    item_id = opt_str(item_id)
    if item_id is not None:
        inspection.find_item(item_id)

    return Defect(
        id=new_id(),
        title=title,
        description=(description or "").strip(),
        severity=_coerce_severity(severity),
        status=DefectStatus.OPEN,
        assigned_to=opt_str(assigned_to),
        item_id=item_id,
        created_at=now or utcnow(),
    )


def apply_defect_update(
    defect: Defect,
    *,
    status: DefectStatus | str | None = None,
    assigned_to: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Defect:
    """Mutates `defect` in place; callers pass a working copy."""
    if status is None and assigned_to is None:
        raise ValidationError("nothing to update: provide status and/or assigned_to", entity_id=defect.id)

    if status is not None:
        try:
            target = DefectStatus(status)
        except ValueError:
            raise ValidationError(f"invalid defect status '{status}'", entity_id=defect.id)

        new_status = next_defect_status(defect.status, target, entity_id=defect.id)
        if new_status != defect.status:
            if new_status == DefectStatus.RESOLVED:
                defect.resolved_at = now or utcnow()
            elif new_status in (DefectStatus.OPEN, DefectStatus.IN_PROGRESS):
                defect.resolved_at = None
        defect.status = new_status

    if assigned_to is not None:
        defect.assigned_to = opt_str(assigned_to)

    return defect
