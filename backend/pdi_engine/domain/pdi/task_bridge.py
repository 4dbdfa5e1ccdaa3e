# backend/pdi_engine/domain/pdi/task_bridge.py
"""
Follow-up task derivation for the external task center.

Pure functions only: nothing here mutates the inspection or talks to the
task system. Hand-off is done by whoever holds a TaskSink.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional

from .common import iso, utcnow
from .defects import severity_priority
from .enums import InspectionStatus, TaskPriority
from .inspections import Inspection
from .progress import progress

SOURCE_TYPE_INSPECTION = "pdi_inspection"
SOURCE_TYPE_DEFECT = "pdi_defect"


@dataclass(frozen=True)
class TaskDraft:
    title: str
    description: str
    priority: TaskPriority
    due_date: datetime
    source_id: str
    source_type: str
    assigned_to: Optional[str] = None
    custom_fields: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "due_date": iso(self.due_date),
            "source_id": self.source_id,
            "source_type": self.source_type,
            "assigned_to": self.assigned_to,
            "custom_fields": dict(self.custom_fields),
        }


def inspection_priority(inspection: Inspection) -> TaskPriority:
    if inspection.open_defects:
        return TaskPriority.HIGH
    if inspection.status == InspectionStatus.IN_PROGRESS:
        return TaskPriority.MEDIUM
    return TaskPriority.LOW


def due_date_for(
    inspection: Inspection,
    now: datetime,
    *,
    days_in_progress: int = 1,
    days_other: int = 2,
) -> datetime:
    days = days_in_progress if inspection.status == InspectionStatus.IN_PROGRESS else days_other
    return now + timedelta(days=days)


def _asset_label(inspection: Inspection, asset: Optional[dict]) -> str:
    if not asset:
        return inspection.asset_id
    parts = [str(asset.get(k)) for k in ("year", "make", "model") if asset.get(k)]
    if parts:
        return " ".join(parts)
    return str(asset.get("label") or asset.get("stock_number") or inspection.asset_id)


def derive_task(
    inspection: Inspection,
    *,
    now: Optional[datetime] = None,
    asset: Optional[dict] = None,
    days_in_progress: int = 1,
    days_other: int = 2,
) -> TaskDraft:
    now = now or utcnow()
    label = _asset_label(inspection, asset)
    open_count = len(inspection.open_defects)

    if inspection.status == InspectionStatus.IN_PROGRESS:
        description = f"Finish PDI checklist ({progress(inspection)}% complete)."
    elif open_count:
        description = f"Resolve {open_count} open defect(s) found during PDI."
    else:
        description = f"PDI {inspection.status.value}; review and close out."

    return TaskDraft(
        title=f"PDI follow-up: {label}",
        description=description,
        priority=inspection_priority(inspection),
        due_date=due_date_for(inspection, now, days_in_progress=days_in_progress, days_other=days_other),
        source_id=inspection.id,
        source_type=SOURCE_TYPE_INSPECTION,
        assigned_to=inspection.inspector_id or None,
        custom_fields={
            "asset_id": inspection.asset_id,
            "template_id": inspection.template_id,
            "defect_count": len(inspection.defects),
            "open_defect_count": open_count,
            "progress": progress(inspection),
            "status": inspection.status.value,
        },
    )


def derive_defect_tasks(
    inspection: Inspection,
    *,
    now: Optional[datetime] = None,
    asset: Optional[dict] = None,
    days_in_progress: int = 1,
    days_other: int = 2,
) -> list[TaskDraft]:
    """One draft per open / in-progress defect, prioritized by severity."""
    now = now or utcnow()
    label = _asset_label(inspection, asset)
    due = due_date_for(inspection, now, days_in_progress=days_in_progress, days_other=days_other)

    out: list[TaskDraft] = []
    for d in inspection.open_defects:
        out.append(
            TaskDraft(
                title=f"PDI defect ({d.severity.value}): {d.title}",
                description=d.description or f"Defect logged on {label}.",
                priority=severity_priority(d.severity),
                due_date=due,
                source_id=d.id,
                source_type=SOURCE_TYPE_DEFECT,
                assigned_to=d.assigned_to,
                custom_fields={
                    "inspection_id": inspection.id,
                    "asset_id": inspection.asset_id,
                    "template_id": inspection.template_id,
                    "item_id": d.item_id,
                    "severity": d.severity.value,
                },
            )
        )
    return out


def calendar_event(
    inspection: Inspection,
    *,
    asset: Optional[dict] = None,
    duration_hours: float = 4.0,
) -> dict:
    """Calendar entry for the scheduling module; ends at completion or start + duration."""
    start = inspection.started_at
    end = inspection.completed_at or (start + timedelta(hours=float(duration_hours)))
    return {
        "id": f"pdi-{inspection.id}",
        "title": f"PDI: {_asset_label(inspection, asset)}",
        "start": iso(start),
        "end": iso(end),
        "source_module": "pdi",
        "source_id": inspection.id,
        "status": inspection.status.value,
        "assigned_to": inspection.inspector_id,
    }
