# backend/pdi_engine/domain/pdi/progress.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .enums import InspectionStatus, ItemStatus
from .inspections import Inspection, InspectionItem
from .templates import Template


def progress_pct(items: Iterable[InspectionItem]) -> int:
    """
    Percentage of items no longer pending, rounded half-up, in [0, 100].

    `na` counts as addressed. An inspection without items is at 0. Anything
    still pending holds the result at 99 or below, even when rounding would
    reach 100 (199 of 200).
    """
    total = 0
    addressed = 0
    for it in items:
        total += 1
        if it.status != ItemStatus.PENDING:
            addressed += 1

    if total == 0:
        return 0
    # integer half-up: floor(100 * a / t + 0.5)
    pct = (200 * addressed + total) // (2 * total)
    if addressed < total:
        return min(pct, 99)
    return pct


def progress(inspection: Inspection) -> int:
    return progress_pct(inspection.items)


@dataclass(frozen=True)
class SectionSummary:
    section_id: str
    section_name: str
    total: int
    passed: int
    failed: int
    na: int
    pending: int
    items: tuple[dict, ...] = ()

    def as_dict(self) -> dict:
        return {
            "section_id": self.section_id,
            "section_name": self.section_name,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "na": self.na,
            "pending": self.pending,
            "items": list(self.items),
        }


@dataclass(frozen=True)
class InspectionSummary:
    inspection_id: str
    status: InspectionStatus
    total: int
    passed: int
    failed: int
    na: int
    pending: int
    required_pending: int
    progress: int
    defect_count: int
    open_defect_count: int
    photo_count: int
    signoff_count: int
    sections: tuple[SectionSummary, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict:
        return {
            "inspection_id": self.inspection_id,
            "status": self.status.value,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "na": self.na,
            "pending": self.pending,
            "required_pending": self.required_pending,
            "progress": self.progress,
            "defect_count": self.defect_count,
            "open_defect_count": self.open_defect_count,
            "photo_count": self.photo_count,
            "signoff_count": self.signoff_count,
            "sections": [s.as_dict() for s in self.sections],
        }


def _count(items: list[InspectionItem], status: ItemStatus) -> int:
    return sum(1 for it in items if it.status == status)


def summarize_inspection(inspection: Inspection) -> InspectionSummary:
    """
    Roll up item states, overall and per section.

    Sections keep the order in which they first appear on the inspection,
    which is the template order frozen at instantiation.
    """
    grouped: dict[str, list[InspectionItem]] = {}
    names: dict[str, str] = {}
    for it in inspection.items:
        grouped.setdefault(it.section_id, []).append(it)
        names.setdefault(it.section_id, it.section_name)

    sections = tuple(
        SectionSummary(
            section_id=sid,
            section_name=names[sid],
            total=len(rows),
            passed=_count(rows, ItemStatus.PASSED),
            failed=_count(rows, ItemStatus.FAILED),
            na=_count(rows, ItemStatus.NA),
            pending=_count(rows, ItemStatus.PENDING),
            items=tuple(
                {"id": it.id, "name": it.name, "status": it.status.value, "notes": it.notes, "is_required": it.is_required}
                for it in rows
            ),
        )
        for sid, rows in grouped.items()
    )

    items = inspection.items
    return InspectionSummary(
        inspection_id=inspection.id,
        status=inspection.status,
        total=len(items),
        passed=_count(items, ItemStatus.PASSED),
        failed=_count(items, ItemStatus.FAILED),
        na=_count(items, ItemStatus.NA),
        pending=_count(items, ItemStatus.PENDING),
        required_pending=sum(1 for it in items if it.is_required and it.status == ItemStatus.PENDING),
        progress=progress_pct(items),
        defect_count=len(inspection.defects),
        open_defect_count=len(inspection.open_defects),
        photo_count=len(inspection.photos),
        signoff_count=len(inspection.signoffs),
        sections=sections,
    )


def required_pending_items(inspection: Inspection) -> list[InspectionItem]:
    return [it for it in inspection.items if it.is_required and it.status == ItemStatus.PENDING]


def dashboard_stats(inspections: Iterable[Inspection], templates: Iterable[Template]) -> dict:
    """Counts for the PDI dashboard tiles."""
    by_status = {s.value: 0 for s in InspectionStatus}
    total = 0
    open_defects = 0
    total_defects = 0
    for insp in inspections:
        total += 1
        by_status[insp.status.value] += 1
        total_defects += len(insp.defects)
        open_defects += len(insp.open_defects)

    tmpl_total = 0
    tmpl_active = 0
    for t in templates:
        tmpl_total += 1
        if t.is_active:
            tmpl_active += 1

    return {
        "inspections_total": total,
        "inspections_by_status": by_status,
        "defects_total": total_defects,
        "open_defects": open_defects,
        "templates_total": tmpl_total,
        "templates_active": tmpl_active,
    }
