# backend/pdi_engine/routers/inspections.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..auth import Principal, get_principal, require_admin
from ..domain.pdi.enums import InspectionStatus
from ..domain.pdi.inspections import Inspection
from ..domain.pdi.progress import progress
from ..schemas import (
    CalendarEventOut,
    DefectCreate,
    DefectOut,
    DefectUpdate,
    InspectionComplete,
    InspectionCreate,
    InspectionItemUpdate,
    InspectionListRow,
    InspectionOut,
    InspectionPatch,
    InspectionSummaryOut,
    PhotoCreate,
    PhotoOut,
    SignoffCreate,
    TaskDraftOut,
)
from ..services.pdi_service import PDIService, get_service

router = APIRouter(prefix="/inspections", tags=["inspections"])


def _out(insp: Inspection) -> InspectionOut:
    data = insp.as_dict()
    data["progress"] = progress(insp)
    return InspectionOut.model_validate(data)


# -----------------------------
# Inspections
# -----------------------------
@router.post("", response_model=InspectionOut, status_code=201)
def create_inspection(
    payload: InspectionCreate,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(get_principal),
) -> InspectionOut:
    insp = svc.create_inspection(
        template_id=payload.template_id,
        asset_id=payload.asset_id,
        inspector_id=payload.inspector_id or p.user_id,
        notes=payload.notes,
        actor=p.user_id,
    )
    return _out(insp)


@router.get("", response_model=list[InspectionListRow])
def list_inspections(
    status: Optional[InspectionStatus] = Query(default=None),
    search: Optional[str] = Query(default=None),
    inspector_id: Optional[str] = Query(default=None),
    asset_id: Optional[str] = Query(default=None),
    svc: PDIService = Depends(get_service),
    _p: Principal = Depends(get_principal),
) -> list[InspectionListRow]:
    rows = svc.list_inspections(status=status, search=search, inspector_id=inspector_id, asset_id=asset_id)
    return [
        InspectionListRow(
            id=r.id,
            template_id=r.template_id,
            template_name=r.template_name,
            asset_id=r.asset_id,
            inspector_id=r.inspector_id,
            status=r.status,
            started_at=r.started_at,
            completed_at=r.completed_at,
            progress=progress(r),
            defect_count=len(r.defects),
            open_defect_count=len(r.open_defects),
        )
        for r in rows
    ]


@router.get("/{inspection_id}", response_model=InspectionOut)
def get_inspection(
    inspection_id: str,
    svc: PDIService = Depends(get_service),
    _p: Principal = Depends(get_principal),
) -> InspectionOut:
    return _out(svc.get_inspection_by_id(inspection_id))


@router.patch("/{inspection_id}", response_model=InspectionOut)
def patch_inspection(
    inspection_id: str,
    payload: InspectionPatch,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(get_principal),
) -> InspectionOut:
    insp = svc.update_inspection(
        inspection_id,
        notes=payload.notes,
        inspector_id=payload.inspector_id,
        asset_id=payload.asset_id,
        actor=p.user_id,
    )
    return _out(insp)


@router.patch("/{inspection_id}/items/{item_id}", response_model=InspectionOut)
def update_item(
    inspection_id: str,
    item_id: str,
    payload: InspectionItemUpdate,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(get_principal),
) -> InspectionOut:
    insp = svc.update_inspection_item(
        inspection_id,
        item_id,
        status=payload.status,
        notes=payload.notes,
        actor=p.user_id,
    )
    return _out(insp)


@router.post("/{inspection_id}/complete", response_model=InspectionOut)
def complete_inspection(
    inspection_id: str,
    payload: Optional[InspectionComplete] = None,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(get_principal),
) -> InspectionOut:
    notes = payload.notes if payload is not None else None
    return _out(svc.complete_inspection(inspection_id, notes=notes, actor=p.user_id))


@router.post("/{inspection_id}/reopen", response_model=InspectionOut)
def reopen_inspection(
    inspection_id: str,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(require_admin),
) -> InspectionOut:
    return _out(svc.reopen_inspection(inspection_id, actor=p.user_id))


# -----------------------------
# Defects / photos / sign-offs
# -----------------------------
@router.post("/{inspection_id}/defects", response_model=DefectOut, status_code=201)
def add_defect(
    inspection_id: str,
    payload: DefectCreate,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(get_principal),
):
    return svc.create_defect(
        inspection_id,
        title=payload.title,
        description=payload.description,
        severity=payload.severity,
        assigned_to=payload.assigned_to,
        item_id=payload.item_id,
        actor=p.user_id,
    )


@router.patch("/{inspection_id}/defects/{defect_id}", response_model=DefectOut)
def update_defect(
    inspection_id: str,
    defect_id: str,
    payload: DefectUpdate,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(get_principal),
):
    return svc.update_defect(
        inspection_id,
        defect_id,
        status=payload.status,
        assigned_to=payload.assigned_to,
        actor=p.user_id,
    )


@router.post("/{inspection_id}/photos", response_model=PhotoOut, status_code=201)
def add_photo(
    inspection_id: str,
    payload: PhotoCreate,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(get_principal),
):
    return svc.add_photo(
        inspection_id,
        url=payload.url,
        caption=payload.caption,
        item_id=payload.item_id,
        defect_id=payload.defect_id,
        uploaded_by=p.user_id,
    )


@router.post("/{inspection_id}/signoffs", response_model=InspectionOut, status_code=201)
def add_signoff(
    inspection_id: str,
    payload: SignoffCreate,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(get_principal),
) -> InspectionOut:
    insp = svc.add_signoff(
        inspection_id,
        user_id=payload.user_id or p.user_id,
        role=payload.role or p.role,
        outcome=payload.outcome,
        signature=payload.signature,
        comment=payload.comment,
    )
    return _out(insp)


# -----------------------------
# Read models / hand-off
# -----------------------------
@router.get("/{inspection_id}/summary", response_model=InspectionSummaryOut)
def inspection_summary(
    inspection_id: str,
    svc: PDIService = Depends(get_service),
    _p: Principal = Depends(get_principal),
):
    return svc.summarize_inspection(inspection_id).as_dict()


@router.get("/{inspection_id}/task", response_model=TaskDraftOut)
def inspection_task(
    inspection_id: str,
    svc: PDIService = Depends(get_service),
    _p: Principal = Depends(get_principal),
):
    return svc.derive_task(inspection_id).as_dict()


@router.post("/{inspection_id}/task", response_model=list[TaskDraftOut])
def emit_follow_up(
    inspection_id: str,
    include_defects: bool = Query(default=True),
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(get_principal),
):
    drafts = svc.emit_follow_up(inspection_id, include_defects=include_defects, actor=p.user_id)
    return [d.as_dict() for d in drafts]


@router.get("/{inspection_id}/calendar", response_model=CalendarEventOut)
def inspection_calendar(
    inspection_id: str,
    svc: PDIService = Depends(get_service),
    _p: Principal = Depends(get_principal),
):
    return svc.calendar_event(inspection_id)
