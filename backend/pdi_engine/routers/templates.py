# backend/pdi_engine/routers/templates.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ..auth import Principal, get_principal, require_admin, require_supervisor
from ..schemas import TemplateCreate, TemplateOut, TemplateUpdate
from ..services.pdi_service import PDIService, get_service

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=list[TemplateOut])
def list_templates(
    active_only: bool = Query(default=False),
    svc: PDIService = Depends(get_service),
    _p: Principal = Depends(get_principal),
):
    return svc.list_templates(active_only=active_only)


@router.post("", response_model=TemplateOut, status_code=201)
def create_template(
    payload: TemplateCreate,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(require_supervisor),
):
    return svc.create_template(payload.model_dump(mode="json"), actor=p.user_id)


@router.get("/{template_id}", response_model=TemplateOut)
def get_template(
    template_id: str,
    svc: PDIService = Depends(get_service),
    _p: Principal = Depends(get_principal),
):
    return svc.get_template(template_id)


@router.put("/{template_id}", response_model=TemplateOut)
def update_template(
    template_id: str,
    payload: TemplateUpdate,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(require_supervisor),
):
    # Referenced templates come back under a new id (see PDIService.update_template).
    return svc.update_template(template_id, payload.model_dump(mode="json", exclude_none=True), actor=p.user_id)


@router.delete("/{template_id}", status_code=204)
def delete_template(
    template_id: str,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(require_admin),
) -> None:
    svc.delete_template(template_id, actor=p.user_id)


@router.post("/{template_id}/duplicate", response_model=TemplateOut, status_code=201)
def duplicate_template(
    template_id: str,
    svc: PDIService = Depends(get_service),
    p: Principal = Depends(require_supervisor),
):
    return svc.duplicate_template(template_id, actor=p.user_id)
