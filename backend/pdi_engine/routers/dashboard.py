# backend/pdi_engine/routers/dashboard.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth import Principal, get_principal
from ..schemas import DashboardStatsOut
from ..services.pdi_service import PDIService, get_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStatsOut)
def dashboard_stats(
    svc: PDIService = Depends(get_service),
    _p: Principal = Depends(get_principal),
):
    return svc.dashboard_stats()
