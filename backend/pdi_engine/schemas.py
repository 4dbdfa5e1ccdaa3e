# backend/pdi_engine/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .domain.pdi.enums import (
    DefectSeverity,
    DefectStatus,
    InspectionStatus,
    ItemStatus,
    ResponseType,
    SignoffOutcome,
    TaskPriority,
)


# -------------------- Templates --------------------

class TemplateItemIn(BaseModel):
    id: Optional[str] = None
    name: str
    description: str = ""
    is_required: bool = True
    response_type: ResponseType = ResponseType.PASS_FAIL


class SectionIn(BaseModel):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    items: list[TemplateItemIn] = Field(default_factory=list)


class TemplateCreate(BaseModel):
    name: str
    description: Optional[str] = None
    asset_type: Optional[str] = None
    is_active: bool = True
    sections: list[SectionIn] = Field(default_factory=list)


class TemplateUpdate(BaseModel):
    # all optional: omitted fields keep their stored value
    name: Optional[str] = None
    description: Optional[str] = None
    asset_type: Optional[str] = None
    is_active: Optional[bool] = None
    sections: Optional[list[SectionIn]] = None


class TemplateItemOut(BaseModel):
    id: str
    name: str
    description: str
    is_required: bool
    response_type: ResponseType
    model_config = ConfigDict(from_attributes=True)


class SectionOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    items: list[TemplateItemOut]
    model_config = ConfigDict(from_attributes=True)


class TemplateOut(BaseModel):
    id: str
    name: str
    version: int
    is_active: bool
    description: Optional[str] = None
    asset_type: Optional[str] = None
    sections: list[SectionOut]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


# -------------------- Inspections --------------------

class InspectionCreate(BaseModel):
    template_id: str
    asset_id: str
    inspector_id: Optional[str] = None  # defaults to the calling user
    notes: Optional[str] = None


class InspectionPatch(BaseModel):
    notes: Optional[str] = None
    inspector_id: Optional[str] = None
    asset_id: Optional[str] = None


class InspectionItemUpdate(BaseModel):
    status: Optional[ItemStatus] = None
    notes: Optional[str] = None


class InspectionComplete(BaseModel):
    notes: Optional[str] = None


class InspectionItemOut(BaseModel):
    id: str
    template_item_id: str
    name: str
    description: str
    section_id: str
    section_name: str
    is_required: bool
    response_type: ResponseType
    status: ItemStatus
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class DefectCreate(BaseModel):
    title: str
    description: str = ""
    severity: DefectSeverity = DefectSeverity.MEDIUM
    assigned_to: Optional[str] = None
    item_id: Optional[str] = None


class DefectUpdate(BaseModel):
    status: Optional[DefectStatus] = None
    assigned_to: Optional[str] = None


class DefectOut(BaseModel):
    id: str
    title: str
    description: str
    severity: DefectSeverity
    status: DefectStatus
    assigned_to: Optional[str] = None
    item_id: Optional[str] = None
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class PhotoCreate(BaseModel):
    url: str
    caption: Optional[str] = None
    item_id: Optional[str] = None
    defect_id: Optional[str] = None


class PhotoOut(BaseModel):
    id: str
    url: str
    caption: Optional[str] = None
    item_id: Optional[str] = None
    defect_id: Optional[str] = None
    uploaded_by: Optional[str] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class SignoffCreate(BaseModel):
    # user_id / role default to the calling principal
    user_id: Optional[str] = None
    role: Optional[str] = None
    outcome: Optional[SignoffOutcome] = None
    signature: Optional[str] = None
    comment: Optional[str] = None


class SignoffOut(BaseModel):
    id: str
    user_id: str
    role: str
    outcome: SignoffOutcome
    signed_at: datetime
    signature: Optional[str] = None
    comment: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class InspectionOut(BaseModel):
    id: str
    template_id: str
    template_name: str
    template_version: int
    asset_id: str
    inspector_id: str
    status: InspectionStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    notes: str = ""
    progress: int = 0
    items: list[InspectionItemOut]
    defects: list[DefectOut]
    photos: list[PhotoOut]
    signoffs: list[SignoffOut]
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class InspectionListRow(BaseModel):
    id: str
    template_id: str
    template_name: str
    asset_id: str
    inspector_id: str
    status: InspectionStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    progress: int
    defect_count: int
    open_defect_count: int


# -------------------- Read models --------------------

class SectionSummaryOut(BaseModel):
    section_id: str
    section_name: str
    total: int
    passed: int
    failed: int
    na: int
    pending: int
    items: list[dict[str, Any]]


class InspectionSummaryOut(BaseModel):
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
    sections: list[SectionSummaryOut]


class TaskDraftOut(BaseModel):
    title: str
    description: str
    priority: TaskPriority
    due_date: datetime
    source_id: str
    source_type: str
    assigned_to: Optional[str] = None
    custom_fields: dict[str, Any] = Field(default_factory=dict)
    model_config = ConfigDict(from_attributes=True)


class CalendarEventOut(BaseModel):
    id: str
    title: str
    start: datetime
    end: datetime
    source_module: str
    source_id: str
    status: InspectionStatus
    assigned_to: Optional[str] = None


class DashboardStatsOut(BaseModel):
    inspections_total: int
    inspections_by_status: dict[str, int]
    defects_total: int
    open_defects: int
    templates_total: int
    templates_active: int
