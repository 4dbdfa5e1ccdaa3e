# backend/pdi_engine/domain/pdi/__init__.py
from .enums import (
    DefectSeverity,
    DefectStatus,
    InspectionStatus,
    ItemStatus,
    ResponseType,
    SignoffOutcome,
    TaskPriority,
)
from .templates import Section, Template, TemplateItem
from .inspections import Defect, Inspection, InspectionItem, Photo, Signoff
from .factory import create_inspection
from .progress import progress, progress_pct, summarize_inspection
from .transitions import next_status
from .task_bridge import TaskDraft, derive_task, derive_defect_tasks

__all__ = [
    "DefectSeverity",
    "DefectStatus",
    "InspectionStatus",
    "ItemStatus",
    "ResponseType",
    "SignoffOutcome",
    "TaskPriority",
    "Section",
    "Template",
    "TemplateItem",
    "Defect",
    "Inspection",
    "InspectionItem",
    "Photo",
    "Signoff",
    "create_inspection",
    "progress",
    "progress_pct",
    "summarize_inspection",
    "next_status",
    "TaskDraft",
    "derive_task",
    "derive_defect_tasks",
]
