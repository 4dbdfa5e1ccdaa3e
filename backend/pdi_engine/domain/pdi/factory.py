# backend/pdi_engine/domain/pdi/factory.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..errors import TemplateNotFound, ValidationError
from .common import new_id, utcnow
from .enums import InspectionStatus, ItemStatus
from .inspections import Inspection, InspectionItem
from .templates import Template


def create_inspection(
    template: Optional[Template],
    *,
    template_id: str,
    asset_id: str,
    inspector_id: str,
    now: Optional[datetime] = None,
) -> Inspection:
    """
    Instantiate an inspection from a template.

    Every template item is snapshotted (name, description, section,
    requiredness, response type) into its own InspectionItem, so later
    template edits never reach into open inspections. asset_id and
    inspector_id are opaque: they must be present but are not looked up.
    """
    if template is None:
        raise TemplateNotFound(template_id)
    if not template.is_active:
        raise ValidationError(f"template is inactive: {template.id}", entity_id=template.id)

    asset_id = (asset_id or "").strip()
    inspector_id = (inspector_id or "").strip()
    if not asset_id:
        raise ValidationError("asset_id is required")
    if not inspector_id:
        raise ValidationError("inspector_id is required")

    now = now or utcnow()

    items: list[InspectionItem] = []
    for section, t_item in template.iter_items():
        items.append(
            InspectionItem(
                id=new_id(),
                template_item_id=t_item.id,
                name=t_item.name,
                description=t_item.description,
                section_id=section.id,
                section_name=section.name,
                is_required=t_item.is_required,
                response_type=t_item.response_type,
                status=ItemStatus.PENDING,
                notes=None,
            )
        )

    return Inspection(
        id=new_id(),
        template_id=template.id,
        template_name=template.name,
        template_version=template.version,
        asset_id=asset_id,
        inspector_id=inspector_id,
        status=InspectionStatus.IN_PROGRESS,
        started_at=now,
        completed_at=None,
        notes="",
        items=items,
        updated_at=now,
    )
