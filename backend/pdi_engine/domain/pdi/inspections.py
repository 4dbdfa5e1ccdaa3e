# backend/pdi_engine/domain/pdi/inspections.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..errors import DefectNotFound, ItemNotFound
from .common import iso, new_id, opt_str, parse_dt
from .enums import (
    DefectSeverity,
    DefectStatus,
    InspectionStatus,
    ItemStatus,
    OPEN_DEFECT_STATUSES,
    ResponseType,
    SignoffOutcome,
)


@dataclass
class InspectionItem:
    id: str
    template_item_id: str
    name: str
    section_id: str
    section_name: str
    description: str = ""
    is_required: bool = True
    response_type: ResponseType = ResponseType.PASS_FAIL
    status: ItemStatus = ItemStatus.PENDING
    notes: Optional[str] = None
    updated_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "template_item_id": self.template_item_id,
            "name": self.name,
            "section_id": self.section_id,
            "section_name": self.section_name,
            "description": self.description,
            "is_required": self.is_required,
            "response_type": self.response_type.value,
            "status": self.status.value,
            "notes": self.notes,
            "updated_at": iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "InspectionItem":
        return cls(
            id=str(d["id"]),
            template_item_id=str(d["template_item_id"]),
            name=str(d.get("name") or ""),
            section_id=str(d.get("section_id") or ""),
            section_name=str(d.get("section_name") or ""),
            description=str(d.get("description") or ""),
            is_required=bool(d.get("is_required", True)),
            response_type=ResponseType(d.get("response_type") or ResponseType.PASS_FAIL.value),
            status=ItemStatus(d.get("status") or ItemStatus.PENDING.value),
            notes=d.get("notes"),
            updated_at=parse_dt(d.get("updated_at")),
        )


@dataclass
class Defect:
    id: str
    title: str
    description: str
    severity: DefectSeverity
    status: DefectStatus = DefectStatus.OPEN
    assigned_to: Optional[str] = None
    item_id: Optional[str] = None
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_DEFECT_STATUSES

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "status": self.status.value,
            "assigned_to": self.assigned_to,
            "item_id": self.item_id,
            "created_at": iso(self.created_at),
            "resolved_at": iso(self.resolved_at),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Defect":
        return cls(
            id=str(d["id"]),
            title=str(d.get("title") or ""),
            description=str(d.get("description") or ""),
            severity=DefectSeverity(d.get("severity") or DefectSeverity.MEDIUM.value),
            status=DefectStatus(d.get("status") or DefectStatus.OPEN.value),
            assigned_to=opt_str(d.get("assigned_to")),
            item_id=opt_str(d.get("item_id")),
            created_at=parse_dt(d.get("created_at")),
            resolved_at=parse_dt(d.get("resolved_at")),
        )


@dataclass
class Photo:
    id: str
    url: str
    caption: Optional[str] = None
    item_id: Optional[str] = None
    defect_id: Optional[str] = None
    uploaded_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "caption": self.caption,
            "item_id": self.item_id,
            "defect_id": self.defect_id,
            "uploaded_by": self.uploaded_by,
            "created_at": iso(self.created_at),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Photo":
        return cls(
            id=str(d["id"]),
            url=str(d.get("url") or ""),
            caption=d.get("caption"),
            item_id=opt_str(d.get("item_id")),
            defect_id=opt_str(d.get("defect_id")),
            uploaded_by=opt_str(d.get("uploaded_by")),
            created_at=parse_dt(d.get("created_at")),
        )


@dataclass
class Signoff:
    id: str
    user_id: str
    role: str
    outcome: SignoffOutcome
    signed_at: datetime
    signature: Optional[str] = None
    comment: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "role": self.role,
            "outcome": self.outcome.value,
            "signed_at": iso(self.signed_at),
            "signature": self.signature,
            "comment": self.comment,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Signoff":
        return cls(
            id=str(d["id"]),
            user_id=str(d.get("user_id") or ""),
            role=str(d.get("role") or ""),
            outcome=SignoffOutcome(d.get("outcome") or SignoffOutcome.ACKNOWLEDGE.value),
            signed_at=parse_dt(d.get("signed_at")),
            signature=d.get("signature"),
            comment=d.get("comment"),
        )


@dataclass
class Inspection:
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
    items: list[InspectionItem] = field(default_factory=list)
    defects: list[Defect] = field(default_factory=list)
    photos: list[Photo] = field(default_factory=list)
    signoffs: list[Signoff] = field(default_factory=list)
    updated_at: Optional[datetime] = None

    def find_item(self, item_id: str) -> InspectionItem:
        for it in self.items:
            if it.id == item_id:
                return it
        raise ItemNotFound(item_id)

    def find_defect(self, defect_id: str) -> Defect:
        for d in self.defects:
            if d.id == defect_id:
                return d
        raise DefectNotFound(defect_id)

    @property
    def open_defects(self) -> list[Defect]:
        return [d for d in self.defects if d.is_open]

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "template_id": self.template_id,
            "template_name": self.template_name,
            "template_version": self.template_version,
            "asset_id": self.asset_id,
            "inspector_id": self.inspector_id,
            "status": self.status.value,
            "started_at": iso(self.started_at),
            "completed_at": iso(self.completed_at),
            "notes": self.notes,
            "items": [x.as_dict() for x in self.items],
            "defects": [x.as_dict() for x in self.defects],
            "photos": [x.as_dict() for x in self.photos],
            "signoffs": [x.as_dict() for x in self.signoffs],
            "updated_at": iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Inspection":
        return cls(
            id=str(d.get("id") or new_id()),
            template_id=str(d["template_id"]),
            template_name=str(d.get("template_name") or ""),
            template_version=int(d.get("template_version") or 1),
            asset_id=str(d.get("asset_id") or ""),
            inspector_id=str(d.get("inspector_id") or ""),
            status=InspectionStatus(d.get("status") or InspectionStatus.IN_PROGRESS.value),
            started_at=parse_dt(d.get("started_at")),
            completed_at=parse_dt(d.get("completed_at")),
            notes=str(d.get("notes") or ""),
            items=[InspectionItem.from_dict(x) for x in (d.get("items") or [])],
            defects=[Defect.from_dict(x) for x in (d.get("defects") or [])],
            photos=[Photo.from_dict(x) for x in (d.get("photos") or [])],
            signoffs=[Signoff.from_dict(x) for x in (d.get("signoffs") or [])],
            updated_at=parse_dt(d.get("updated_at")),
        )
