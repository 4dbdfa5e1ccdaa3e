# backend/pdi_engine/domain/pdi/templates.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterator, Optional

from ..errors import ValidationError
from .common import clean_str, iso, new_id, opt_str, parse_dt, utcnow
from .enums import ResponseType

COPY_SUFFIX = " (Copy)"


@dataclass
class TemplateItem:
    id: str
    name: str
    description: str = ""
    is_required: bool = True
    response_type: ResponseType = ResponseType.PASS_FAIL

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "is_required": self.is_required,
            "response_type": self.response_type.value,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "TemplateItem":
        return cls(
            id=str(d.get("id") or new_id()),
            name=clean_str(d.get("name")),
            description=str(d.get("description") or ""),
            is_required=bool(d.get("is_required", True)),
            response_type=ResponseType(d.get("response_type") or ResponseType.PASS_FAIL.value),
        )


@dataclass
class Section:
    id: str
    name: str
    description: Optional[str] = None
    items: list[TemplateItem] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "items": [it.as_dict() for it in self.items],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Section":
        return cls(
            id=str(d.get("id") or new_id()),
            name=clean_str(d.get("name")),
            description=opt_str(d.get("description")),
            items=[TemplateItem.from_dict(x) for x in (d.get("items") or [])],
        )


@dataclass
class Template:
    id: str
    name: str
    version: int = 1
    is_active: bool = True
    description: Optional[str] = None
    asset_type: Optional[str] = None
    sections: list[Section] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def iter_items(self) -> Iterator[tuple[Section, TemplateItem]]:
        for section in self.sections:
            for item in section.items:
                yield section, item

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "is_active": self.is_active,
            "description": self.description,
            "asset_type": self.asset_type,
            "sections": [s.as_dict() for s in self.sections],
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Template":
        return cls(
            id=str(d.get("id") or new_id()),
            name=clean_str(d.get("name")),
            version=int(d.get("version") or 1),
            is_active=bool(d.get("is_active", True)),
            description=opt_str(d.get("description")),
            asset_type=opt_str(d.get("asset_type")),
            sections=[Section.from_dict(x) for x in (d.get("sections") or [])],
            created_at=parse_dt(d.get("created_at")),
            updated_at=parse_dt(d.get("updated_at")),
        )


def validate_template(tmpl: Template) -> Template:
    """
    Enforce the structural invariants:
      - non-empty template / section / item names
      - section ids unique within the template
      - item ids unique across ALL sections of the template
    """
    if not tmpl.name:
        raise ValidationError("template name is required", entity_id=tmpl.id)

    section_ids: set[str] = set()
    item_ids: set[str] = set()
    for section in tmpl.sections:
        if not section.name:
            raise ValidationError("section name is required", entity_id=tmpl.id)
        if section.id in section_ids:
            raise ValidationError(f"duplicate section id: {section.id}", entity_id=tmpl.id)
        section_ids.add(section.id)

        for item in section.items:
            if not item.name:
                raise ValidationError(f"item name is required (section {section.name})", entity_id=tmpl.id)
            if item.id in item_ids:
                raise ValidationError(f"duplicate item id: {item.id}", entity_id=tmpl.id)
            item_ids.add(item.id)

    if tmpl.version < 1:
        raise ValidationError("template version must be >= 1", entity_id=tmpl.id)
    return tmpl


def _parse(data: dict) -> Template:
    try:
        return Template.from_dict(data)
    except (AttributeError, TypeError, ValueError) as e:
        raise ValidationError(f"invalid template payload: {e}", entity_id=opt_str(data.get("id")))


def build_template(payload: dict, *, now: Optional[datetime] = None) -> Template:
    """New template from a create payload: fresh id, version 1."""
    now = now or utcnow()
    data = dict(payload)
    data["id"] = data.get("id") or new_id()
    data["version"] = 1
    tmpl = _parse(data)
    tmpl.created_at = now
    tmpl.updated_at = now
    return validate_template(tmpl)


def apply_template_update(current: Template, payload: dict, *, now: Optional[datetime] = None) -> Template:
    """
    Return an edited copy of `current` with version + 1.

    Fields missing from `payload` keep their current values. `current` itself
    is never touched.
    """
    now = now or utcnow()
    merged = current.as_dict()
    for key in ("name", "description", "asset_type", "is_active", "sections"):
        if key in payload and payload[key] is not None:
            merged[key] = payload[key]

    out = _parse(merged)
    out.version = current.version + 1
    out.created_at = current.created_at
    out.updated_at = now
    return validate_template(out)


def duplicate_template(src: Template, *, now: Optional[datetime] = None) -> Template:
    """
    Copy with a regenerated id and " (Copy)" appended to the name.
    Sections and items (ids included) are kept identical.
    """
    now = now or utcnow()
    dup = copy.deepcopy(src)
    dup.id = new_id()
    dup.name = f"{src.name}{COPY_SUFFIX}"
    dup.version = 1
    dup.created_at = now
    dup.updated_at = now
    return dup


# -----------------------------------------------------------------------------
# Starter templates
# -----------------------------------------------------------------------------
# Category lists used by the dealership PDI forms.
STARTER_CATEGORIES: dict[str, list[str]] = {
    "Exterior": [
        "Body Condition",
        "Paint/Graphics",
        "Windows/Doors",
        "Awnings",
        "Slide-out Operation",
        "Tires/Wheels",
        "Hitch/Coupling",
        "Exterior Lights",
        "Storage Compartments",
    ],
    "Interior": [
        "Flooring",
        "Walls/Ceiling",
        "Furniture/Cabinetry",
        "Appliances",
        "Window Treatments",
        "Interior Lights",
        "Safety Equipment",
        "Entertainment Systems",
    ],
    "Electrical": [
        "12V Systems",
        "120V Systems",
        "Battery Condition",
        "Converter/Inverter",
        "Solar System",
        "Generator",
        "Shore Power Connection",
        "GFCI Outlets",
    ],
    "Plumbing": [
        "Water System",
        "Hot Water Heater",
        "Toilet Operation",
        "Shower/Tub",
        "Kitchen Sink",
        "Water Pump",
        "Holding Tanks",
        "Exterior Water Connection",
    ],
    "HVAC": [
        "Air Conditioning",
        "Furnace Operation",
        "Ventilation Fans",
        "Thermostat",
        "Ductwork",
        "Filters",
        "Vents/Returns",
    ],
    "Safety & Compliance": [
        "Smoke Detectors",
        "Carbon Monoxide Detector",
        "Fire Extinguisher",
        "Emergency Exits",
        "Propane System",
        "Brake System",
        "Safety Chains",
        "Compliance Labels",
    ],
}

# Items that may legitimately not apply to a given unit.
_OPTIONAL_ITEMS = frozenset(
    {
        "Awnings",
        "Slide-out Operation",
        "Entertainment Systems",
        "Solar System",
        "Generator",
        "Hitch/Coupling",
        "Safety Chains",
        "Brake System",
    }
)

_VEHICLE_ONLY = frozenset({"Hitch/Coupling", "Tires/Wheels", "Brake System", "Safety Chains", "Slide-out Operation"})


def _slug(text: str) -> str:
    return "".join(ch if ch.isalnum() else "_" for ch in text.lower()).strip("_")


def _starter_sections(prefix: str, *, homes: bool) -> list[Section]:
    sections: list[Section] = []
    for category, names in STARTER_CATEGORIES.items():
        items: list[TemplateItem] = []
        for name in names:
            if homes and name in _VEHICLE_ONLY:
                continue
            optional = name in _OPTIONAL_ITEMS
            items.append(
                TemplateItem(
                    id=f"{prefix}-{_slug(category)}-{_slug(name)}",
                    name=name,
                    is_required=not optional,
                    response_type=ResponseType.PASS_FAIL_NA if optional else ResponseType.PASS_FAIL,
                )
            )
        items.append(
            TemplateItem(
                id=f"{prefix}-{_slug(category)}-remarks",
                name=f"{category} remarks",
                is_required=False,
                response_type=ResponseType.TEXT,
            )
        )
        sections.append(Section(id=f"{prefix}-{_slug(category)}", name=category, items=items))
    return sections


@dataclass(frozen=True)
class StarterSpec:
    key: str
    name: str
    description: str
    asset_types: tuple[str, ...]
    homes: bool = False


STARTER_TEMPLATES: tuple[StarterSpec, ...] = (
    StarterSpec(
        "template-rv-standard",
        "Standard RV PDI",
        "Comprehensive inspection for travel trailers and motorhomes",
        ("Travel Trailer", "Motorhome", "Toy Hauler"),
    ),
    StarterSpec(
        "template-fifthwheel",
        "Fifth Wheel PDI",
        "Specialized inspection for fifth wheel trailers",
        ("Fifth Wheel",),
    ),
    StarterSpec(
        "template-manufactured-home",
        "Manufactured Home PDI",
        "Complete inspection for manufactured housing units",
        ("Single Wide", "Double Wide", "Triple Wide"),
        homes=True,
    ),
    StarterSpec(
        "template-park-model",
        "Park Model PDI",
        "Inspection checklist for park model homes",
        ("Park Model",),
        homes=True,
    ),
)


def starter_templates(*, now: Optional[datetime] = None) -> list[Template]:
    now = now or utcnow()
    out: list[Template] = []
    for spec in STARTER_TEMPLATES:
        tmpl = Template(
            id=spec.key,
            name=spec.name,
            description=spec.description,
            asset_type=", ".join(spec.asset_types),
            sections=_starter_sections(spec.key, homes=spec.homes),
            created_at=now,
            updated_at=now,
        )
        out.append(validate_template(tmpl))
    return out


def coerce_template_payload(raw: Any) -> dict:
    if isinstance(raw, Template):
        return raw.as_dict()
    if isinstance(raw, dict):
        return dict(raw)
    raise ValidationError("template payload must be a mapping")
