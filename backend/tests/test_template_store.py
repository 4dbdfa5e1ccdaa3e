# backend/tests/test_template_store.py
from __future__ import annotations

import pytest

from pdi_engine.domain.errors import TemplateNotFound, ValidationError
from pdi_engine.domain.pdi.templates import STARTER_TEMPLATES, starter_templates

from conftest import basic_template_payload, make_service


def test_create_assigns_version_one_and_keeps_order(svc):
    t = svc.create_template(basic_template_payload())
    assert t.version == 1
    assert t.is_active
    assert [it.id for _, it in t.iter_items()] == ["it-body", "it-paint", "it-awning"]
    assert svc.get_template(t.id).as_dict() == t.as_dict()


def test_create_fills_missing_ids(svc):
    t = svc.create_template({"name": "No ids", "sections": [{"name": "Interior", "items": [{"name": "Flooring"}]}]})
    assert t.sections[0].id
    assert t.sections[0].items[0].id


@pytest.mark.parametrize(
    "payload",
    [
        {"name": "  "},
        {
            "name": "Dup items",
            "sections": [
                {"id": "a", "name": "A", "items": [{"id": "x", "name": "One"}]},
                {"id": "b", "name": "B", "items": [{"id": "x", "name": "Two"}]},
            ],
        },
        {"name": "Dup sections", "sections": [{"id": "a", "name": "A"}, {"id": "a", "name": "B"}]},
    ],
)
def test_invalid_templates_are_rejected(svc, payload):
    with pytest.raises(ValidationError):
        svc.create_template(payload)
    assert svc.list_templates() == []


def test_unreferenced_update_is_in_place(svc, template):
    out = svc.update_template(template.id, {"name": "Basic PDI v2"})
    assert out.id == template.id
    assert out.version == 2
    assert out.name == "Basic PDI v2"
    assert len(svc.list_templates()) == 1


def test_referenced_update_leaves_original_untouched(svc, template, inspection):
    before = svc.get_template(template.id).as_dict()

    new = svc.update_template(
        template.id,
        {"sections": [{"id": "sec-ext", "name": "Exterior", "items": [{"id": "it-body", "name": "Body"}]}]},
    )

    assert new.id != template.id
    assert new.version == 2
    assert new.name == template.name
    assert svc.get_template(template.id).as_dict() == before

    # the open inspection still carries its own snapshot
    assert len(svc.get_inspection_by_id(inspection.id).items) == 3
    assert len(svc.list_templates()) == 2


def test_duplicate_is_isolated(svc, template):
    dup = svc.duplicate_template(template.id)
    assert dup.id != template.id
    assert dup.name == "Basic PDI (Copy)"
    assert dup.version == 1
    assert [it.id for _, it in dup.iter_items()] == [it.id for _, it in template.iter_items()]

    svc.update_template(dup.id, {"name": "Changed", "is_active": False})
    original = svc.get_template(template.id)
    assert original.name == "Basic PDI"
    assert original.is_active
    assert original.version == 1


def test_delete_keeps_inspection_snapshots(svc, template, inspection):
    svc.delete_template(template.id)
    with pytest.raises(TemplateNotFound):
        svc.get_template(template.id)
    with pytest.raises(TemplateNotFound):
        svc.create_inspection(template_id=template.id, asset_id="unit-2", inspector_id="tech-1")

    kept = svc.get_inspection_by_id(inspection.id)
    assert kept.template_name == "Basic PDI"
    assert len(kept.items) == 3


def test_inactive_templates_are_filtered_and_cannot_start_inspections(svc, template):
    svc.update_template(template.id, {"is_active": False})
    assert svc.list_templates(active_only=True) == []
    with pytest.raises(ValidationError):
        svc.create_inspection(template_id=template.id, asset_id="unit-2", inspector_id="tech-1")


def test_starter_templates_cover_all_dealer_units():
    rows = starter_templates()
    assert [t.id for t in rows] == [s.key for s in STARTER_TEMPLATES]

    by_id = {t.id: t for t in rows}
    rv = by_id["template-rv-standard"]
    assert [s.name for s in rv.sections] == [
        "Exterior",
        "Interior",
        "Electrical",
        "Plumbing",
        "HVAC",
        "Safety & Compliance",
    ]

    home_items = {it.name for _, it in by_id["template-manufactured-home"].iter_items()}
    assert "Hitch/Coupling" not in home_items
    assert "Smoke Detectors" in home_items
    assert "Hitch/Coupling" in {it.name for _, it in rv.iter_items()}


def test_seeding_is_idempotent():
    svc = make_service()
    assert len(svc.seed_starter_templates()) == 4
    assert svc.seed_starter_templates() == []
    assert len(svc.list_templates()) == 4
