# backend/tests/test_inspection_factory.py
from __future__ import annotations

from datetime import datetime, timezone

import pytest

from pdi_engine.domain.errors import TemplateNotFound, ValidationError
from pdi_engine.domain.pdi.enums import InspectionStatus, ItemStatus, ResponseType
from pdi_engine.domain.pdi.factory import create_inspection
from pdi_engine.domain.pdi.templates import build_template

from conftest import basic_template_payload

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _template():
    payload = basic_template_payload()
    payload["sections"].append(
        {
            "id": "sec-int",
            "name": "Interior",
            "items": [{"id": "it-floor", "name": "Flooring"}, {"id": "it-remarks", "name": "Remarks", "response_type": "text", "is_required": False}],
        }
    )
    return build_template(payload, now=NOW)


def test_every_template_item_becomes_one_pending_item_in_order():
    tmpl = _template()
    insp = create_inspection(tmpl, template_id=tmpl.id, asset_id="unit-1", inspector_id="tech-1", now=NOW)

    expected = [(s.id, s.name, it) for s, it in tmpl.iter_items()]
    assert len(insp.items) == len(expected) == 5

    for got, (sid, sname, t_item) in zip(insp.items, expected):
        assert got.template_item_id == t_item.id
        assert got.name == t_item.name
        assert got.is_required == t_item.is_required
        assert got.response_type == t_item.response_type
        assert got.section_id == sid
        assert got.section_name == sname
        assert got.status == ItemStatus.PENDING
        assert got.notes is None

    assert len({it.id for it in insp.items}) == 5
    assert insp.status == InspectionStatus.IN_PROGRESS
    assert insp.started_at == NOW
    assert insp.completed_at is None
    assert insp.template_version == 1
    assert insp.template_name == tmpl.name


def test_later_template_edits_do_not_reach_the_inspection():
    tmpl = _template()
    insp = create_inspection(tmpl, template_id=tmpl.id, asset_id="unit-1", inspector_id="tech-1", now=NOW)

    tmpl.sections[0].items[0].name = "Renamed"
    tmpl.sections[0].items[0].response_type = ResponseType.TEXT
    tmpl.sections[0].items.pop()

    assert insp.items[0].name == "Body Condition"
    assert insp.items[0].response_type == ResponseType.PASS_FAIL
    assert len(insp.items) == 5


def test_missing_template_raises_template_not_found():
    with pytest.raises(TemplateNotFound):
        create_inspection(None, template_id="nope", asset_id="unit-1", inspector_id="tech-1")


def test_inactive_template_is_rejected():
    tmpl = _template()
    tmpl.is_active = False
    with pytest.raises(ValidationError):
        create_inspection(tmpl, template_id=tmpl.id, asset_id="unit-1", inspector_id="tech-1")


@pytest.mark.parametrize("asset_id, inspector_id", [("", "tech-1"), ("unit-1", "   ")])
def test_blank_asset_or_inspector_is_rejected(asset_id, inspector_id):
    tmpl = _template()
    with pytest.raises(ValidationError):
        create_inspection(tmpl, template_id=tmpl.id, asset_id=asset_id, inspector_id=inspector_id)


def test_template_with_no_items_gives_empty_inspection():
    tmpl = build_template({"name": "Empty"}, now=NOW)
    insp = create_inspection(tmpl, template_id=tmpl.id, asset_id="unit-1", inspector_id="tech-1", now=NOW)
    assert insp.items == []
    assert insp.status == InspectionStatus.IN_PROGRESS
