# backend/tests/test_inspection_lifecycle.py
from __future__ import annotations

import pytest

from pdi_engine.domain.errors import InspectionNotFound, InvalidTransition, ItemNotFound, ValidationError
from pdi_engine.domain.pdi.enums import InspectionStatus, ItemStatus

from conftest import make_service, basic_template_payload


def _items(insp):
    return {it.template_item_id: it.id for it in insp.items}


def _walk_to_completed(svc, insp):
    ids = _items(insp)
    svc.update_inspection_item(insp.id, ids["it-body"], status="passed")
    svc.update_inspection_item(insp.id, ids["it-paint"], status="passed")
    svc.update_inspection_item(insp.id, ids["it-awning"], status="failed", notes="torn fabric")
    assert svc.inspection_progress(insp.id) == 100
    return svc.complete_inspection(insp.id)


def test_pass_pass_fail_complete_then_approve(svc, inspection):
    done = _walk_to_completed(svc, inspection)
    assert done.status == InspectionStatus.COMPLETED
    assert done.completed_at is not None

    out = svc.add_signoff(inspection.id, user_id="sup-1", role="supervisor", outcome="approve")
    assert out.status == InspectionStatus.APPROVED
    assert len(out.signoffs) == 1
    assert svc.get_inspection_by_id(inspection.id).status == InspectionStatus.APPROVED


def test_reject_instead_of_approve(svc, inspection):
    _walk_to_completed(svc, inspection)
    out = svc.add_signoff(inspection.id, user_id="sup-1", role="rejected")
    assert out.status == InspectionStatus.REJECTED


def test_rejected_inspection_can_be_reopened(svc, inspection):
    _walk_to_completed(svc, inspection)
    svc.add_signoff(inspection.id, user_id="sup-1", role="supervisor", outcome="reject")

    out = svc.reopen_inspection(inspection.id)
    assert out.status == InspectionStatus.IN_PROGRESS
    assert out.completed_at is None

    # items keep their state and can be edited again
    svc.update_inspection_item(inspection.id, out.items[2].id, status="passed")


def test_reopen_only_from_rejected(svc, inspection):
    with pytest.raises(InvalidTransition):
        svc.reopen_inspection(inspection.id)
    _walk_to_completed(svc, inspection)
    svc.add_signoff(inspection.id, user_id="sup-1", role="approver")
    with pytest.raises(InvalidTransition):
        svc.reopen_inspection(inspection.id)


def test_complete_twice_is_invalid_and_leaves_state(svc, inspection):
    first = svc.complete_inspection(inspection.id, notes="looks good")
    with pytest.raises(InvalidTransition):
        svc.complete_inspection(inspection.id, notes="second try")

    stored = svc.get_inspection_by_id(inspection.id)
    assert stored.as_dict() == first.as_dict()
    assert stored.notes == "looks good"


def test_complete_is_unconditional_by_default(svc, inspection):
    out = svc.complete_inspection(inspection.id)
    assert out.status == InspectionStatus.COMPLETED
    assert svc.inspection_progress(inspection.id) == 0


def test_required_items_flag_blocks_completion():
    svc = make_service(pdi_require_required_items_resolved=True)
    tmpl = svc.create_template(basic_template_payload())
    insp = svc.create_inspection(template_id=tmpl.id, asset_id="unit-9", inspector_id="tech-1")
    ids = _items(insp)

    svc.update_inspection_item(insp.id, ids["it-body"], status="passed")
    with pytest.raises(ValidationError):
        svc.complete_inspection(insp.id)
    assert svc.get_inspection_by_id(insp.id).status == InspectionStatus.IN_PROGRESS

    # the optional item may stay pending
    svc.update_inspection_item(insp.id, ids["it-paint"], status="failed")
    assert svc.complete_inspection(insp.id).status == InspectionStatus.COMPLETED


def test_items_are_locked_once_completed(svc, inspection):
    svc.complete_inspection(inspection.id)
    with pytest.raises(InvalidTransition):
        svc.update_inspection_item(inspection.id, inspection.items[0].id, status="passed")


def test_unknown_item_raises_and_snapshot_is_unaffected(svc, inspection):
    before = svc.get_inspection_by_id(inspection.id)
    with pytest.raises(ItemNotFound):
        svc.update_inspection_item(inspection.id, "no-such-item", status="passed")

    assert svc.get_inspection_by_id(inspection.id).as_dict() == before.as_dict()
    assert all(it.status == ItemStatus.PENDING for it in before.items)


def test_update_item_needs_status_or_notes(svc, inspection):
    with pytest.raises(ValidationError):
        svc.update_inspection_item(inspection.id, inspection.items[0].id)


def test_item_can_be_reverted_to_pending(svc, inspection):
    item_id = inspection.items[0].id
    svc.update_inspection_item(inspection.id, item_id, status="passed")
    out = svc.update_inspection_item(inspection.id, item_id, status="pending")
    assert out.find_item(item_id).status == ItemStatus.PENDING
    assert svc.inspection_progress(inspection.id) == 0


def test_update_item_touches_exactly_one_item(svc, inspection):
    target = inspection.items[1].id
    out = svc.update_inspection_item(inspection.id, target, status="na", notes="n/a on this unit")
    changed = [it for it in out.items if it.status != ItemStatus.PENDING]
    assert [it.id for it in changed] == [target]
    assert changed[0].notes == "n/a on this unit"
    assert out.status == InspectionStatus.IN_PROGRESS


def test_returned_objects_are_snapshots(svc, inspection):
    got = svc.get_inspection_by_id(inspection.id)
    got.items[0].status = ItemStatus.PASSED
    got.status = InspectionStatus.APPROVED

    again = svc.get_inspection_by_id(inspection.id)
    assert again.items[0].status == ItemStatus.PENDING
    assert again.status == InspectionStatus.IN_PROGRESS


def test_update_inspection_changes_header_only(svc, inspection):
    out = svc.update_inspection(inspection.id, notes="customer pickup friday", inspector_id="tech-2")
    assert out.notes == "customer pickup friday"
    assert out.inspector_id == "tech-2"
    assert out.status == InspectionStatus.IN_PROGRESS
    with pytest.raises(ValidationError):
        svc.update_inspection(inspection.id)
    with pytest.raises(ValidationError):
        svc.update_inspection(inspection.id, asset_id="  ")


def test_unknown_inspection(svc):
    with pytest.raises(InspectionNotFound):
        svc.complete_inspection("missing")
    with pytest.raises(InspectionNotFound):
        svc.get_inspection_by_id("missing")


def test_observers_receive_snapshot_with_progress(svc, inspection):
    seen = []
    unsubscribe = svc.subscribe(seen.append)

    svc.update_inspection_item(inspection.id, inspection.items[0].id, status="passed")
    assert seen[-1].event_type == "inspection_item_updated"
    assert seen[-1].snapshot["progress"] == 33

    unsubscribe()
    svc.update_inspection_item(inspection.id, inspection.items[1].id, status="passed")
    assert len(seen) == 1

    logged = [e.event_type for e in svc.events.list(entity_id=inspection.id)]
    assert logged == ["inspection_item_updated", "inspection_item_updated", "inspection_created"]


def test_failed_observer_does_not_undo_mutation(svc, inspection):
    def _boom(_ev):
        raise RuntimeError("observer down")

    svc.subscribe(_boom)
    svc.update_inspection_item(inspection.id, inspection.items[0].id, status="passed")
    assert svc.inspection_progress(inspection.id) == 33


def test_notifications_for_success_and_failure(svc, inspection):
    svc.notifier.notices.clear()
    svc.complete_inspection(inspection.id)
    with pytest.raises(InvalidTransition):
        svc.complete_inspection(inspection.id)

    assert svc.notifier.levels() == ["success", "error"]
    assert svc.notifier.notices[1].context["error_code"] == "invalid_transition"


def test_list_inspections_filters_and_search(svc, template):
    a = svc.create_inspection(template_id=template.id, asset_id="STK-1001", inspector_id="tech-1")
    b = svc.create_inspection(template_id=template.id, asset_id="STK-2002", inspector_id="tech-2")
    svc.complete_inspection(b.id)

    assert {r.id for r in svc.list_inspections()} == {a.id, b.id}
    assert [r.id for r in svc.list_inspections(status="completed")] == [b.id]
    assert [r.id for r in svc.list_inspections(inspector_id="tech-1")] == [a.id]
    assert [r.id for r in svc.list_inspections(search="stk-10")] == [a.id]
    assert {r.id for r in svc.list_inspections(search="basic")} == {a.id, b.id}
    with pytest.raises(ValidationError):
        svc.list_inspections(status="bogus")


def test_summary_and_dashboard(svc, inspection):
    ids = _items(inspection)
    svc.update_inspection_item(inspection.id, ids["it-body"], status="passed")
    svc.update_inspection_item(inspection.id, ids["it-awning"], status="na")
    svc.create_defect(inspection.id, title="Scratch on door", severity="low")

    s = svc.summarize_inspection(inspection.id)
    assert (s.total, s.passed, s.failed, s.na, s.pending) == (3, 1, 0, 1, 1)
    assert s.required_pending == 1
    assert s.progress == 67
    assert s.open_defect_count == 1
    assert [sec.section_name for sec in s.sections] == ["Exterior"]

    stats = svc.dashboard_stats()
    assert stats["inspections_total"] == 1
    assert stats["inspections_by_status"]["in_progress"] == 1
    assert stats["open_defects"] == 1
    assert stats["templates_total"] == 1
