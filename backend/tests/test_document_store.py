# backend/tests/test_document_store.py
from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pdi_engine.config import Settings
from pdi_engine.db import init_db
from pdi_engine.domain.pdi.enums import InspectionStatus
from pdi_engine.services.document_store import InMemoryDocumentStore, SqlDocumentStore
from pdi_engine.services.pdi_service import PDIService

from conftest import basic_template_payload


def _sqlite_store() -> SqlDocumentStore:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_db(bind=engine)
    return SqlDocumentStore(sessionmaker(bind=engine, autoflush=False, future=True))


@pytest.fixture(params=["memory", "sql"])
def store(request):
    return InMemoryDocumentStore() if request.param == "memory" else _sqlite_store()


def test_put_get_list_delete(store):
    store.put("template", "t1", {"id": "t1", "name": "A", "sections": []})
    store.put("template", "t2", {"id": "t2", "name": "B", "sections": []})
    store.put("inspection", "i1", {"id": "i1"})

    assert store.get("template", "t1")["name"] == "A"
    assert store.get("template", "nope") is None
    assert sorted(d["id"] for d in store.list("template")) == ["t1", "t2"]

    store.put("template", "t1", {"id": "t1", "name": "A2", "sections": []})
    assert store.get("template", "t1")["name"] == "A2"

    assert store.delete("template", "t1") is True
    assert store.delete("template", "t1") is False
    assert [d["id"] for d in store.list("template")] == ["t2"]


def test_returned_documents_are_copies(store):
    store.put("template", "t1", {"id": "t1", "sections": [{"id": "s"}]})
    got = store.get("template", "t1")
    got["sections"].append({"id": "x"})
    assert store.get("template", "t1")["sections"] == [{"id": "s"}]


def test_service_round_trips_through_sql_store():
    store = _sqlite_store()
    svc = PDIService(store, config=Settings(seed_starter_templates=False))

    tmpl = svc.create_template(basic_template_payload())
    insp = svc.create_inspection(template_id=tmpl.id, asset_id="unit-7", inspector_id="tech-1")
    svc.update_inspection_item(insp.id, insp.items[0].id, status="passed", notes="ok")
    svc.create_defect(insp.id, title="Cracked lens", severity="high")
    svc.complete_inspection(insp.id)
    svc.add_signoff(insp.id, user_id="sup-1", role="supervisor", outcome="approve")

    fresh = PDIService(store, config=Settings(seed_starter_templates=False))
    loaded = fresh.get_inspection_by_id(insp.id)
    assert loaded.status == InspectionStatus.APPROVED
    assert loaded.items[0].notes == "ok"
    assert loaded.defects[0].title == "Cracked lens"
    assert loaded.signoffs[0].signed_at.tzinfo is not None
    assert fresh.inspection_progress(insp.id) == 33
