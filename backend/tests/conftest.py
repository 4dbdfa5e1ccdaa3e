# backend/tests/conftest.py
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from pdi_engine.config import Settings
from pdi_engine.services.asset_directory import InMemoryAssetDirectory
from pdi_engine.services.document_store import InMemoryDocumentStore
from pdi_engine.services.notifications import CollectingNotificationSink
from pdi_engine.services.pdi_service import PDIService, get_service
from pdi_engine.services.task_sink import InMemoryTaskSink


def basic_template_payload(name: str = "Basic PDI") -> dict:
    """One section, three items, two of them required."""
    return {
        "name": name,
        "asset_type": "Travel Trailer",
        "sections": [
            {
                "id": "sec-ext",
                "name": "Exterior",
                "items": [
                    {"id": "it-body", "name": "Body Condition", "is_required": True},
                    {"id": "it-paint", "name": "Paint/Graphics", "is_required": True},
                    {
                        "id": "it-awning",
                        "name": "Awnings",
                        "is_required": False,
                        "response_type": "pass_fail_na",
                    },
                ],
            }
        ],
    }


def make_service(**overrides) -> PDIService:
    cfg = Settings(seed_starter_templates=False, **overrides)
    return PDIService(
        InMemoryDocumentStore(),
        notifier=CollectingNotificationSink(),
        task_sink=InMemoryTaskSink(),
        assets=InMemoryAssetDirectory(
            {"unit-42": {"year": 2025, "make": "Grand Design", "model": "Imagine 2500RL"}}
        ),
        config=cfg,
    )


@pytest.fixture
def svc() -> PDIService:
    return make_service()


@pytest.fixture
def template(svc):
    return svc.create_template(basic_template_payload())


@pytest.fixture
def inspection(svc, template):
    return svc.create_inspection(template_id=template.id, asset_id="unit-42", inspector_id="tech-1")


@pytest.fixture
def client(svc):
    from pdi_engine.main import app

    app.dependency_overrides[get_service] = lambda: svc
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
