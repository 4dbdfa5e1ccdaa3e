# backend/pdi_engine/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pdi_engine.config import settings
from pdi_engine.services.pdi_service import PDIService, build_service


@dataclass(frozen=True)
class SeedResult:
    store_backend: str
    templates_added: int
    templates_total: int
    inspection_id: Optional[str]


def seed_demo(
    *,
    store_backend: Optional[str] = None,
    create_sample_inspection: bool = False,
    asset_id: str = "demo-unit-001",
    inspector_id: str = "demo-tech",
    service: Optional[PDIService] = None,
) -> SeedResult:
    """
    Seed starter templates (idempotent) and optionally open one inspection
    against the standard RV template.
    """
    if service is None:
        cfg = settings.model_copy(
            update={
                "store_backend": store_backend or settings.store_backend,
                "seed_starter_templates": False,
            }
        )
        service = build_service(cfg)
        backend = cfg.store_backend
    else:
        backend = store_backend or settings.store_backend

    added = service.seed_starter_templates()

    inspection_id: Optional[str] = None
    if create_sample_inspection:
        insp = service.create_inspection(
            template_id="template-rv-standard",
            asset_id=asset_id,
            inspector_id=inspector_id,
            notes="demo inspection",
        )
        inspection_id = insp.id

    return SeedResult(
        store_backend=backend,
        templates_added=len(added),
        templates_total=len(service.list_templates()),
        inspection_id=inspection_id,
    )
