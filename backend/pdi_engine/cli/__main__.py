# backend/pdi_engine/cli/__main__.py
from __future__ import annotations

import argparse

from pdi_engine.cli.seed_demo import seed_demo


def main() -> None:
    p = argparse.ArgumentParser(prog="python -m pdi_engine.cli")
    p.add_argument("--seed", action="store_true", help="seed starter templates into the configured store")
    p.add_argument("--demo-inspection", action="store_true", help="also open one sample inspection")
    p.add_argument("--asset-id", default="demo-unit-001")
    p.add_argument("--inspector-id", default="demo-tech")
    p.add_argument("--store", choices=["memory", "sql"], default=None)
    args = p.parse_args()

    if not args.seed:
        p.error("nothing to do (use --seed)")

    out = seed_demo(
        store_backend=args.store,
        create_sample_inspection=args.demo_inspection,
        asset_id=args.asset_id,
        inspector_id=args.inspector_id,
    )
    print(
        {
            "ok": True,
            "store_backend": out.store_backend,
            "templates_added": out.templates_added,
            "templates_total": out.templates_total,
            "sample_inspection_id": out.inspection_id,
        }
    )


if __name__ == "__main__":
    main()
