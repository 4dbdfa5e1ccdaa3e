# backend/pdi_engine/services/asset_directory.py
from __future__ import annotations

import copy
from typing import Any, Optional, Protocol


class AssetDirectory(Protocol):
    def get(self, asset_id: str) -> Optional[dict[str, Any]]: ...


class InMemoryAssetDirectory:
    """
    Lookup of vehicle / home records by id.

    The engine only reads display fields (year, make, model, stock_number,
    label) to title tasks and calendar entries; asset ids on inspections are
    never validated against it.
    """

    def __init__(self, assets: Optional[dict[str, dict[str, Any]]] = None) -> None:
        self._assets: dict[str, dict[str, Any]] = dict(assets or {})

    def get(self, asset_id: str) -> Optional[dict[str, Any]]:
        row = self._assets.get(str(asset_id))
        return copy.deepcopy(row) if row is not None else None
