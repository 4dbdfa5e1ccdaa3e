# backend/pdi_engine/services/document_store.py
"""
Key-value persistence for PDI documents.

Entities are stored as the flat JSON dicts produced by the domain `as_dict()`
helpers, keyed by (kind, id). Both stores hand out copies: nothing a caller
does to a returned dict reaches stored state.
"""
from __future__ import annotations

import copy
import json
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models import PDIDocument

KIND_TEMPLATE = "template"
KIND_INSPECTION = "inspection"


class DocumentStore(Protocol):
    def get(self, kind: str, doc_id: str) -> Optional[dict[str, Any]]: ...

    def list(self, kind: str) -> list[dict[str, Any]]: ...

    def put(self, kind: str, doc_id: str, payload: dict[str, Any]) -> None: ...

    def delete(self, kind: str, doc_id: str) -> bool: ...

    def locked(self): ...


class InMemoryDocumentStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        # insertion order is kept so list() is stable
        self._docs: dict[tuple[str, str], dict[str, Any]] = {}

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def get(self, kind: str, doc_id: str) -> Optional[dict[str, Any]]:
        with self._lock:
            row = self._docs.get((kind, doc_id))
            return copy.deepcopy(row) if row is not None else None

    def list(self, kind: str) -> list[dict[str, Any]]:
        with self._lock:
            return [copy.deepcopy(v) for (k, _), v in self._docs.items() if k == kind]

    def put(self, kind: str, doc_id: str, payload: dict[str, Any]) -> None:
        with self._lock:
            self._docs[(kind, doc_id)] = copy.deepcopy(payload)

    def delete(self, kind: str, doc_id: str) -> bool:
        with self._lock:
            return self._docs.pop((kind, doc_id), None) is not None


class SqlDocumentStore:
    """
    Same contract, backed by the `pdi_documents` table.

    Each call opens its own short session; the process-level lock keeps the
    read-copy-mutate-put sequence in PDIService single-writer.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get(self, kind: str, doc_id: str) -> Optional[dict[str, Any]]:
        with self._session() as db:
            row = db.get(PDIDocument, {"kind": kind, "id": doc_id})
            return json.loads(row.payload_json) if row is not None else None

    def list(self, kind: str) -> list[dict[str, Any]]:
        with self._session() as db:
            rows = db.scalars(
                select(PDIDocument).where(PDIDocument.kind == kind).order_by(PDIDocument.updated_at.asc())
            ).all()
            return [json.loads(r.payload_json) for r in rows]

    def put(self, kind: str, doc_id: str, payload: dict[str, Any]) -> None:
        body = json.dumps(payload, default=str)
        with self._lock, self._session() as db:
            row = db.get(PDIDocument, {"kind": kind, "id": doc_id})
            if row is None:
                db.add(PDIDocument(kind=kind, id=doc_id, payload_json=body, updated_at=datetime.utcnow()))
            else:
                row.payload_json = body
                row.updated_at = datetime.utcnow()

    def delete(self, kind: str, doc_id: str) -> bool:
        with self._lock, self._session() as db:
            row = db.get(PDIDocument, {"kind": kind, "id": doc_id})
            if row is None:
                return False
            db.delete(row)
            return True
