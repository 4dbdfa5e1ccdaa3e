# backend/pdi_engine/services/events_facade.py
from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from ..domain.pdi.common import utcnow

log = logging.getLogger(__name__)

Observer = Callable[["PDIEvent"], None]


@dataclass(frozen=True)
class PDIEvent:
    event_type: str
    entity_id: str
    snapshot: dict[str, Any]
    actor_user_id: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


class EventFacade:
    """
    Small facade the hub uses to broadcast post-mutation snapshots.

    Every emit is recorded in a bounded in-process log and fanned out to
    subscribers. A failing observer is logged and skipped; it never undoes
    the mutation that produced the event.

    Event taxonomy:
        template_created / template_updated / template_deleted / template_duplicated
        inspection_created / inspection_updated / inspection_item_updated
        inspection_completed / inspection_reopened / signoff_added
        defect_added / defect_updated / photo_added / follow_up_emitted
    """

    def __init__(self, *, max_events: int = 500) -> None:
        self._lock = threading.RLock()
        self._observers: list[Observer] = []
        self._events: deque[PDIEvent] = deque(maxlen=int(max_events))

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    def emit(
        self,
        *,
        event_type: str,
        entity_id: str,
        snapshot: dict[str, Any],
        actor_user_id: Optional[str] = None,
    ) -> PDIEvent:
        if not event_type:
            raise ValueError("event_type required")

        ev = PDIEvent(
            event_type=str(event_type),
            entity_id=str(entity_id),
            snapshot=snapshot,
            actor_user_id=actor_user_id,
        )
        with self._lock:
            self._events.append(ev)
            observers = list(self._observers)

        log.info(
            "pdi_event",
            extra={"event_type": ev.event_type, "entity_id": ev.entity_id, "user_id": actor_user_id},
        )
        for obs in observers:
            try:
                obs(ev)
            except Exception:
                log.exception("pdi observer failed", extra={"event_type": ev.event_type})
        return ev

    def list(self, *, entity_id: Optional[str] = None, limit: int = 200) -> list[PDIEvent]:
        with self._lock:
            rows = list(self._events)
        if entity_id is not None:
            rows = [e for e in rows if e.entity_id == entity_id]
        rows.reverse()
        return rows[: int(limit)]
