# backend/pdi_engine/services/task_sink.py
from __future__ import annotations

import logging
import threading
from typing import Protocol

from ..domain.pdi.task_bridge import TaskDraft

log = logging.getLogger(__name__)


class TaskSink(Protocol):
    def submit(self, draft: TaskDraft) -> None: ...


class InMemoryTaskSink:
    """Stand-in for the task center: accepted drafts are kept in order."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._drafts: list[TaskDraft] = []

    def submit(self, draft: TaskDraft) -> None:
        with self._lock:
            self._drafts.append(draft)
        log.info(
            "task draft submitted",
            extra={"entity_id": draft.source_id, "event_type": draft.source_type},
        )

    @property
    def drafts(self) -> list[TaskDraft]:
        with self._lock:
            return list(self._drafts)
