# backend/pdi_engine/services/notifications.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

log = logging.getLogger("pdi_engine.notifications")

_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class NotificationSink(Protocol):
    def notify(self, level: str, message: str, **context: Any) -> None: ...


class LoggingNotificationSink:
    """Default sink: user-facing notices go to the structured log."""

    def notify(self, level: str, message: str, **context: Any) -> None:
        log.log(_LEVELS.get(level, logging.INFO), message, extra={k: v for k, v in context.items() if v is not None})


@dataclass
class Notice:
    level: str
    message: str
    context: dict[str, Any] = field(default_factory=dict)


class CollectingNotificationSink:
    """Keeps every notice in memory (tests, CLI summaries)."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, level: str, message: str, **context: Any) -> None:
        self.notices.append(Notice(level=level, message=message, context=dict(context)))

    def levels(self) -> list[str]:
        return [n.level for n in self.notices]
