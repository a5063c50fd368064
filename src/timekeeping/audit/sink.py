from __future__ import annotations

import threading
from typing import Protocol

import structlog

from .model import AuditEvent

logger = structlog.get_logger(__name__)


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None:
        raise NotImplementedError


def emit(sink: AuditSink, event: AuditEvent) -> None:
    """Fire-and-forget: a failing sink is logged and never fails the transition."""
    try:
        sink.record(event)
    except Exception:
        logger.exception(
            "audit_sink_failed",
            action=event.action.value,
            target_model=event.target_model,
            target_id=event.target_id,
        )


class InMemoryAuditSink(AuditSink):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[AuditEvent] = []

    def record(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> list[AuditEvent]:
        with self._lock:
            return list(self._events)
