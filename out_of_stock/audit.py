"""
Out-of-Stock — Audit Events

Every lifecycle transition and administrative delete produces one
AuditEvent. The sink is a collaborator; the default one writes to
core.AuditLog through AuditService.

@file out_of_stock/audit.py
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

from django.db import transaction

from core.services import AuditService

MODEL_NAME = 'OutOfStockRequest'


@dataclass(frozen=True)
class AuditEvent:
    action: str
    request_id: str
    actor: str
    occurred_at: datetime
    before: dict | None = None
    after: dict | None = None
    metadata: dict = field(default_factory=dict)


class AuditSink(Protocol):
    def record(self, event: AuditEvent) -> None: ...


class AuditLogSink:
    """Persists events as AuditLog rows."""

    def record(self, event: AuditEvent) -> None:
        new_values = dict(event.after or {})
        if event.metadata:
            new_values['metadata'] = event.metadata
        new_values['occurred_at'] = event.occurred_at
        with transaction.atomic():
            AuditService.log(
                action=event.action,
                model_name=MODEL_NAME,
                object_id=event.request_id,
                actor_ref=event.actor,
                old_values=event.before,
                new_values=new_values,
            )


class MemoryAuditSink:
    """Keeps events in a list. Used by the in-memory wiring and in tests."""

    def __init__(self):
        self._lock = threading.Lock()
        self._events: list[AuditEvent] = []

    def record(self, event: AuditEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> list[AuditEvent]:
        with self._lock:
            return list(self._events)

    def for_request(self, request_id) -> list[AuditEvent]:
        return [event for event in self.events if event.request_id == str(request_id)]
