"""
Out-of-Stock — Lifecycle Engine

The only place quantities change. Each transition takes a RequestRecord,
checks the guard and returns a new record plus the audit event that
describes it; persisting both is the caller's job.

  PENDING   --fulfill_all-->          COMPLETED
  PENDING   --process_return(q)-->    COMPLETED (open left) | RETURNED (nothing open)
  COMPLETED --process_return(q)-->    COMPLETED (open left) | RETURNED (nothing open)
  RETURNED  is terminal.

Per-record locks live here too: the service holds `locked(record_id)`
from load to save so two returns on one record never interleave.

@file out_of_stock/lifecycle.py
"""

from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from dataclasses import replace
from typing import Callable

from django.utils import timezone

from core.constants import (
    AUDIT_ACTION_CREATE,
    AUDIT_ACTION_RETURN_PROCESS,
    AUDIT_ACTION_STATUS_CHANGE,
    AUDIT_ACTION_UPDATE,
)
from core.exceptions import InvalidTransition, ValidationError

from .audit import AuditEvent
from .models import RequestStatus
from .records import NewRequest, RequestRecord

TRANSITIONS = {
    RequestStatus.PENDING: {RequestStatus.COMPLETED, RequestStatus.RETURNED},
    RequestStatus.COMPLETED: {RequestStatus.COMPLETED, RequestStatus.RETURNED},
    RequestStatus.RETURNED: set(),
}


def _check_transition(record: RequestRecord, new_status: RequestStatus) -> None:
    allowed = TRANSITIONS.get(record.status, set())
    if new_status not in allowed:
        raise InvalidTransition(
            detail=f'Cannot transition request from {record.status} to {new_status}.',
            field='status', value=record.status,
        )


def _snapshot(record: RequestRecord) -> dict:
    return {'status': record.status, **record.quantities()}


class _KeyedLocks:
    """Reference-counted lock per key; entries vanish once nobody holds them."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}

    @contextmanager
    def hold(self, key: str):
        with self._guard:
            slot = self._locks.setdefault(key, [threading.Lock(), 0])
            slot[1] += 1
        slot[0].acquire()
        try:
            yield
        finally:
            slot[0].release()
            with self._guard:
                slot[1] -= 1
                if slot[1] == 0:
                    del self._locks[key]

    def __len__(self):
        with self._guard:
            return len(self._locks)


class LifecycleEngine:
    """State machine and quantity accounting for out-of-stock requests."""

    def __init__(self, *, now: Callable = timezone.now):
        self._now = now
        self._locks = _KeyedLocks()

    @contextmanager
    def locked(self, record_id):
        with self._locks.hold(str(record_id)):
            yield

    @property
    def active_locks(self) -> int:
        return len(self._locks)

    # -- transitions ------------------------------------------------------

    def create(self, new: NewRequest, actor: str) -> tuple[RequestRecord, AuditEvent]:
        if not new.customer_ref or not str(new.customer_ref).strip():
            raise ValidationError(detail='A customer reference is required.', field='customer_ref')
        if not new.product_ref or not str(new.product_ref).strip():
            raise ValidationError(detail='A product reference is required.', field='product_ref')
        if new.quantity < 1:
            raise ValidationError(
                detail='Quantity must be at least 1.', field='quantity', value=new.quantity,
            )

        now = self._now()
        record = RequestRecord(
            id=uuid.uuid4(),
            customer_ref=str(new.customer_ref).strip(),
            product_ref=str(new.product_ref).strip(),
            variant_ref=new.variant_ref,
            customer_name=new.customer_name,
            product_name=new.product_name,
            product_category=new.product_category,
            variant_label=new.variant_label,
            original_quantity=new.quantity,
            requested_quantity=new.quantity,
            returned_quantity=0,
            status=RequestStatus.PENDING,
            notes=new.notes,
            created_at=now,
            created_by=actor,
            updated_at=now,
            updated_by=actor,
        )
        return record, self._event(AUDIT_ACTION_CREATE, None, record, actor, now)

    def fulfill_all(self, record: RequestRecord, actor: str) -> tuple[RequestRecord, AuditEvent]:
        if record.status != RequestStatus.PENDING:
            raise InvalidTransition(
                detail=f'Only pending requests can be fulfilled; this one is {record.status}.',
                field='status', value=record.status,
            )

        now = self._now()
        updated = replace(
            record,
            status=RequestStatus.COMPLETED,
            completed_at=now,
            updated_at=now,
            updated_by=actor,
        )
        return updated, self._event(AUDIT_ACTION_STATUS_CHANGE, record, updated, actor, now)

    def process_return(
        self, record: RequestRecord, quantity: int, actor: str, notes: str = '',
    ) -> tuple[RequestRecord, AuditEvent]:
        if quantity <= 0:
            raise ValidationError(
                detail='Return quantity must be positive.', field='quantity', value=quantity,
            )
        if record.is_terminal:
            raise InvalidTransition(
                detail='This request has already been fully returned.',
                field='status', value=record.status,
            )
        if quantity > record.open_quantity:
            raise InvalidTransition(
                detail=f'Cannot return {quantity}; only {record.open_quantity} still open.',
                field='quantity', value=quantity,
            )

        open_after = record.requested_quantity - quantity
        new_status = RequestStatus.RETURNED if open_after == 0 else RequestStatus.COMPLETED
        _check_transition(record, new_status)

        now = self._now()
        changes = {
            'requested_quantity': open_after,
            'returned_quantity': record.returned_quantity + quantity,
            'status': new_status,
            'updated_at': now,
            'updated_by': actor,
        }
        if new_status == RequestStatus.RETURNED:
            changes['returned_at'] = now
        if record.completed_at is None:
            changes['completed_at'] = now
        if notes:
            changes['return_notes'] = notes
        updated = replace(record, **changes)
        return updated, self._event(
            AUDIT_ACTION_RETURN_PROCESS, record, updated, actor, now, returned=quantity,
        )

    def update_notes(self, record: RequestRecord, notes: str, actor: str) -> tuple[RequestRecord, AuditEvent]:
        now = self._now()
        updated = replace(record, notes=notes, updated_at=now, updated_by=actor)
        event = AuditEvent(
            action=AUDIT_ACTION_UPDATE,
            request_id=str(record.id),
            actor=actor,
            occurred_at=now,
            before={'notes': record.notes},
            after={'notes': notes},
        )
        return updated, event

    # -- internals --------------------------------------------------------

    def _event(self, action, before, after, actor, now, **metadata) -> AuditEvent:
        return AuditEvent(
            action=action,
            request_id=str(after.id),
            actor=actor,
            occurred_at=now,
            before=_snapshot(before) if before is not None else None,
            after=_snapshot(after),
            metadata=metadata,
        )
