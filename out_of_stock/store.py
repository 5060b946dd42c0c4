"""
Out-of-Stock — Request Store

Persistence collaborator behind the query service. Two implementations:

  DjangoRequestStore    ORM-backed; filtering through OutOfStockRequestFilter
  InMemoryRequestStore  dict-backed; used by tests and local tooling

Both order results by created_at descending, ties by id, and report
has_more by fetching one row beyond the page.

@file out_of_stock/store.py
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import Counter
from dataclasses import fields
from typing import Protocol

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count
from django.utils import timezone

from core.exceptions import StorageError, ValidationError

from .criteria import FilterCriteria, sort_key
from .filters import OutOfStockRequestFilter
from .models import OutOfStockRequest, RequestStatus
from .records import RequestRecord

logger = logging.getLogger('backorderdesk')

RECORD_FIELDS = tuple(f.name for f in fields(RequestRecord))


class RequestStore(Protocol):
    def query(
        self, criteria: FilterCriteria, page_index: int, page_size: int,
    ) -> tuple[list[RequestRecord], bool]: ...

    def count_by_status(self, criteria: FilterCriteria) -> dict[str, int]: ...

    def count(self, criteria: FilterCriteria) -> int: ...

    def get(self, request_id) -> RequestRecord | None: ...

    def save(self, record: RequestRecord) -> RequestRecord: ...

    def delete(self, record_or_id) -> bool: ...


def coerce_id(value):
    if isinstance(value, RequestRecord):
        return value.id
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# ORM store
# ---------------------------------------------------------------------------

def record_from_row(row: OutOfStockRequest) -> RequestRecord:
    values = {name: getattr(row, name) for name in RECORD_FIELDS}
    values['status'] = RequestStatus(row.status)
    return RequestRecord(**values)


class DjangoRequestStore:
    """RequestStore over the OutOfStockRequest table."""

    def _queryset(self, criteria: FilterCriteria):
        filterset = OutOfStockRequestFilter(
            data=OutOfStockRequestFilter.data_from_criteria(criteria),
            queryset=OutOfStockRequest.objects.all(),
        )
        if not filterset.is_valid():
            raise ValidationError(detail=str(dict(filterset.errors)), field='criteria')
        return filterset.qs

    def query(self, criteria, page_index, page_size):
        offset = page_index * page_size
        try:
            rows = list(
                self._queryset(criteria).order_by('-created_at', 'id')[offset:offset + page_size + 1],
            )
        except DatabaseError as exc:
            logger.exception('Out-of-stock page query failed')
            raise StorageError(detail=str(exc)) from exc
        has_more = len(rows) > page_size
        return [record_from_row(row) for row in rows[:page_size]], has_more

    def count_by_status(self, criteria):
        try:
            rows = (
                self._queryset(criteria)
                .order_by()
                .values('status')
                .annotate(total=Count('id'))
            )
            return {row['status']: row['total'] for row in rows}
        except DatabaseError as exc:
            logger.exception('Out-of-stock status count failed')
            raise StorageError(detail=str(exc)) from exc

    def count(self, criteria):
        try:
            return self._queryset(criteria).count()
        except DatabaseError as exc:
            logger.exception('Out-of-stock count failed')
            raise StorageError(detail=str(exc)) from exc

    def get(self, request_id):
        pk = coerce_id(request_id)
        if pk is None:
            return None
        try:
            row = OutOfStockRequest.objects.filter(pk=pk).first()
        except DatabaseError as exc:
            raise StorageError(detail=str(exc)) from exc
        return record_from_row(row) if row is not None else None

    def save(self, record):
        values = {name: getattr(record, name) for name in RECORD_FIELDS if name != 'id'}
        values['status'] = record.status.value
        try:
            with transaction.atomic():
                updated = OutOfStockRequest.objects.filter(pk=record.id).update(**values)
                if not updated:
                    row = OutOfStockRequest(id=record.id, **values)
                    row.full_clean(validate_unique=False, validate_constraints=False)
                    row.save(force_insert=True)
                    # auto_now_add/auto_now overwrite on insert; keep the record's stamps
                    OutOfStockRequest.objects.filter(pk=record.id).update(
                        created_at=record.created_at, updated_at=record.updated_at,
                    )
        except DjangoValidationError as exc:
            raise ValidationError(detail='; '.join(exc.messages), field='record', value=record.id) from exc
        except IntegrityError as exc:
            raise ValidationError(detail=str(exc), field='record', value=record.id) from exc
        except DatabaseError as exc:
            logger.exception('Saving out-of-stock request %s failed', record.id)
            raise StorageError(detail=str(exc)) from exc
        return record

    def delete(self, record_or_id):
        pk = coerce_id(record_or_id)
        if pk is None:
            return False
        try:
            deleted, _ = OutOfStockRequest.objects.filter(pk=pk).delete()
        except DatabaseError as exc:
            logger.exception('Deleting out-of-stock request %s failed', pk)
            raise StorageError(detail=str(exc)) from exc
        return bool(deleted)


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class InMemoryRequestStore:
    """Thread-safe dict store. `calls` counts store round-trips by method."""

    def __init__(self, records=()):
        self._lock = threading.RLock()
        self._records: dict[uuid.UUID, RequestRecord] = {}
        self.calls: Counter = Counter()
        for record in records:
            self._records[record.id] = record

    @staticmethod
    def _local_date(value):
        return timezone.localtime(value).date() if timezone.is_aware(value) else value.date()

    def _matching(self, criteria):
        return [
            record for record in self._records.values()
            if criteria.matches(record, local_date=self._local_date)
        ]

    def query(self, criteria, page_index, page_size):
        with self._lock:
            self.calls['query'] += 1
            matching = sorted(self._matching(criteria), key=sort_key)
        offset = page_index * page_size
        window = matching[offset:offset + page_size + 1]
        return window[:page_size], len(window) > page_size

    def count_by_status(self, criteria):
        with self._lock:
            self.calls['count_by_status'] += 1
            counts = Counter(record.status.value for record in self._matching(criteria))
        return dict(counts)

    def count(self, criteria):
        with self._lock:
            self.calls['count'] += 1
            return len(self._matching(criteria))

    def get(self, request_id):
        with self._lock:
            self.calls['get'] += 1
            return self._records.get(coerce_id(request_id))

    def save(self, record):
        if record.requested_quantity + record.returned_quantity != record.original_quantity:
            raise ValidationError(detail='Quantities do not add up.', field='record', value=record.id)
        with self._lock:
            self.calls['save'] += 1
            self._records[record.id] = record
        return record

    def delete(self, record_or_id):
        with self._lock:
            self.calls['delete'] += 1
            return self._records.pop(coerce_id(record_or_id), None) is not None

    def __len__(self):
        with self._lock:
            return len(self._records)
