"""
Out-of-Stock — Query Service

Orchestrates reads and mutations over out-of-stock requests.

Reads go cache-first: a miss records the cache generation, asks the
store, and puts the page back tagged with that generation. Mutations go
  LifecycleEngine → store.save → cache.invalidate_all → audit sink
and always read the authoritative record from the store, never the cache,
while holding the record's lock.

@file out_of_stock/services.py
"""

from __future__ import annotations

import logging
from typing import Iterable

from django.utils import timezone

from core.constants import AUDIT_ACTION_BATCH_DELETE, DEFAULT_SEARCH_CANDIDATE_LIMIT, MAX_PAGE_SIZE
from core.exceptions import (
    AuthenticationRequired,
    InvalidTransition,
    NoMorePages,
    ResourceNotFoundError,
    StorageError,
    ValidationError,
)

from .audit import AuditEvent, AuditLogSink
from .cache import CacheLayer
from .criteria import FilterCriteria, PageResult, engine_setting
from .identity import IdentityProvider
from .lifecycle import LifecycleEngine
from .models import RequestStatus
from .records import (
    BatchReturnOutcome,
    DeleteOutcome,
    NewRequest,
    RequestRecord,
    ReturnItem,
)
from .search import rank
from .store import coerce_id

logger = logging.getLogger('backorderdesk')


def _as_new_request(fields) -> NewRequest:
    if isinstance(fields, NewRequest):
        return fields
    try:
        return NewRequest(**fields)
    except TypeError as exc:
        raise ValidationError(detail=str(exc), field='fields') from exc


class OutOfStockQueryService:
    """Cached, paginated queries plus lifecycle mutations for out-of-stock requests."""

    def __init__(
        self,
        *,
        store,
        cache: CacheLayer | None = None,
        engine: LifecycleEngine | None = None,
        audit_sink=None,
        identity: IdentityProvider | None = None,
        search_candidate_limit: int | None = None,
        now=timezone.now,
    ):
        self.store = store
        self.cache = cache if cache is not None else CacheLayer()
        self.engine = engine if engine is not None else LifecycleEngine(now=now)
        self.audit_sink = audit_sink if audit_sink is not None else AuditLogSink()
        self.identity = identity
        self.search_candidate_limit = search_candidate_limit or engine_setting(
            'SEARCH_CANDIDATE_LIMIT', DEFAULT_SEARCH_CANDIDATE_LIMIT,
        )
        self._now = now

    # =====================================================================
    # Reads
    # =====================================================================

    def load_page(self, criteria: FilterCriteria, page_index: int | None = None) -> PageResult:
        window = criteria if page_index is None else criteria.for_page(page_index)
        fingerprint = window.fingerprint()

        cached = self.cache.get(fingerprint)
        if cached is not None:
            return cached

        generation = self.cache.generation
        items, has_more = self._read(self.store.query, window, window.page_index, window.page_size)
        page = PageResult(
            items=tuple(items),
            page_index=window.page_index,
            page_size=window.page_size,
            has_more_pages=has_more,
            fetched_at=self._now(),
        )
        self.cache.put(fingerprint, page, generation=generation)
        return page

    def load_next_page(self, criteria: FilterCriteria, current_page_index: int) -> PageResult:
        current = self.load_page(criteria, current_page_index)
        if not current.has_more_pages:
            raise NoMorePages(
                detail=f'Page {current_page_index} is the last page.',
                field='page_index', value=current_page_index,
            )
        return self.load_page(criteria, current_page_index + 1)

    def status_counts(self, criteria: FilterCriteria) -> dict[str, int]:
        fingerprint = criteria.aggregate_fingerprint()
        cached = self.cache.get_status_counts(fingerprint)
        if cached is not None:
            return dict(cached)

        generation = self.cache.generation
        raw = self._read(self.store.count_by_status, criteria)
        counts = {status.value: int(raw.get(status.value, 0)) for status in RequestStatus}
        self.cache.put_status_counts(fingerprint, counts, generation=generation)
        return dict(counts)

    def filtered_count(self, criteria: FilterCriteria) -> int:
        fingerprint = criteria.aggregate_fingerprint()
        cached = self.cache.get_filtered_count(fingerprint)
        if cached is not None:
            return cached

        generation = self.cache.generation
        total = self._read(self.store.count, criteria)
        self.cache.put_filtered_count(fingerprint, total, generation=generation)
        return total

    def get_request(self, request_id) -> RequestRecord:
        record = self._read(self.store.get, request_id)
        if record is None:
            raise ResourceNotFoundError(
                detail='Out-of-stock request not found.', field='request_id', value=request_id,
            )
        return record

    def search(self, query: str, within_criteria: FilterCriteria | None = None) -> list[RequestRecord]:
        """
        Rank the records matching `within_criteria` (its own free text is
        ignored) against `query`. At most SEARCH_CANDIDATE_LIMIT candidates
        are considered.
        """
        if not query or not query.strip():
            raise ValidationError(detail='A search query is required.', field='query', value=query)

        criteria = (within_criteria or FilterCriteria()).without_query()
        chunk = min(engine_setting('MAX_PAGE_SIZE', MAX_PAGE_SIZE), self.search_candidate_limit)
        candidates: list[RequestRecord] = []
        page_index = 0
        while len(candidates) < self.search_candidate_limit:
            items, has_more = self._read(self.store.query, criteria, page_index, chunk)
            candidates.extend(items)
            if not has_more:
                break
            page_index += 1

        if has_more or len(candidates) > self.search_candidate_limit:
            logger.warning(
                'Search for %r stopped at %s candidates; older matches were not ranked',
                query, self.search_candidate_limit,
            )
        return rank(candidates[:self.search_candidate_limit], query)

    # =====================================================================
    # Mutations
    # =====================================================================

    def create_request(self, fields, actor: str | None = None) -> RequestRecord:
        actor = self._actor(actor)
        record, event = self.engine.create(_as_new_request(fields), actor)
        self.store.save(record)
        self.cache.invalidate_all()
        self._audit(event)
        logger.info('Out-of-stock request %s created by %s', record.id, actor)
        return record

    def create_requests(self, items: Iterable, actor: str | None = None) -> list[RequestRecord]:
        """All-or-nothing: every item is validated before anything is saved."""
        actor = self._actor(actor)
        built = [self.engine.create(_as_new_request(fields), actor) for fields in items]
        if not built:
            raise ValidationError(detail='At least one request is required.', field='requests')

        saved: list[RequestRecord] = []
        try:
            for record, _ in built:
                self.store.save(record)
                saved.append(record)
        except (ValidationError, StorageError):
            for record in saved:
                self.store.delete(record.id)
            raise
        finally:
            self.cache.invalidate_all()

        for _, event in built:
            self._audit(event)
        logger.info('%s out-of-stock requests created by %s', len(saved), actor)
        return saved

    def process_return(
        self, request_id, quantity: int, actor: str | None = None, notes: str = '',
    ) -> RequestRecord:
        actor = self._actor(actor)
        with self.engine.locked(self._lock_key(request_id)):
            record = self._authoritative(request_id)
            updated, event = self.engine.process_return(record, quantity, actor, notes)
            self.store.save(updated)
            self.cache.invalidate_all()
        self._audit(event)
        logger.info(
            'Return of %s processed on request %s (%s -> %s)',
            quantity, updated.id, record.status, updated.status,
        )
        return updated

    def process_batch_returns(self, items: Iterable[ReturnItem], actor: str | None = None) -> BatchReturnOutcome:
        """Each item stands alone; invalid ones are skipped and reported."""
        actor = self._actor(actor)
        processed: list[RequestRecord] = []
        skipped: list[dict] = []
        events: list[AuditEvent] = []

        try:
            for item in items:
                try:
                    with self.engine.locked(self._lock_key(item.request_id)):
                        record = self._authoritative(item.request_id)
                        updated, event = self.engine.process_return(record, item.quantity, actor, item.notes)
                        self.store.save(updated)
                except (ValidationError, InvalidTransition, ResourceNotFoundError) as exc:
                    skipped.append({'request_id': str(item.request_id), 'quantity': item.quantity, **exc.as_dict()})
                    continue
                processed.append(updated)
                events.append(event)
        finally:
            if processed:
                self.cache.invalidate_all()
            for event in events:
                self._audit(event)

        if skipped:
            logger.warning('Batch return skipped %s of %s items', len(skipped), len(skipped) + len(processed))
        return BatchReturnOutcome(processed=tuple(processed), skipped=tuple(skipped))

    def fulfill_all(self, request_id, actor: str | None = None) -> RequestRecord:
        actor = self._actor(actor)
        with self.engine.locked(self._lock_key(request_id)):
            record = self._authoritative(request_id)
            updated, event = self.engine.fulfill_all(record, actor)
            self.store.save(updated)
            self.cache.invalidate_all()
        self._audit(event)
        return updated

    def update_notes(self, request_id, notes: str, actor: str | None = None) -> RequestRecord:
        actor = self._actor(actor)
        with self.engine.locked(self._lock_key(request_id)):
            record = self._authoritative(request_id)
            updated, event = self.engine.update_notes(record, notes or '', actor)
            self.store.save(updated)
            self.cache.invalidate_all()
        self._audit(event)
        return updated

    def delete_requests(self, request_ids: Iterable, actor: str | None = None) -> DeleteOutcome:
        """Hard delete. Bypasses lifecycle rules; each removed record is audited."""
        actor = self._actor(actor)
        deleted: list[str] = []
        missing: list[str] = []
        events: list[AuditEvent] = []

        try:
            for request_id in request_ids:
                with self.engine.locked(self._lock_key(request_id)):
                    record = self.store.get(request_id)
                    if record is None:
                        missing.append(str(request_id))
                        continue
                    self.store.delete(record.id)
                deleted.append(str(record.id))
                events.append(AuditEvent(
                    action=AUDIT_ACTION_BATCH_DELETE,
                    request_id=str(record.id),
                    actor=actor,
                    occurred_at=self._now(),
                    before=record.as_dict(),
                ))
        finally:
            if deleted:
                self.cache.invalidate_all()
            for event in events:
                self._audit(event)

        logger.info('%s out-of-stock requests deleted by %s', len(deleted), actor)
        return DeleteOutcome(deleted=tuple(deleted), missing=tuple(missing))

    # =====================================================================
    # Internals
    # =====================================================================

    def _read(self, fn, *args):
        try:
            return fn(*args)
        except StorageError:
            logger.warning('Store read %s failed, retrying once', getattr(fn, '__name__', fn))
            return fn(*args)

    def _actor(self, actor: str | None) -> str:
        if not actor and self.identity is not None:
            actor = self.identity.current_actor()
        if not actor:
            raise AuthenticationRequired()
        return str(actor)

    def _authoritative(self, request_id) -> RequestRecord:
        record = self.store.get(request_id)
        if record is None:
            raise ResourceNotFoundError(
                detail='Out-of-stock request not found.', field='request_id', value=request_id,
            )
        return record

    @staticmethod
    def _lock_key(request_id) -> str:
        pk = coerce_id(request_id)
        return str(pk) if pk is not None else str(request_id)

    def _audit(self, event: AuditEvent) -> None:
        try:
            self.audit_sink.record(event)
        except Exception:
            logger.exception('Audit sink failed for %s on request %s', event.action, event.request_id)
