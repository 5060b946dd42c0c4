"""
Out-of-Stock — Filter Criteria & Page Results

FilterCriteria is the immutable description of one query window. Its
fingerprint is the cache key: a sha256 over a sorted JSON document of
every field, so two criteria with the same values always collide no
matter how they were built. Free text is trimmed and case-folded up
front, which makes "  Shirt " and "shirt" the same query.

@file out_of_stock/criteria.py
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, replace
from datetime import date, datetime

from django.conf import settings

from core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from core.exceptions import ValidationError

from .models import RequestStatus
from .records import RequestRecord


def engine_setting(name: str, default):
    return getattr(settings, 'OUT_OF_STOCK', {}).get(name, default)


def normalize_query(text: str | None) -> str | None:
    if text is None:
        return None
    normalized = text.strip().casefold()
    return normalized or None


def _normalize_ref(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class FilterCriteria:
    date: date | None = None
    status: RequestStatus | None = None
    customer_ref: str | None = None
    product_ref: str | None = None
    query: str | None = None
    has_partial_return: bool | None = None
    page_index: int = 0
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.status is not None and not isinstance(self.status, RequestStatus):
            try:
                object.__setattr__(self, 'status', RequestStatus(self.status))
            except ValueError:
                raise ValidationError(
                    detail=f'Unknown status {self.status!r}.', field='status', value=self.status,
                )
        if isinstance(self.date, datetime):
            object.__setattr__(self, 'date', self.date.date())
        object.__setattr__(self, 'query', normalize_query(self.query))
        object.__setattr__(self, 'customer_ref', _normalize_ref(self.customer_ref))
        object.__setattr__(self, 'product_ref', _normalize_ref(self.product_ref))

        max_page_size = engine_setting('MAX_PAGE_SIZE', MAX_PAGE_SIZE)
        if not 1 <= self.page_size <= max_page_size:
            raise ValidationError(
                detail=f'page_size must be between 1 and {max_page_size}.',
                field='page_size', value=self.page_size,
            )
        if self.page_index < 0:
            raise ValidationError(
                detail='page_index must not be negative.', field='page_index', value=self.page_index,
            )

    # -- derived criteria -------------------------------------------------

    def for_page(self, page_index: int) -> FilterCriteria:
        return replace(self, page_index=page_index)

    def without_query(self) -> FilterCriteria:
        return replace(self, query=None)

    # -- fingerprinting ---------------------------------------------------

    def as_key_dict(self, *, include_page: bool = True) -> dict:
        data = {
            'date': self.date.isoformat() if self.date else None,
            'status': self.status.value if self.status else None,
            'customer_ref': self.customer_ref,
            'product_ref': self.product_ref,
            'query': self.query,
            'has_partial_return': self.has_partial_return,
        }
        if include_page:
            data['page_index'] = self.page_index
            data['page_size'] = self.page_size
        return data

    def fingerprint(self) -> str:
        return _digest('page', self.as_key_dict())

    def aggregate_fingerprint(self) -> str:
        """Key for status counts and totals; pagination is not part of it."""
        return _digest('agg', self.as_key_dict(include_page=False))

    # -- in-memory matching -----------------------------------------------

    def matches(self, record: RequestRecord, *, local_date=None) -> bool:
        if self.status is not None and record.status != self.status:
            return False
        if self.customer_ref is not None and record.customer_ref != self.customer_ref:
            return False
        if self.product_ref is not None and record.product_ref != self.product_ref:
            return False
        if self.date is not None:
            created = local_date(record.created_at) if local_date else record.created_at.date()
            if created != self.date:
                return False
        if self.has_partial_return is not None and record.has_partial_return != self.has_partial_return:
            return False
        if self.query is not None:
            haystack = (
                record.customer_name, record.product_name,
                record.product_category, record.variant_label, record.notes,
            )
            if not any(self.query in (value or '').casefold() for value in haystack):
                return False
        return True


def _digest(kind: str, data: dict) -> str:
    payload = json.dumps(data, sort_keys=True, separators=(',', ':'))
    return f'{kind}:' + hashlib.sha256(payload.encode()).hexdigest()


@dataclass(frozen=True)
class PageResult:
    items: tuple[RequestRecord, ...]
    page_index: int
    page_size: int
    has_more_pages: bool
    fetched_at: datetime

    def __len__(self):
        return len(self.items)


def sort_key(record: RequestRecord):
    """created_at descending, ties broken by id ascending."""
    return (-record.created_at.timestamp(), str(record.id))
