"""
Out-of-Stock — Record Values

Immutable snapshot of an out-of-stock request as it moves between the
store, the lifecycle engine and the cache. Transitions never mutate a
record; they build a new one with dataclasses.replace.

@file out_of_stock/records.py
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from uuid import UUID

from .models import RequestStatus


@dataclass(frozen=True)
class RequestRecord:
    id: UUID
    customer_ref: str
    product_ref: str
    original_quantity: int
    requested_quantity: int
    returned_quantity: int
    status: RequestStatus
    created_at: datetime
    created_by: str
    updated_at: datetime
    updated_by: str
    variant_ref: str = ''
    customer_name: str = ''
    product_name: str = ''
    product_category: str = ''
    variant_label: str = ''
    notes: str = ''
    return_notes: str = ''
    completed_at: datetime | None = None
    returned_at: datetime | None = None

    @property
    def open_quantity(self) -> int:
        return self.requested_quantity

    @property
    def has_partial_return(self) -> bool:
        return 0 < self.returned_quantity < self.original_quantity

    @property
    def is_terminal(self) -> bool:
        return self.status == RequestStatus.RETURNED

    def quantities(self) -> dict[str, int]:
        return {
            'original_quantity': self.original_quantity,
            'requested_quantity': self.requested_quantity,
            'returned_quantity': self.returned_quantity,
        }

    def as_dict(self) -> dict:
        data = asdict(self)
        data['status'] = self.status.value
        return data


@dataclass(frozen=True)
class NewRequest:
    """Validated input for creating a request."""

    customer_ref: str
    product_ref: str
    quantity: int
    variant_ref: str = ''
    customer_name: str = ''
    product_name: str = ''
    product_category: str = ''
    variant_label: str = ''
    notes: str = ''


@dataclass(frozen=True)
class ReturnItem:
    """One line of a batch return."""

    request_id: UUID
    quantity: int
    notes: str = ''


@dataclass(frozen=True)
class BatchReturnOutcome:
    processed: tuple[RequestRecord, ...] = ()
    skipped: tuple[dict, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class DeleteOutcome:
    deleted: tuple[str, ...] = ()
    missing: tuple[str, ...] = ()
