"""
Out-of-Stock — Test Fixtures

Isolated engine wiring: a fake monotonic clock, a fresh cache, an
in-memory store and an in-memory audit sink per test.

@file out_of_stock/tests/conftest.py
"""

import pytest
from django.apps import apps

from out_of_stock.audit import MemoryAuditSink
from out_of_stock.cache import CacheLayer
from out_of_stock.identity import StaticIdentity
from out_of_stock.services import OutOfStockQueryService
from out_of_stock.store import InMemoryRequestStore


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheLayer(ttl=300, status_count_ttl=60, max_entries=200, clock=clock)


@pytest.fixture
def store():
    return InMemoryRequestStore()


@pytest.fixture
def audit_sink():
    return MemoryAuditSink()


@pytest.fixture
def service(store, cache, audit_sink):
    return OutOfStockQueryService(
        store=store,
        cache=cache,
        audit_sink=audit_sink,
        identity=StaticIdentity('seller-1'),
    )


@pytest.fixture(autouse=True)
def reset_app_cache():
    """The HTTP layer's service outlives a test's database rollback."""
    apps.get_app_config('out_of_stock').service.cache.invalidate_all()
    yield
    apps.get_app_config('out_of_stock').service.cache.invalidate_all()
