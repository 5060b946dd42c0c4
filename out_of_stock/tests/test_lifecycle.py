"""
Out-of-Stock — Lifecycle Engine Tests

@file out_of_stock/tests/test_lifecycle.py
"""

import random
import threading
import time

import pytest

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_RETURN_PROCESS, AUDIT_ACTION_STATUS_CHANGE
from core.exceptions import InvalidTransition, ValidationError
from out_of_stock.lifecycle import TRANSITIONS, LifecycleEngine
from out_of_stock.models import RequestStatus
from out_of_stock.records import NewRequest
from tests.factories import RequestRecordFactory


@pytest.fixture
def engine():
    return LifecycleEngine()


def conserved(record):
    return record.requested_quantity + record.returned_quantity == record.original_quantity


class TestCreate:
    def test_new_request_is_pending_with_full_quantity(self, engine):
        record, event = engine.create(
            NewRequest(customer_ref='C-1', product_ref='P-1', quantity=5, product_name='Shirt'),
            actor='seller-1',
        )
        assert record.status == RequestStatus.PENDING
        assert (record.original_quantity, record.requested_quantity, record.returned_quantity) == (5, 5, 0)
        assert record.created_by == record.updated_by == 'seller-1'
        assert event.action == AUDIT_ACTION_CREATE
        assert event.before is None
        assert event.after['requested_quantity'] == 5

    @pytest.mark.parametrize('quantity', [0, -3])
    def test_quantity_must_be_positive(self, engine, quantity):
        with pytest.raises(ValidationError) as exc:
            engine.create(NewRequest(customer_ref='C', product_ref='P', quantity=quantity), 'seller-1')
        assert exc.value.field == 'quantity'

    @pytest.mark.parametrize('field', ['customer_ref', 'product_ref'])
    def test_references_required(self, engine, field):
        values = {'customer_ref': 'C', 'product_ref': 'P', 'quantity': 1, field: '  '}
        with pytest.raises(ValidationError) as exc:
            engine.create(NewRequest(**values), 'seller-1')
        assert exc.value.field == field


class TestReturns:
    def test_full_return_of_pending_request(self, engine):
        record = RequestRecordFactory(original_quantity=5)
        updated, event = engine.process_return(record, 5, 'seller-2')

        assert updated.status == RequestStatus.RETURNED
        assert (updated.requested_quantity, updated.returned_quantity) == (0, 5)
        assert updated.returned_at is not None
        assert updated.completed_at is not None
        assert event.action == AUDIT_ACTION_RETURN_PROCESS
        assert event.before['status'] == RequestStatus.PENDING
        assert event.after['status'] == RequestStatus.RETURNED
        assert event.metadata == {'returned': 5}
        assert record.status == RequestStatus.PENDING

    def test_partial_then_final_return(self, engine):
        record = RequestRecordFactory(original_quantity=10)
        first, _ = engine.process_return(record, 3, 'seller-1')
        assert first.status == RequestStatus.COMPLETED
        assert (first.original_quantity, first.requested_quantity, first.returned_quantity) == (10, 7, 3)
        assert first.has_partial_return

        second, _ = engine.process_return(first, 7, 'seller-1')
        assert second.status == RequestStatus.RETURNED
        assert (second.requested_quantity, second.returned_quantity) == (0, 10)
        assert not second.has_partial_return

    def test_over_return_rejected(self, engine):
        record = RequestRecordFactory(original_quantity=4)
        with pytest.raises(InvalidTransition) as exc:
            engine.process_return(record, 5, 'seller-1')
        assert exc.value.field == 'quantity'
        assert exc.value.value == 5

    @pytest.mark.parametrize('quantity', [0, -1])
    def test_non_positive_return_rejected(self, engine, quantity):
        with pytest.raises(ValidationError):
            engine.process_return(RequestRecordFactory(), quantity, 'seller-1')

    def test_returned_is_terminal(self, engine):
        record = RequestRecordFactory(
            original_quantity=4, requested_quantity=0, returned_quantity=4, status=RequestStatus.RETURNED,
        )
        with pytest.raises(InvalidTransition):
            engine.process_return(record, 1, 'seller-1')
        with pytest.raises(InvalidTransition):
            engine.fulfill_all(record, 'seller-1')
        assert TRANSITIONS[RequestStatus.RETURNED] == set()

    def test_return_notes_recorded(self, engine):
        updated, _ = engine.process_return(RequestRecordFactory(), 2, 'seller-1', notes='damaged box')
        assert updated.return_notes == 'damaged box'

    def test_completed_at_kept_on_later_returns(self, engine):
        record = RequestRecordFactory(original_quantity=10)
        first, _ = engine.process_return(record, 2, 'seller-1')
        second, _ = engine.process_return(first, 2, 'seller-1')
        assert second.completed_at == first.completed_at

    def test_conservation_over_random_sequences(self, engine):
        rng = random.Random(7)
        for _ in range(50):
            record = RequestRecordFactory(original_quantity=rng.randint(1, 30))
            while not record.is_terminal:
                quantity = rng.randint(1, record.open_quantity + 2)
                try:
                    record, _ = engine.process_return(record, quantity, 'seller-1')
                except InvalidTransition:
                    assert quantity > record.open_quantity
                assert conserved(record)
                assert record.requested_quantity >= 0
            assert record.returned_quantity == record.original_quantity


class TestFulfill:
    def test_pending_to_completed(self, engine):
        record = RequestRecordFactory()
        updated, event = engine.fulfill_all(record, 'keeper-1')
        assert updated.status == RequestStatus.COMPLETED
        assert updated.quantities() == record.quantities()
        assert updated.completed_at is not None
        assert event.action == AUDIT_ACTION_STATUS_CHANGE

    def test_completed_cannot_be_fulfilled_again(self, engine):
        record, _ = engine.fulfill_all(RequestRecordFactory(), 'keeper-1')
        with pytest.raises(InvalidTransition):
            engine.fulfill_all(record, 'keeper-1')


class TestNotes:
    def test_update_notes_leaves_quantities(self, engine):
        record = RequestRecordFactory(notes='')
        updated, event = engine.update_notes(record, 'call back Friday', 'seller-1')
        assert updated.notes == 'call back Friday'
        assert updated.quantities() == record.quantities()
        assert event.before == {'notes': ''}


class TestLocks:
    def test_lock_entries_released(self, engine):
        with engine.locked('a'):
            with engine.locked('b'):
                assert engine.active_locks == 2
        assert engine.active_locks == 0

    def test_same_key_serialises(self, engine):
        order = []

        def second():
            with engine.locked('a'):
                order.append('second')

        with engine.locked('a'):
            thread = threading.Thread(target=second)
            thread.start()
            time.sleep(0.05)
            order.append('first')
        thread.join()
        assert order == ['first', 'second']
        assert engine.active_locks == 0
