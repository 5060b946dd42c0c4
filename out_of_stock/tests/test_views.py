"""
Out-of-Stock — API Tests

@file out_of_stock/tests/test_views.py
"""

import uuid

import pytest
from django.urls import reverse

from core.models import AuditLog
from out_of_stock.models import OutOfStockRequest, RequestStatus
from out_of_stock.store import DjangoRequestStore
from tests.factories import RequestRecordFactory

pytestmark = pytest.mark.django_db

LIST_URL = reverse('api-v1:out_of_stock:request-list')


def detail_url(pk, action=None):
    if action is None:
        return reverse('api-v1:out_of_stock:request-detail', args=[pk])
    return reverse(f'api-v1:out_of_stock:request-{action}', args=[pk])


def seed(count, **kwargs):
    store = DjangoRequestStore()
    records = [RequestRecordFactory(**kwargs) for _ in range(count)]
    for record in records:
        store.save(record)
    return records


class TestAccess:
    def test_anonymous_rejected(self, api_client):
        response = api_client.get(LIST_URL)
        assert response.status_code == 401
        assert response.json()['success'] is False

    def test_reader_can_list_but_not_create(self, authenticated_client):
        assert authenticated_client.get(LIST_URL).status_code == 200
        response = authenticated_client.post(
            LIST_URL, {'customer_ref': 'C', 'product_ref': 'P', 'quantity': 1}, format='json',
        )
        assert response.status_code == 403

    def test_salesperson_cannot_batch_delete(self, salesperson_client):
        record, = seed(1)
        response = salesperson_client.post(
            reverse('api-v1:out_of_stock:request-batch-delete'), {'ids': [str(record.id)]}, format='json',
        )
        assert response.status_code == 403
        assert OutOfStockRequest.objects.filter(pk=record.id).exists()


class TestListing:
    def test_page_envelope(self, authenticated_client):
        records = seed(3)
        response = authenticated_client.get(LIST_URL, {'page_size': 2})

        body = response.json()
        assert body['success'] is True
        assert [item['id'] for item in body['data']] == [str(records[0].id), str(records[1].id)]
        assert body['meta']['page_index'] == 0
        assert body['meta']['has_more_pages'] is True

    def test_filters_from_query_params(self, authenticated_client):
        seed(2)
        partial, = seed(
            1, original_quantity=10, requested_quantity=6, returned_quantity=4,
            status=RequestStatus.COMPLETED,
        )
        response = authenticated_client.get(LIST_URL, {'status': 'completed', 'has_partial_return': 'true'})
        assert [item['id'] for item in response.json()['data']] == [str(partial.id)]

    def test_q_alias(self, authenticated_client):
        shirt, = seed(1, product_name='Linen Shirt')
        seed(1, product_name='Boots')
        response = authenticated_client.get(LIST_URL, {'q': 'shirt'})
        assert [item['id'] for item in response.json()['data']] == [str(shirt.id)]

    def test_page_size_out_of_bounds(self, authenticated_client):
        response = authenticated_client.get(LIST_URL, {'page_size': 0})
        assert response.status_code == 400
        body = response.json()
        assert body['code'] == 'VALIDATION_ERROR'
        assert body['errors']['field'] == 'page_size'

    def test_next_page(self, authenticated_client):
        records = seed(3)
        url = reverse('api-v1:out_of_stock:request-next-page')

        response = authenticated_client.get(url, {'current_page': 0, 'page_size': 2})
        assert [item['id'] for item in response.json()['data']] == [str(records[2].id)]

        response = authenticated_client.get(url, {'current_page': 1, 'page_size': 2})
        assert response.status_code == 404
        assert response.json()['code'] == 'NO_MORE_PAGES'

    def test_retrieve(self, authenticated_client):
        record, = seed(1)
        response = authenticated_client.get(detail_url(record.id))
        assert response.json()['data']['open_quantity'] == record.original_quantity

    def test_retrieve_unknown(self, authenticated_client):
        response = authenticated_client.get(detail_url(uuid.uuid4()))
        assert response.status_code == 404
        assert response.json()['code'] == 'RESOURCE_NOT_FOUND'

    def test_status_counts_and_dashboard(self, authenticated_client):
        seed(2)
        seed(1, status=RequestStatus.COMPLETED)

        response = authenticated_client.get(reverse('api-v1:out_of_stock:request-status-counts'))
        assert response.json()['data'] == {
            'counts': {'pending': 2, 'completed': 1, 'returned': 0},
            'total': 3,
        }

        response = authenticated_client.get(reverse('api-v1:out_of_stock:request-dashboard'), {'page_size': 2})
        data = response.json()['data']
        assert data['total'] == 3
        assert len(data['first_page']['items']) == 2
        assert data['first_page']['has_more_pages'] is True

    def test_search(self, authenticated_client):
        exact, = seed(1, product_name='Shirt')
        contains, = seed(1, product_name='Red Shirt')
        seed(1, product_name='Boots')
        url = reverse('api-v1:out_of_stock:request-search')

        response = authenticated_client.get(url, {'q': 'shirt'})
        assert [item['id'] for item in response.json()['data']] == [str(exact.id), str(contains.id)]

        assert authenticated_client.get(url).status_code == 400


class TestMutations:
    def test_create(self, salesperson_client, salesperson):
        response = salesperson_client.post(LIST_URL, {
            'customer_ref': 'C-1', 'product_ref': 'P-1', 'quantity': 3,
            'product_name': 'Linen Shirt', 'variant_label': 'XL-red',
        }, format='json')

        assert response.status_code == 201
        data = response.json()['data']
        assert data['status'] == 'pending'
        assert data['created_by'] == str(salesperson.pk)
        assert AuditLog.objects.filter(object_id=data['id'], action='CREATE').exists()

    def test_create_invalid_quantity(self, salesperson_client):
        response = salesperson_client.post(
            LIST_URL, {'customer_ref': 'C', 'product_ref': 'P', 'quantity': 0}, format='json',
        )
        assert response.status_code == 400
        assert response.json()['errors']['field'] == 'quantity'
        assert not OutOfStockRequest.objects.exists()

    def test_created_request_shows_up_in_cached_listing(self, salesperson_client):
        seed(1)
        assert len(salesperson_client.get(LIST_URL).json()['data']) == 1
        salesperson_client.post(
            LIST_URL, {'customer_ref': 'C', 'product_ref': 'P', 'quantity': 1}, format='json',
        )
        assert len(salesperson_client.get(LIST_URL).json()['data']) == 2

    def test_batch_create(self, salesperson_client):
        response = salesperson_client.post(reverse('api-v1:out_of_stock:request-batch-create'), {
            'requests': [
                {'customer_ref': 'C', 'product_ref': 'P1', 'quantity': 1},
                {'customer_ref': 'C', 'product_ref': 'P2', 'quantity': 2},
            ],
        }, format='json')
        assert response.status_code == 201
        assert OutOfStockRequest.objects.count() == 2

    def test_partial_return(self, salesperson_client):
        record, = seed(1, original_quantity=10)
        response = salesperson_client.post(
            detail_url(record.id, 'process-return'), {'quantity': 3, 'notes': 'too small'}, format='json',
        )
        data = response.json()['data']
        assert data['status'] == 'completed'
        assert (data['requested_quantity'], data['returned_quantity']) == (7, 3)
        assert data['has_partial_return'] is True

    def test_over_return_conflict(self, salesperson_client):
        record, = seed(1, original_quantity=4)
        response = salesperson_client.post(detail_url(record.id, 'process-return'), {'quantity': 5}, format='json')
        assert response.status_code == 409
        body = response.json()
        assert body['code'] == 'INVALID_TRANSITION'
        assert body['errors']['value'] == '5'
        assert OutOfStockRequest.objects.get(pk=record.id).returned_quantity == 0

    def test_batch_return(self, salesperson_client):
        a, b = seed(2, original_quantity=2)
        response = salesperson_client.post(reverse('api-v1:out_of_stock:request-batch-return'), {
            'items': [
                {'request_id': str(a.id), 'quantity': 2},
                {'request_id': str(b.id), 'quantity': 3},
            ],
        }, format='json')
        data = response.json()['data']
        assert [item['id'] for item in data['processed']] == [str(a.id)]
        assert data['skipped'][0]['request_id'] == str(b.id)
        assert data['skipped'][0]['code'] == 'INVALID_TRANSITION'

    def test_fulfill_and_notes(self, salesperson_client):
        record, = seed(1)
        response = salesperson_client.post(detail_url(record.id, 'fulfill'))
        assert response.json()['data']['status'] == 'completed'

        response = salesperson_client.patch(detail_url(record.id, 'notes'), {'notes': 'call back'}, format='json')
        assert response.json()['data']['notes'] == 'call back'

    def test_batch_delete(self, administrator_client):
        a, b = seed(2)
        missing = uuid.uuid4()
        response = administrator_client.post(
            reverse('api-v1:out_of_stock:request-batch-delete'),
            {'ids': [str(a.id), str(b.id), str(missing)]},
            format='json',
        )
        data = response.json()['data']
        assert set(data['deleted']) == {str(a.id), str(b.id)}
        assert data['missing'] == [str(missing)]
        assert not OutOfStockRequest.objects.exists()
        assert AuditLog.objects.filter(action='BATCH_DELETE').count() == 2


class TestSuperuser:
    def test_superuser_passes_role_checks(self, admin_client):
        record, = seed(1)
        response = admin_client.post(
            reverse('api-v1:out_of_stock:request-batch-delete'), {'ids': [str(record.id)]}, format='json',
        )
        assert response.json()['data']['deleted'] == [str(record.id)]
