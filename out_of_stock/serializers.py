"""
Out-of-Stock — Serializers

Input serializers turn query params and bodies into service arguments;
the record serializer renders RequestRecord values. Explicit field
lists; quantity and reference rules are enforced by the lifecycle engine
so every rejection carries the same error code.

@file out_of_stock/serializers.py
"""

from rest_framework import serializers

from core.constants import DEFAULT_PAGE_SIZE

from .criteria import FilterCriteria, engine_setting
from .models import RequestStatus
from .records import NewRequest, ReturnItem


class RequestRecordSerializer(serializers.Serializer):
    id = serializers.UUIDField(read_only=True)
    customer_ref = serializers.CharField(read_only=True)
    product_ref = serializers.CharField(read_only=True)
    variant_ref = serializers.CharField(read_only=True)
    customer_name = serializers.CharField(read_only=True)
    product_name = serializers.CharField(read_only=True)
    product_category = serializers.CharField(read_only=True)
    variant_label = serializers.CharField(read_only=True)
    original_quantity = serializers.IntegerField(read_only=True)
    requested_quantity = serializers.IntegerField(read_only=True)
    returned_quantity = serializers.IntegerField(read_only=True)
    open_quantity = serializers.IntegerField(read_only=True)
    has_partial_return = serializers.BooleanField(read_only=True)
    status = serializers.CharField(read_only=True)
    notes = serializers.CharField(read_only=True)
    return_notes = serializers.CharField(read_only=True)
    completed_at = serializers.DateTimeField(read_only=True)
    returned_at = serializers.DateTimeField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    created_by = serializers.CharField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)
    updated_by = serializers.CharField(read_only=True)


def page_payload(page) -> dict:
    return {
        'items': RequestRecordSerializer(page.items, many=True).data,
        'page_index': page.page_index,
        'page_size': page.page_size,
        'has_more_pages': page.has_more_pages,
        'fetched_at': page.fetched_at,
    }


class FilterCriteriaSerializer(serializers.Serializer):
    """Query params → FilterCriteria. `q` is accepted as an alias for `query`."""

    date = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=RequestStatus.choices, required=False)
    customer_ref = serializers.CharField(required=False, allow_blank=True)
    product_ref = serializers.CharField(required=False, allow_blank=True)
    query = serializers.CharField(required=False, allow_blank=True)
    q = serializers.CharField(required=False, allow_blank=True)
    has_partial_return = serializers.BooleanField(required=False, allow_null=True)
    page_index = serializers.IntegerField(required=False, min_value=0)
    page_size = serializers.IntegerField(required=False)

    def to_criteria(self) -> FilterCriteria:
        data = dict(self.validated_data)
        q = data.pop('q', None)
        if q and not data.get('query'):
            data['query'] = q
        data.setdefault('page_size', engine_setting('DEFAULT_PAGE_SIZE', DEFAULT_PAGE_SIZE))
        return FilterCriteria(**{key: value for key, value in data.items() if value not in (None, '')})


class NextPageSerializer(serializers.Serializer):
    current_page = serializers.IntegerField(min_value=0)


class RequestCreateSerializer(serializers.Serializer):
    customer_ref = serializers.CharField(max_length=64, allow_blank=True)
    product_ref = serializers.CharField(max_length=64, allow_blank=True)
    quantity = serializers.IntegerField()
    variant_ref = serializers.CharField(max_length=64, required=False, allow_blank=True, default='')
    customer_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    product_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    product_category = serializers.CharField(max_length=120, required=False, allow_blank=True, default='')
    variant_label = serializers.CharField(max_length=120, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def to_new_request(self, data=None) -> NewRequest:
        return NewRequest(**(data if data is not None else self.validated_data))


class BatchCreateSerializer(serializers.Serializer):
    requests = RequestCreateSerializer(many=True, allow_empty=False)

    def to_new_requests(self) -> list[NewRequest]:
        return [NewRequest(**item) for item in self.validated_data['requests']]


class ReturnSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class BatchReturnItemSerializer(serializers.Serializer):
    request_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class BatchReturnSerializer(serializers.Serializer):
    items = BatchReturnItemSerializer(many=True, allow_empty=False)

    def to_items(self) -> list[ReturnItem]:
        return [ReturnItem(**item) for item in self.validated_data['items']]


class NotesSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True)


class BatchDeleteSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
