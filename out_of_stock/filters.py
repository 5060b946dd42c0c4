"""
Out-of-Stock — Query Filters

django-filter FilterSet translating FilterCriteria into a queryset.
The ORM store builds its filter data from the criteria, so the HTTP
layer and the store share one definition of what each field means.

@file out_of_stock/filters.py
"""

import django_filters
from django.db.models import F, Q

from .models import OutOfStockRequest, RequestStatus


class OutOfStockRequestFilter(django_filters.FilterSet):
    date = django_filters.DateFilter(field_name='created_at', lookup_expr='date')
    status = django_filters.ChoiceFilter(choices=RequestStatus.choices)
    customer_ref = django_filters.CharFilter()
    product_ref = django_filters.CharFilter()
    query = django_filters.CharFilter(method='filter_query')
    has_partial_return = django_filters.BooleanFilter(method='filter_partial_return')

    class Meta:
        model = OutOfStockRequest
        fields = ['date', 'status', 'customer_ref', 'product_ref']

    def filter_query(self, queryset, name, value):
        return queryset.filter(
            Q(customer_name__icontains=value)
            | Q(product_name__icontains=value)
            | Q(product_category__icontains=value)
            | Q(variant_label__icontains=value)
            | Q(notes__icontains=value),
        )

    def filter_partial_return(self, queryset, name, value):
        partial = Q(returned_quantity__gt=0) & Q(returned_quantity__lt=F('original_quantity'))
        return queryset.filter(partial) if value else queryset.exclude(partial)

    @classmethod
    def data_from_criteria(cls, criteria) -> dict:
        data = {}
        for key, value in criteria.as_key_dict(include_page=False).items():
            if value is not None:
                data[key] = value
        return data
