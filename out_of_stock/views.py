"""
Out-of-Stock — Views

Role-based dashboard API over the out-of-stock query service. The
service instance is owned by the app config; each request only supplies
its acting identity.

@file out_of_stock/views.py
"""

from django.apps import apps
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from core.exceptions import ValidationError

from .identity import RequestIdentity
from .permissions import CanBatchDelete, CanMutateRequests
from .serializers import (
    BatchCreateSerializer,
    BatchDeleteSerializer,
    BatchReturnSerializer,
    FilterCriteriaSerializer,
    NextPageSerializer,
    NotesSerializer,
    RequestCreateSerializer,
    RequestRecordSerializer,
    ReturnSerializer,
    page_payload,
)


def get_service():
    return apps.get_app_config('out_of_stock').service


class OutOfStockRequestViewSet(viewsets.ViewSet):
    """
    Paged listing, counts and search for any authenticated user.
    Create / return / fulfill / notes for SALESPERSON and ADMINISTRATOR.
    Batch delete for ADMINISTRATOR only.
    """

    permission_classes = [IsAuthenticated, CanMutateRequests]

    @property
    def service(self):
        return get_service()

    def _actor(self, request):
        return RequestIdentity(request).current_actor()

    def _criteria(self, request):
        ser = FilterCriteriaSerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        return ser.to_criteria()

    def _record(self, record):
        return RequestRecordSerializer(record).data

    # -- reads ------------------------------------------------------------

    def list(self, request):
        page = self.service.load_page(self._criteria(request))
        return Response(page_payload(page))

    def retrieve(self, request, pk=None):
        return Response(self._record(self.service.get_request(pk)))

    @action(detail=False, methods=['get'], url_path='next-page')
    def next_page(self, request):
        ser = NextPageSerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        page = self.service.load_next_page(self._criteria(request), ser.validated_data['current_page'])
        return Response(page_payload(page))

    @action(detail=False, methods=['get'], url_path='status-counts')
    def status_counts(self, request):
        criteria = self._criteria(request)
        return Response({
            'counts': self.service.status_counts(criteria),
            'total': self.service.filtered_count(criteria),
        })

    @action(detail=False, methods=['get'], url_path='dashboard')
    def dashboard(self, request):
        criteria = self._criteria(request)
        return Response({
            'counts': self.service.status_counts(criteria),
            'total': self.service.filtered_count(criteria),
            'first_page': page_payload(self.service.load_page(criteria, 0)),
        })

    @action(detail=False, methods=['get'], url_path='search')
    def search(self, request):
        query = request.query_params.get('q') or request.query_params.get('query')
        if not query:
            raise ValidationError(detail='A search query is required.', field='q')
        results = self.service.search(query, self._criteria(request))
        return Response(RequestRecordSerializer(results, many=True).data)

    # -- mutations --------------------------------------------------------

    def create(self, request):
        ser = RequestCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        record = self.service.create_request(ser.to_new_request(), actor=self._actor(request))
        return Response(self._record(record), status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'], url_path='batch')
    def batch_create(self, request):
        ser = BatchCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        records = self.service.create_requests(ser.to_new_requests(), actor=self._actor(request))
        return Response(RequestRecordSerializer(records, many=True).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'], url_path='return')
    def process_return(self, request, pk=None):
        ser = ReturnSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        record = self.service.process_return(
            pk,
            ser.validated_data['quantity'],
            actor=self._actor(request),
            notes=ser.validated_data['notes'],
        )
        return Response(self._record(record))

    @action(detail=False, methods=['post'], url_path='batch-return')
    def batch_return(self, request):
        ser = BatchReturnSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        outcome = self.service.process_batch_returns(ser.to_items(), actor=self._actor(request))
        return Response({
            'processed': RequestRecordSerializer(outcome.processed, many=True).data,
            'skipped': list(outcome.skipped),
        })

    @action(detail=True, methods=['post'], url_path='fulfill')
    def fulfill(self, request, pk=None):
        record = self.service.fulfill_all(pk, actor=self._actor(request))
        return Response(self._record(record))

    @action(detail=True, methods=['patch'], url_path='notes')
    def notes(self, request, pk=None):
        ser = NotesSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        record = self.service.update_notes(pk, ser.validated_data['notes'], actor=self._actor(request))
        return Response(self._record(record))

    @action(
        detail=False,
        methods=['post'],
        url_path='batch-delete',
        permission_classes=[IsAuthenticated, CanBatchDelete],
    )
    def batch_delete(self, request):
        ser = BatchDeleteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        outcome = self.service.delete_requests(ser.validated_data['ids'], actor=self._actor(request))
        return Response({'deleted': list(outcome.deleted), 'missing': list(outcome.missing)})
