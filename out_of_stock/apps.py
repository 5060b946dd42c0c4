"""
Out-of-Stock — Application Configuration

Owns the process-wide query service used by the HTTP layer. Tests build
their own isolated services instead of touching this one.
"""

from django.apps import AppConfig
from django.conf import settings


class OutOfStockConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'out_of_stock'
    verbose_name = 'Out-of-Stock Requests'

    service = None

    def ready(self):
        self.service = self.build_service()

    @staticmethod
    def build_service():
        from .audit import AuditLogSink
        from .cache import CacheLayer
        from .services import OutOfStockQueryService
        from .store import DjangoRequestStore

        options = getattr(settings, 'OUT_OF_STOCK', {})
        cache = CacheLayer(
            ttl=options.get('CACHE_TTL_SECONDS', 300),
            status_count_ttl=options.get('STATUS_COUNT_TTL_SECONDS', 300),
            max_entries=options.get('CACHE_MAX_ENTRIES', 200),
        )
        return OutOfStockQueryService(
            store=DjangoRequestStore(),
            cache=cache,
            audit_sink=AuditLogSink(),
            search_candidate_limit=options.get('SEARCH_CANDIDATE_LIMIT'),
        )
