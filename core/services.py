"""
Core — Audit Service

Provides methods for writing audit log entries from any app.

@file core/services.py
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from core.models import AuditLog

logger = logging.getLogger('backorderdesk')


class AuditService:
    """Centralised audit logging for every write operation."""

    @staticmethod
    def log(
        *,
        action: str,
        model_name: str,
        object_id: str,
        actor=None,
        actor_ref: str = '',
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str = '',
    ) -> AuditLog:
        if actor is not None and not actor_ref:
            actor_ref = str(actor.pk)
        return AuditLog.objects.create(
            actor=actor,
            actor_ref=actor_ref or '',
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            old_values=AuditService.clean(old_values) if old_values is not None else None,
            new_values=AuditService.clean(new_values) if new_values is not None else None,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    @staticmethod
    def clean(values: dict[str, Any]) -> dict[str, Any]:
        """
        Reduce a dict to JSON-safe values. DateTimes are ISO-formatted;
        UUIDs stringified; enums reduced to their value.
        """
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                cleaned[key] = None
            elif isinstance(value, Enum):
                cleaned[key] = value.value
            elif isinstance(value, (datetime, date)):
                cleaned[key] = value.isoformat()
            elif isinstance(value, UUID):
                cleaned[key] = str(value)
            elif isinstance(value, dict):
                cleaned[key] = AuditService.clean(value)
            elif isinstance(value, (list, tuple)):
                cleaned[key] = [str(v) if isinstance(v, UUID) else v for v in value]
            else:
                cleaned[key] = value
        return cleaned

    @staticmethod
    def get_client_ip(request) -> str | None:
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
        return request.META.get('REMOTE_ADDR')
