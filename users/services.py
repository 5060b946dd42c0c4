"""
Users — Service Layer

Auth event logging and role assignment. No HTTP context: services
receive plain Python arguments and raise typed exceptions.

@file users/services.py
"""

import logging

from django.db import transaction

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_UPDATE
from core.exceptions import ResourceNotFoundError
from core.services import AuditService

from .models import Role, User, UserRole

logger = logging.getLogger('backorderdesk')


# ---------------------------------------------------------------------------
# Auth service
# ---------------------------------------------------------------------------

class AuthService:

    @staticmethod
    def log_auth_event(*, action: str, user=None, ip_address=None, user_agent=''):
        AuditService.log(
            actor=user,
            action=action,
            model_name='User',
            object_id=str(user.pk) if user else '',
            ip_address=ip_address,
            user_agent=user_agent,
        )


# ---------------------------------------------------------------------------
# Role service
# ---------------------------------------------------------------------------

class RoleService:
    """RBAC management: assign and revoke roles."""

    @staticmethod
    @transaction.atomic
    def assign_role(*, user: User, role_name: str, actor=None) -> UserRole:
        try:
            role = Role.objects.get(name=role_name)
        except Role.DoesNotExist:
            raise ResourceNotFoundError(detail=f'Role "{role_name}" does not exist.', field='role', value=role_name)

        user_role, created = UserRole.objects.get_or_create(
            user=user, role=role, defaults={'is_active': True},
        )
        if not created and not user_role.is_active:
            user_role.is_active = True
            user_role.save(update_fields=['is_active', 'updated_at'])

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_CREATE if created else AUDIT_ACTION_UPDATE,
            model_name='UserRole',
            object_id=str(user_role.pk),
            new_values={'user': str(user.pk), 'role': role_name},
        )
        logger.info('Role %s granted to %s', role_name, user.phone)
        return user_role

    @staticmethod
    @transaction.atomic
    def revoke_role(*, user: User, role_name: str, actor=None) -> None:
        updated = UserRole.objects.filter(
            user=user, role__name=role_name, is_active=True,
        ).update(is_active=False)
        if updated == 0:
            raise ResourceNotFoundError(detail='Active role assignment not found.', field='role', value=role_name)

        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_UPDATE,
            model_name='UserRole',
            object_id=str(user.pk),
            old_values={'role': role_name, 'is_active': True},
            new_values={'role': role_name, 'is_active': False},
        )
