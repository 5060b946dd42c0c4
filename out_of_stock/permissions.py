"""
Out-of-Stock — Permissions

Reads: any authenticated user. Mutations: SALESPERSON or ADMINISTRATOR.
Batch delete: ADMINISTRATOR only. Superusers pass every check.

@file out_of_stock/permissions.py
"""

from rest_framework.permissions import SAFE_METHODS, BasePermission

MUTATING_ROLES = ('SALESPERSON', 'ADMINISTRATOR')


class CanMutateRequests(BasePermission):
    """Safe methods for any authenticated user; writes need a sales or admin role."""

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in SAFE_METHODS:
            return True
        if request.user.is_superuser:
            return True
        return any(request.user.has_role(role) for role in MUTATING_ROLES)


class CanBatchDelete(BasePermission):
    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.user.is_superuser:
            return True
        return request.user.has_role('ADMINISTRATOR')
