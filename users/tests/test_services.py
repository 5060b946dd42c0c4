"""
Users — Service Layer Tests

Tests for RoleService and the seeding / granting commands.

@file users/tests/test_services.py
"""

from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from core.exceptions import ResourceNotFoundError
from core.models import AuditLog
from tests.factories import RoleFactory, SuperuserFactory, UserFactory
from users.models import Role, UserRole
from users.services import RoleService


pytestmark = pytest.mark.django_db


class TestRoleService:
    def test_assign_role(self):
        user = UserFactory()
        RoleFactory(name='SALESPERSON')
        user_role = RoleService.assign_role(user=user, role_name='SALESPERSON', actor=SuperuserFactory())
        assert user_role.is_active is True
        assert user.has_role('SALESPERSON')
        assert AuditLog.objects.filter(model_name='UserRole', object_id=str(user_role.pk)).exists()

    def test_assign_reactivates(self):
        user = UserFactory()
        RoleFactory(name='SALESPERSON')
        RoleService.assign_role(user=user, role_name='SALESPERSON')
        RoleService.revoke_role(user=user, role_name='SALESPERSON')
        assert not user.has_role('SALESPERSON')
        RoleService.assign_role(user=user, role_name='SALESPERSON')
        assert user.has_role('SALESPERSON')
        assert UserRole.objects.filter(user=user).count() == 1

    def test_assign_unknown_role(self):
        with pytest.raises(ResourceNotFoundError):
            RoleService.assign_role(user=UserFactory(), role_name='NOPE')

    def test_revoke_missing_assignment(self):
        RoleFactory(name='ADMINISTRATOR')
        with pytest.raises(ResourceNotFoundError):
            RoleService.revoke_role(user=UserFactory(), role_name='ADMINISTRATOR')


class TestCommands:
    def test_seed_roles_is_idempotent(self):
        call_command('seed_roles', stdout=StringIO())
        call_command('seed_roles', stdout=StringIO())
        assert set(Role.objects.values_list('name', flat=True)) == {
            'SALESPERSON', 'WAREHOUSE_KEEPER', 'ADMINISTRATOR',
        }

    def test_grant_and_revoke_role(self):
        call_command('seed_roles', stdout=StringIO())
        user = UserFactory(phone='+25765000000')
        call_command('grant_role', '+25765000000', 'ADMINISTRATOR', stdout=StringIO())
        assert user.has_role('ADMINISTRATOR')
        call_command('grant_role', '+25765000000', 'ADMINISTRATOR', '--revoke', stdout=StringIO())
        assert not user.has_role('ADMINISTRATOR')

    def test_grant_role_unknown_user(self):
        with pytest.raises(CommandError):
            call_command('grant_role', '+25700000000', 'ADMINISTRATOR', stdout=StringIO())
