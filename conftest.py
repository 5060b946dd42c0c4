"""
BackorderDesk — Root conftest for pytest

Shared fixtures available to all test modules.

@file conftest.py
"""

import pytest
from rest_framework.test import APIClient

from tests.factories import RoleFactory, SuperuserFactory, UserFactory, UserRoleFactory


@pytest.fixture
def api_client():
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture
def user(db):
    """Active user with default password TestPass2026!, no roles."""
    return UserFactory()


@pytest.fixture
def admin_user(db):
    """Superuser with default password TestPass2026!"""
    return SuperuserFactory()


@pytest.fixture
def salesperson(db):
    """Active user holding the SALESPERSON role."""
    seller = UserFactory()
    UserRoleFactory(user=seller, role=RoleFactory(name='SALESPERSON'))
    return seller


@pytest.fixture
def administrator(db):
    """Active user holding the ADMINISTRATOR role (not a superuser)."""
    manager = UserFactory()
    UserRoleFactory(user=manager, role=RoleFactory(name='ADMINISTRATOR'))
    return manager


@pytest.fixture
def authenticated_client(api_client, user):
    """API client authenticated as a user without roles."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def salesperson_client(api_client, salesperson):
    api_client.force_authenticate(user=salesperson)
    return api_client


@pytest.fixture
def administrator_client(api_client, administrator):
    api_client.force_authenticate(user=administrator)
    return api_client


@pytest.fixture
def admin_client(api_client, admin_user):
    """API client authenticated as a superuser."""
    api_client.force_authenticate(user=admin_user)
    return api_client
