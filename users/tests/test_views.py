"""
Users — API Integration Tests

End-to-end tests for auth endpoints.

@file users/tests/test_views.py
"""

import pytest
from django.urls import reverse
from rest_framework import status

from core.models import AuditLog
from tests.factories import RoleFactory, UserFactory, UserRoleFactory
from users.models import User


@pytest.mark.django_db
class TestLoginEndpoint:
    def test_login_success(self, api_client):
        user = UserFactory(phone='+25768000000', password='Login2026!!')
        UserRoleFactory(user=user, role=RoleFactory(name='SALESPERSON'))
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'phone': '+25768000000', 'password': 'Login2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data['success'] is True
        assert 'access' in data['data']
        assert 'refresh' in data['data']
        assert data['data']['user']['roles'] == ['SALESPERSON']
        assert AuditLog.objects.filter(action='LOGIN', actor=user).exists()

    def test_login_wrong_password(self, api_client):
        UserFactory(phone='+25768000001', password='Login2026!!')
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'phone': '+25768000001', 'password': 'wrong'},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert AuditLog.objects.filter(action='LOGIN_FAILED', actor__phone='+25768000001').exists()

    def test_login_inactive_user(self, api_client):
        UserFactory(phone='+25768000002', password='Login2026!!', status=User.StatusChoices.PENDING)
        response = api_client.post(
            reverse('api-v1:auth:login'),
            {'phone': '+25768000002', 'password': 'Login2026!!'},
            format='json',
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.django_db
class TestMeEndpoint:
    def test_me_authenticated(self, authenticated_client, user):
        response = authenticated_client.get(reverse('api-v1:auth:me'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['phone'] == user.phone

    def test_me_unauthenticated(self, api_client):
        response = api_client.get(reverse('api-v1:auth:me'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.django_db
class TestLogoutEndpoint:
    def test_logout_logs_event(self, authenticated_client, user):
        response = authenticated_client.post(reverse('api-v1:auth:logout'), {}, format='json')
        assert response.status_code == status.HTTP_200_OK
        assert AuditLog.objects.filter(action='LOGOUT', actor=user).exists()

    def test_logout_with_invalid_token(self, authenticated_client):
        response = authenticated_client.post(
            reverse('api-v1:auth:logout'), {'refresh': 'not-a-token'}, format='json',
        )
        assert response.status_code == status.HTTP_200_OK
