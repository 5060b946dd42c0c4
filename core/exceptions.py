"""
Core — Exception Handling

Domain exceptions and the DRF exception handler producing the
standard API error envelope. Every domain error carries a stable code
plus the offending field/value so the client can localise the message.

@file core/exceptions.py
"""

import logging

from django.core.exceptions import PermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('backorderdesk')


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class DomainError(APIException):
    """Base for service-layer errors; remembers which input was rejected."""

    def __init__(self, detail=None, code=None, *, field=None, value=None):
        super().__init__(detail=detail, code=code)
        self.field = field
        self.value = value

    def as_dict(self) -> dict:
        data = {'code': self.default_code, 'detail': str(self.detail)}
        if self.field is not None:
            data['field'] = self.field
        if self.value is not None:
            data['value'] = str(self.value)
        return data


class ValidationError(DomainError):
    """Malformed input: missing reference, non-positive quantity, bad page window."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'VALIDATION_ERROR'


class InvalidTransition(DomainError):
    """Raised when a lifecycle transition is not allowed from the current state."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Invalid state transition.'
    default_code = 'INVALID_TRANSITION'


class AuthenticationRequired(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'An acting user is required for this operation.'
    default_code = 'AUTHENTICATION_REQUIRED'


class StorageError(DomainError):
    """Underlying persistence failure."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Storage is unavailable.'
    default_code = 'STORAGE_ERROR'


class NoMorePages(DomainError):
    """Pagination boundary: the previous page was the last one."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'No more pages.'
    default_code = 'NO_MORE_PAGES'


class ResourceNotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'
    default_code = 'RESOURCE_NOT_FOUND'


# ---------------------------------------------------------------------------
# Standard exception handler
# ---------------------------------------------------------------------------

def standard_exception_handler(exc, context):
    """
    Wraps every error response in the standard envelope:
      { "success": false, "errors": {...}, "code": "ERROR_CODE" }
    """
    if isinstance(exc, Http404):
        exc = ResourceNotFoundError()
    elif isinstance(exc, PermissionDenied):
        exc = APIException(detail='Permission denied.', code='PERMISSION_DENIED')
        exc.status_code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, DjangoValidationError):
        data = {
            'success': False,
            'errors': exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages},
            'code': 'VALIDATION_ERROR',
        }
        return Response(data, status=status.HTTP_400_BAD_REQUEST)

    response = exception_handler(exc, context)

    if response is not None:
        errors = {}
        code = getattr(exc, 'default_code', 'ERROR')

        if isinstance(exc, DomainError):
            errors = exc.as_dict()
            errors.pop('code')
        elif isinstance(response.data, dict):
            errors = response.data
            code = response.data.pop('code', code) if 'code' in response.data else code
        elif isinstance(response.data, list):
            errors = {'detail': response.data}
        else:
            errors = {'detail': [str(response.data)]}

        response.data = {
            'success': False,
            'errors': errors,
            'code': code,
        }

    if response is None:
        logger.exception('Unhandled exception in view: %s', exc)
        return Response(
            {'success': False, 'errors': {'detail': ['Internal server error.']}, 'code': 'INTERNAL_ERROR'},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response
