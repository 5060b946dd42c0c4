"""
BackorderDesk — Root URL Configuration

All API endpoints are namespaced under /api/v1/.
The DRF browsable API is available for route inspection in development.

@file config/urls.py
"""

from django.contrib import admin
from django.urls import include, path
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse

admin.site.site_header = 'BackorderDesk Administration'
admin.site.site_title = 'BackorderDesk'
admin.site.index_title = 'Out-of-Stock Request Tracking'


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request, format=None):
    """BackorderDesk API v1 — endpoint directory."""
    return Response({
        'auth': {
            'login': reverse('api-v1:auth:login', request=request, format=format),
            'refresh': reverse('api-v1:auth:token-refresh', request=request, format=format),
            'logout': reverse('api-v1:auth:logout', request=request, format=format),
            'me': reverse('api-v1:auth:me', request=request, format=format),
        },
        'out_of_stock': {
            'requests': reverse('api-v1:out_of_stock:request-list', request=request, format=format),
            'dashboard': reverse('api-v1:out_of_stock:request-dashboard', request=request, format=format),
            'search': reverse('api-v1:out_of_stock:request-search', request=request, format=format),
        },
    })


api_v1_patterns = [
    path('', api_root, name='api-root'),
    path('auth/', include('users.urls', namespace='auth')),
    path('out-of-stock/', include('out_of_stock.urls', namespace='out_of_stock')),
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # DRF session auth (powers the "Log in" button on the browsable API)
    path('api/auth/', include('rest_framework.urls', namespace='rest_framework')),

    # Versioned API
    path('api/v1/', include((api_v1_patterns, 'api-v1'))),
]
