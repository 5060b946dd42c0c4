"""
Out-of-Stock — URL Configuration

@file out_of_stock/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import OutOfStockRequestViewSet

app_name = 'out_of_stock'

router = DefaultRouter()
router.register('requests', OutOfStockRequestViewSet, basename='request')

urlpatterns = [
    path('', include(router.urls)),
]
