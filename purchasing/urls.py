"""
Purchasing — URL Configuration

@file purchasing/urls.py
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import PurchaseOrderLineViewSet, PurchaseOrderViewSet

app_name = 'purchasing'

router = DefaultRouter()
router.register('orders', PurchaseOrderViewSet, basename='order')
router.register('lines', PurchaseOrderLineViewSet, basename='line')

urlpatterns = [
    path('', include(router.urls)),
]
