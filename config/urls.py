"""
StockLedger — Root URL Configuration

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
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

admin.site.site_header = 'StockLedger Administration'
admin.site.site_title = 'StockLedger'
admin.site.index_title = 'Multi-warehouse Inventory'


@api_view(['GET'])
@permission_classes([AllowAny])
def api_root(request, format=None):
    """StockLedger API v1 — endpoint directory."""
    return Response({
        'auth': {
            'token': reverse('api-v1:token-obtain', request=request, format=format),
            'refresh': reverse('api-v1:token-refresh', request=request, format=format),
        },
        'stock': {
            'balances': reverse('api-v1:stock:balance-list', request=request, format=format),
            'movements': reverse('api-v1:stock:movement-list', request=request, format=format),
        },
        'sales': reverse('api-v1:sales:sale-list', request=request, format=format),
        'purchasing': {
            'orders': reverse('api-v1:purchasing:order-list', request=request, format=format),
        },
    })


api_v1_patterns = [
    path('', api_root, name='api-root'),
    path('auth/token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    path('stock/', include('stock.urls', namespace='stock')),
    path('sales/', include('sales.urls', namespace='sales')),
    path('purchasing/', include('purchasing.urls', namespace='purchasing')),
]

urlpatterns = [
    path('admin/', admin.site.urls),

    # DRF session auth (powers the "Log in" button on the browsable API)
    path('api/auth/', include('rest_framework.urls', namespace='rest_framework')),

    # Versioned API
    path('api/v1/', include((api_v1_patterns, 'api-v1'))),
]
