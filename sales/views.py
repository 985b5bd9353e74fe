"""
Sales — Views

Checkout (record a sale), sale history, void, and the POS product picker.

@file sales/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from stock.serializers import AvailableProductSerializer
from stock.services import AvailabilityService
from users.permissions import CanVoidSale, IsStaffMember

from .models import Sale
from .serializers import SaleCreateSerializer, SaleListSerializer, SaleReadSerializer, SaleVoidSerializer
from .services import SaleService


class SaleViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """
    Sales are created through checkout and never edited; the only state
    change afterwards is void.
    """

    permission_classes = [IsAuthenticated, IsStaffMember]
    filterset_fields = ['status', 'warehouse', 'payment_method']
    search_fields = ['sale_number', 'customer_name', 'customer_email', 'customer_phone']
    ordering_fields = ['sold_at', 'total_amount', 'created_at']
    ordering = ['-created_at']

    def get_queryset(self):
        qs = Sale.objects.select_related('warehouse')
        if self.action == 'retrieve':
            qs = qs.prefetch_related('lines__product')
        return qs

    def get_serializer_class(self):
        if self.action == 'list':
            return SaleListSerializer
        if self.action == 'create':
            return SaleCreateSerializer
        return SaleReadSerializer

    def create(self, request, *args, **kwargs):
        ser = SaleCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)
        lines = [dict(line) for line in data.pop('lines')]
        sale = SaleService.record_sale(
            warehouse_id=data.pop('warehouse'),
            lines=lines,
            actor=request.user,
            **data,
        )
        return Response(
            {'success': True, 'data': SaleReadSerializer(sale).data},
            status=status.HTTP_201_CREATED,
        )

    @action(
        detail=True, methods=['post'], url_path='void',
        permission_classes=[IsAuthenticated, CanVoidSale],
    )
    def void(self, request, pk=None):
        ser = SaleVoidSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        sale = SaleService.void_sale(
            sale_id=pk,
            void_reason=ser.validated_data['void_reason'],
            actor=request.user,
        )
        return Response({'success': True, 'data': SaleReadSerializer(sale).data})

    @action(detail=False, methods=['get'], url_path='available-products')
    def available_products(self, request):
        warehouse_id = request.query_params.get('warehouse')
        if not warehouse_id:
            return Response(
                {'success': False, 'errors': {'warehouse': ['This query parameter is required.']},
                 'code': 'VALIDATION_ERROR'},
                status=status.HTTP_400_BAD_REQUEST,
            )
        balances = AvailabilityService.list_available_products(
            warehouse_id, search=request.query_params.get('search', ''),
        )
        return Response({'success': True, 'data': AvailableProductSerializer(balances, many=True).data})
