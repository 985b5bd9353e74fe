"""
Stock — Views

Balance and movement read endpoints plus the adjust / transfer commands.
Views only translate HTTP to service calls; typed ledger errors propagate
to core.exceptions.standard_exception_handler.

@file stock/views.py
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsStaffMember

from .models import StockBalance, StockMovement
from .serializers import (
    AdjustSerializer,
    KeyQuerySerializer,
    LedgerResultSerializer,
    LowStockAlertSerializer,
    StockBalanceReadSerializer,
    StockMovementReadSerializer,
    TransferSerializer,
)
from .services import AvailabilityService, LowStockService, StockLedgerService


class StockBalanceViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Current balances per (product, warehouse).

    Reads: any authenticated user. Adjust / transfer: staff roles.
    """

    permission_classes = [IsAuthenticated, IsStaffMember]
    serializer_class = StockBalanceReadSerializer
    filterset_fields = ['product', 'warehouse']
    search_fields = ['product__sku', 'product__name', 'warehouse__code', 'location']
    ordering_fields = ['quantity', 'updated_at']
    ordering = ['product__name']

    def get_queryset(self):
        return StockBalance.objects.select_related('product', 'warehouse')

    @action(detail=False, methods=['get'], url_path='available')
    def available(self, request):
        ser = KeyQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        product_id = ser.validated_data['product']
        warehouse_id = ser.validated_data['warehouse']
        quantity = AvailabilityService.available_quantity(product_id, warehouse_id)
        return Response({
            'success': True,
            'data': {
                'product': str(product_id),
                'warehouse': str(warehouse_id),
                'available_quantity': quantity,
            },
        })

    @action(detail=False, methods=['get'], url_path='evaluate')
    def evaluate(self, request):
        ser = KeyQuerySerializer(data=request.query_params)
        ser.is_valid(raise_exception=True)
        alert = LowStockService().evaluate(
            ser.validated_data['product'], ser.validated_data['warehouse'],
        )
        return Response({'success': True, 'data': LowStockAlertSerializer(alert).data})

    @action(detail=False, methods=['get'], url_path='low-stock')
    def low_stock(self, request):
        alerts = LowStockService().list_alerts(
            warehouse_id=request.query_params.get('warehouse') or None,
        )
        page = self.paginate_queryset(alerts)
        if page is not None:
            ser = LowStockAlertSerializer(page, many=True)
            return self.get_paginated_response(ser.data)
        return Response({'success': True, 'data': LowStockAlertSerializer(alerts, many=True).data})

    @action(detail=False, methods=['post'], url_path='adjust')
    def adjust(self, request):
        ser = AdjustSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        result = StockLedgerService.adjust(
            product_id=data['product'],
            warehouse_id=data['warehouse'],
            quantity_delta=data['quantity_delta'],
            reason=data['reason'],
            notes=data['notes'],
            location=data.get('location'),
            actor=request.user,
        )
        return Response(
            {'success': True, 'data': LedgerResultSerializer(result).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=['post'], url_path='transfer')
    def transfer(self, request):
        ser = TransferSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        result = StockLedgerService.transfer(
            product_id=data['product'],
            from_warehouse_id=data['from_warehouse'],
            to_warehouse_id=data['to_warehouse'],
            quantity=data['quantity'],
            reason=data['reason'],
            notes=data['notes'],
            location=data.get('location'),
            actor=request.user,
        )
        return Response(
            {'success': True, 'data': LedgerResultSerializer(result).data},
            status=status.HTTP_201_CREATED,
        )


class StockMovementViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Movement log audit queries. Read-only: the log is insert-only."""

    permission_classes = [IsAuthenticated]
    serializer_class = StockMovementReadSerializer
    filterset_fields = ['product', 'warehouse', 'correlation_id', 'movement_type', 'reference_type', 'reference_id']
    ordering_fields = ['id', 'occurred_at']
    ordering = ['-id']

    def get_queryset(self):
        return StockMovement.objects.select_related('actor')
