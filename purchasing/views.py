"""
Purchasing — Views

Read access to purchase orders and the receiving commands.

@file purchasing/views.py
"""

from rest_framework import mixins, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsStaffMember

from .models import PurchaseOrder, PurchaseOrderLine
from .serializers import (
    PurchaseOrderLineReadSerializer,
    PurchaseOrderReadSerializer,
    ReceiveLineSerializer,
    ReceiveOrderSerializer,
    ReceivingResultSerializer,
)
from .services import ReceivingService


class PurchaseOrderViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated, IsStaffMember]
    serializer_class = PurchaseOrderReadSerializer
    filterset_fields = ['status', 'warehouse']
    search_fields = ['order_number', 'supplier_name']
    ordering_fields = ['created_at', 'expected_delivery_date']
    ordering = ['-created_at']

    def get_queryset(self):
        return PurchaseOrder.objects.prefetch_related('lines__product')

    @action(detail=True, methods=['post'], url_path='receive')
    def receive(self, request, pk=None):
        ser = ReceiveOrderSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = ReceivingService.receive_order(
            order_id=pk,
            lines=[dict(item) for item in ser.validated_data['lines']],
            warehouse_id=ser.validated_data.get('warehouse'),
            actor=request.user,
        )
        return Response({'success': True, 'data': ReceivingResultSerializer(result).data})


class PurchaseOrderLineViewSet(mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated, IsStaffMember]
    serializer_class = PurchaseOrderLineReadSerializer

    def get_queryset(self):
        return PurchaseOrderLine.objects.select_related('product')

    @action(detail=True, methods=['post'], url_path='receive')
    def receive(self, request, pk=None):
        ser = ReceiveLineSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = ReceivingService.receive_line(
            order_line_id=pk,
            received_quantity=ser.validated_data['received_quantity'],
            warehouse_id=ser.validated_data.get('warehouse'),
            location=ser.validated_data.get('location'),
            actor=request.user,
        )
        return Response({'success': True, 'data': ReceivingResultSerializer(result).data})
