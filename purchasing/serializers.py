"""
Purchasing — Serializers

@file purchasing/serializers.py
"""

from rest_framework import serializers

from stock.serializers import LedgerResultSerializer

from .models import PurchaseOrder, PurchaseOrderLine


class PurchaseOrderLineReadSerializer(serializers.ModelSerializer):
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    remaining_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = PurchaseOrderLine
        fields = [
            'id', 'order', 'product', 'product_sku',
            'ordered_quantity', 'received_quantity', 'remaining_quantity',
            'unit_price',
        ]
        read_only_fields = fields


class PurchaseOrderReadSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    lines = PurchaseOrderLineReadSerializer(many=True, read_only=True)

    class Meta:
        model = PurchaseOrder
        fields = [
            'id', 'order_number', 'supplier_name', 'warehouse',
            'status', 'status_display',
            'expected_delivery_date', 'actual_delivery_date', 'notes',
            'lines', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ReceiveLineSerializer(serializers.Serializer):
    received_quantity = serializers.IntegerField()
    warehouse = serializers.UUIDField(required=False, allow_null=True)
    location = serializers.CharField(max_length=100, required=False, allow_blank=True)


class ReceiveItemSerializer(serializers.Serializer):
    line_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    location = serializers.CharField(max_length=100, required=False, allow_blank=True)


class ReceiveOrderSerializer(serializers.Serializer):
    lines = ReceiveItemSerializer(many=True, allow_empty=False)
    warehouse = serializers.UUIDField(required=False, allow_null=True)


class ReceivingResultSerializer(serializers.Serializer):
    order = PurchaseOrderReadSerializer()
    ledger = LedgerResultSerializer()
    order_completed = serializers.BooleanField()
