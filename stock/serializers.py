"""
Stock — Serializers

Read serializers for balances, movements and low-stock alerts; input
serializers for the adjust / transfer commands.

@file stock/serializers.py
"""

from rest_framework import serializers

from .models import StockBalance, StockMovement


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

class StockBalanceReadSerializer(serializers.ModelSerializer):
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)
    warehouse_code = serializers.CharField(source='warehouse.code', read_only=True)
    available_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = StockBalance
        fields = [
            'id', 'product', 'product_sku', 'product_name',
            'warehouse', 'warehouse_code',
            'quantity', 'reserved_quantity', 'available_quantity',
            'location', 'updated_at',
        ]
        read_only_fields = fields


class StockMovementReadSerializer(serializers.ModelSerializer):
    movement_type_display = serializers.CharField(
        source='get_movement_type_display', read_only=True,
    )
    actor_email = serializers.EmailField(source='actor.email', read_only=True, default=None)

    class Meta:
        model = StockMovement
        fields = [
            'id', 'product', 'warehouse',
            'movement_type', 'movement_type_display',
            'quantity_delta', 'balance_before', 'balance_after',
            'reason', 'notes', 'correlation_id',
            'reference_type', 'reference_id',
            'actor', 'actor_email', 'occurred_at',
        ]
        read_only_fields = fields


class AvailableProductSerializer(serializers.Serializer):
    """POS picker row built from an annotated StockBalance."""

    product_id = serializers.UUIDField(source='product.pk')
    sku = serializers.CharField(source='product.sku')
    name = serializers.CharField(source='product.name')
    barcode = serializers.CharField(source='product.barcode')
    unit = serializers.CharField(source='product.unit')
    unit_price = serializers.DecimalField(source='product.unit_price', max_digits=12, decimal_places=2)
    stock_quantity = serializers.IntegerField(source='quantity')
    available_quantity = serializers.IntegerField(source='available')


class LowStockAlertSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    warehouse_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    reorder_point = serializers.IntegerField()
    min_stock_level = serializers.IntegerField()
    max_stock_level = serializers.IntegerField()
    is_low_stock = serializers.BooleanField()
    is_critical = serializers.BooleanField()
    suggested_order_quantity = serializers.IntegerField()


class LedgerResultSerializer(serializers.Serializer):
    correlation_id = serializers.UUIDField()
    movement_ids = serializers.ListField(child=serializers.IntegerField())
    movements = StockMovementReadSerializer(many=True)
    balances = StockBalanceReadSerializer(many=True)
    low_stock = LowStockAlertSerializer(many=True)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

class KeyQuerySerializer(serializers.Serializer):
    product = serializers.UUIDField()
    warehouse = serializers.UUIDField()


class AdjustSerializer(serializers.Serializer):
    product = serializers.UUIDField()
    warehouse = serializers.UUIDField()
    quantity_delta = serializers.IntegerField()
    reason = serializers.CharField(max_length=255)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    location = serializers.CharField(max_length=100, required=False, allow_blank=True)


class TransferSerializer(serializers.Serializer):
    product = serializers.UUIDField()
    from_warehouse = serializers.UUIDField()
    to_warehouse = serializers.UUIDField()
    quantity = serializers.IntegerField()
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    location = serializers.CharField(max_length=100, required=False, allow_blank=True)
