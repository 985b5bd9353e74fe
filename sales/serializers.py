"""
Sales — Serializers

@file sales/serializers.py
"""

from rest_framework import serializers

from stock.serializers import LowStockAlertSerializer

from .models import Sale, SaleLine


class SaleLineReadSerializer(serializers.ModelSerializer):
    product_sku = serializers.CharField(source='product.sku', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = SaleLine
        fields = [
            'id', 'product', 'product_sku', 'product_name',
            'quantity', 'unit_price', 'discount', 'line_total',
            'movement', 'reversal_movement',
        ]
        read_only_fields = fields


class SaleReadSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    warehouse_code = serializers.CharField(source='warehouse.code', read_only=True)
    lines = SaleLineReadSerializer(many=True, read_only=True)
    low_stock = serializers.SerializerMethodField()

    class Meta:
        model = Sale
        fields = [
            'id', 'sale_number', 'warehouse', 'warehouse_code',
            'status', 'status_display',
            'subtotal', 'discount_amount', 'tax_amount', 'total_amount',
            'payment_method', 'payment_amount', 'change_amount',
            'customer_name', 'customer_email', 'customer_phone', 'notes',
            'correlation_id', 'sold_at',
            'voided_by', 'voided_at', 'void_reason',
            'lines', 'low_stock', 'created_by', 'created_at',
        ]
        read_only_fields = fields

    def get_low_stock(self, obj):
        # Set by SaleService on the sale it just recorded or voided.
        return LowStockAlertSerializer(getattr(obj, 'low_stock_alerts', ()), many=True).data


class SaleListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Sale
        fields = [
            'id', 'sale_number', 'warehouse', 'status',
            'total_amount', 'payment_method', 'customer_name', 'sold_at',
        ]
        read_only_fields = fields


class SaleLineInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)


class SaleCreateSerializer(serializers.Serializer):
    warehouse = serializers.UUIDField()
    lines = SaleLineInputSerializer(many=True, allow_empty=False)
    payment_method = serializers.ChoiceField(choices=Sale.PaymentMethod.choices, default=Sale.PaymentMethod.CASH)
    payment_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    tax_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    discount_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=0)
    customer_name = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    customer_email = serializers.EmailField(required=False, allow_blank=True, default='')
    customer_phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class SaleVoidSerializer(serializers.Serializer):
    void_reason = serializers.CharField(required=False, allow_blank=True, default='')
