"""
Purchasing — Django Admin Configuration

Orders and ordered quantities are maintained here; received quantities
are read-only and change only through ReceivingService.

@file purchasing/admin.py
"""

from django.contrib import admin

from .models import PurchaseOrder, PurchaseOrderLine


class PurchaseOrderLineInline(admin.TabularInline):
    model = PurchaseOrderLine
    extra = 0
    fields = ('product', 'ordered_quantity', 'received_quantity', 'unit_price')
    readonly_fields = ('received_quantity',)
    autocomplete_fields = ('product',)


@admin.register(PurchaseOrder)
class PurchaseOrderAdmin(admin.ModelAdmin):
    list_display = ('order_number', 'supplier_name', 'warehouse', 'status', 'expected_delivery_date')
    list_filter = ('status', 'warehouse')
    search_fields = ('order_number', 'supplier_name')
    list_select_related = ('warehouse',)
    readonly_fields = ('order_number', 'actual_delivery_date', 'created_at', 'updated_at')
    inlines = [PurchaseOrderLineInline]
