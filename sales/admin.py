"""
Sales — Django Admin Configuration

Sales are read-only here; checkout and void go through SaleService.

@file sales/admin.py
"""

from django.contrib import admin

from .models import Sale, SaleLine


class SaleLineInline(admin.TabularInline):
    model = SaleLine
    extra = 0
    can_delete = False
    fields = ('product', 'quantity', 'unit_price', 'discount', 'line_total', 'movement', 'reversal_movement')
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = ('sale_number', 'warehouse', 'status', 'total_amount', 'payment_method', 'sold_at')
    list_filter = ('status', 'payment_method', 'warehouse')
    search_fields = ('sale_number', 'customer_name', 'customer_email')
    list_select_related = ('warehouse',)
    date_hierarchy = 'sold_at'
    inlines = [SaleLineInline]
    readonly_fields = (
        'sale_number', 'warehouse', 'status', 'subtotal', 'discount_amount', 'tax_amount',
        'total_amount', 'payment_method', 'payment_amount', 'change_amount', 'correlation_id',
        'sold_at', 'voided_by', 'voided_at', 'void_reason', 'created_by', 'created_at',
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
