"""
Stock — Django Admin Configuration

Read-only views of balances and the movement log. Balances change only
through the ledger services; movements are INSERT ONLY.

@file stock/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import StockBalance, StockMovement


@admin.register(StockBalance)
class StockBalanceAdmin(admin.ModelAdmin):
    list_display = ('product', 'warehouse', 'quantity', 'reserved_quantity', 'location', 'updated_at')
    list_filter = ('warehouse',)
    search_fields = ('product__sku', 'product__name', 'warehouse__code', 'location')
    readonly_fields = ('product', 'warehouse', 'quantity', 'reserved_quantity', 'created_at', 'updated_at')
    list_select_related = ('product', 'warehouse')
    ordering = ('product__name',)

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(StockMovement)
class StockMovementAdmin(admin.ModelAdmin):
    list_display = (
        'id', 'product', 'warehouse', 'movement_type', 'quantity_delta',
        'balance_before', 'balance_after', 'reference_type', 'actor', 'occurred_at',
    )
    list_filter = ('movement_type', 'warehouse', 'occurred_at')
    search_fields = ('correlation_id', 'reference_type', 'product__sku', 'reason')
    readonly_fields = (
        'id', 'product', 'warehouse', 'movement_type', 'quantity_delta',
        'balance_before', 'balance_after', 'reason', 'notes',
        'correlation_id', 'reference_type', 'reference_id', 'actor', 'occurred_at',
    )
    list_select_related = ('product', 'warehouse', 'actor')
    show_full_result_count = False
    list_per_page = 50
    date_hierarchy = 'occurred_at'
    ordering = ('-id',)

    fieldsets = (
        (_('Movement'), {
            'fields': (
                'id', 'product', 'warehouse', 'movement_type',
                'quantity_delta', 'balance_before', 'balance_after',
            ),
        }),
        (_('Reference'), {
            'fields': ('correlation_id', 'reference_type', 'reference_id', 'reason', 'notes'),
        }),
        (_('Audit'), {
            'fields': ('actor', 'occurred_at'),
        }),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False  # INSERT ONLY — no updates

    def has_delete_permission(self, request, obj=None):
        return False  # INSERT ONLY — no deletes
