"""
Catalog — Django Admin Configuration

Master-data maintenance for products and warehouses.

@file catalog/admin.py
"""

from django.contrib import admin
from django.utils.translation import gettext_lazy as _

from .models import Product, Warehouse


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        'sku', 'name', 'unit', 'reorder_point', 'min_stock_level',
        'max_stock_level', 'unit_price', 'is_active',
    )
    list_filter = ('is_active', 'unit')
    search_fields = ('sku', 'name', 'barcode')
    readonly_fields = ('id', 'created_at', 'updated_at', 'created_by', 'updated_by')
    list_per_page = 50
    ordering = ('name',)

    fieldsets = (
        (None, {
            'fields': ('id', 'sku', 'name', 'barcode', 'description', 'unit', 'is_active'),
        }),
        (_('Thresholds'), {
            'fields': ('reorder_point', 'min_stock_level', 'max_stock_level'),
        }),
        (_('Pricing'), {
            'fields': ('cost_price', 'unit_price'),
        }),
        (_('Audit'), {
            'fields': ('created_at', 'updated_at', 'created_by', 'updated_by'),
            'classes': ('collapse',),
        }),
    )


@admin.register(Warehouse)
class WarehouseAdmin(admin.ModelAdmin):
    list_display = ('code', 'name', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('code', 'name')
    readonly_fields = ('id', 'created_at', 'updated_at', 'created_by', 'updated_by')
    ordering = ('code',)
