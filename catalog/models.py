"""
Catalog — Models

Master data consumed by the stock ledger: products (with their stock
thresholds and prices) and warehouses. Maintained through the admin;
the ledger only reads them.

@file catalog/models.py
"""

from django.db import models
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel


class Product(BaseModel):
    """
    A sellable / stockable item.

    reorder_point, min_stock_level and max_stock_level drive low-stock
    alerts and suggested reorder quantities; the ledger never writes them.
    """

    sku = models.CharField(_('SKU'), max_length=64, unique=True)
    name = models.CharField(_('name'), max_length=255, db_index=True)
    barcode = models.CharField(_('barcode'), max_length=64, blank=True, db_index=True)
    description = models.TextField(_('description'), blank=True)
    unit = models.CharField(
        _('unit of measure'), max_length=20, default='pcs',
        help_text=_('e.g. pcs, box, kg'),
    )
    reorder_point = models.PositiveIntegerField(_('reorder point'), default=0)
    min_stock_level = models.PositiveIntegerField(_('minimum stock level'), default=0)
    max_stock_level = models.PositiveIntegerField(_('maximum stock level'), default=0)
    cost_price = models.DecimalField(
        _('cost price'), max_digits=12, decimal_places=2, default=0,
    )
    unit_price = models.DecimalField(
        _('unit price'), max_digits=12, decimal_places=2, default=0,
    )
    is_active = models.BooleanField(_('active'), default=True, db_index=True)

    class Meta:
        verbose_name = _('product')
        verbose_name_plural = _('products')
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_active', 'name']),
        ]

    def __str__(self):
        return f'{self.name} ({self.sku})'


class Warehouse(BaseModel):
    """
    A stock-holding location.

    Inactive warehouses reject transfers, sales and receipts; adjustments
    stay allowed so remaining stock can be written off.
    """

    code = models.CharField(_('code'), max_length=20, unique=True)
    name = models.CharField(_('name'), max_length=100)
    address = models.TextField(_('address'), blank=True)
    is_active = models.BooleanField(_('active'), default=True, db_index=True)

    class Meta:
        verbose_name = _('warehouse')
        verbose_name_plural = _('warehouses')
        ordering = ['code']

    def __str__(self):
        return f'{self.name} ({self.code})'
