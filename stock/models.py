"""
Stock — Models

Balance Store and Movement Log.

StockBalance is a materialised cache of SUM(quantity_delta) per
(product, warehouse); StockMovement is the authoritative, INSERT ONLY
log of every change. Both are written exclusively by the ledger
services while holding the key's lock.

@file stock/models.py
"""

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import TimestampMixin

import uuid


class StockBalance(TimestampMixin):
    """
    On-hand and reserved quantity of one product at one warehouse.

    Created lazily on the first movement, never deleted: zero-quantity
    rows stay for audit continuity.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='balances',
        verbose_name=_('product'),
    )
    warehouse = models.ForeignKey(
        'catalog.Warehouse',
        on_delete=models.PROTECT,
        related_name='balances',
        verbose_name=_('warehouse'),
    )
    quantity = models.IntegerField(_('on-hand quantity'), default=0)
    reserved_quantity = models.IntegerField(
        _('reserved quantity'), default=0,
        help_text=_('Earmarked against open, uncommitted sales'),
    )
    location = models.CharField(
        _('location'), max_length=100, blank=True,
        help_text=_('Bin / shelf label within the warehouse'),
    )

    class Meta:
        verbose_name = _('stock balance')
        verbose_name_plural = _('stock balances')
        ordering = ['product', 'warehouse']
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'warehouse'],
                name='stock_balance_product_warehouse_uniq',
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gte=0),
                name='stock_balance_quantity_gte_0',
            ),
            models.CheckConstraint(
                condition=models.Q(reserved_quantity__gte=0),
                name='stock_balance_reserved_gte_0',
            ),
            models.CheckConstraint(
                condition=models.Q(reserved_quantity__lte=models.F('quantity')),
                name='stock_balance_reserved_lte_quantity',
            ),
        ]
        indexes = [
            models.Index(fields=['warehouse', 'product'], name='stock_balance_wh_product_idx'),
        ]

    def __str__(self):
        return f'{self.product_id}@{self.warehouse_id}: {self.quantity} (reserved {self.reserved_quantity})'

    @property
    def available_quantity(self) -> int:
        return self.quantity - self.reserved_quantity

    def delete(self, *args, **kwargs):
        raise NotImplementedError('StockBalance rows are never deleted.')


class StockMovement(models.Model):
    """
    A single immutable ledger entry (insert only).

    For one (product, warehouse) the entries are totally ordered by id and
    each balance_before equals the previous entry's balance_after.
    correlation_id links the two rows of a transfer, the rows of one sale,
    a sale's reversal rows, or the rows of one receipt.
    """

    class MovementType(models.TextChoices):
        ADJUSTMENT = 'ADJUSTMENT', _('Adjustment')
        TRANSFER_OUT = 'TRANSFER_OUT', _('Transfer out')
        TRANSFER_IN = 'TRANSFER_IN', _('Transfer in')
        SALE = 'SALE', _('Sale')
        RECEIPT = 'RECEIPT', _('Receipt')
        VOID_REVERSAL = 'VOID_REVERSAL', _('Void reversal')

    id = models.BigAutoField(primary_key=True)
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='stock_movements',
        verbose_name=_('product'),
    )
    warehouse = models.ForeignKey(
        'catalog.Warehouse',
        on_delete=models.PROTECT,
        related_name='stock_movements',
        verbose_name=_('warehouse'),
    )
    movement_type = models.CharField(
        _('movement type'), max_length=16,
        choices=MovementType.choices, db_index=True,
    )
    quantity_delta = models.IntegerField(_('quantity delta'))
    balance_before = models.IntegerField(_('balance before'))
    balance_after = models.IntegerField(_('balance after'))
    reason = models.CharField(_('reason'), max_length=255, blank=True)
    notes = models.TextField(_('notes'), blank=True)
    correlation_id = models.UUIDField(_('correlation ID'), default=uuid.uuid4, db_index=True)
    reference_type = models.CharField(
        _('reference type'), max_length=50, blank=True,
        help_text=_('Model name of source record: Sale, PurchaseOrderLine'),
    )
    reference_id = models.UUIDField(_('reference ID'), null=True, blank=True)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('actor'),
    )
    occurred_at = models.DateTimeField(_('occurred at'), default=timezone.now, db_index=True)
    # No updated_at — immutable record.

    class Meta:
        verbose_name = _('stock movement')
        verbose_name_plural = _('stock movements')
        ordering = ['-id']
        indexes = [
            models.Index(fields=['product', 'warehouse', 'id'], name='stock_mv_key_seq_idx'),
            models.Index(fields=['warehouse', 'occurred_at'], name='stock_mv_wh_occurred_idx'),
            models.Index(fields=['reference_type', 'reference_id'], name='stock_mv_reference_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~models.Q(quantity_delta=0),
                name='stock_mv_delta_nonzero',
            ),
            models.CheckConstraint(
                condition=models.Q(balance_after=models.F('balance_before') + models.F('quantity_delta')),
                name='stock_mv_balance_chain',
            ),
            models.CheckConstraint(
                condition=models.Q(balance_before__gte=0) & models.Q(balance_after__gte=0),
                name='stock_mv_balances_gte_0',
            ),
        ]

    def __str__(self):
        return (
            f'{self.movement_type} {self.quantity_delta:+d} '
            f'{self.product_id}@{self.warehouse_id} ({self.balance_before}→{self.balance_after})'
        )

    def save(self, *args, **kwargs):
        if self.pk and StockMovement.objects.filter(pk=self.pk).exists():
            raise NotImplementedError('StockMovement is insert-only; updates are not allowed.')
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise NotImplementedError('StockMovement records cannot be deleted.')
