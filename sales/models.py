"""
Sales — Models

Point-of-sale transactions. A Sale groups one or more SaleLines; every
line maps 1:1 to the SALE movement that deducted its stock, and, once
voided, to the VOID_REVERSAL movement that restored it.

Lifecycle: OPEN → COMPLETED → VOID (irreversible).

@file sales/models.py
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel, TimestampMixin


def generate_sale_number() -> str:
    return f'SALE-{timezone.now():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}'


class Sale(BaseModel):

    class Status(models.TextChoices):
        OPEN = 'OPEN', _('Open')
        COMPLETED = 'COMPLETED', _('Completed')
        VOID = 'VOID', _('Void')

    class PaymentMethod(models.TextChoices):
        CASH = 'CASH', _('Cash')
        CARD = 'CARD', _('Card')
        OTHER = 'OTHER', _('Other')

    sale_number = models.CharField(
        _('sale number'), max_length=32, unique=True, default=generate_sale_number,
    )
    warehouse = models.ForeignKey(
        'catalog.Warehouse',
        on_delete=models.PROTECT,
        related_name='sales',
        verbose_name=_('warehouse'),
    )
    status = models.CharField(
        _('status'), max_length=10,
        choices=Status.choices, default=Status.OPEN, db_index=True,
    )

    subtotal = models.DecimalField(_('subtotal'), max_digits=12, decimal_places=2, default=0)
    discount_amount = models.DecimalField(_('discount'), max_digits=12, decimal_places=2, default=0)
    tax_amount = models.DecimalField(_('tax'), max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(_('total'), max_digits=12, decimal_places=2, default=0)

    payment_method = models.CharField(
        _('payment method'), max_length=10,
        choices=PaymentMethod.choices, default=PaymentMethod.CASH,
    )
    payment_amount = models.DecimalField(_('amount paid'), max_digits=12, decimal_places=2, default=0)
    change_amount = models.DecimalField(_('change'), max_digits=12, decimal_places=2, default=0)

    customer_name = models.CharField(_('customer name'), max_length=200, blank=True)
    customer_email = models.EmailField(_('customer email'), blank=True)
    customer_phone = models.CharField(_('customer phone'), max_length=30, blank=True)
    notes = models.TextField(_('notes'), blank=True)

    correlation_id = models.UUIDField(
        _('correlation ID'), default=uuid.uuid4, db_index=True,
        help_text=_('Shared by the SALE movements of this sale'),
    )
    sold_at = models.DateTimeField(_('sold at'), null=True, blank=True, db_index=True)

    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True,
        on_delete=models.SET_NULL,
        related_name='+',
        verbose_name=_('voided by'),
    )
    voided_at = models.DateTimeField(_('voided at'), null=True, blank=True)
    void_reason = models.TextField(_('void reason'), blank=True)

    class Meta:
        verbose_name = _('sale')
        verbose_name_plural = _('sales')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['warehouse', 'status']),
            models.Index(fields=['status', 'sold_at']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name='sale_total_gte_0',
            ),
            models.CheckConstraint(
                condition=models.Q(change_amount__gte=0),
                name='sale_change_gte_0',
            ),
        ]

    def __str__(self):
        return f'{self.sale_number} ({self.status})'

    @property
    def is_voidable(self) -> bool:
        return self.status == self.Status.COMPLETED


class SaleLine(TimestampMixin):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sale = models.ForeignKey(
        Sale,
        on_delete=models.PROTECT,
        related_name='lines',
        verbose_name=_('sale'),
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='sale_lines',
        verbose_name=_('product'),
    )
    quantity = models.PositiveIntegerField(_('quantity'))
    unit_price = models.DecimalField(_('unit price'), max_digits=12, decimal_places=2)
    discount = models.DecimalField(_('discount'), max_digits=12, decimal_places=2, default=0)
    line_total = models.DecimalField(_('line total'), max_digits=12, decimal_places=2)

    movement = models.OneToOneField(
        'stock.StockMovement',
        on_delete=models.PROTECT,
        related_name='sale_line',
        verbose_name=_('sale movement'),
    )
    reversal_movement = models.OneToOneField(
        'stock.StockMovement',
        null=True, blank=True,
        on_delete=models.PROTECT,
        related_name='voided_sale_line',
        verbose_name=_('void reversal movement'),
    )

    class Meta:
        verbose_name = _('sale line')
        verbose_name_plural = _('sale lines')
        ordering = ['created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name='sale_line_quantity_gt_0',
            ),
            models.CheckConstraint(
                condition=models.Q(discount__gte=0) & models.Q(unit_price__gte=0),
                name='sale_line_amounts_gte_0',
            ),
        ]

    def __str__(self):
        return f'{self.sale_id}: {self.quantity} × {self.product_id}'
