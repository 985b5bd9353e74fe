"""
Purchasing — Models

Purchase orders and their lines. Order master data is maintained
elsewhere (admin); the ledger only reads ordered quantities and writes
received quantities through ReceivingService.

@file purchasing/models.py
"""

import uuid

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from core.models import BaseModel, TimestampMixin


def generate_order_number() -> str:
    return f'PO-{timezone.now():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}'


class PurchaseOrder(BaseModel):
    """
    Supplier order delivered to one warehouse.

    Workflow: DRAFT → PENDING → APPROVED → ORDERED → RECEIVED (terminal).
    CANCELLED at any point before receipt. Goods are received only while
    APPROVED or ORDERED; partial receipt keeps the status.
    """

    class StatusChoices(models.TextChoices):
        DRAFT = 'DRAFT', _('Draft')
        PENDING = 'PENDING', _('Pending approval')
        APPROVED = 'APPROVED', _('Approved')
        ORDERED = 'ORDERED', _('Ordered')
        RECEIVED = 'RECEIVED', _('Received')
        CANCELLED = 'CANCELLED', _('Cancelled')

    order_number = models.CharField(
        _('order number'), max_length=32, unique=True, default=generate_order_number,
    )
    supplier_name = models.CharField(_('supplier'), max_length=200)
    warehouse = models.ForeignKey(
        'catalog.Warehouse',
        on_delete=models.PROTECT,
        related_name='purchase_orders',
        verbose_name=_('receiving warehouse'),
    )
    status = models.CharField(
        _('status'), max_length=10,
        choices=StatusChoices.choices, default=StatusChoices.DRAFT, db_index=True,
    )
    expected_delivery_date = models.DateField(_('expected delivery'), null=True, blank=True)
    actual_delivery_date = models.DateField(_('delivered on'), null=True, blank=True)
    notes = models.TextField(_('notes'), blank=True)

    class Meta:
        verbose_name = _('purchase order')
        verbose_name_plural = _('purchase orders')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['warehouse', 'status']),
        ]

    def __str__(self):
        return f'{self.order_number} — {self.supplier_name} ({self.status})'


class PurchaseOrderLine(TimestampMixin):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        PurchaseOrder,
        on_delete=models.CASCADE,
        related_name='lines',
        verbose_name=_('order'),
    )
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.PROTECT,
        related_name='purchase_order_lines',
        verbose_name=_('product'),
    )
    ordered_quantity = models.PositiveIntegerField(_('quantity ordered'))
    received_quantity = models.PositiveIntegerField(_('quantity received'), default=0)
    unit_price = models.DecimalField(_('unit price'), max_digits=12, decimal_places=2, default=0)

    class Meta:
        verbose_name = _('purchase order line')
        verbose_name_plural = _('purchase order lines')
        ordering = ['order', 'created_at']
        indexes = [
            models.Index(fields=['order']),
            models.Index(fields=['product']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(ordered_quantity__gt=0),
                name='po_line_ordered_gt_0',
            ),
            models.CheckConstraint(
                condition=models.Q(received_quantity__lte=models.F('ordered_quantity')),
                name='po_line_received_lte_ordered',
            ),
        ]

    def __str__(self):
        return f'{self.order_id} — {self.product_id} {self.received_quantity}/{self.ordered_quantity}'

    @property
    def remaining_quantity(self) -> int:
        return self.ordered_quantity - self.received_quantity

    @property
    def is_fully_received(self) -> bool:
        return self.received_quantity >= self.ordered_quantity
