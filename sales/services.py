"""
Sales — Service Layer

RecordSale and VoidSale. Both take every affected balance lock (sorted)
before validating, and apply all lines in one transaction: a sale is
recorded or voided as a whole, or not at all.

@file sales/services.py
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from uuid import UUID

from django.utils import timezone

from catalog.services import CatalogService, as_uuid
from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_STATUS_CHANGE
from core.exceptions import (
    AlreadyVoidError,
    BusinessRuleViolation,
    InsufficientStockError,
    InvalidQuantityError,
    ResourceNotFoundError,
)
from core.services import AuditService
from stock.locking import balance_key, ledger_lock, sale_key
from stock.models import StockMovement
from stock.services import AvailabilityService, LowStockService, post_movement

from .models import Sale, SaleLine

logger = logging.getLogger('stockledger')

CENT = Decimal('0.01')


@dataclass
class _LineRequest:
    product_id: UUID
    quantity: int
    unit_price: Decimal | None
    discount: Decimal


def _money(value, label: str) -> Decimal:
    try:
        amount = Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, TypeError, ValueError):
        raise BusinessRuleViolation(detail=f'{label} must be a number, got {value!r}.')
    if not amount.is_finite():
        raise BusinessRuleViolation(detail=f'{label} must be a finite amount, got {value!r}.')
    if amount < 0:
        raise BusinessRuleViolation(detail=f'{label} cannot be negative.')
    return amount


def _parse_lines(lines) -> list[_LineRequest]:
    if not lines:
        raise BusinessRuleViolation(detail='A sale needs at least one line.')
    parsed = []
    for index, line in enumerate(lines, start=1):
        quantity = line.get('quantity')
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError(detail=f'Line {index}: quantity must be a positive integer.')
        unit_price = line.get('unit_price')
        parsed.append(_LineRequest(
            product_id=as_uuid(line.get('product_id'), label='Product'),
            quantity=quantity,
            unit_price=None if unit_price is None else _money(unit_price, f'Line {index} unit price'),
            discount=_money(line.get('discount') or 0, f'Line {index} discount'),
        ))
    return parsed


class SaleService:

    @staticmethod
    def get_sale(sale_id) -> Sale:
        try:
            return Sale.objects.get(pk=as_uuid(sale_id, label='Sale'))
        except Sale.DoesNotExist:
            raise ResourceNotFoundError(detail=f'Sale {sale_id} not found.')

    @staticmethod
    def record_sale(
        *,
        warehouse_id,
        lines,
        actor=None,
        payment_method: str = Sale.PaymentMethod.CASH,
        payment_amount=None,
        tax_amount=0,
        discount_amount=0,
        customer_name: str = '',
        customer_email: str = '',
        customer_phone: str = '',
        notes: str = '',
        timeout: float | None = None,
    ) -> Sale:
        """
        Record a completed sale: one SALE movement per line.

        lines: iterable of {product_id, quantity, unit_price?, discount?};
        a missing unit_price falls back to the product's price.
        The per-product total across lines is checked against available
        stock while every lock is held. Any failure rejects the whole sale.
        """
        requests = _parse_lines(lines)
        warehouse_id = as_uuid(warehouse_id, label='Warehouse')
        tax_amount = _money(tax_amount, 'Tax amount')
        discount_amount = _money(discount_amount, 'Discount amount')
        if payment_amount is not None:
            payment_amount = _money(payment_amount, 'Payment amount')
        if payment_method not in Sale.PaymentMethod.values:
            raise BusinessRuleViolation(detail=f'Unknown payment method {payment_method!r}.')

        requested: dict[UUID, int] = {}
        for req in requests:
            requested[req.product_id] = requested.get(req.product_id, 0) + req.quantity

        keys = [balance_key(product_id, warehouse_id) for product_id in requested]
        with ledger_lock(*keys, timeout=timeout):
            warehouse = CatalogService.get_active_warehouse(warehouse_id)
            products = CatalogService.get_products(requested)

            for product_id, quantity in requested.items():
                product = products[product_id]
                if not product.is_active:
                    raise BusinessRuleViolation(detail=f'Product {product.sku} is not for sale.')
                available = AvailabilityService.available_at(product_id, warehouse.pk)
                if available < quantity:
                    raise InsufficientStockError(
                        detail=f'Insufficient stock for {product.sku}: available={available}, requested={quantity}.',
                    )

            priced = []
            for req in requests:
                unit_price = req.unit_price if req.unit_price is not None else products[req.product_id].unit_price
                gross = (Decimal(req.quantity) * unit_price).quantize(CENT)
                if req.discount > gross:
                    raise BusinessRuleViolation(
                        detail=f'Discount on {products[req.product_id].sku} exceeds the line amount.',
                    )
                priced.append((req, unit_price, gross - req.discount))

            subtotal = sum((total for _, _, total in priced), Decimal('0.00'))
            total = subtotal - discount_amount + tax_amount
            if total < 0:
                raise BusinessRuleViolation(detail='Sale discount exceeds the subtotal.')
            paid = total if payment_amount is None else payment_amount
            if paid < total:
                raise BusinessRuleViolation(detail='Payment amount is less than the sale total.')

            sale = Sale.objects.create(
                warehouse=warehouse,
                status=Sale.Status.OPEN,
                subtotal=subtotal,
                discount_amount=discount_amount,
                tax_amount=tax_amount,
                total_amount=total,
                payment_method=payment_method,
                payment_amount=paid,
                change_amount=paid - total,
                customer_name=customer_name or '',
                customer_email=customer_email or '',
                customer_phone=customer_phone or '',
                notes=notes or '',
                created_by=actor,
                updated_by=actor,
            )

            for req, unit_price, line_total in priced:
                movement, _ = post_movement(
                    product_id=req.product_id,
                    warehouse_id=warehouse.pk,
                    movement_type=StockMovement.MovementType.SALE,
                    quantity_delta=-req.quantity,
                    correlation_id=sale.correlation_id,
                    actor=actor,
                    reason=f'Sale {sale.sale_number}',
                    reference_type='Sale',
                    reference_id=sale.pk,
                )
                SaleLine.objects.create(
                    sale=sale,
                    product_id=req.product_id,
                    quantity=req.quantity,
                    unit_price=unit_price,
                    discount=req.discount,
                    line_total=line_total,
                    movement=movement,
                )

            sale.status = Sale.Status.COMPLETED
            sale.sold_at = timezone.now()
            sale.save(update_fields=['status', 'sold_at', 'updated_at'])

            AuditService.log(
                actor=actor,
                action=AUDIT_ACTION_CREATE,
                model_name='Sale',
                object_id=str(sale.pk),
                new_values={
                    'sale_number': sale.sale_number,
                    'warehouse_id': str(warehouse.pk),
                    'status': sale.status,
                    'total_amount': str(sale.total_amount),
                    'lines': len(priced),
                },
            )

        logger.info(
            'Sale %s completed: %d lines, total=%s warehouse=%s',
            sale.sale_number, len(priced), sale.total_amount, warehouse.code,
        )
        sale.low_stock_alerts = LowStockService().check_after_write(
            (product_id, warehouse.pk) for product_id in requested
        )
        return sale

    @staticmethod
    def void_sale(*, sale_id, void_reason: str = '', actor=None, timeout: float | None = None) -> Sale:
        """
        Void a COMPLETED sale: one VOID_REVERSAL movement per line restores
        its quantity. Original SALE movements stay untouched.
        Raises AlreadyVoidError for any other status.
        """
        sale = SaleService.get_sale(sale_id)
        product_ids = set(sale.lines.values_list('product_id', flat=True))
        keys = [sale_key(sale.pk)] + [balance_key(p, sale.warehouse_id) for p in product_ids]

        with ledger_lock(*keys, timeout=timeout):
            sale = Sale.objects.get(pk=sale.pk)
            if sale.status != Sale.Status.COMPLETED:
                raise AlreadyVoidError(detail=f'Sale {sale.sale_number} is {sale.status}, not COMPLETED.')

            reversal_id = uuid.uuid4()
            for line in sale.lines.order_by('created_at'):
                reversal, _ = post_movement(
                    product_id=line.product_id,
                    warehouse_id=sale.warehouse_id,
                    movement_type=StockMovement.MovementType.VOID_REVERSAL,
                    quantity_delta=line.quantity,
                    correlation_id=reversal_id,
                    actor=actor,
                    reason=f'Void {sale.sale_number}',
                    notes=void_reason or '',
                    reference_type='Sale',
                    reference_id=sale.pk,
                )
                line.reversal_movement = reversal
                line.save(update_fields=['reversal_movement', 'updated_at'])

            old_status = sale.status
            sale.status = Sale.Status.VOID
            sale.voided_by = actor
            sale.voided_at = timezone.now()
            sale.void_reason = void_reason or ''
            sale.updated_by = actor
            sale.save(update_fields=[
                'status', 'voided_by', 'voided_at', 'void_reason', 'updated_by', 'updated_at',
            ])

            AuditService.log(
                actor=actor,
                action=AUDIT_ACTION_STATUS_CHANGE,
                model_name='Sale',
                object_id=str(sale.pk),
                old_values={'status': old_status},
                new_values={
                    'status': sale.status,
                    'void_reason': sale.void_reason,
                    'reversal_correlation_id': str(reversal_id),
                },
            )

        logger.info('Sale %s voided by %s', sale.sale_number, getattr(actor, 'pk', None))
        sale.low_stock_alerts = LowStockService().check_after_write(
            (product_id, sale.warehouse_id) for product_id in product_ids
        )
        return sale
