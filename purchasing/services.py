"""
Purchasing — Receiving Service

Applies delivered quantities to purchase-order lines: one RECEIPT movement
per line, the line's received total raised, and the order closed as
RECEIVED once every line is complete. The order lock serializes receipts
against the same order; balance locks serialize them against every other
ledger write on the same (product, warehouse).

@file purchasing/services.py
"""

import logging
import uuid
from dataclasses import dataclass
from uuid import UUID

from django.utils import timezone

from catalog.services import CatalogService, as_uuid
from core.constants import AUDIT_ACTION_STATUS_CHANGE
from core.exceptions import (
    BusinessRuleViolation,
    InvalidQuantityError,
    InvalidStateTransition,
    OverReceiptError,
    ResourceNotFoundError,
)
from core.services import AuditService
from stock.locking import balance_key, ledger_lock, order_key
from stock.models import StockMovement
from stock.services import LedgerResult, LowStockService, post_movement

from .models import PurchaseOrder, PurchaseOrderLine

logger = logging.getLogger('stockledger')

RECEIVABLE_STATUSES = {
    PurchaseOrder.StatusChoices.APPROVED,
    PurchaseOrder.StatusChoices.ORDERED,
}


@dataclass(frozen=True)
class ReceivingResult:
    order: PurchaseOrder
    lines: tuple[PurchaseOrderLine, ...]
    ledger: LedgerResult

    @property
    def order_completed(self) -> bool:
        return self.order.status == PurchaseOrder.StatusChoices.RECEIVED


def _assert_receivable(order: PurchaseOrder) -> None:
    if order.status not in RECEIVABLE_STATUSES:
        raise InvalidStateTransition(
            detail=f'Cannot receive goods on order {order.order_number} in status {order.status}.',
        )


def _get_line(line_id) -> PurchaseOrderLine:
    try:
        return PurchaseOrderLine.objects.select_related('order').get(pk=as_uuid(line_id, label='Order line'))
    except PurchaseOrderLine.DoesNotExist:
        raise ResourceNotFoundError(detail=f'Order line {line_id} not found.')


def _get_order(order_id) -> PurchaseOrder:
    try:
        return PurchaseOrder.objects.get(pk=as_uuid(order_id, label='Purchase order'))
    except PurchaseOrder.DoesNotExist:
        raise ResourceNotFoundError(detail=f'Purchase order {order_id} not found.')


class ReceivingService:

    @staticmethod
    def receive_line(
        *,
        order_line_id,
        received_quantity: int,
        warehouse_id=None,
        actor=None,
        location: str | None = None,
        timeout: float | None = None,
    ) -> ReceivingResult:
        """
        Receive goods against one order line.

        warehouse_id defaults to the order's receiving warehouse.
        Raises OverReceiptError if the line would exceed its ordered
        quantity; nothing is written in that case.
        """
        line = _get_line(order_line_id)
        return ReceivingService._receive(
            order=line.order,
            requests=[{'line_id': line.pk, 'quantity': received_quantity, 'location': location}],
            warehouse_id=warehouse_id,
            actor=actor,
            timeout=timeout,
        )

    @staticmethod
    def receive_order(
        *,
        order_id,
        lines,
        warehouse_id=None,
        actor=None,
        timeout: float | None = None,
    ) -> ReceivingResult:
        """
        Receive several lines of one order as a single all-or-nothing unit.

        lines: iterable of {line_id, quantity, location?}.
        """
        order = _get_order(order_id)
        if not lines:
            raise BusinessRuleViolation(detail='Nothing to receive.')
        return ReceivingService._receive(
            order=order,
            requests=list(lines),
            warehouse_id=warehouse_id,
            actor=actor,
            timeout=timeout,
        )

    @staticmethod
    def _receive(*, order, requests, warehouse_id, actor, timeout) -> ReceivingResult:
        wanted: dict[UUID, int] = {}
        locations: dict[UUID, str | None] = {}
        for req in requests:
            quantity = req.get('quantity')
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                raise InvalidQuantityError(detail='Received quantity must be a positive integer.')
            line_id = as_uuid(req.get('line_id'), label='Order line')
            wanted[line_id] = wanted.get(line_id, 0) + quantity
            if req.get('location') is not None:
                locations[line_id] = req['location']

        products = dict(
            PurchaseOrderLine.objects.filter(order=order, pk__in=wanted).values_list('pk', 'product_id')
        )
        missing = sorted(str(pk) for pk in wanted if pk not in products)
        if missing:
            raise ResourceNotFoundError(
                detail=f'Order line(s) not found on {order.order_number}: {", ".join(missing)}.',
            )

        warehouse_id = as_uuid(warehouse_id, label='Warehouse') if warehouse_id else order.warehouse_id
        keys = [order_key(order.pk)] + [balance_key(p, warehouse_id) for p in set(products.values())]
        correlation_id = uuid.uuid4()

        with ledger_lock(*keys, timeout=timeout):
            order = PurchaseOrder.objects.get(pk=order.pk)
            _assert_receivable(order)
            warehouse = CatalogService.get_active_warehouse(warehouse_id)

            lines = list(PurchaseOrderLine.objects.filter(pk__in=wanted).order_by('created_at', 'pk'))
            for line in lines:
                if line.received_quantity + wanted[line.pk] > line.ordered_quantity:
                    raise OverReceiptError(
                        detail=(
                            f'Cannot receive {wanted[line.pk]} on line {line.pk}: '
                            f'{line.remaining_quantity} of {line.ordered_quantity} outstanding.'
                        ),
                    )

            movements, balances = [], []
            for line in lines:
                movement, balance = post_movement(
                    product_id=line.product_id,
                    warehouse_id=warehouse.pk,
                    movement_type=StockMovement.MovementType.RECEIPT,
                    quantity_delta=wanted[line.pk],
                    correlation_id=correlation_id,
                    actor=actor,
                    reason=f'PO {order.order_number}',
                    reference_type='PurchaseOrderLine',
                    reference_id=line.pk,
                    location=locations.get(line.pk),
                )
                line.received_quantity += wanted[line.pk]
                line.save(update_fields=['received_quantity', 'updated_at'])
                movements.append(movement)
                balances.append(balance)

            ReceivingService._close_if_complete(order, actor)

        logger.info(
            'Received %d line(s) on %s into %s (status %s)',
            len(lines), order.order_number, warehouse.code, order.status,
        )
        return ReceivingResult(
            order=order,
            lines=tuple(lines),
            ledger=LedgerResult(
                movements=tuple(movements),
                balances=tuple(balances),
                correlation_id=correlation_id,
                low_stock=LowStockService().check_after_write(
                    [(line.product_id, warehouse.pk) for line in lines],
                ),
            ),
        )

    @staticmethod
    def _close_if_complete(order: PurchaseOrder, actor) -> None:
        """RECEIVED once every line is fully received; partial receipt keeps the status."""
        outstanding = [
            line for line in order.lines.all() if not line.is_fully_received
        ]
        if outstanding:
            return

        old_status = order.status
        order.status = PurchaseOrder.StatusChoices.RECEIVED
        order.actual_delivery_date = timezone.localdate()
        order.updated_by = actor
        order.save(update_fields=['status', 'actual_delivery_date', 'updated_by', 'updated_at'])
        AuditService.log(
            actor=actor,
            action=AUDIT_ACTION_STATUS_CHANGE,
            model_name='PurchaseOrder',
            object_id=str(order.pk),
            old_values={'status': old_status},
            new_values={'status': order.status},
        )
