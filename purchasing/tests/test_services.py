"""
Tests — ReceivingService: receipt movements, over-receipt rejection,
order completion, receivable statuses.

@file purchasing/tests/test_services.py
"""

import uuid

import pytest

from core.exceptions import (
    BusinessRuleViolation,
    InvalidQuantityError,
    InvalidStateTransition,
    InvalidWarehouseError,
    OverReceiptError,
    ResourceNotFoundError,
)
from core.models import AuditLog
from purchasing.models import PurchaseOrder
from purchasing.services import ReceivingService
from stock.models import StockBalance, StockMovement
from tests.factories import (
    PurchaseOrderFactory,
    PurchaseOrderLineFactory,
    UserFactory,
    WarehouseFactory,
    stock_up,
)


pytestmark = pytest.mark.django_db


def _on_hand(line, warehouse=None):
    balance = StockBalance.objects.filter(
        product=line.product, warehouse=warehouse or line.order.warehouse,
    ).first()
    return balance.quantity if balance else 0


class TestReceiveLine:

    def test_partial_receipt(self):
        line = PurchaseOrderLineFactory(ordered_quantity=10)
        clerk = UserFactory()
        result = ReceivingService.receive_line(order_line_id=line.pk, received_quantity=4, actor=clerk)

        line.refresh_from_db()
        assert line.received_quantity == 4
        assert _on_hand(line) == 4
        [movement] = result.ledger.movements
        assert movement.movement_type == StockMovement.MovementType.RECEIPT
        assert movement.quantity_delta == 4
        assert movement.reference_type == 'PurchaseOrderLine'
        assert movement.reference_id == line.pk
        assert movement.actor == clerk
        assert result.order.status == PurchaseOrder.StatusChoices.ORDERED
        assert result.order_completed is False

    def test_adds_to_existing_stock(self):
        line = PurchaseOrderLineFactory(ordered_quantity=10)
        stock_up(line.product, line.order.warehouse, 7)
        result = ReceivingService.receive_line(order_line_id=line.pk, received_quantity=10)
        assert result.ledger.movements[0].balance_before == 7
        assert _on_hand(line) == 17

    def test_full_receipt_closes_single_line_order(self):
        line = PurchaseOrderLineFactory(ordered_quantity=5)
        result = ReceivingService.receive_line(order_line_id=line.pk, received_quantity=5)
        assert result.order_completed is True
        order = PurchaseOrder.objects.get(pk=line.order_id)
        assert order.status == PurchaseOrder.StatusChoices.RECEIVED
        assert order.actual_delivery_date is not None
        assert AuditLog.objects.filter(model_name='PurchaseOrder', object_id=str(order.pk)).exists()

    def test_order_stays_open_until_every_line_received(self):
        order = PurchaseOrderFactory()
        first = PurchaseOrderLineFactory(order=order, ordered_quantity=2)
        second = PurchaseOrderLineFactory(order=order, ordered_quantity=3)

        ReceivingService.receive_line(order_line_id=first.pk, received_quantity=2)
        order.refresh_from_db()
        assert order.status == PurchaseOrder.StatusChoices.ORDERED

        ReceivingService.receive_line(order_line_id=second.pk, received_quantity=1)
        ReceivingService.receive_line(order_line_id=second.pk, received_quantity=2)
        order.refresh_from_db()
        assert order.status == PurchaseOrder.StatusChoices.RECEIVED

    def test_over_receipt_rejected_without_changes(self):
        line = PurchaseOrderLineFactory(ordered_quantity=10, received_quantity=8)
        with pytest.raises(OverReceiptError):
            ReceivingService.receive_line(order_line_id=line.pk, received_quantity=3)
        line.refresh_from_db()
        assert line.received_quantity == 8
        assert _on_hand(line) == 0
        assert not StockMovement.objects.exists()

    def test_exact_remaining_is_accepted(self):
        line = PurchaseOrderLineFactory(ordered_quantity=10, received_quantity=8)
        ReceivingService.receive_line(order_line_id=line.pk, received_quantity=2)
        line.refresh_from_db()
        assert line.is_fully_received

    @pytest.mark.parametrize('quantity', [0, -3])
    def test_non_positive_quantity(self, quantity):
        line = PurchaseOrderLineFactory()
        with pytest.raises(InvalidQuantityError):
            ReceivingService.receive_line(order_line_id=line.pk, received_quantity=quantity)

    def test_alternative_warehouse_and_location(self):
        line = PurchaseOrderLineFactory(ordered_quantity=4)
        overflow = WarehouseFactory()
        ReceivingService.receive_line(
            order_line_id=line.pk, received_quantity=4, warehouse_id=overflow.pk, location='B-07',
        )
        balance = StockBalance.objects.get(product=line.product, warehouse=overflow)
        assert balance.quantity == 4
        assert balance.location == 'B-07'
        assert _on_hand(line) == 0

    def test_inactive_warehouse_rejected(self):
        line = PurchaseOrderLineFactory(order__warehouse__is_active=False)
        with pytest.raises(InvalidWarehouseError):
            ReceivingService.receive_line(order_line_id=line.pk, received_quantity=1)

    @pytest.mark.parametrize('status', [
        PurchaseOrder.StatusChoices.DRAFT,
        PurchaseOrder.StatusChoices.PENDING,
        PurchaseOrder.StatusChoices.CANCELLED,
        PurchaseOrder.StatusChoices.RECEIVED,
    ])
    def test_order_must_be_receivable(self, status):
        line = PurchaseOrderLineFactory(order__status=status)
        with pytest.raises(InvalidStateTransition):
            ReceivingService.receive_line(order_line_id=line.pk, received_quantity=1)
        assert not StockMovement.objects.exists()

    def test_approved_order_is_receivable(self):
        line = PurchaseOrderLineFactory(order__status=PurchaseOrder.StatusChoices.APPROVED, ordered_quantity=3)
        ReceivingService.receive_line(order_line_id=line.pk, received_quantity=1)
        assert _on_hand(line) == 1

    def test_unknown_line_not_found(self):
        with pytest.raises(ResourceNotFoundError):
            ReceivingService.receive_line(order_line_id=uuid.uuid4(), received_quantity=1)


class TestReceiveOrder:

    def test_several_lines_share_correlation(self):
        order = PurchaseOrderFactory()
        first = PurchaseOrderLineFactory(order=order, ordered_quantity=2)
        second = PurchaseOrderLineFactory(order=order, ordered_quantity=6)

        result = ReceivingService.receive_order(
            order_id=order.pk,
            lines=[
                {'line_id': first.pk, 'quantity': 2},
                {'line_id': second.pk, 'quantity': 6},
            ],
        )

        assert result.order_completed is True
        assert len(result.ledger.movements) == 2
        assert {m.correlation_id for m in result.ledger.movements} == {result.ledger.correlation_id}
        assert _on_hand(first) == 2
        assert _on_hand(second) == 6

    def test_one_bad_line_rejects_all(self):
        order = PurchaseOrderFactory()
        good = PurchaseOrderLineFactory(order=order, ordered_quantity=5)
        bad = PurchaseOrderLineFactory(order=order, ordered_quantity=1)

        with pytest.raises(OverReceiptError):
            ReceivingService.receive_order(
                order_id=order.pk,
                lines=[
                    {'line_id': good.pk, 'quantity': 5},
                    {'line_id': bad.pk, 'quantity': 2},
                ],
            )
        good.refresh_from_db()
        assert good.received_quantity == 0
        assert _on_hand(good) == 0

    def test_same_line_twice_is_summed(self):
        line = PurchaseOrderLineFactory(ordered_quantity=3)
        with pytest.raises(OverReceiptError):
            ReceivingService.receive_order(
                order_id=line.order_id,
                lines=[{'line_id': line.pk, 'quantity': 2}, {'line_id': line.pk, 'quantity': 2}],
            )

    def test_line_from_other_order_not_found(self):
        order = PurchaseOrderFactory()
        foreign = PurchaseOrderLineFactory()
        with pytest.raises(ResourceNotFoundError):
            ReceivingService.receive_order(
                order_id=order.pk, lines=[{'line_id': foreign.pk, 'quantity': 1}],
            )

    def test_empty_request_rejected(self):
        with pytest.raises(BusinessRuleViolation):
            ReceivingService.receive_order(order_id=PurchaseOrderFactory().pk, lines=[])


class TestReceiptLowStock:

    def test_small_receipt_still_low(self):
        line = PurchaseOrderLineFactory(ordered_quantity=10, product__reorder_point=5)
        result = ReceivingService.receive_line(order_line_id=line.pk, received_quantity=1)
        [alert] = result.ledger.low_stock
        assert alert.product_id == line.product_id
        assert alert.warehouse_id == line.order.warehouse_id
        assert alert.quantity == 1

    def test_receipt_above_reorder_point_clears(self):
        line = PurchaseOrderLineFactory(ordered_quantity=10, product__reorder_point=5)
        result = ReceivingService.receive_line(order_line_id=line.pk, received_quantity=10)
        assert result.ledger.low_stock == ()
