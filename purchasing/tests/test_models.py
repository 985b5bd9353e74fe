"""
Tests — PurchaseOrder / PurchaseOrderLine models.

@file purchasing/tests/test_models.py
"""

import re

import pytest
from django.db import IntegrityError

from purchasing.models import PurchaseOrder, generate_order_number
from tests.factories import PurchaseOrderFactory, PurchaseOrderLineFactory


pytestmark = pytest.mark.django_db


class TestPurchaseOrder:

    def test_order_number_format(self):
        assert re.fullmatch(r'PO-\d{8}-[0-9A-F]{6}', generate_order_number())

    def test_defaults_to_draft(self):
        order = PurchaseOrder.objects.create(
            supplier_name='Acme', warehouse=PurchaseOrderFactory().warehouse,
        )
        assert order.status == PurchaseOrder.StatusChoices.DRAFT
        assert order.order_number.startswith('PO-')


class TestPurchaseOrderLine:

    def test_remaining_quantity(self):
        line = PurchaseOrderLineFactory(ordered_quantity=10, received_quantity=4)
        assert line.remaining_quantity == 6
        assert line.is_fully_received is False

    def test_fully_received(self):
        line = PurchaseOrderLineFactory(ordered_quantity=3, received_quantity=3)
        assert line.remaining_quantity == 0
        assert line.is_fully_received is True

    def test_received_cannot_exceed_ordered(self):
        with pytest.raises(IntegrityError):
            PurchaseOrderLineFactory(ordered_quantity=3, received_quantity=4)

    def test_ordered_must_be_positive(self):
        with pytest.raises(IntegrityError):
            PurchaseOrderLineFactory(ordered_quantity=0)
