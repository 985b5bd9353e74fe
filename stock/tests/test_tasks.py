"""
Tests — stock.verify_ledger task and the reconcile_stock command.

@file stock/tests/test_tasks.py
"""

from io import StringIO

import pytest
from django.core.management import call_command

from stock.models import StockBalance
from stock.tasks import verify_ledger_task
from tests.factories import ProductFactory, WarehouseFactory, stock_up


pytestmark = pytest.mark.django_db


@pytest.fixture
def drifted():
    product, warehouse = ProductFactory(), WarehouseFactory()
    stock_up(product, warehouse, 8)
    StockBalance.objects.filter(product=product, warehouse=warehouse).update(quantity=11)
    return product, warehouse


class TestVerifyLedgerTask:

    def test_clean_ledger(self):
        stock_up(ProductFactory(), WarehouseFactory(), 3)
        result = verify_ledger_task.delay().get()
        assert result == {'discrepancy_count': 0, 'repaired_count': 0, 'chain_breaks': []}

    def test_reports_without_repair(self, drifted):
        product, warehouse = drifted
        result = verify_ledger_task()
        assert result['discrepancy_count'] == 1
        assert result['repaired_count'] == 0
        assert StockBalance.objects.get(product=product, warehouse=warehouse).quantity == 11

    def test_repair(self, drifted):
        product, warehouse = drifted
        result = verify_ledger_task(repair=True)
        assert result['repaired_count'] == 1
        assert StockBalance.objects.get(product=product, warehouse=warehouse).quantity == 8


class TestReconcileStockCommand:

    def test_consistent(self):
        out = StringIO()
        call_command('reconcile_stock', stdout=out)
        assert 'no discrepancies' in out.getvalue()

    def test_report_and_repair(self, drifted):
        product, warehouse = drifted
        out = StringIO()
        call_command('reconcile_stock', stdout=out)
        assert 'cached=11 ledger=8' in out.getvalue()

        call_command('reconcile_stock', '--repair', stdout=StringIO())
        assert StockBalance.objects.get(product=product, warehouse=warehouse).quantity == 8
