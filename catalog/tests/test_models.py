"""
Catalog — Model tests.

@file catalog/tests/test_models.py
"""

import pytest
from django.db import IntegrityError

from catalog.models import Product
from tests.factories import ProductFactory, WarehouseFactory


@pytest.mark.django_db
class TestProduct:
    def test_str(self):
        product = ProductFactory(name='Stapler', sku='ST-1')
        assert str(product) == 'Stapler (ST-1)'

    def test_sku_unique(self):
        ProductFactory(sku='DUP')
        with pytest.raises(IntegrityError):
            ProductFactory(sku='DUP')

    def test_ordering_by_name(self):
        ProductFactory(name='Zeta')
        ProductFactory(name='Alpha')
        assert list(Product.objects.values_list('name', flat=True)) == ['Alpha', 'Zeta']


@pytest.mark.django_db
class TestWarehouse:
    def test_str(self):
        assert str(WarehouseFactory(name='Main', code='W-MAIN')) == 'Main (W-MAIN)'

    def test_code_unique(self):
        WarehouseFactory(code='W-X')
        with pytest.raises(IntegrityError):
            WarehouseFactory(code='W-X')
