"""
Tests — Sales API endpoints (checkout, history, void, POS picker).

@file sales/tests/test_views.py
"""

from decimal import Decimal

import pytest
from django.urls import reverse

from sales.models import Sale
from sales.services import SaleService
from stock.models import StockBalance
from tests.factories import ProductFactory, WarehouseFactory, stock_up


pytestmark = pytest.mark.django_db


@pytest.fixture
def stocked():
    warehouse = WarehouseFactory()
    product = ProductFactory(name='Notebook', unit_price=Decimal('3.00'))
    stock_up(product, warehouse, 5)
    return warehouse, product


def _checkout(client, warehouse, product, quantity):
    return client.post(reverse('api-v1:sales:sale-list'), {
        'warehouse': str(warehouse.pk),
        'lines': [{'product_id': str(product.pk), 'quantity': quantity}],
        'payment_method': 'CARD',
    }, format='json')


class TestCheckout:

    def test_requires_auth(self, api_client):
        resp = api_client.get(reverse('api-v1:sales:sale-list'))
        assert resp.status_code == 401

    def test_record_sale(self, authenticated_client, stocked):
        warehouse, product = stocked
        resp = _checkout(authenticated_client, warehouse, product, 2)
        assert resp.status_code == 201
        data = resp.data['data']
        assert data['status'] == 'COMPLETED'
        assert data['payment_method'] == 'CARD'
        assert len(data['lines']) == 1
        assert StockBalance.objects.get(product=product).quantity == 3
        assert data['low_stock'][0]['quantity'] == 3

    def test_insufficient_stock_message(self, authenticated_client, stocked):
        warehouse, product = stocked
        resp = _checkout(authenticated_client, warehouse, product, 6)
        assert resp.status_code == 409
        assert resp.data['code'] == 'INSUFFICIENT_STOCK'
        assert not Sale.objects.exists()

    def test_empty_lines_is_400(self, authenticated_client, stocked):
        warehouse, _ = stocked
        resp = authenticated_client.post(reverse('api-v1:sales:sale-list'), {
            'warehouse': str(warehouse.pk), 'lines': [],
        }, format='json')
        assert resp.status_code == 400

    def test_viewer_cannot_sell(self, viewer_client, stocked):
        warehouse, product = stocked
        resp = _checkout(viewer_client, warehouse, product, 1)
        assert resp.status_code == 403

    def test_list_and_detail(self, authenticated_client, stocked):
        warehouse, product = stocked
        sale = SaleService.record_sale(
            warehouse_id=warehouse.pk, lines=[{'product_id': product.pk, 'quantity': 1}],
        )
        resp = authenticated_client.get(reverse('api-v1:sales:sale-list'), {'status': 'COMPLETED'})
        assert [row['sale_number'] for row in resp.data['results']] == [sale.sale_number]

        resp = authenticated_client.get(reverse('api-v1:sales:sale-detail', args=[sale.pk]))
        assert resp.status_code == 200
        assert resp.data['lines'][0]['quantity'] == 1


class TestVoid:

    def test_viewer_cannot_void(self, viewer_client, stocked):
        warehouse, product = stocked
        sale = SaleService.record_sale(
            warehouse_id=warehouse.pk, lines=[{'product_id': product.pk, 'quantity': 1}],
        )
        resp = viewer_client.post(reverse('api-v1:sales:sale-void', args=[sale.pk]), {}, format='json')
        assert resp.status_code == 403
        assert Sale.objects.get(pk=sale.pk).status == Sale.Status.COMPLETED

    def test_staff_voids(self, authenticated_client, stocked):
        warehouse, product = stocked
        sale = SaleService.record_sale(
            warehouse_id=warehouse.pk, lines=[{'product_id': product.pk, 'quantity': 1}],
        )
        url = reverse('api-v1:sales:sale-void', args=[sale.pk])
        resp = authenticated_client.post(url, {'void_reason': 'customer changed mind'}, format='json')
        assert resp.status_code == 200
        assert resp.data['data']['status'] == 'VOID'

    def test_manager_voids(self, manager_client, stocked):
        warehouse, product = stocked
        sale = SaleService.record_sale(
            warehouse_id=warehouse.pk, lines=[{'product_id': product.pk, 'quantity': 2}],
        )
        url = reverse('api-v1:sales:sale-void', args=[sale.pk])
        resp = manager_client.post(url, {'void_reason': 'wrong item'}, format='json')
        assert resp.status_code == 200
        assert resp.data['data']['status'] == 'VOID'
        assert StockBalance.objects.get(product=product).quantity == 5

        resp = manager_client.post(url, {}, format='json')
        assert resp.status_code == 409
        assert resp.data['code'] == 'ALREADY_VOID'


class TestAvailableProducts:

    def test_lists_sellable_products(self, authenticated_client, stocked):
        warehouse, product = stocked
        resp = authenticated_client.get(
            reverse('api-v1:sales:sale-available-products'), {'warehouse': str(warehouse.pk)},
        )
        assert resp.status_code == 200
        [row] = resp.data['data']
        assert row['name'] == 'Notebook'
        assert row['available_quantity'] == 5

    def test_warehouse_required(self, authenticated_client):
        resp = authenticated_client.get(reverse('api-v1:sales:sale-available-products'))
        assert resp.status_code == 400
