"""
Tests — Purchasing API endpoints (order listing, line and order receipt).

@file purchasing/tests/test_views.py
"""

import pytest
from django.urls import reverse

from purchasing.models import PurchaseOrder
from stock.models import StockBalance
from tests.factories import PurchaseOrderFactory, PurchaseOrderLineFactory


pytestmark = pytest.mark.django_db


class TestPurchaseOrderViewSet:

    def test_requires_auth(self, api_client):
        resp = api_client.get(reverse('api-v1:purchasing:order-list'))
        assert resp.status_code == 401

    def test_list_filtered_by_status(self, authenticated_client):
        ordered = PurchaseOrderFactory()
        PurchaseOrderFactory(status=PurchaseOrder.StatusChoices.DRAFT)
        resp = authenticated_client.get(reverse('api-v1:purchasing:order-list'), {'status': 'ORDERED'})
        assert resp.status_code == 200
        assert [row['order_number'] for row in resp.data['results']] == [ordered.order_number]

    def test_receive_order(self, authenticated_client):
        order = PurchaseOrderFactory()
        first = PurchaseOrderLineFactory(order=order, ordered_quantity=2)
        second = PurchaseOrderLineFactory(order=order, ordered_quantity=3)

        resp = authenticated_client.post(
            reverse('api-v1:purchasing:order-receive', args=[order.pk]),
            {'lines': [
                {'line_id': str(first.pk), 'quantity': 2},
                {'line_id': str(second.pk), 'quantity': 3},
            ]},
            format='json',
        )
        assert resp.status_code == 200
        data = resp.data['data']
        assert data['order_completed'] is True
        assert data['order']['status'] == 'RECEIVED'
        assert len(data['ledger']['movements']) == 2

    def test_receive_order_without_lines_is_400(self, authenticated_client):
        order = PurchaseOrderFactory()
        resp = authenticated_client.post(
            reverse('api-v1:purchasing:order-receive', args=[order.pk]), {'lines': []}, format='json',
        )
        assert resp.status_code == 400


class TestReceiveLineEndpoint:

    def test_partial_receipt(self, authenticated_client):
        line = PurchaseOrderLineFactory(ordered_quantity=10)
        resp = authenticated_client.post(
            reverse('api-v1:purchasing:line-receive', args=[line.pk]),
            {'received_quantity': 4, 'location': 'A-01'},
            format='json',
        )
        assert resp.status_code == 200
        data = resp.data['data']
        assert data['order_completed'] is False
        assert data['order']['lines'][0]['received_quantity'] == 4
        balance = StockBalance.objects.get(product=line.product, warehouse=line.order.warehouse)
        assert balance.quantity == 4
        assert balance.location == 'A-01'

    def test_over_receipt_is_409(self, authenticated_client):
        line = PurchaseOrderLineFactory(ordered_quantity=2)
        resp = authenticated_client.post(
            reverse('api-v1:purchasing:line-receive', args=[line.pk]),
            {'received_quantity': 3},
            format='json',
        )
        assert resp.status_code == 409
        assert resp.data['code'] == 'OVER_RECEIPT'

    def test_cancelled_order_is_400(self, authenticated_client):
        line = PurchaseOrderLineFactory(order__status=PurchaseOrder.StatusChoices.CANCELLED)
        resp = authenticated_client.post(
            reverse('api-v1:purchasing:line-receive', args=[line.pk]),
            {'received_quantity': 1},
            format='json',
        )
        assert resp.status_code == 400
        assert resp.data['code'] == 'INVALID_STATE_TRANSITION'

    def test_viewer_cannot_receive(self, viewer_client):
        line = PurchaseOrderLineFactory()
        resp = viewer_client.post(
            reverse('api-v1:purchasing:line-receive', args=[line.pk]),
            {'received_quantity': 1},
            format='json',
        )
        assert resp.status_code == 403

    def test_retrieve_line(self, authenticated_client):
        line = PurchaseOrderLineFactory(ordered_quantity=7, received_quantity=2)
        resp = authenticated_client.get(reverse('api-v1:purchasing:line-detail', args=[line.pk]))
        assert resp.status_code == 200
        assert resp.data['remaining_quantity'] == 5
