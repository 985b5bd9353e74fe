"""
StockLedger — Test Factories

Factory Boy factories for generating test data. Used across all test
modules. Balances and movements should normally be created through the
ledger services (see stock_up); StockBalanceFactory writes a raw row and
is meant for reconciliation tests.

@file tests/factories.py
"""

import uuid
from decimal import Decimal

import factory

from catalog.models import Product, Warehouse
from core.models import AuditLog
from purchasing.models import PurchaseOrder, PurchaseOrderLine
from stock.models import StockBalance
from users.models import User


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f'user-{n:04d}@stockledger.test')
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    role = User.RoleChoices.STAFF
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        password = extracted or 'TestPass2026!'
        self.set_password(password)
        if create:
            self.save(update_fields=['password'])


class ManagerFactory(UserFactory):
    role = User.RoleChoices.MANAGER


class ViewerFactory(UserFactory):
    role = User.RoleChoices.VIEWER


class SuperuserFactory(UserFactory):
    role = User.RoleChoices.ADMIN
    is_staff = True
    is_superuser = True


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class ProductFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Product

    sku = factory.Sequence(lambda n: f'SKU-{n:05d}')
    name = factory.Sequence(lambda n: f'Product {n}')
    barcode = factory.Sequence(lambda n: f'590{n:010d}')
    unit = 'pcs'
    reorder_point = 5
    min_stock_level = 2
    max_stock_level = 50
    cost_price = factory.LazyFunction(lambda: Decimal('4.00'))
    unit_price = factory.LazyFunction(lambda: Decimal('10.00'))
    is_active = True


class WarehouseFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Warehouse

    code = factory.Sequence(lambda n: f'W{n}')
    name = factory.Sequence(lambda n: f'Warehouse {n}')
    address = factory.Faker('address')
    is_active = True


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------

class StockBalanceFactory(factory.django.DjangoModelFactory):
    """Raw balance row with no movements behind it."""

    class Meta:
        model = StockBalance

    product = factory.SubFactory(ProductFactory)
    warehouse = factory.SubFactory(WarehouseFactory)
    quantity = 0
    reserved_quantity = 0


def stock_up(product, warehouse, quantity, actor=None):
    """Put `quantity` units on hand through a ledger adjustment."""
    from stock.services import StockLedgerService

    return StockLedgerService.adjust(
        product_id=product.pk,
        warehouse_id=warehouse.pk,
        quantity_delta=quantity,
        reason='opening stock',
        actor=actor,
    )


# ---------------------------------------------------------------------------
# Purchasing
# ---------------------------------------------------------------------------

class PurchaseOrderFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PurchaseOrder

    supplier_name = factory.Faker('company')
    warehouse = factory.SubFactory(WarehouseFactory)
    status = PurchaseOrder.StatusChoices.ORDERED


class PurchaseOrderLineFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PurchaseOrderLine

    order = factory.SubFactory(PurchaseOrderFactory)
    product = factory.SubFactory(ProductFactory)
    ordered_quantity = 10
    received_quantity = 0
    unit_price = factory.LazyFunction(lambda: Decimal('4.00'))


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------

class AuditLogFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = AuditLog

    actor = factory.SubFactory(UserFactory)
    action = AuditLog.ActionChoices.CREATE
    model_name = 'Product'
    object_id = factory.LazyFunction(lambda: str(uuid.uuid4()))
