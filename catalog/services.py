"""
Catalog — Service Layer

Read-only lookups the stock ledger performs against master data:
product thresholds and warehouse existence / active status.

@file catalog/services.py
"""

import uuid
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from core.exceptions import InvalidWarehouseError, ResourceNotFoundError

from .models import Product, Warehouse


def as_uuid(value, *, label: str = 'Resource') -> UUID:
    """Coerce an id to UUID; malformed ids are reported as NotFound."""
    if isinstance(value, UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise ResourceNotFoundError(detail=f'{label} {value} not found.')


@dataclass(frozen=True)
class Thresholds:
    reorder_point: int
    min_stock_level: int
    max_stock_level: int


class ThresholdProvider(Protocol):
    """Source of per-product stock thresholds (injected into LowStockService)."""

    def get_thresholds(self, product_id: UUID) -> Thresholds: ...


class ProductThresholdProvider:
    """Reads thresholds straight from catalog.Product."""

    def get_thresholds(self, product_id: UUID) -> Thresholds:
        row = (
            Product.objects.filter(pk=as_uuid(product_id, label='Product'))
            .values('reorder_point', 'min_stock_level', 'max_stock_level')
            .first()
        )
        if row is None:
            raise ResourceNotFoundError(detail=f'Product {product_id} not found.')
        return Thresholds(**row)


class CatalogService:
    """Master-data lookups used by the ledger services."""

    @staticmethod
    def get_product(product_id) -> Product:
        try:
            return Product.objects.get(pk=as_uuid(product_id, label='Product'))
        except Product.DoesNotExist:
            raise ResourceNotFoundError(detail=f'Product {product_id} not found.')

    @staticmethod
    def get_products(product_ids) -> dict[UUID, Product]:
        """Return {pk: Product} for every id; raise NotFound if any is missing."""
        wanted = {as_uuid(pk, label='Product') for pk in product_ids}
        products = {p.pk: p for p in Product.objects.filter(pk__in=wanted)}
        missing = sorted(str(pk) for pk in wanted if pk not in products)
        if missing:
            raise ResourceNotFoundError(detail=f'Product(s) not found: {", ".join(missing)}.')
        return products

    @staticmethod
    def get_warehouse(warehouse_id) -> Warehouse:
        try:
            return Warehouse.objects.get(pk=as_uuid(warehouse_id, label='Warehouse'))
        except Warehouse.DoesNotExist:
            raise ResourceNotFoundError(detail=f'Warehouse {warehouse_id} not found.')

    @staticmethod
    def get_active_warehouse(warehouse_id) -> Warehouse:
        warehouse = CatalogService.get_warehouse(warehouse_id)
        if not warehouse.is_active:
            raise InvalidWarehouseError(detail=f'Warehouse {warehouse.code} is inactive.')
        return warehouse
