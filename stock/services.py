"""
Stock — Service Layer

Transaction Coordinator (adjust, transfer) plus the read side
(availability, low-stock evaluation) and ledger reconciliation.

Every write takes the per-key ledger lock(s) first, then reads the
current balance, validates, and writes movement + balance in one
transaction. StockMovement is INSERT ONLY.

@file stock/services.py
"""

import logging
import uuid
from dataclasses import dataclass, field
from uuid import UUID

from django.conf import settings
from django.db.models import F, Q, Sum
from django.utils.module_loading import import_string

from catalog.services import CatalogService, Thresholds, as_uuid
from core.constants import AUDIT_ACTION_REBUILD
from core.exceptions import InsufficientStockError, InvalidQuantityError, InvalidWarehouseError
from core.services import AuditService

from .locking import balance_key, ledger_lock
from .models import StockBalance, StockMovement

logger = logging.getLogger('stockledger')


@dataclass(frozen=True)
class LedgerResult:
    """Outcome of a committed ledger operation."""

    movements: tuple[StockMovement, ...]
    balances: tuple[StockBalance, ...]
    correlation_id: UUID
    low_stock: tuple['LowStockAlert', ...] = ()

    @property
    def movement_ids(self) -> list[int]:
        return [m.pk for m in self.movements]


def _require_positive(quantity, label: str = 'Quantity') -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(detail=f'{label} must be a positive integer, got {quantity!r}.')
    return quantity


def post_movement(
    *,
    product_id: UUID,
    warehouse_id: UUID,
    movement_type: str,
    quantity_delta: int,
    correlation_id: UUID,
    actor=None,
    reason: str = '',
    notes: str = '',
    reference_type: str = '',
    reference_id: UUID | None = None,
    location: str | None = None,
) -> tuple[StockMovement, StockBalance]:
    """
    Append one movement and move the cached balance with it.

    The caller must hold balance_key(product_id, warehouse_id) through
    ledger_lock(); this is the only place balances are written.
    Raises InsufficientStockError if the new quantity would be negative
    or would fall below the reserved quantity.
    """
    balance = StockBalance.objects.filter(product_id=product_id, warehouse_id=warehouse_id).first()
    before = balance.quantity if balance else 0
    reserved = balance.reserved_quantity if balance else 0
    after = before + quantity_delta

    if after < 0:
        raise InsufficientStockError(
            detail=f'Insufficient stock: balance={before}, requested={-quantity_delta}.',
        )
    if after < reserved:
        raise InsufficientStockError(
            detail=f'Insufficient stock: {reserved} of {before} units are reserved.',
        )

    if balance is None:
        balance = StockBalance.objects.create(
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=after,
            location=location or '',
        )
    else:
        balance.quantity = after
        update_fields = ['quantity', 'updated_at']
        if location is not None:
            balance.location = location
            update_fields.append('location')
        balance.save(update_fields=update_fields)

    movement = StockMovement.objects.create(
        product_id=product_id,
        warehouse_id=warehouse_id,
        movement_type=movement_type,
        quantity_delta=quantity_delta,
        balance_before=before,
        balance_after=after,
        reason=reason or '',
        notes=notes or '',
        correlation_id=correlation_id,
        reference_type=reference_type or '',
        reference_id=reference_id,
        actor=actor,
    )

    AuditService.log_movement(movement)
    return movement, balance


class StockLedgerService:
    """Manual adjustments and inter-warehouse transfers."""

    @staticmethod
    def adjust(
        *,
        product_id,
        warehouse_id,
        quantity_delta: int,
        reason: str,
        notes: str = '',
        actor=None,
        location: str | None = None,
        timeout: float | None = None,
    ) -> LedgerResult:
        """
        Apply a signed delta (positive adds, negative removes).

        Raises InvalidQuantityError on a zero delta and InsufficientStockError
        if the result would be negative; the balance is left untouched.
        """
        if isinstance(quantity_delta, bool) or not isinstance(quantity_delta, int) or quantity_delta == 0:
            raise InvalidQuantityError(detail='Adjustment delta must be a non-zero integer.')
        product_id = as_uuid(product_id, label='Product')
        warehouse_id = as_uuid(warehouse_id, label='Warehouse')
        correlation_id = uuid.uuid4()

        with ledger_lock(balance_key(product_id, warehouse_id), timeout=timeout):
            CatalogService.get_product(product_id)
            CatalogService.get_warehouse(warehouse_id)
            movement, balance = post_movement(
                product_id=product_id,
                warehouse_id=warehouse_id,
                movement_type=StockMovement.MovementType.ADJUSTMENT,
                quantity_delta=quantity_delta,
                correlation_id=correlation_id,
                actor=actor,
                reason=reason,
                notes=notes,
                location=location,
            )

        logger.info(
            'Adjustment %s delta=%+d product=%s warehouse=%s balance=%s→%s',
            movement.pk, quantity_delta, product_id, warehouse_id,
            movement.balance_before, movement.balance_after,
        )
        return LedgerResult(
            movements=(movement,),
            balances=(balance,),
            correlation_id=correlation_id,
            low_stock=LowStockService().check_after_write([(product_id, warehouse_id)]),
        )

    @staticmethod
    def transfer(
        *,
        product_id,
        from_warehouse_id,
        to_warehouse_id,
        quantity: int,
        reason: str = '',
        notes: str = '',
        actor=None,
        location: str | None = None,
        timeout: float | None = None,
    ) -> LedgerResult:
        """
        Atomic dual movement: TRANSFER_OUT from source, TRANSFER_IN to
        destination, sharing one correlation id. Rolls back both if any
        step fails.
        location, if given, becomes the destination row's bin label.
        """
        _require_positive(quantity)
        product_id = as_uuid(product_id, label='Product')
        from_warehouse_id = as_uuid(from_warehouse_id, label='Warehouse')
        to_warehouse_id = as_uuid(to_warehouse_id, label='Warehouse')
        if from_warehouse_id == to_warehouse_id:
            raise InvalidWarehouseError(detail='Source and destination warehouse must differ.')
        correlation_id = uuid.uuid4()

        with ledger_lock(
            balance_key(product_id, from_warehouse_id),
            balance_key(product_id, to_warehouse_id),
            timeout=timeout,
        ):
            CatalogService.get_product(product_id)
            source = CatalogService.get_active_warehouse(from_warehouse_id)
            destination = CatalogService.get_active_warehouse(to_warehouse_id)

            available = AvailabilityService.available_at(product_id, from_warehouse_id)
            if available < quantity:
                raise InsufficientStockError(
                    detail=f'Insufficient stock at {source.code}: available={available}, requested={quantity}.',
                )

            common = dict(
                product_id=product_id,
                correlation_id=correlation_id,
                actor=actor,
                reason=reason,
                notes=notes,
            )
            out_movement, out_balance = post_movement(
                warehouse_id=from_warehouse_id,
                movement_type=StockMovement.MovementType.TRANSFER_OUT,
                quantity_delta=-quantity,
                **common,
            )
            in_movement, in_balance = post_movement(
                warehouse_id=to_warehouse_id,
                movement_type=StockMovement.MovementType.TRANSFER_IN,
                quantity_delta=quantity,
                location=location,
                **common,
            )

        logger.info(
            'Transfer %s qty=%s product=%s %s→%s (OUT %s IN %s)',
            correlation_id, quantity, product_id, source.code, destination.code,
            out_movement.pk, in_movement.pk,
        )
        return LedgerResult(
            movements=(out_movement, in_movement),
            balances=(out_balance, in_balance),
            correlation_id=correlation_id,
            low_stock=LowStockService().check_after_write(
                [(product_id, from_warehouse_id), (product_id, to_warehouse_id)],
            ),
        )


class AvailabilityService:
    """
    Available-to-sell = on-hand minus reserved.

    Point-in-time reads without ledger locks; advisory only. The
    authoritative check happens inside the write that deducts stock.
    """

    @staticmethod
    def available_at(product_id: UUID, warehouse_id: UUID) -> int:
        row = (
            StockBalance.objects
            .filter(product_id=product_id, warehouse_id=warehouse_id)
            .values('quantity', 'reserved_quantity')
            .first()
        )
        if row is None:
            return 0
        return row['quantity'] - row['reserved_quantity']

    @staticmethod
    def available_quantity(product_id, warehouse_id) -> int:
        product = CatalogService.get_product(product_id)
        warehouse = CatalogService.get_warehouse(warehouse_id)
        return AvailabilityService.available_at(product.pk, warehouse.pk)

    @staticmethod
    def list_available_products(warehouse_id, search: str = '', limit: int | None = None):
        """
        Active products with stock on hand at the warehouse, for the POS
        product picker. Each balance carries `available` (annotated).
        """
        warehouse = CatalogService.get_warehouse(warehouse_id)
        qs = (
            StockBalance.objects
            .filter(warehouse=warehouse, product__is_active=True, quantity__gt=0)
            .select_related('product')
            .annotate(available=F('quantity') - F('reserved_quantity'))
        )
        if search:
            qs = qs.filter(
                Q(product__name__icontains=search)
                | Q(product__sku__icontains=search)
                | Q(product__barcode__icontains=search)
            )
        limit = limit or settings.STOCK_AVAILABLE_PRODUCTS_LIMIT
        return list(qs.order_by('product__name')[:limit])


# ---------------------------------------------------------------------------
# Low stock
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LowStockAlert:
    product_id: UUID
    warehouse_id: UUID
    quantity: int
    reorder_point: int
    min_stock_level: int
    max_stock_level: int
    is_low_stock: bool
    is_critical: bool
    suggested_order_quantity: int


def evaluate_stock_level(quantity: int, thresholds: Thresholds) -> tuple[bool, bool, int]:
    """Return (is_low_stock, is_critical, suggested_order_quantity)."""
    is_low = quantity <= thresholds.reorder_point
    is_critical = quantity <= thresholds.min_stock_level
    suggested = max(thresholds.max_stock_level - quantity, 0)
    return is_low, is_critical, suggested


class LowStockService:
    """
    Computes low-stock alerts on read; nothing is persisted.

    Thresholds come from the provider named by STOCK_THRESHOLD_PROVIDER
    unless one is passed in.
    """

    def __init__(self, provider=None):
        if provider is None:
            provider = import_string(settings.STOCK_THRESHOLD_PROVIDER)()
        self.provider = provider

    def _alert(self, product_id: UUID, warehouse_id: UUID, quantity: int, thresholds: Thresholds) -> LowStockAlert:
        is_low, is_critical, suggested = evaluate_stock_level(quantity, thresholds)
        return LowStockAlert(
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=quantity,
            reorder_point=thresholds.reorder_point,
            min_stock_level=thresholds.min_stock_level,
            max_stock_level=thresholds.max_stock_level,
            is_low_stock=is_low,
            is_critical=is_critical,
            suggested_order_quantity=suggested,
        )

    def evaluate(self, product_id, warehouse_id) -> LowStockAlert:
        product_id = as_uuid(product_id, label='Product')
        warehouse = CatalogService.get_warehouse(warehouse_id)
        thresholds = self.provider.get_thresholds(product_id)
        quantity = (
            StockBalance.objects
            .filter(product_id=product_id, warehouse=warehouse)
            .values_list('quantity', flat=True)
            .first()
        ) or 0
        return self._alert(product_id, warehouse.pk, quantity, thresholds)

    def check_after_write(self, pairs) -> tuple[LowStockAlert, ...]:
        """
        Evaluate each (product_id, warehouse_id) a committed write touched.

        Returns the low ones; each is logged at WARNING (critical when at
        or below min_stock_level).
        """
        alerts = []
        for product_id, warehouse_id in dict.fromkeys(pairs):
            alert = self.evaluate(product_id, warehouse_id)
            if not alert.is_low_stock:
                continue
            logger.warning(
                '%s stock product=%s warehouse=%s quantity=%s reorder_point=%s suggested=%s',
                'Critical' if alert.is_critical else 'Low',
                product_id, warehouse_id, alert.quantity, alert.reorder_point,
                alert.suggested_order_quantity,
            )
            alerts.append(alert)
        return tuple(alerts)

    def list_alerts(self, warehouse_id=None) -> list[LowStockAlert]:
        """Low-stock alerts for every balance row of an active product."""
        qs = StockBalance.objects.filter(product__is_active=True)
        if warehouse_id is not None:
            qs = qs.filter(warehouse=CatalogService.get_warehouse(warehouse_id))

        cache: dict[UUID, Thresholds] = {}
        alerts = []
        rows = qs.order_by('quantity', 'product_id').values_list('product_id', 'warehouse_id', 'quantity')
        for product_id, wh_id, quantity in rows:
            if product_id not in cache:
                cache[product_id] = self.provider.get_thresholds(product_id)
            alert = self._alert(product_id, wh_id, quantity, cache[product_id])
            if alert.is_low_stock:
                alerts.append(alert)
        return alerts


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Discrepancy:
    product_id: UUID
    warehouse_id: UUID
    cached_quantity: int
    ledger_quantity: int
    chain_break_id: int | None = field(default=None)

    @property
    def quantity_mismatch(self) -> bool:
        return self.cached_quantity != self.ledger_quantity


def _chain_break(product_id: UUID, warehouse_id: UUID, batch_size: int) -> int | None:
    """Id of the first movement whose balance_before breaks the chain, if any."""
    previous_after = 0
    rows = (
        StockMovement.objects
        .filter(product_id=product_id, warehouse_id=warehouse_id)
        .order_by('id')
        .values_list('id', 'balance_before', 'balance_after')
    )
    for pk, before, after in rows.iterator(chunk_size=batch_size):
        if before != previous_after:
            return pk
        previous_after = after
    return None


class ReconciliationService:
    """Checks the cached balances against the movement log and repairs them."""

    @staticmethod
    def find_discrepancies(batch_size: int | None = None) -> list[Discrepancy]:
        batch_size = batch_size or settings.STOCK_LEDGER_VERIFY_BATCH_SIZE
        sums = {
            (row['product_id'], row['warehouse_id']): row['total'] or 0
            for row in StockMovement.objects.values('product_id', 'warehouse_id').annotate(total=Sum('quantity_delta'))
        }
        cached = {
            (p, w): q
            for p, w, q in StockBalance.objects.values_list('product_id', 'warehouse_id', 'quantity').iterator(
                chunk_size=batch_size,
            )
        }

        found = []
        for key in sorted(set(sums) | set(cached), key=lambda k: (str(k[0]), str(k[1]))):
            product_id, warehouse_id = key
            ledger_quantity = sums.get(key, 0)
            cached_quantity = cached.get(key, 0)
            broken = _chain_break(product_id, warehouse_id, batch_size) if key in sums else None
            if cached_quantity != ledger_quantity or broken is not None:
                found.append(Discrepancy(
                    product_id=product_id,
                    warehouse_id=warehouse_id,
                    cached_quantity=cached_quantity,
                    ledger_quantity=ledger_quantity,
                    chain_break_id=broken,
                ))

        for d in found:
            logger.warning(
                'Ledger discrepancy product=%s warehouse=%s cached=%s ledger=%s chain_break=%s',
                d.product_id, d.warehouse_id, d.cached_quantity, d.ledger_quantity, d.chain_break_id,
            )
        return found

    @staticmethod
    def rebuild_balance(*, product_id, warehouse_id, actor=None, timeout: float | None = None) -> StockBalance:
        """
        Rewrite the cached quantity from SUM(quantity_delta) under the
        key's lock. Reserved quantity is clamped to the rebuilt quantity.
        """
        product_id = as_uuid(product_id, label='Product')
        warehouse_id = as_uuid(warehouse_id, label='Warehouse')

        with ledger_lock(balance_key(product_id, warehouse_id), timeout=timeout):
            CatalogService.get_product(product_id)
            CatalogService.get_warehouse(warehouse_id)
            total = StockMovement.objects.filter(
                product_id=product_id, warehouse_id=warehouse_id,
            ).aggregate(total=Sum('quantity_delta'))['total'] or 0

            balance, _ = StockBalance.objects.get_or_create(product_id=product_id, warehouse_id=warehouse_id)
            old_values = {'quantity': balance.quantity, 'reserved_quantity': balance.reserved_quantity}
            balance.quantity = total
            balance.reserved_quantity = min(balance.reserved_quantity, total)
            balance.save(update_fields=['quantity', 'reserved_quantity', 'updated_at'])

            AuditService.log(
                actor=actor,
                action=AUDIT_ACTION_REBUILD,
                model_name='StockBalance',
                object_id=str(balance.pk),
                old_values=old_values,
                new_values={'quantity': balance.quantity, 'reserved_quantity': balance.reserved_quantity},
            )

        if old_values['quantity'] != total:
            logger.warning(
                'Rebuilt balance product=%s warehouse=%s %s→%s',
                product_id, warehouse_id, old_values['quantity'], total,
            )
        return balance
