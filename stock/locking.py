"""
Stock — Per-key ledger locks

Every mutating operation names the (product, warehouse) keys it touches
(plus the sale or purchase order it works on) and takes one lock per key
before reading or writing anything. Keys are acquired in a single global
order, so two operations over overlapping key sets can never deadlock.

PostgreSQL: transaction-scoped advisory locks (pg_try_advisory_xact_lock),
retried with exponential backoff until the deadline; released by COMMIT
or ROLLBACK.
Other backends (SQLite in tests and local dev): a fixed pool of
threading locks, one slot per key hash, held for the lifetime of the
atomic block. Keys sharing a slot contend with each other; slots are
taken in ascending order, which keeps the acquisition order total.

@file stock/locking.py
"""

import hashlib
import logging
import threading
import time
from contextlib import ExitStack, contextmanager

from django.conf import settings
from django.db import connection, transaction

from core.exceptions import LockTimeoutError

logger = logging.getLogger('stockledger')

LockKey = tuple[str, ...]

LOCAL_LOCK_SLOTS = 1024
_local_locks = tuple(threading.Lock() for _ in range(LOCAL_LOCK_SLOTS))


def balance_key(product_id, warehouse_id) -> LockKey:
    return ('balance', str(product_id), str(warehouse_id))


def sale_key(sale_id) -> LockKey:
    return ('sale', str(sale_id))


def order_key(order_id) -> LockKey:
    return ('po', str(order_id))


def _advisory_lock_key(key: LockKey) -> int:
    """Stable bigint key for PostgreSQL advisory lock (same key = same int)."""
    raw = ':'.join(key).encode()
    h = hashlib.sha256(raw).digest()[:8]
    return int.from_bytes(h, 'big') % (2**63)


def _local_slot(key: LockKey) -> int:
    return _advisory_lock_key(key) % LOCAL_LOCK_SLOTS


def _local_lock(key: LockKey) -> threading.Lock:
    return _local_locks[_local_slot(key)]


def _resolve_timeout(timeout: float | None) -> float:
    if timeout is None:
        return float(settings.STOCK_LOCK_TIMEOUT_SECONDS)
    return max(float(timeout), 0.0)


def _acquire_local(stack: ExitStack, keys: list[LockKey], deadline: float) -> None:
    slots = {}
    for key in keys:
        slots.setdefault(_local_slot(key), key)
    for slot in sorted(slots):
        key, lock = slots[slot], _local_locks[slot]
        remaining = max(deadline - time.monotonic(), 0.0)
        if not lock.acquire(timeout=remaining):
            logger.warning('Ledger lock timeout on %s', key)
            raise LockTimeoutError(detail=f'Timed out waiting for lock on {":".join(key)}.')
        stack.callback(lock.release)


def _acquire_advisory(keys: list[LockKey], deadline: float) -> None:
    initial_delay = float(settings.STOCK_LOCK_RETRY_INITIAL_DELAY)
    max_delay = float(settings.STOCK_LOCK_RETRY_MAX_DELAY)
    with connection.cursor() as cursor:
        for key in keys:
            delay = initial_delay
            while True:
                cursor.execute('SELECT pg_try_advisory_xact_lock(%s)', [_advisory_lock_key(key)])
                if cursor.fetchone()[0]:
                    break
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.warning('Ledger lock timeout on %s', key)
                    # Raised inside the atomic block: rollback frees every
                    # advisory lock already taken.
                    raise LockTimeoutError(detail=f'Timed out waiting for lock on {":".join(key)}.')
                time.sleep(min(delay, remaining))
                delay = min(delay * 2, max_delay)


@contextmanager
def ledger_lock(*keys: LockKey, timeout: float | None = None):
    """
    Acquire every key (sorted, de-duplicated) and open one transaction.

    Yields inside transaction.atomic(); all locks are held until the
    transaction commits or rolls back. Raises LockTimeoutError (with no
    writes performed) if any key is not obtained before the deadline.
    """
    ordered = sorted(set(keys))
    deadline = time.monotonic() + _resolve_timeout(timeout)

    with ExitStack() as stack:
        if connection.vendor != 'postgresql':
            _acquire_local(stack, ordered, deadline)
        with transaction.atomic():
            if connection.vendor == 'postgresql':
                _acquire_advisory(ordered, deadline)
            yield
