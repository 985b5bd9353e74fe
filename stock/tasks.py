"""
Stock — Celery Tasks

Periodic verification that every cached balance still equals the sum
of its movement log.

@file stock/tasks.py
"""

import logging

from celery import shared_task

logger = logging.getLogger('stockledger')


@shared_task(name='stock.verify_ledger')
def verify_ledger_task(repair=False):
    """
    Nightly task: report balances that disagree with their movement log.
    With repair=True, quantity mismatches are rebuilt from the log.
    Registered with Celery Beat (CELERY_BEAT_SCHEDULE).
    """
    from .services import ReconciliationService

    discrepancies = ReconciliationService.find_discrepancies()
    repaired = 0
    if repair:
        for d in discrepancies:
            if d.quantity_mismatch:
                ReconciliationService.rebuild_balance(
                    product_id=d.product_id, warehouse_id=d.warehouse_id,
                )
                repaired += 1

    logger.info(
        'verify_ledger_task completed: %d discrepancies, %d repaired.',
        len(discrepancies), repaired,
    )
    return {
        'discrepancy_count': len(discrepancies),
        'repaired_count': repaired,
        'chain_breaks': [d.chain_break_id for d in discrepancies if d.chain_break_id is not None],
    }
