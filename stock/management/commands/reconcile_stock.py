"""
Stock — Management Command: reconcile_stock

Compares every StockBalance with the sum of its movements and reports
the rows that disagree.

Usage::

    python manage.py reconcile_stock
    python manage.py reconcile_stock --repair

--repair rewrites mismatched quantities from the movement log (one
locked transaction per key). Broken balance chains are reported only.

@file stock/management/commands/reconcile_stock.py
"""

from django.core.management.base import BaseCommand

from stock.services import ReconciliationService


class Command(BaseCommand):
    help = 'Verify cached stock balances against the movement log.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--repair', action='store_true',
            help='Rebuild mismatched balances from the movement log.',
        )

    def handle(self, *args, **options):
        discrepancies = ReconciliationService.find_discrepancies()
        if not discrepancies:
            self.stdout.write(self.style.SUCCESS('Ledger consistent: no discrepancies.'))
            return

        repaired = 0
        for d in discrepancies:
            line = (
                f'  product={d.product_id} warehouse={d.warehouse_id} '
                f'cached={d.cached_quantity} ledger={d.ledger_quantity}'
            )
            if d.chain_break_id is not None:
                line += f' chain_break_at={d.chain_break_id}'
            self.stdout.write(line)

            if options['repair'] and d.quantity_mismatch:
                ReconciliationService.rebuild_balance(
                    product_id=d.product_id, warehouse_id=d.warehouse_id,
                )
                repaired += 1

        self.stdout.write(self.style.WARNING(
            f'{len(discrepancies)} discrepancies found, {repaired} repaired.'
        ))
