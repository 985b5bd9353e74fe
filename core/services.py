"""
Core — Audit Service

Writes audit rows for ledger operations, status changes and user
record changes. Every stock movement gets one STOCK_MOVEMENT row
carrying its delta and the balance it moved.

@file core/services.py
"""

import logging
from decimal import Decimal
from typing import Any

from django.forms.models import model_to_dict

from core.constants import AUDIT_ACTION_STOCK_MOVEMENT
from core.models import AuditLog

logger = logging.getLogger('stockledger')


class AuditService:
    """Centralised audit logging for every write operation."""

    @staticmethod
    def log(
        *,
        actor,
        action: str,
        model_name: str,
        object_id: str,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> AuditLog:
        return AuditLog.objects.create(
            actor=actor,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            old_values=old_values,
            new_values=new_values,
        )

    @staticmethod
    def log_movement(movement) -> AuditLog:
        return AuditService.log(
            actor=movement.actor,
            action=AUDIT_ACTION_STOCK_MOVEMENT,
            model_name='StockMovement',
            object_id=str(movement.pk),
            new_values={
                'product_id': str(movement.product_id),
                'warehouse_id': str(movement.warehouse_id),
                'movement_type': movement.movement_type,
                'quantity_delta': movement.quantity_delta,
                'balance_before': movement.balance_before,
                'balance_after': movement.balance_after,
                'correlation_id': str(movement.correlation_id),
            },
        )

    @staticmethod
    def snapshot(instance, fields=None) -> dict[str, Any]:
        """
        Serialise a model instance to a plain dict suitable for JSON
        storage. DateTimes are ISO-formatted; UUIDs and Decimals stringified.
        """
        data = model_to_dict(instance, fields=fields)
        cleaned: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                cleaned[key] = None
            elif isinstance(value, Decimal):
                cleaned[key] = str(value)
            elif hasattr(value, 'isoformat'):
                cleaned[key] = value.isoformat()
            elif hasattr(value, 'hex'):
                cleaned[key] = str(value)
            elif hasattr(value, 'pk'):
                cleaned[key] = str(value.pk)
            elif isinstance(value, (list, tuple)):
                cleaned[key] = [str(v.pk) if hasattr(v, 'pk') else v for v in value]
            else:
                cleaned[key] = value
        return cleaned
