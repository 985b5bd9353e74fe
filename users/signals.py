"""
Users — Signals

Audit logging for User model lifecycle events.

@file users/signals.py
"""

import logging

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from core.constants import AUDIT_ACTION_CREATE, AUDIT_ACTION_UPDATE
from core.services import AuditService
from users.models import User

logger = logging.getLogger('stockledger')

_pre_save_state: dict = {}

# Login bookkeeping only touches last_login; not worth an audit row.
_IGNORED_FIELDS = {'last_login', 'password', 'updated_at'}


def _audited_snapshot(instance) -> dict:
    snapshot = AuditService.snapshot(instance)
    return {k: v for k, v in snapshot.items() if k not in _IGNORED_FIELDS}


@receiver(pre_save, sender=User)
def user_pre_save(sender, instance, **kwargs):
    if instance.pk and not instance._state.adding:
        try:
            old = User.objects.get(pk=instance.pk)
            _pre_save_state[str(instance.pk)] = _audited_snapshot(old)
        except User.DoesNotExist:
            pass


@receiver(post_save, sender=User)
def user_post_save(sender, instance, created, **kwargs):
    action = AUDIT_ACTION_CREATE if created else AUDIT_ACTION_UPDATE
    old_values = _pre_save_state.pop(str(instance.pk), None)
    new_values = _audited_snapshot(instance)

    if not created and old_values == new_values:
        return

    AuditService.log(
        actor=getattr(instance, '_current_user', None),
        action=action,
        model_name='User',
        object_id=str(instance.pk),
        old_values=old_values,
        new_values=new_values,
    )
