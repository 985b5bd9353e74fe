"""
Core — Django Admin Configuration

Read-only audit trail. Ledger rows show a one-line summary of what
moved (delta and balance), what changed status, or what was rebuilt.

@file core/admin.py
"""

from django.contrib import admin
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from core.models import AuditLog

ACTION_COLORS = {
    AuditLog.ActionChoices.CREATE: '#22c55e',
    AuditLog.ActionChoices.UPDATE: '#3b82f6',
    AuditLog.ActionChoices.STATUS_CHANGE: '#eab308',
    AuditLog.ActionChoices.STOCK_MOVEMENT: '#06b6d4',
    AuditLog.ActionChoices.REBUILD: '#ef4444',
}


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ('timestamp', 'action_badge', 'model_name', 'object_id', 'summary', 'actor')
    list_filter = ('action', 'model_name', 'timestamp')
    search_fields = ('object_id', 'actor__email')
    readonly_fields = (
        'id', 'actor', 'action', 'model_name', 'object_id',
        'old_values', 'new_values', 'timestamp',
    )
    date_hierarchy = 'timestamp'
    list_select_related = ('actor',)
    show_full_result_count = False
    list_per_page = 100
    ordering = ('-timestamp',)

    fieldsets = (
        (None, {'fields': ('id', 'action', 'timestamp', 'actor', 'model_name', 'object_id')}),
        (_('Values'), {'fields': ('old_values', 'new_values')}),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    @admin.display(description=_('Action'))
    def action_badge(self, obj):
        return format_html(
            '<span style="background:{}; color:#fff; padding:2px 8px; '
            'border-radius:4px; font-size:11px; font-weight:600;">{}</span>',
            ACTION_COLORS.get(obj.action, '#6b7280'), obj.get_action_display(),
        )

    @admin.display(description=_('Summary'))
    def summary(self, obj):
        new, old = obj.new_values or {}, obj.old_values or {}
        if obj.action == AuditLog.ActionChoices.STOCK_MOVEMENT:
            return (
                f'{new.get("movement_type")} {new.get("quantity_delta", 0):+d} '
                f'({new.get("balance_before")}→{new.get("balance_after")})'
            )
        if obj.action in (AuditLog.ActionChoices.STATUS_CHANGE, AuditLog.ActionChoices.REBUILD):
            field = 'status' if obj.action == AuditLog.ActionChoices.STATUS_CHANGE else 'quantity'
            return f'{field} {old.get(field)}→{new.get(field)}'
        return ''
