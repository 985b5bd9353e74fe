"""
Users — DRF Permission Classes

Role checks for stock, sales and purchasing endpoints. Reads are open
to any authenticated user; ledger writes need an operating role.

@file users/permissions.py
"""

from rest_framework.permissions import SAFE_METHODS, BasePermission

WRITE_ROLES = ('ADMIN', 'MANAGER', 'STAFF')
VOID_ROLES = WRITE_ROLES


class IsStaffMember(BasePermission):
    """Safe methods: authenticated. Writes: ADMIN, MANAGER or STAFF role."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if request.method in SAFE_METHODS or user.is_superuser:
            return True
        return user.has_role(*WRITE_ROLES)


class CanVoidSale(BasePermission):
    """Voiding a completed sale: any operating role. VIEWER is refused."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.is_superuser or user.has_role(*VOID_ROLES)
