"""
Core — Shared Constants

@file core/constants.py
"""

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_STATUS_CHANGE = 'STATUS_CHANGE'
AUDIT_ACTION_STOCK_MOVEMENT = 'STOCK_MOVEMENT'
AUDIT_ACTION_REBUILD = 'REBUILD'

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
