"""
Core — Shared Constants

Audit action names and paging bounds used across apps.

@file core/constants.py
"""

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_STATUS_CHANGE = 'STATUS_CHANGE'
AUDIT_ACTION_RETURN_PROCESS = 'RETURN_PROCESS'
AUDIT_ACTION_BATCH_DELETE = 'BATCH_DELETE'
AUDIT_ACTION_LOGIN = 'LOGIN'
AUDIT_ACTION_LOGOUT = 'LOGOUT'
AUDIT_ACTION_LOGIN_FAILED = 'LOGIN_FAILED'

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

# Seconds
DEFAULT_CACHE_TTL = 300
DEFAULT_STATUS_COUNT_TTL = 300

DEFAULT_CACHE_MAX_ENTRIES = 200
DEFAULT_SEARCH_CANDIDATE_LIMIT = 1000
