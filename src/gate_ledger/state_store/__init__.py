"""
Record Store (SQLite-based).

Durable key-value persistence for the ledger:
- Full snapshot overwritten on every ledger mutation
- Read once at startup; corrupt or missing state loads as empty
"""

from .sqlite_store import DEFAULT_LEDGER_KEY, RecordStore

__all__ = [
    "DEFAULT_LEDGER_KEY",
    "RecordStore",
]
