"""
Record store - permission-checked CRUD over every resource kind.
"""

from daxstore.kernel.store.record_store import RecordStore

__all__ = [
    "RecordStore",
]
