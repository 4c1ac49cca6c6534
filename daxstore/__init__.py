"""
DAX store: a permissioned record store with migrations and an activity log.
"""

from daxstore.exceptions import (
    AuditWriteFailed,
    MalformedResource,
    MigrationFailed,
    NotFound,
    PermissionDenied,
    StoreError,
    StoreNotReady,
)
from daxstore.kernel.identity.identity_service import IdentityService
from daxstore.kernel.events.activity_log import ActivityLog
from daxstore.kernel.permissions.permission_service import PermissionService
from daxstore.kernel.search.search_service import SearchService
from daxstore.kernel.store.record_store import RecordStore
from daxstore.store import DataStore, StoreState

__version__ = "0.1.0"

__all__ = [
    "ActivityLog",
    "AuditWriteFailed",
    "DataStore",
    "IdentityService",
    "MalformedResource",
    "MigrationFailed",
    "NotFound",
    "PermissionDenied",
    "PermissionService",
    "RecordStore",
    "SearchService",
    "StoreError",
    "StoreNotReady",
    "StoreState",
]
