"""
Stable Kernel Layer

The store's foundational components:
- Resource tables (one per kind, each scoped to an owning user)
- Append-only activity log (every mutation recorded)
- Identity core (users, roles, default admin)
- Permission core (ownership, admin bypass, per-resource ACLs)
- Migration runner (numbered, idempotent schema scripts)

Invariants:
- Ownership and the admin role are checked before any ACL row
- Activity log rows are never updated or deleted
- Migrations run to completion before the store serves requests
"""

from daxstore.kernel.models import (
    ACLEntry,
    ActivityLogEntry,
    MigrationRecord,
    Permission,
    ResourceKind,
    User,
    UserRole,
)

__all__ = [
    "ACLEntry",
    "ActivityLogEntry",
    "MigrationRecord",
    "Permission",
    "ResourceKind",
    "User",
    "UserRole",
]
