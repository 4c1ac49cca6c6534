"""
Permission Core - per-resource access control.
"""

from daxstore.kernel.permissions.permission_service import (
    PermissionService,
    parse_permissions,
)

__all__ = [
    "PermissionService",
    "parse_permissions",
]
