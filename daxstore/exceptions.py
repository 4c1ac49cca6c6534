"""
Error taxonomy for the store.

Every error is raised to the immediate caller; nothing here is retried
internally.
"""

from typing import Optional


class StoreError(Exception):
    """Base class for all store errors."""


class PermissionDenied(StoreError):
    """Caller lacks the required permission on a resource."""

    def __init__(self, user_id: str, resource_type: str, resource_id: str, permission: str):
        self.user_id = user_id
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.permission = permission
        super().__init__(
            f"User {user_id!r} lacks {permission!r} on {resource_type}:{resource_id}"
        )


class NotFound(StoreError):
    """Resource (or user) id has no backing row."""

    def __init__(self, resource_type: str, resource_id: str):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(f"{resource_type}:{resource_id} not found")


class MalformedResource(StoreError):
    """Caller-supplied kind or payload failed shape validation."""

    def __init__(self, message: str, errors: Optional[list] = None):
        self.errors = errors or []
        super().__init__(message)


class MigrationFailed(StoreError):
    """A schema migration could not be applied. Fatal for the store."""

    def __init__(self, version: Optional[int], message: str):
        self.version = version
        prefix = f"Migration {version:03d}" if version is not None else "Migration"
        super().__init__(f"{prefix} failed: {message}")


class StoreNotReady(StoreError):
    """An operation was requested before initialize() completed."""


class AuditWriteFailed(StoreError):
    """The activity log row could not be written.

    The mutation it accompanies has already been committed.
    """

    def __init__(self, action: str, resource_id: Optional[str]):
        self.action = action
        self.resource_id = resource_id
        super().__init__(
            f"Audit entry {action!r} for {resource_id!r} was not written; "
            "the primary change is committed"
        )
