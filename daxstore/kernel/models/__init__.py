"""
Kernel Data Models

SQLAlchemy models mapped onto the tables created by the migration scripts.
"""

from daxstore.kernel.models.base import Base, TimestampMixin, generate_id, utcnow
from daxstore.kernel.models.user import User, UserRole
from daxstore.kernel.models.permission import ACLEntry, Permission
from daxstore.kernel.models.event_log import ActivityLogEntry
from daxstore.kernel.models.migration import MigrationRecord
from daxstore.kernel.models.resource import (
    AgentConfig,
    CanvasNode,
    Document,
    INDEXED_COLUMNS,
    PreferencesRecord,
    RDFEntity,
    RDFLink,
    RESOURCE_MODELS,
    ResourceKind,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_id",
    "utcnow",
    # User
    "User",
    "UserRole",
    # Access control
    "ACLEntry",
    "Permission",
    # Activity log
    "ActivityLogEntry",
    # Migrations
    "MigrationRecord",
    # Resources
    "ResourceKind",
    "CanvasNode",
    "RDFEntity",
    "RDFLink",
    "Document",
    "AgentConfig",
    "PreferencesRecord",
    "RESOURCE_MODELS",
    "INDEXED_COLUMNS",
]
