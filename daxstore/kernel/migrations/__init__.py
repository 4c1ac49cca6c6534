"""
Schema migrations: numbered SQL scripts plus the runner that applies them.
"""

from daxstore.kernel.migrations.runner import (
    MIGRATIONS_DIR,
    Migration,
    MigrationReport,
    MigrationRunner,
    MigrationState,
    discover_migrations,
    split_statements,
)

__all__ = [
    "MIGRATIONS_DIR",
    "Migration",
    "MigrationReport",
    "MigrationRunner",
    "MigrationState",
    "discover_migrations",
    "split_statements",
]
