"""
Schema migration runner.

Migrations are SQL files named ``NNN_description.sql``. Each pending file is
applied once, in ascending version order, and recorded in
``schema_migrations``. Scripts use create-if-absent statements, so a retry
after a crash between execution and recording is a no-op rather than an
error.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Set

from sqlalchemy import inspect, insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from daxstore.exceptions import MigrationFailed
from daxstore.kernel.models.base import utcnow
from daxstore.kernel.models.migration import MigrationRecord
from daxstore.logging_config import get_logger

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "sql"
TRACKING_TABLE = MigrationRecord.__tablename__

_FILENAME = re.compile(r"^(\d{3})_([A-Za-z0-9_]+)\.sql$")


class MigrationState(str, Enum):
    PENDING = "pending"
    APPLYING = "applying"
    APPLIED = "applied"
    FAILED = "failed"


@dataclass
class Migration:
    """One numbered migration script."""

    version: int
    description: str
    path: Path
    state: MigrationState = MigrationState.PENDING

    def statements(self) -> List[str]:
        return split_statements(self.path.read_text(encoding="utf-8"))


@dataclass
class MigrationReport:
    """Outcome of one ``MigrationRunner.run`` call."""

    applied: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    statements_executed: int = 0

    @property
    def current_version(self) -> Optional[int]:
        versions = self.applied + self.skipped
        return max(versions) if versions else None


def split_statements(sql: str) -> List[str]:
    """
    Split a SQL script into individual statements.

    Drops ``--`` and ``/* */`` comments and splits on semicolons that are
    not inside quoted strings. Empty statements are discarded.
    """
    statements: List[str] = []
    current: List[str] = []
    i = 0
    n = len(sql)
    quote: Optional[str] = None

    while i < n:
        ch = sql[i]
        if quote:
            current.append(ch)
            if ch == quote:
                # Doubled quote is an escaped quote
                if i + 1 < n and sql[i + 1] == quote:
                    current.append(sql[i + 1])
                    i += 1
                else:
                    quote = None
        elif ch in ("'", '"'):
            quote = ch
            current.append(ch)
        elif sql.startswith("--", i):
            newline = sql.find("\n", i)
            i = n if newline == -1 else newline
            continue
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        elif ch == ";":
            statement = "".join(current).strip()
            if statement:
                statements.append(statement)
            current = []
        else:
            current.append(ch)
        i += 1

    tail = "".join(current).strip()
    if tail:
        statements.append(tail)
    return statements


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> List[Migration]:
    """
    Find migration scripts in a directory, ordered by version.

    Files that do not follow the ``NNN_description.sql`` pattern are ignored.

    Raises:
        MigrationFailed: two files share a version number
    """
    found = {}
    for path in sorted(directory.glob("*.sql")):
        match = _FILENAME.match(path.name)
        if not match:
            logger.warning("Ignoring migration file with unexpected name: %s", path.name)
            continue
        version = int(match.group(1))
        if version in found:
            raise MigrationFailed(
                version,
                f"duplicate version in {found[version].path.name} and {path.name}",
            )
        found[version] = Migration(
            version=version,
            description=match.group(2).replace("_", " "),
            path=path,
        )
    return [found[v] for v in sorted(found)]


class MigrationRunner:
    """
    Applies pending migrations against an engine.

    Usage:
        runner = MigrationRunner(engine)
        report = await runner.run()
    """

    def __init__(self, engine: AsyncEngine, directory: Path = MIGRATIONS_DIR):
        self.engine = engine
        self.directory = directory

    async def applied_versions(self) -> Set[int]:
        """Versions recorded as applied; empty when the tracking table is absent."""
        async with self.engine.connect() as conn:
            exists = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).has_table(TRACKING_TABLE)
            )
            if not exists:
                return set()
            result = await conn.execute(select(MigrationRecord.version))
            return set(result.scalars().all())

    async def run(self) -> MigrationReport:
        """
        Apply every pending migration in ascending order.

        Returns:
            Report of applied and skipped versions

        Raises:
            MigrationFailed: a script failed, or a pending version is lower
                than one already applied
        """
        try:
            migrations = discover_migrations(self.directory)
            applied = await self.applied_versions()
        except SQLAlchemyError as exc:
            raise MigrationFailed(None, f"could not read migration state: {exc}") from exc

        highest = max(applied, default=-1)
        report = MigrationReport()

        for migration in migrations:
            if migration.version in applied:
                migration.state = MigrationState.APPLIED
                report.skipped.append(migration.version)
                continue
            if migration.version < highest:
                migration.state = MigrationState.FAILED
                raise MigrationFailed(
                    migration.version,
                    f"out of order; version {highest:03d} is already applied",
                )
            report.statements_executed += await self._apply(migration)
            report.applied.append(migration.version)
            highest = migration.version

        if report.applied:
            logger.info(
                "Schema migrated",
                extra={"applied": report.applied, "version": report.current_version},
            )
        else:
            logger.debug("Schema up to date at version %s", report.current_version)
        return report

    async def _apply(self, migration: Migration) -> int:
        migration.state = MigrationState.APPLYING
        logger.info("Applying migration %03d: %s", migration.version, migration.description)
        try:
            statements = migration.statements()
            async with self.engine.begin() as conn:
                for statement in statements:
                    await conn.exec_driver_sql(statement)
                await conn.execute(
                    insert(MigrationRecord).values(
                        version=migration.version,
                        description=migration.description,
                        applied_at=utcnow(),
                    )
                )
        except (OSError, ValueError, SQLAlchemyError) as exc:
            migration.state = MigrationState.FAILED
            logger.error(
                "Migration %03d failed", migration.version, exc_info=True,
            )
            raise MigrationFailed(migration.version, str(exc)) from exc

        migration.state = MigrationState.APPLIED
        return len(statements)

    async def history(self) -> List[MigrationRecord]:
        """Recorded migrations ordered by version."""
        if not await self.applied_versions():
            return []
        async with AsyncSession(self.engine, expire_on_commit=False) as session:
            result = await session.execute(
                select(MigrationRecord).order_by(MigrationRecord.version)
            )
            return list(result.scalars().all())
