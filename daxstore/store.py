"""
Store lifecycle: new -> initialize (migrate) -> ready -> close.

``DataStore`` owns the engine and hands out sessions only once migrations
have completed. Callers construct it explicitly and pass it along; there is
no process-wide instance.
"""

import asyncio
from contextlib import asynccontextmanager
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from daxstore.config import Settings, get_settings
from daxstore.database import create_engine, create_session_maker
from daxstore.exceptions import MigrationFailed, StoreNotReady
from daxstore.kernel.identity.identity_service import IdentityService
from daxstore.kernel.migrations.runner import MIGRATIONS_DIR, MigrationReport, MigrationRunner
from daxstore.logging_config import get_logger

logger = get_logger(__name__)


class StoreState(str, Enum):
    NEW = "new"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class DataStore:
    """
    The permissioned record store as one explicitly constructed object.

    Usage:
        store = DataStore(settings)
        await store.initialize()
        async with store.session() as session:
            records = RecordStore(session)
            ...
        await store.close()
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        migrations_dir: Path = MIGRATIONS_DIR,
    ):
        self.settings = settings or get_settings()
        self.engine = create_engine(self.settings)
        self._session_maker = create_session_maker(self.engine)
        self._migrations_dir = migrations_dir
        self._failure: Optional[MigrationFailed] = None
        self.state = StoreState.NEW
        self.migration_report: Optional[MigrationReport] = None
        self._init_lock = asyncio.Lock()

    @property
    def migration_runner(self) -> MigrationRunner:
        return MigrationRunner(self.engine, self._migrations_dir)

    async def initialize(self) -> "DataStore":
        """
        Run pending migrations and create the default admin.

        Concurrent callers are serialized; later ones see the first result.

        Raises:
            MigrationFailed: the schema could not be brought up to date; the
                store stays unusable afterwards
            StoreNotReady: the store was already closed
        """
        async with self._init_lock:
            if self.state is StoreState.READY:
                return self
            if self.state is StoreState.CLOSED:
                raise StoreNotReady("Store is closed")
            if self.state is StoreState.FAILED and self._failure is not None:
                raise self._failure

            self.state = StoreState.INITIALIZING
            try:
                self.migration_report = await self.migration_runner.run()
            except MigrationFailed as exc:
                self.state = StoreState.FAILED
                self._failure = exc
                logger.critical("Store initialization aborted: %s", exc)
                raise

            async with self._session_maker() as session:
                await IdentityService(session).ensure_default_admin(self.settings)

            self.state = StoreState.READY
            logger.info(
                "Store ready",
                extra={"schema_version": self.migration_report.current_version},
            )
            return self

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Yield a database session.

        Raises:
            MigrationFailed: initialization failed earlier
            StoreNotReady: initialize() has not completed, or the store is closed
        """
        self._ensure_ready()
        async with self._session_maker() as session:
            try:
                yield session
            finally:
                await session.close()

    async def close(self) -> None:
        """Dispose of the engine. The store cannot be reopened."""
        if self.state is StoreState.CLOSED:
            return
        await self.engine.dispose()
        self.state = StoreState.CLOSED
        logger.info("Store closed")

    def _ensure_ready(self) -> None:
        if self.state is StoreState.FAILED and self._failure is not None:
            raise self._failure
        if self.state is not StoreState.READY:
            raise StoreNotReady(f"Store is {self.state.value}, not ready")

    async def __aenter__(self) -> "DataStore":
        return await self.initialize()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
