"""
FastAPI dependencies for the store, database sessions and caller identity.
"""

from typing import Annotated, AsyncGenerator, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from daxstore.kernel.store.record_store import RecordStore
from daxstore.store import DataStore

CALLER_HEADER = "X-User-Id"


def get_store(request: Request) -> DataStore:
    """The DataStore attached to the application at startup."""
    return request.app.state.store


async def get_db(
    store: Annotated[DataStore, Depends(get_store)],
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields database sessions."""
    async with store.session() as session:
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_caller_id(
    x_user_id: Annotated[Optional[str], Header(alias=CALLER_HEADER)] = None,
) -> str:
    """Calling user id, taken from the X-User-Id header."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {CALLER_HEADER} header",
        )
    return x_user_id.strip()


CallerId = Annotated[str, Depends(get_caller_id)]


async def get_records(db: DbSession) -> RecordStore:
    return RecordStore(db)


Records = Annotated[RecordStore, Depends(get_records)]
