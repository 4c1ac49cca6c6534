"""
Search endpoint.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from daxstore.api.deps import CallerId, DbSession
from daxstore.kernel.search.search_service import SearchService
from daxstore.schemas.resources import Resource

router = APIRouter()


@router.get("", response_model=List[Resource])
async def search_resources(
    request: Request,
    caller_id: CallerId,
    db: DbSession,
    q: str = Query("", description="Substring to look for"),
    kind: Optional[List[str]] = Query(None, description="Restrict to these kinds"),
    case_sensitive: bool = False,
):
    """Search documents, canvas nodes and graph entities the caller may read."""
    settings = request.app.state.store.settings
    service = SearchService(db, max_results=settings.search_max_results)
    return await service.search(q, caller_id, kinds=kind, case_sensitive=case_sensitive)
