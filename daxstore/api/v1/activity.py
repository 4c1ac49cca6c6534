"""
Activity log endpoints.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from daxstore.api.deps import CallerId, Records
from daxstore.schemas.activity import ActivityEntryResponse

router = APIRouter()


@router.get("", response_model=List[ActivityEntryResponse])
async def recent_activity(
    request: Request,
    caller_id: CallerId,
    records: Records,
    limit: Optional[int] = Query(None, ge=1, le=1000),
):
    """The caller's most recent audited actions, newest first."""
    if limit is None:
        limit = request.app.state.store.settings.activity_default_limit
    entries = await records.activity.recent(caller_id, limit=limit)
    return [ActivityEntryResponse.model_validate(entry) for entry in entries]
