"""
Store statistics endpoint.
"""

from fastapi import APIRouter, HTTPException, status

from daxstore.api.deps import CallerId, Records
from daxstore.schemas.common import StatsResponse

router = APIRouter()


@router.get("", response_model=StatsResponse)
async def get_stats(caller_id: CallerId, records: Records):
    """Row counts for users and each resource kind. Admin only."""
    caller = await records.permissions.get_user(caller_id)
    if caller is None or not caller.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return StatsResponse(**await records.stats())
