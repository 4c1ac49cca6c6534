"""
User endpoints.
"""

from fastapi import APIRouter, HTTPException, status

from daxstore.api.deps import CallerId, DbSession
from daxstore.exceptions import NotFound
from daxstore.kernel.identity.identity_service import IdentityService
from daxstore.schemas.user import UserCreate, UserResponse

router = APIRouter()


async def _require_admin(identity: IdentityService, caller_id: str) -> None:
    caller = await identity.get_user(caller_id)
    if caller is None or not caller.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(data: UserCreate, caller_id: CallerId, db: DbSession):
    """Create a user. Admin only."""
    identity = IdentityService(db)
    await _require_admin(identity, caller_id)
    try:
        user = await identity.create_user(data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, caller_id: CallerId, db: DbSession):
    """Get a user profile."""
    user = await IdentityService(db).get_user(user_id)
    if user is None:
        raise NotFound("user", user_id)
    return UserResponse.model_validate(user)
