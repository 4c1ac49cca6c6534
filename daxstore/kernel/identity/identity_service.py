"""
Identity service for user management operations.
"""

from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daxstore.config import Settings
from daxstore.kernel.events import actions
from daxstore.kernel.events.activity_log import ActivityLog
from daxstore.kernel.models.user import User, UserRole
from daxstore.logging_config import get_logger
from daxstore.schemas.user import UserCreate

logger = get_logger(__name__)


class IdentityService:
    """
    Service for user identity operations.

    Users are created explicitly or, for the default admin, on first
    initialization. There is no authentication; callers identify themselves
    by user id.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.activity = ActivityLog(session)

    async def create_user(self, data: UserCreate) -> User:
        """
        Create a new user.

        Args:
            data: Validated user fields

        Returns:
            The created User object

        Raises:
            ValueError: If the id, username or email is already taken
        """
        query = select(User).where(
            or_(
                User.id == data.id,
                User.username == data.username,
                User.email == data.email,
            )
        )
        result = await self.session.execute(query)
        if result.scalars().first() is not None:
            raise ValueError("User id, username or email already registered")

        user = User(
            id=data.id,
            username=data.username,
            email=data.email,
            role=data.role.value,
            permissions=sorted(set(data.permissions)),
        )
        self.session.add(user)
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

        logger.info("User created", extra={"user_id": user.id, "role": user.role})
        await self.activity.append(
            user_id=user.id,
            action=actions.USER_CREATED,
            resource_type="user",
            resource_id=user.id,
            details={"username": user.username, "role": user.role},
        )
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        """Get user by id."""
        return await self.session.get(User, user_id)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        """Get user by username."""
        result = await self.session.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def ensure_default_admin(self, settings: Settings) -> User:
        """Create the configured default admin unless it already exists."""
        existing = await self.get_user(settings.default_admin_id)
        if existing is not None:
            return existing
        logger.info("Creating default admin %r", settings.default_admin_id)
        return await self.create_user(
            UserCreate(
                id=settings.default_admin_id,
                username=settings.default_admin_username,
                email=settings.default_admin_email,
                role=UserRole.ADMIN,
                permissions=["*"],
            )
        )
