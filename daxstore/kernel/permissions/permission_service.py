"""
Permission service for per-resource access control.
"""

from typing import Iterable, List, Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daxstore.exceptions import MalformedResource, NotFound, PermissionDenied
from daxstore.kernel.events import actions
from daxstore.kernel.events.activity_log import ActivityLog
from daxstore.kernel.models.permission import ACLEntry, Permission
from daxstore.kernel.models.resource import RESOURCE_MODELS, ResourceKind
from daxstore.kernel.models.user import User
from daxstore.logging_config import get_logger
from daxstore.schemas.resources import parse_kind

logger = get_logger(__name__)


def parse_permissions(permissions: Iterable[Union[str, Permission]]) -> List[str]:
    """
    Normalize a permission list to enum order without duplicates.

    Raises:
        MalformedResource: a value is outside read/write/delete/share
    """
    requested = set()
    for value in permissions:
        try:
            requested.add(Permission(value))
        except ValueError:
            allowed = ", ".join(p.value for p in Permission)
            raise MalformedResource(f"Unknown permission {value!r}; expected one of: {allowed}")
    return [p.value for p in Permission if p in requested]


class PermissionService:
    """
    Service for checking and managing resource permissions.

    Permission sources, evaluated in this order:
    1. Admin role - every permission on every resource
    2. Resource owner - every permission on their resource
    3. ACL entry for (resource, user) containing the permission

    The first two are unconditional, so an ACL row can only add access,
    never take it away from an owner or an admin.
    """

    def __init__(self, session: AsyncSession, activity: Optional[ActivityLog] = None):
        self.session = session
        self.activity = activity or ActivityLog(session)

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_owner_id(self, kind: ResourceKind, resource_id: str) -> Optional[str]:
        """Owning user of a resource, or None when it does not exist."""
        model = RESOURCE_MODELS[kind]
        result = await self.session.execute(
            select(model.user_id).where(model.id == resource_id)
        )
        return result.scalar_one_or_none()

    async def check_permission(
        self,
        user_id: str,
        resource_type: Union[str, ResourceKind],
        resource_id: str,
        permission: Union[str, Permission],
    ) -> bool:
        """
        Check if a user holds a permission on a resource.

        Args:
            user_id: The user to check
            resource_type: Resource kind
            resource_id: The resource ID
            permission: One of read/write/delete/share

        Returns:
            True if the user holds the permission
        """
        kind = parse_kind(resource_type)
        perm = Permission(parse_permissions([permission])[0])
        user = await self.get_user(user_id)
        owner_id = await self.get_owner_id(kind, resource_id)
        return await self.resolve(user_id, user, owner_id, kind, resource_id, perm)

    async def resolve(
        self,
        user_id: str,
        user: Optional[User],
        owner_id: Optional[str],
        kind: ResourceKind,
        resource_id: str,
        permission: Permission,
    ) -> bool:
        """Ordered decision for callers that already loaded user and owner."""
        if user is not None and user.is_admin:
            return True

        if owner_id is not None and owner_id == user_id:
            return True

        entry = await self._get_entry(resource_id, kind, user_id)
        allowed = entry is not None and entry.grants(permission)
        if not allowed:
            logger.debug(
                "Permission denied",
                extra={
                    "user_id": user_id,
                    "resource_type": kind.value,
                    "resource_id": resource_id,
                    "permission": permission.value,
                },
            )
        return allowed

    async def require(
        self,
        user_id: str,
        user: Optional[User],
        owner_id: Optional[str],
        kind: ResourceKind,
        resource_id: str,
        permission: Permission,
    ) -> None:
        """Like ``resolve`` but raises PermissionDenied instead of returning False."""
        if not await self.resolve(user_id, user, owner_id, kind, resource_id, permission):
            raise PermissionDenied(user_id, kind.value, resource_id, permission.value)

    async def set_permissions(
        self,
        resource_id: str,
        resource_type: Union[str, ResourceKind],
        user_id: str,
        permissions: Iterable[Union[str, Permission]],
        granted_by: str,
    ) -> ACLEntry:
        """
        Replace a user's permissions on a resource.

        Args:
            resource_id: The resource ID
            resource_type: Resource kind
            user_id: User receiving the permissions
            permissions: The complete new permission set (may be empty)
            granted_by: Acting user; must hold ``share`` on the resource

        Returns:
            The stored ACLEntry

        Raises:
            MalformedResource: unknown kind or permission
            NotFound: resource or grantee does not exist
            PermissionDenied: granted_by lacks ``share``
        """
        kind = parse_kind(resource_type)
        perms = parse_permissions(permissions)

        owner_id = await self.get_owner_id(kind, resource_id)
        if owner_id is None:
            raise NotFound(kind.value, resource_id)
        if await self.get_user(user_id) is None:
            raise NotFound("user", user_id)

        actor = await self.get_user(granted_by)
        await self.require(granted_by, actor, owner_id, kind, resource_id, Permission.SHARE)

        entry = await self._get_entry(resource_id, kind, user_id)
        if entry is None:
            entry = ACLEntry(
                resource_id=resource_id,
                resource_type=kind.value,
                user_id=user_id,
                permissions=perms,
            )
            self.session.add(entry)
        else:
            entry.permissions = perms

        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

        logger.info(
            "ACL updated",
            extra={
                "resource_type": kind.value,
                "resource_id": resource_id,
                "grantee": user_id,
                "permissions": perms,
            },
        )
        await self.activity.append(
            user_id=granted_by,
            action=actions.ACL_UPDATED,
            resource_type=kind.value,
            resource_id=resource_id,
            details={"user_id": user_id, "permissions": perms},
        )
        return entry

    async def get_permissions(
        self,
        resource_id: str,
        resource_type: Union[str, ResourceKind],
    ) -> List[ACLEntry]:
        """All ACL entries on a resource, ordered by user."""
        kind = parse_kind(resource_type)
        result = await self.session.execute(
            select(ACLEntry)
            .where(
                ACLEntry.resource_id == resource_id,
                ACLEntry.resource_type == kind.value,
            )
            .order_by(ACLEntry.user_id)
        )
        return list(result.scalars().all())

    async def clear_resource(self, resource_ids: Iterable[str], kind: ResourceKind) -> int:
        """
        Remove ACL rows of deleted resources.

        Runs inside the caller's transaction; the caller commits.
        """
        ids = list(resource_ids)
        if not ids:
            return 0
        result = await self.session.execute(
            delete(ACLEntry).where(
                ACLEntry.resource_type == kind.value,
                ACLEntry.resource_id.in_(ids),
            )
        )
        return result.rowcount or 0

    async def _get_entry(
        self,
        resource_id: str,
        kind: ResourceKind,
        user_id: str,
    ) -> Optional[ACLEntry]:
        result = await self.session.execute(
            select(ACLEntry).where(
                ACLEntry.resource_id == resource_id,
                ACLEntry.resource_type == kind.value,
                ACLEntry.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()
