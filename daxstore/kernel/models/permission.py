"""
Access control list model.
"""

from enum import Enum
from typing import List

from sqlalchemy import ForeignKey, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from daxstore.kernel.models.base import Base, TimestampMixin


class Permission(str, Enum):
    """Wire-level permission values stored in ACL rows."""
    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    SHARE = "share"


class ACLEntry(Base, TimestampMixin):
    """
    Per-resource, per-user permission grant.

    Unique per (resource_id, resource_type, user_id); replaced wholesale on
    update. Grants are additive on top of ownership and the admin role.
    """

    __tablename__ = "acl"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    resource_id: Mapped[str] = mapped_column(String, nullable=False)
    resource_type: Mapped[str] = mapped_column(String, nullable=False)
    user_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    permissions: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    __table_args__ = (
        UniqueConstraint("resource_id", "resource_type", "user_id"),
    )

    def grants(self, permission: Permission) -> bool:
        return permission.value in (self.permissions or [])

    def __repr__(self) -> str:
        return f"<ACLEntry {self.resource_type}:{self.resource_id} user={self.user_id} {self.permissions}>"
