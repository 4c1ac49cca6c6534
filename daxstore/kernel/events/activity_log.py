"""
Activity log service for append-only auditing.

Entries are written after the mutation they describe has committed. A failed
audit write is logged and raised, but never rolls back that mutation.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daxstore.exceptions import AuditWriteFailed
from daxstore.kernel.models.event_log import ActivityLogEntry
from daxstore.logging_config import get_logger

logger = get_logger(__name__)


class ActivityLog:
    """
    Service for the append-only activity log.

    Usage:
        activity = ActivityLog(session)
        await activity.append(
            user_id=caller_id,
            action="document_saved",
            resource_type="document",
            resource_id=doc_id,
            details={"created": True},
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(
        self,
        user_id: str,
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> ActivityLogEntry:
        """
        Append one entry and commit it.

        The session must not hold uncommitted work of its own: callers commit
        their mutation first.

        Returns:
            The stored ActivityLogEntry

        Raises:
            AuditWriteFailed: the row could not be stored
        """
        entry = ActivityLogEntry(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=self._serialize_details(details or {}),
        )
        self.session.add(entry)
        try:
            await self.session.commit()
        except SQLAlchemyError as exc:
            await self.session.rollback()
            logger.error(
                "Audit write failed",
                extra={"action": action, "resource_id": resource_id, "user_id": user_id},
                exc_info=True,
            )
            raise AuditWriteFailed(action, resource_id) from exc
        return entry

    async def recent(self, user_id: str, limit: int = 100) -> List[ActivityLogEntry]:
        """
        Entries written by a user, most recent first.

        Args:
            user_id: The acting user
            limit: Maximum number of entries

        Returns:
            List of ActivityLogEntry records, newest first
        """
        query = (
            select(ActivityLogEntry)
            .where(ActivityLogEntry.user_id == user_id)
            .order_by(desc(ActivityLogEntry.created_at), desc(ActivityLogEntry.id))
            .limit(max(limit, 0))
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count(
        self,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        resource_id: Optional[str] = None,
    ) -> int:
        """Count entries matching the given criteria."""
        query = select(func.count(ActivityLogEntry.id))
        if user_id:
            query = query.where(ActivityLogEntry.user_id == user_id)
        if action:
            query = query.where(ActivityLogEntry.action == action)
        if resource_id:
            query = query.where(ActivityLogEntry.resource_id == resource_id)
        result = await self.session.execute(query)
        return result.scalar() or 0

    def _serialize_details(self, details: Dict[str, Any]) -> Dict[str, Any]:
        """Convert detail values to JSON-serializable types."""
        result = {}
        for key, value in details.items():
            result[key] = self._serialize_value(value)
        return result

    def _serialize_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self._serialize_details(value)
        if isinstance(value, (list, tuple, set)):
            return [self._serialize_value(v) for v in value]
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, Enum):
            return value.value
        return value
