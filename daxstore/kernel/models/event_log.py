"""
Append-only activity log.

Rows are inserted by the audit log service and never updated or deleted by
store operations.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import Integer, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from daxstore.kernel.models.base import Base, UTCDateTime, utcnow


class ActivityLogEntry(Base):
    """One audited action."""

    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    action: Mapped[str] = mapped_column(String, nullable=False)
    resource_type: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    resource_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    details: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=True, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ActivityLogEntry {self.action} {self.resource_type}:{self.resource_id}>"
