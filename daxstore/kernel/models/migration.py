"""
Applied schema migration record.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from daxstore.kernel.models.base import Base, UTCDateTime, utcnow


class MigrationRecord(Base):
    """One row per successfully applied migration script."""

    __tablename__ = "schema_migrations"

    version: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    applied_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<MigrationRecord {self.version:03d} {self.description}>"
