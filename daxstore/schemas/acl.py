"""
Access control schemas.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from daxstore.kernel.models.permission import Permission


class ACLUpdate(BaseModel):
    """Full replacement of one user's permissions on a resource."""

    user_id: str = Field(..., min_length=1)
    permissions: List[Permission]


class ACLEntryResponse(BaseModel):
    """One ACL row."""

    resource_id: str
    resource_type: str
    user_id: str
    permissions: List[str]
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
