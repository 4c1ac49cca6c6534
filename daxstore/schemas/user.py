"""
User schemas.
"""

import re
from typing import List

from pydantic import BaseModel, Field, field_validator

from daxstore.kernel.models.user import UserRole

_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class UserCreate(BaseModel):
    """User creation request."""

    id: str = Field(..., min_length=1, max_length=255)
    username: str = Field(..., min_length=1, max_length=255)
    email: str
    role: UserRole = UserRole.USER
    permissions: List[str] = []

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not _EMAIL.match(v):
            raise ValueError("Invalid email address")
        return v


class UserResponse(BaseModel):
    """User profile response."""

    id: str
    username: str
    email: str
    role: str
    permissions: List[str]

    class Config:
        from_attributes = True
