"""
Pydantic schemas for payload validation and API responses.
"""

from daxstore.schemas.resources import (
    PAYLOAD_MODELS,
    Resource,
    ResourceWrite,
    default_preferences,
    parse_kind,
    validate_payload,
)
from daxstore.schemas.acl import ACLEntryResponse, ACLUpdate
from daxstore.schemas.activity import ActivityEntryResponse
from daxstore.schemas.user import UserCreate, UserResponse
from daxstore.schemas.common import ErrorResponse, HealthResponse, StatsResponse

__all__ = [
    # Resources
    "PAYLOAD_MODELS",
    "Resource",
    "ResourceWrite",
    "default_preferences",
    "parse_kind",
    "validate_payload",
    # Access control
    "ACLEntryResponse",
    "ACLUpdate",
    # Activity
    "ActivityEntryResponse",
    # Users
    "UserCreate",
    "UserResponse",
    # Common
    "ErrorResponse",
    "HealthResponse",
    "StatsResponse",
]
