"""
Common schema types used across the API.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: Optional[str] = None
    errors: List[Dict[str, str]] = []


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    database: str = "ready"
    schema_version: Optional[int] = None


class StatsResponse(BaseModel):
    """Row counts per table."""

    users: int
    resources: Dict[str, int]
