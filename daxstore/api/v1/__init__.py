"""
API v1 routes.
"""

from fastapi import APIRouter

from daxstore.api.v1 import acl, activity, resources, search, stats, users
from daxstore.schemas.common import ErrorResponse

_ERRORS = {
    401: {"model": ErrorResponse, "description": "Missing X-User-Id header"},
    403: {"model": ErrorResponse, "description": "Permission denied"},
    404: {"model": ErrorResponse, "description": "Resource not found"},
    422: {"model": ErrorResponse, "description": "Malformed resource"},
    503: {"model": ErrorResponse, "description": "Store not ready"},
}

router = APIRouter(responses=_ERRORS)

router.include_router(resources.router, prefix="/resources", tags=["Resources"])
router.include_router(acl.router, prefix="/acl", tags=["Access Control"])
router.include_router(activity.router, prefix="/activity", tags=["Activity"])
router.include_router(search.router, prefix="/search", tags=["Search"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(stats.router, prefix="/stats", tags=["Stats"])
