"""
Identity Core - user accounts and roles.
"""

from daxstore.kernel.identity.identity_service import IdentityService

__all__ = [
    "IdentityService",
]
