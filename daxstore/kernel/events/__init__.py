"""
Append-only activity log.
"""

from daxstore.kernel.events import actions
from daxstore.kernel.events.activity_log import ActivityLog

__all__ = [
    "ActivityLog",
    "actions",
]
