"""
Substring search filtered by read permission.
"""

from daxstore.kernel.search.search_service import SEARCHABLE_KINDS, SearchService

__all__ = [
    "SEARCHABLE_KINDS",
    "SearchService",
]
