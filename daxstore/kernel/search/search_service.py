"""
Substring search across canvas nodes, documents and graph entities.

Two phases: scan every row of the searchable kinds for a substring match,
then drop candidates the caller may not read. This is a linear scan sized
for a single-user desktop store; a larger deployment needs a real index in
place of this component.
"""

from typing import Any, Iterable, Iterator, List, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daxstore.exceptions import MalformedResource
from daxstore.kernel.models.permission import Permission
from daxstore.kernel.models.resource import RESOURCE_MODELS, ResourceKind
from daxstore.kernel.permissions.permission_service import PermissionService
from daxstore.logging_config import get_logger
from daxstore.schemas.resources import Resource, parse_kind

logger = get_logger(__name__)

SEARCHABLE_KINDS = (
    ResourceKind.DOCUMENT,
    ResourceKind.CANVAS_NODE,
    ResourceKind.RDF_ENTITY,
)


def _text_values(value: Any) -> Iterator[str]:
    """Yield the string and scalar leaves of a payload value; keys are skipped."""
    if value is None:
        return
    if isinstance(value, dict):
        for item in value.values():
            yield from _text_values(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _text_values(item)
    elif isinstance(value, str):
        yield value
    else:
        yield str(value)


def searchable_text(kind: ResourceKind, row) -> List[str]:
    """The text fields of a row that a query is matched against."""
    payload = row.payload or {}
    if kind is ResourceKind.CANVAS_NODE:
        return [row.title, *_text_values(payload.get("data"))]
    if kind is ResourceKind.RDF_ENTITY:
        return [row.type, *_text_values(payload.get("attributes"))]
    return list(_text_values(payload))


def _matches(needle: str, fields: Iterable[str], case_sensitive: bool) -> bool:
    for text in fields:
        haystack = text if case_sensitive else text.casefold()
        if needle in haystack:
            return True
    return False


class SearchService:
    """
    Search over the resources a caller may read.

    Usage:
        results = await SearchService(session).search("quarterly", caller_id="admin")
    """

    def __init__(
        self,
        session: AsyncSession,
        max_results: int = 200,
        permissions: Optional[PermissionService] = None,
    ):
        self.session = session
        self.max_results = max_results
        self.permissions = permissions or PermissionService(session)

    async def search(
        self,
        query: str,
        caller_id: str,
        kinds: Optional[Sequence[Union[str, ResourceKind]]] = None,
        case_sensitive: bool = False,
    ) -> List[Resource]:
        """
        Find readable resources containing ``query``.

        Args:
            query: Substring to look for; blank queries match nothing
            caller_id: The searching user
            kinds: Restrict to some of the searchable kinds
            case_sensitive: Match case exactly

        Returns:
            Matching resources, kind by kind, most recently updated first
        """
        if not query or not query.strip():
            return []

        selected = self._select_kinds(kinds)
        needle = query if case_sensitive else query.casefold()
        caller = await self.permissions.get_user(caller_id)

        results: List[Resource] = []
        scanned = 0
        for kind in selected:
            model = RESOURCE_MODELS[kind]
            rows = await self.session.execute(
                select(model)
                .order_by(model.updated_at.desc(), model.id)
                .execution_options(populate_existing=True)
            )
            for row in rows.scalars().all():
                scanned += 1
                if not _matches(needle, searchable_text(kind, row), case_sensitive):
                    continue
                if not await self.permissions.resolve(
                    caller_id, caller, row.user_id, kind, row.id, Permission.READ
                ):
                    continue
                results.append(Resource.from_row(kind, row))
                if len(results) >= self.max_results:
                    logger.debug("Search truncated at %d results", self.max_results)
                    return results

        logger.debug(
            "Search finished",
            extra={"scanned": scanned, "matched": len(results), "user_id": caller_id},
        )
        return results

    def _select_kinds(
        self,
        kinds: Optional[Sequence[Union[str, ResourceKind]]],
    ) -> List[ResourceKind]:
        if not kinds:
            return list(SEARCHABLE_KINDS)
        selected = []
        for value in kinds:
            kind = parse_kind(value)
            if kind not in SEARCHABLE_KINDS:
                raise MalformedResource(f"{kind.value} resources are not searchable")
            if kind not in selected:
                selected.append(kind)
        return selected
