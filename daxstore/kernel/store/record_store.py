"""
Record store: typed CRUD over the six resource kinds.

Every operation follows the same path: validate input, resolve permissions,
read or mutate and commit, then append to the activity log.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daxstore.exceptions import MalformedResource, NotFound
from daxstore.kernel.events import actions
from daxstore.kernel.events.activity_log import ActivityLog
from daxstore.kernel.models.base import generate_id, utcnow
from daxstore.kernel.models.permission import Permission
from daxstore.kernel.models.resource import (
    INDEXED_COLUMNS,
    RESOURCE_MODELS,
    PreferencesRecord,
    RDFEntity,
    RDFLink,
    ResourceKind,
)
from daxstore.kernel.models.user import User
from daxstore.kernel.permissions.permission_service import PermissionService
from daxstore.logging_config import get_logger
from daxstore.schemas.resources import (
    Resource,
    ResourceWrite,
    default_preferences,
    parse_kind,
    validate_payload,
)

logger = get_logger(__name__)

# Kinds whose rows carry a filterable ``type`` column
_TYPED_KINDS = (ResourceKind.CANVAS_NODE, ResourceKind.RDF_ENTITY, ResourceKind.RDF_LINK)

_MISSING = object()


class RecordStore:
    """
    Permission-checked CRUD for canvas nodes, graph entities and links,
    documents, agent configs and preferences.

    Usage:
        records = RecordStore(session)
        saved = await records.save(
            {"kind": "document", "id": "doc-1", "payload": {"title": "Notes"}},
            owner_id="admin",
        )
        doc = await records.get("document", "doc-1", caller_id="admin")
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.activity = ActivityLog(session)
        self.permissions = PermissionService(session, self.activity)

    async def save(
        self,
        resource: Union[ResourceWrite, Dict[str, Any]],
        owner_id: str,
    ) -> Resource:
        """
        Create or update a resource.

        A new resource is owned by ``owner_id``. Updating an existing one
        requires ``write`` unless the caller owns it or is an admin; the
        owner never changes.

        Args:
            resource: kind, optional id and payload
            owner_id: The calling user

        Returns:
            The stored resource

        Raises:
            MalformedResource: unknown kind or invalid payload
            NotFound: the calling user does not exist
            PermissionDenied: caller may not overwrite the existing resource
        """
        write = self._coerce_write(resource)
        kind = parse_kind(write.kind)
        payload = validate_payload(kind, write.payload)

        caller = await self.permissions.get_user(owner_id)
        if caller is None:
            raise NotFound("user", owner_id)

        resource_id = write.id or self._default_id(kind, owner_id)
        if kind is ResourceKind.RDF_LINK:
            await self._check_link_endpoints(payload, owner_id, caller)

        model = RESOURCE_MODELS[kind]
        row = await self.session.get(model, resource_id, populate_existing=True)
        created = row is None
        if created:
            if kind is ResourceKind.PREFERENCES and resource_id != owner_id:
                raise MalformedResource("Preferences id must equal the owning user id")
            row = model(id=resource_id, user_id=owner_id, payload=payload)
            self._copy_indexed(kind, row, payload)
            self.session.add(row)
        else:
            await self.permissions.require(
                owner_id, caller, row.user_id, kind, resource_id, Permission.WRITE
            )
            row.payload = payload
            self._copy_indexed(kind, row, payload)
            row.updated_at = utcnow()

        await self._commit()
        logger.info(
            "Resource saved",
            extra={"kind": kind.value, "resource_id": resource_id, "user_id": owner_id},
        )
        await self.activity.append(
            user_id=owner_id,
            action=actions.saved(kind),
            resource_type=kind.value,
            resource_id=resource_id,
            details=self._audit_details(kind, payload, created=created),
        )
        return Resource.from_row(kind, row)

    async def get(
        self,
        kind: Union[str, ResourceKind],
        resource_id: str,
        caller_id: str,
    ) -> Resource:
        """
        Read one resource.

        Raises:
            MalformedResource: unknown kind
            NotFound: no such resource
            PermissionDenied: caller lacks ``read``
        """
        kind = parse_kind(kind)
        row = await self._load(kind, resource_id)
        caller = await self.permissions.get_user(caller_id)
        await self.permissions.require(
            caller_id, caller, row.user_id, kind, resource_id, Permission.READ
        )
        return Resource.from_row(kind, row)

    async def get_all(
        self,
        owner_id: str,
        kind: Union[str, ResourceKind],
        type_filter: Optional[str] = None,
    ) -> List[Resource]:
        """
        List resources owned by a user.

        Only ownership scopes the result: resources shared with the user
        through an ACL are not included.

        Args:
            owner_id: The owning user
            kind: Resource kind
            type_filter: Optional value of the kind's ``type`` column

        Returns:
            Resources ordered by creation time
        """
        kind = parse_kind(kind)
        model = RESOURCE_MODELS[kind]
        query = select(model).where(model.user_id == owner_id)
        if type_filter is not None:
            if kind not in _TYPED_KINDS:
                raise MalformedResource(f"{kind.value} resources cannot be filtered by type")
            query = query.where(model.type == type_filter)
        query = query.order_by(model.created_at, model.id)
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return [Resource.from_row(kind, row) for row in result.scalars().all()]

    async def delete(
        self,
        kind: Union[str, ResourceKind],
        resource_id: str,
        caller_id: str,
    ) -> None:
        """
        Delete a resource and its ACL rows.

        Deleting a graph entity also removes every link touching it.

        Raises:
            MalformedResource: unknown kind
            NotFound: no such resource
            PermissionDenied: caller lacks ``delete``
        """
        kind = parse_kind(kind)
        row = await self._load(kind, resource_id)
        caller = await self.permissions.get_user(caller_id)
        await self.permissions.require(
            caller_id, caller, row.user_id, kind, resource_id, Permission.DELETE
        )

        details: Dict[str, Any] = {"owner_id": row.user_id}
        if kind is ResourceKind.RDF_ENTITY:
            link_ids = await self._link_ids_touching([resource_id])
            details["links_removed"] = await self._delete_links(link_ids)

        await self.session.delete(row)
        await self.permissions.clear_resource([resource_id], kind)
        await self._commit()

        logger.info(
            "Resource deleted",
            extra={"kind": kind.value, "resource_id": resource_id, "user_id": caller_id},
        )
        await self.activity.append(
            user_id=caller_id,
            action=actions.deleted(kind),
            resource_type=kind.value,
            resource_id=resource_id,
            details=details,
        )

    # Knowledge graph helpers

    async def get_rdf_links(
        self,
        owner_id: str,
        entity_id: Optional[str] = None,
    ) -> List[Resource]:
        """Links owned by a user, optionally only those touching ``entity_id``."""
        query = select(RDFLink).where(RDFLink.user_id == owner_id)
        if entity_id is not None:
            query = query.where(
                or_(RDFLink.from_entity == entity_id, RDFLink.to_entity == entity_id)
            )
        query = query.order_by(RDFLink.created_at, RDFLink.id)
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return [Resource.from_row(ResourceKind.RDF_LINK, row) for row in result.scalars().all()]

    async def query_rdf_entities(self, owner_id: str, key: str, value: Any) -> List[Resource]:
        """Owned entities whose attribute ``key`` equals ``value``."""
        entities = await self.get_all(owner_id, ResourceKind.RDF_ENTITY)
        return [
            entity for entity in entities
            if entity.payload.get("attributes", {}).get(key, _MISSING) == value
        ]

    async def clear_rdf_data(self, owner_id: str) -> Dict[str, int]:
        """
        Delete all of a user's graph entities and links.

        Links owned by others that point at the user's entities go too.

        Returns:
            Counts of removed entities and links
        """
        result = await self.session.execute(
            select(RDFEntity.id).where(RDFEntity.user_id == owner_id)
        )
        entity_ids = list(result.scalars().all())

        query = select(RDFLink.id).where(RDFLink.user_id == owner_id)
        if entity_ids:
            query = query.union(
                select(RDFLink.id).where(
                    or_(RDFLink.from_entity.in_(entity_ids), RDFLink.to_entity.in_(entity_ids))
                )
            )
        link_ids = list((await self.session.execute(query)).scalars().all())

        links_removed = await self._delete_links(link_ids)
        if entity_ids:
            await self.session.execute(
                delete(RDFEntity).where(RDFEntity.id.in_(entity_ids))
            )
            await self.permissions.clear_resource(entity_ids, ResourceKind.RDF_ENTITY)
        await self._commit()

        counts = {"entities_removed": len(entity_ids), "links_removed": links_removed}
        await self.activity.append(
            user_id=owner_id,
            action=actions.RDF_DATA_CLEARED,
            resource_id=owner_id,
            details=counts,
        )
        return counts

    # Preferences

    async def get_preferences(self, user_id: str) -> Dict[str, Any]:
        """A user's preferences, or the defaults when none were saved."""
        result = await self.session.execute(
            select(PreferencesRecord)
            .where(PreferencesRecord.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return default_preferences()
        return dict(row.payload)

    async def stats(self) -> Dict[str, Any]:
        """Row counts for users and every resource kind."""
        users = (await self.session.execute(select(func.count(User.id)))).scalar() or 0
        resources = {}
        for kind, model in RESOURCE_MODELS.items():
            count = (await self.session.execute(select(func.count(model.id)))).scalar()
            resources[kind.value] = count or 0
        return {"users": users, "resources": resources}

    # Internals

    def _coerce_write(self, resource: Union[ResourceWrite, Dict[str, Any]]) -> ResourceWrite:
        if isinstance(resource, ResourceWrite):
            return resource
        try:
            return ResourceWrite.model_validate(resource)
        except ValidationError as exc:
            raise MalformedResource(
                "Resource must provide kind and payload",
                errors=[{"field": ".".join(str(p) for p in e["loc"]), "message": e["msg"]}
                        for e in exc.errors()],
            )

    def _default_id(self, kind: ResourceKind, owner_id: str) -> str:
        if kind is ResourceKind.PREFERENCES:
            return owner_id
        return generate_id()

    def _copy_indexed(self, kind: ResourceKind, row: Any, payload: Dict[str, Any]) -> None:
        for column, key in INDEXED_COLUMNS[kind].items():
            setattr(row, column, payload[key])

    def _audit_details(
        self,
        kind: ResourceKind,
        payload: Dict[str, Any],
        created: bool,
    ) -> Dict[str, Any]:
        details: Dict[str, Any] = {"created": created}
        for key in INDEXED_COLUMNS[kind].values():
            details[key] = payload[key]
        return details

    async def _load(self, kind: ResourceKind, resource_id: str) -> Any:
        model = RESOURCE_MODELS[kind]
        row = await self.session.get(model, resource_id, populate_existing=True)
        if row is None:
            raise NotFound(kind.value, resource_id)
        return row

    async def _check_link_endpoints(
        self, payload: Dict[str, Any], user_id: str, user: User
    ) -> None:
        """Both endpoints must exist and be readable by the linking user."""
        endpoints = sorted({payload["from"], payload["to"]})
        result = await self.session.execute(
            select(RDFEntity.id, RDFEntity.user_id).where(RDFEntity.id.in_(endpoints))
        )
        owners = dict(result.all())
        missing = [entity_id for entity_id in endpoints if entity_id not in owners]
        if missing:
            raise MalformedResource(
                "Link endpoints must be existing entities: " + ", ".join(missing)
            )
        for entity_id in endpoints:
            await self.permissions.require(
                user_id, user, owners[entity_id], ResourceKind.RDF_ENTITY, entity_id, Permission.READ
            )

    async def _link_ids_touching(self, entity_ids: List[str]) -> List[str]:
        result = await self.session.execute(
            select(RDFLink.id).where(
                or_(RDFLink.from_entity.in_(entity_ids), RDFLink.to_entity.in_(entity_ids))
            )
        )
        return list(result.scalars().all())

    async def _delete_links(self, link_ids: List[str]) -> int:
        if not link_ids:
            return 0
        await self.session.execute(
            delete(RDFLink)
            .where(RDFLink.id.in_(link_ids))
            .execution_options(synchronize_session=False)
        )
        await self.permissions.clear_resource(link_ids, ResourceKind.RDF_LINK)
        return len(link_ids)

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
