"""
Resource models: one table per resource kind.

Each row carries its owning ``user_id`` and a kind-specific JSON payload.
A few payload fields are copied into plain columns so they can be indexed
and filtered on.
"""

from enum import Enum
from typing import Any, Dict, Type

from sqlalchemy import ForeignKey, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from daxstore.kernel.models.base import Base, TimestampMixin


class ResourceKind(str, Enum):
    """The six stored resource kinds."""
    CANVAS_NODE = "canvas_node"
    RDF_ENTITY = "rdf_entity"
    RDF_LINK = "rdf_link"
    DOCUMENT = "document"
    AGENT_CONFIG = "agent_config"
    PREFERENCES = "preferences"


class OwnedResource(TimestampMixin):
    """Columns shared by every resource table."""

    id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)


class CanvasNode(Base, OwnedResource):
    """A node on the canvas."""

    __tablename__ = "canvas_nodes"

    type: Mapped[str] = mapped_column(String, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String, nullable=False)


class RDFEntity(Base, OwnedResource):
    """A knowledge-graph entity."""

    __tablename__ = "rdf_entities"

    type: Mapped[str] = mapped_column(String, nullable=False, index=True)


class RDFLink(Base, OwnedResource):
    """A typed edge between two knowledge-graph entities."""

    __tablename__ = "rdf_links"

    from_entity: Mapped[str] = mapped_column(
        String,
        ForeignKey("rdf_entities.id", ondelete="CASCADE"),
        nullable=False,
    )
    to_entity: Mapped[str] = mapped_column(
        String,
        ForeignKey("rdf_entities.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String, nullable=False)


class Document(Base, OwnedResource):
    """Generic stored document."""

    __tablename__ = "documents"


class AgentConfig(Base, OwnedResource):
    """Connection settings for a chat agent."""

    __tablename__ = "agent_configs"

    name: Mapped[str] = mapped_column(String, nullable=False)


class PreferencesRecord(Base, OwnedResource):
    """Per-user application preferences."""

    __tablename__ = "preferences"


RESOURCE_MODELS: Dict[ResourceKind, Type[Any]] = {
    ResourceKind.CANVAS_NODE: CanvasNode,
    ResourceKind.RDF_ENTITY: RDFEntity,
    ResourceKind.RDF_LINK: RDFLink,
    ResourceKind.DOCUMENT: Document,
    ResourceKind.AGENT_CONFIG: AgentConfig,
    ResourceKind.PREFERENCES: PreferencesRecord,
}

# Payload fields mirrored into indexed columns, per kind
INDEXED_COLUMNS: Dict[ResourceKind, Dict[str, str]] = {
    ResourceKind.CANVAS_NODE: {"type": "type", "title": "title"},
    ResourceKind.RDF_ENTITY: {"type": "type"},
    ResourceKind.RDF_LINK: {"from_entity": "from", "to_entity": "to", "type": "type"},
    ResourceKind.DOCUMENT: {},
    ResourceKind.AGENT_CONFIG: {"name": "name"},
    ResourceKind.PREFERENCES: {},
}
