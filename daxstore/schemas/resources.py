"""
Resource payload schemas.

Each resource kind has its own payload model; ``validate_payload`` picks the
model by kind so malformed payloads are rejected before any storage or ACL
work happens.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from daxstore.exceptions import MalformedResource
from daxstore.kernel.models.resource import ResourceKind

DEFAULT_NODE_WIDTH = 200
DEFAULT_NODE_HEIGHT = 150
MAX_ID_LENGTH = 255

_ALLOWED_URL_SCHEMES = ("http", "https", "ws", "wss")
_INVALID_PATH_CHARS = re.compile(r'[<>"|?*\x00-\x1F]')
_LANGUAGE_CODE = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")


class CanvasNodeType(str, Enum):
    DATA = "data"
    AGENT = "agent"
    TRANSFORM = "transform"
    OUTPUT = "output"


class IconType(str, Enum):
    LUCIDE = "lucide"
    EMOJI = "emoji"


class AgentPreset(str, Enum):
    OPENAI = "openai"
    OPENROUTER = "openrouter"
    ANTHROPIC = "anthropic"
    CUSTOM = "custom"


class AgentToolType(str, Enum):
    READ_CANVAS = "read_canvas"
    WRITE_CANVAS = "write_canvas"
    QUERY_RDF = "query_rdf"
    EXTRACT_DATA = "extract_data"
    CUSTOM = "custom"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class CanvasNodePayload(BaseModel):
    """A node placed on the canvas."""

    model_config = ConfigDict(extra="forbid")

    type: CanvasNodeType
    title: str = Field(..., min_length=1, max_length=500)
    x: float = 0.0
    y: float = 0.0
    width: float = Field(DEFAULT_NODE_WIDTH, gt=0)
    height: float = Field(DEFAULT_NODE_HEIGHT, gt=0)
    data: Dict[str, Any] = Field(default_factory=dict)
    config: Dict[str, Any] = Field(default_factory=dict)


class RDFEntityPayload(BaseModel):
    """Knowledge-graph entity: a type plus free-form attributes."""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(..., min_length=1, max_length=255)
    attributes: Dict[str, Any] = Field(default_factory=dict)


class RDFLinkPayload(BaseModel):
    """Typed edge between two entities; serialized with ``from``/``to`` keys."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    from_entity: str = Field(..., alias="from", min_length=1)
    to_entity: str = Field(..., alias="to", min_length=1)
    type: str = Field(..., min_length=1, max_length=255)
    properties: Dict[str, Any] = Field(default_factory=dict)


class DocumentPayload(BaseModel):
    """Generic document. Any JSON object is accepted."""

    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None


class AgentTool(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    description: str = ""
    type: AgentToolType
    config: Dict[str, Any] = Field(default_factory=dict)


class AgentConfigPayload(BaseModel):
    """HTTP endpoint and generation settings for a chat agent."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    icon: str = Field("bot", min_length=1)
    icon_type: IconType = IconType.LUCIDE
    api_url: str
    api_key: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    query_params: Dict[str, str] = Field(default_factory=dict)
    extra_body: Dict[str, Any] = Field(default_factory=dict)
    preset: Optional[AgentPreset] = None
    temperature: Optional[float] = Field(None, ge=0, le=2)
    max_tokens: Optional[int] = Field(None, gt=0)
    tools: List[AgentTool] = Field(default_factory=list)
    system_prompt: Optional[str] = None

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in _ALLOWED_URL_SCHEMES or not parsed.netloc:
            raise ValueError(
                "URL must be absolute and use one of: " + ", ".join(_ALLOWED_URL_SCHEMES)
            )
        return v

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        if len(v) < 10:
            raise ValueError("API key seems too short")
        if any(c.isspace() for c in v):
            raise ValueError("API key should not contain spaces")
        return v


class BackupSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    interval: int = Field(3_600_000, gt=0)  # milliseconds
    location: str = "./backups"


class SyncSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    enabled: bool = False
    provider: Optional[str] = None
    config: Dict[str, Any] = Field(default_factory=dict)


def _default_hotkeys() -> Dict[str, str]:
    return {
        "newNode": "Ctrl+N",
        "save": "Ctrl+S",
        "undo": "Ctrl+Z",
        "redo": "Ctrl+Y",
    }


class PreferencesPayload(BaseModel):
    """Application preferences for one user."""

    model_config = ConfigDict(extra="forbid")

    theme: Theme = Theme.SYSTEM
    autostart: bool = False
    data_dir: str = "./data"
    backup: BackupSettings = Field(default_factory=BackupSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    language: str = "en"
    hotkeys: Dict[str, str] = Field(default_factory=_default_hotkeys)

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("data_dir is required")
        if _INVALID_PATH_CHARS.search(v):
            raise ValueError("Invalid path characters")
        if ".." in v:
            raise ValueError("Path traversal patterns (..) are not allowed")
        return v

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        if not _LANGUAGE_CODE.match(v):
            raise ValueError("Invalid language code format")
        return v

    @field_validator("hotkeys")
    @classmethod
    def validate_hotkeys(cls, v: Dict[str, str]) -> Dict[str, str]:
        for action, combo in v.items():
            parts = [p for p in combo.split("+") if p.strip()]
            if len(parts) < 2:
                raise ValueError(
                    f"Hotkey for {action!r} must include at least one modifier and a key"
                )
        return v


PAYLOAD_MODELS: Dict[ResourceKind, Type[BaseModel]] = {
    ResourceKind.CANVAS_NODE: CanvasNodePayload,
    ResourceKind.RDF_ENTITY: RDFEntityPayload,
    ResourceKind.RDF_LINK: RDFLinkPayload,
    ResourceKind.DOCUMENT: DocumentPayload,
    ResourceKind.AGENT_CONFIG: AgentConfigPayload,
    ResourceKind.PREFERENCES: PreferencesPayload,
}


def default_preferences() -> Dict[str, Any]:
    """Preferences returned for users who never saved any."""
    return PreferencesPayload().model_dump(mode="json")


def parse_kind(kind: Union[str, ResourceKind]) -> ResourceKind:
    """Resolve a caller-supplied kind, rejecting anything outside the enum."""
    if isinstance(kind, ResourceKind):
        return kind
    try:
        return ResourceKind(kind)
    except ValueError:
        allowed = ", ".join(k.value for k in ResourceKind)
        raise MalformedResource(f"Unknown resource kind {kind!r}; expected one of: {allowed}")


def _error_list(exc: ValidationError) -> List[Dict[str, str]]:
    return [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


def validate_payload(kind: ResourceKind, payload: Any) -> Dict[str, Any]:
    """
    Validate a payload against its kind's model.

    Returns:
        The normalized payload as JSON-compatible data

    Raises:
        MalformedResource: payload is not an object or fails validation
    """
    if not isinstance(payload, dict):
        raise MalformedResource(f"{kind.value} payload must be a JSON object")
    model = PAYLOAD_MODELS[kind]
    try:
        parsed = model.model_validate(payload)
    except ValidationError as exc:
        raise MalformedResource(f"Invalid {kind.value} payload", errors=_error_list(exc))
    return parsed.model_dump(mode="json", by_alias=True)


class ResourceWrite(BaseModel):
    """A resource as submitted to ``RecordStore.save``."""

    kind: str
    id: Optional[str] = Field(None, min_length=1, max_length=MAX_ID_LENGTH)
    payload: Dict[str, Any]


class Resource(BaseModel):
    """A stored resource as returned to callers."""

    id: str
    kind: ResourceKind
    user_id: str
    payload: Dict[str, Any]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, kind: ResourceKind, row: Any) -> "Resource":
        return cls(
            id=row.id,
            kind=kind,
            user_id=row.user_id,
            payload=dict(row.payload or {}),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
