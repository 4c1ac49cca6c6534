"""Unit tests for resource payload validation."""

import pytest

from daxstore.exceptions import MalformedResource
from daxstore.kernel.models.resource import ResourceKind
from daxstore.schemas.resources import (
    DEFAULT_NODE_HEIGHT,
    DEFAULT_NODE_WIDTH,
    default_preferences,
    parse_kind,
    validate_payload,
)


class TestParseKind:
    """Tests for resource kind parsing."""

    def test_known_kinds(self):
        for kind in ResourceKind:
            assert parse_kind(kind.value) is kind

    def test_unknown_kind_rejected(self):
        with pytest.raises(MalformedResource) as exc_info:
            parse_kind("spreadsheet")
        assert "spreadsheet" in str(exc_info.value)


class TestCanvasNodePayload:
    """Tests for canvas node payloads."""

    def test_defaults_applied(self):
        payload = validate_payload(ResourceKind.CANVAS_NODE, {"type": "data", "title": "Input"})
        assert payload["width"] == DEFAULT_NODE_WIDTH
        assert payload["height"] == DEFAULT_NODE_HEIGHT
        assert payload["data"] == {}

    def test_unknown_node_type(self):
        with pytest.raises(MalformedResource) as exc_info:
            validate_payload(ResourceKind.CANVAS_NODE, {"type": "widget", "title": "x"})
        assert exc_info.value.errors[0]["field"] == "type"

    def test_missing_title(self):
        with pytest.raises(MalformedResource):
            validate_payload(ResourceKind.CANVAS_NODE, {"type": "data"})

    def test_extra_fields_rejected(self):
        with pytest.raises(MalformedResource):
            validate_payload(
                ResourceKind.CANVAS_NODE,
                {"type": "data", "title": "x", "colour": "red"},
            )

    def test_payload_must_be_object(self):
        with pytest.raises(MalformedResource):
            validate_payload(ResourceKind.CANVAS_NODE, ["data"])


class TestGraphPayloads:
    """Tests for RDF entity and link payloads."""

    def test_link_serialized_with_from_and_to(self):
        payload = validate_payload(
            ResourceKind.RDF_LINK,
            {"from": "e1", "to": "e2", "type": "knows"},
        )
        assert payload["from"] == "e1"
        assert payload["to"] == "e2"
        assert "from_entity" not in payload

    def test_link_requires_endpoints(self):
        with pytest.raises(MalformedResource):
            validate_payload(ResourceKind.RDF_LINK, {"from": "e1", "type": "knows"})

    def test_entity_attributes_free_form(self):
        payload = validate_payload(
            ResourceKind.RDF_ENTITY,
            {"type": "Person", "attributes": {"name": "Ada", "born": 1815}},
        )
        assert payload["attributes"]["born"] == 1815


class TestDocumentPayload:
    def test_any_object_accepted(self):
        payload = validate_payload(ResourceKind.DOCUMENT, {"body": "text", "tags": ["a"]})
        assert payload["body"] == "text"
        assert payload["tags"] == ["a"]


class TestAgentConfigPayload:
    """Tests for agent config validation."""

    def _config(self, **overrides):
        config = {"name": "Local model", "api_url": "http://localhost:11434/v1"}
        config.update(overrides)
        return config

    def test_valid_config(self):
        payload = validate_payload(ResourceKind.AGENT_CONFIG, self._config(temperature=0.7))
        assert payload["icon"] == "bot"
        assert payload["icon_type"] == "lucide"
        assert payload["temperature"] == 0.7

    @pytest.mark.parametrize("url", ["ftp://host/x", "localhost:8000", "not a url"])
    def test_bad_urls(self, url):
        with pytest.raises(MalformedResource):
            validate_payload(ResourceKind.AGENT_CONFIG, self._config(api_url=url))

    def test_websocket_url_allowed(self):
        validate_payload(ResourceKind.AGENT_CONFIG, self._config(api_url="wss://agents.example.com"))

    def test_temperature_range(self):
        with pytest.raises(MalformedResource):
            validate_payload(ResourceKind.AGENT_CONFIG, self._config(temperature=2.5))

    def test_short_api_key(self):
        with pytest.raises(MalformedResource):
            validate_payload(ResourceKind.AGENT_CONFIG, self._config(api_key="abc"))

    def test_api_key_with_spaces(self):
        with pytest.raises(MalformedResource):
            validate_payload(ResourceKind.AGENT_CONFIG, self._config(api_key="sk-abc def ghi"))

    def test_empty_api_key_normalized(self):
        payload = validate_payload(ResourceKind.AGENT_CONFIG, self._config(api_key=""))
        assert payload["api_key"] is None


class TestPreferencesPayload:
    """Tests for preferences validation and defaults."""

    def test_defaults(self):
        prefs = default_preferences()
        assert prefs["theme"] == "system"
        assert prefs["language"] == "en"
        assert prefs["backup"]["interval"] == 3_600_000
        assert prefs["hotkeys"]["save"] == "Ctrl+S"

    def test_path_traversal_rejected(self):
        with pytest.raises(MalformedResource):
            validate_payload(ResourceKind.PREFERENCES, {"data_dir": "../../etc"})

    def test_language_code(self):
        validate_payload(ResourceKind.PREFERENCES, {"language": "pt-BR"})
        with pytest.raises(MalformedResource):
            validate_payload(ResourceKind.PREFERENCES, {"language": "english"})

    def test_hotkey_needs_modifier(self):
        with pytest.raises(MalformedResource):
            validate_payload(ResourceKind.PREFERENCES, {"hotkeys": {"save": "S"}})
