"""Tests for the static catalog handlers."""

import logging

import pytest

from sonarqube_mcp.errors import InvalidRequestError, NotFoundError
from sonarqube_mcp.protocol.catalog import (
    Catalog,
    GetPromptParams,
    ReadResourceParams,
    SetLevelParams,
)
from sonarqube_mcp.protocol.tools import ToolDefinition
from sonarqube_mcp.registry import MethodRegistry


class TestCatalog:
    """Tests for Catalog."""

    def test_lists_tools(self):
        """Should list tool definitions in MCP format."""
        catalog = Catalog([ToolDefinition("t", "A tool", {"type": "object"})])

        assert catalog.list_tools() == {
            "tools": [{"name": "t", "description": "A tool", "inputSchema": {"type": "object"}}]
        }

    def test_empty_catalogs(self):
        """Should publish no prompts, resources or roots."""
        catalog = Catalog()

        assert catalog.list_prompts() == {"prompts": []}
        assert catalog.list_resources() == {"resources": []}
        assert catalog.list_roots() == {"roots": []}

    def test_get_prompt_explains_missing_prompt(self):
        """Should describe that no prompt exists."""
        result = Catalog().get_prompt(GetPromptParams(name="review"))

        assert result["description"].startswith("No prompt found for 'review'.")

    def test_read_resource_not_found(self):
        """Should raise NotFoundError for any resource."""
        with pytest.raises(NotFoundError, match="sonarqube://x"):
            Catalog().read_resource(ReadResourceParams(uri="sonarqube://x"))

    def test_set_level_changes_package_logger(self):
        """Should map MCP levels onto the package logger."""
        result = Catalog().set_level(SetLevelParams(level="debug"))

        assert result == {}
        assert logging.getLogger("sonarqube_mcp").level == logging.DEBUG

        Catalog().set_level(SetLevelParams(level="emergency"))
        assert logging.getLogger("sonarqube_mcp").level == logging.CRITICAL

    def test_set_level_rejects_unknown_level(self):
        """Should raise InvalidRequestError for unknown levels."""
        with pytest.raises(InvalidRequestError):
            Catalog().set_level(SetLevelParams(level="loud"))

    def test_registers_reserved_methods(self):
        """Should bind every catalog method."""
        builder = MethodRegistry()
        Catalog().register(builder)
        registry = builder.build()

        assert set(registry) == {
            "tools/list",
            "prompts/list",
            "prompts/get",
            "resources/list",
            "resources/read",
            "roots/list",
            "logging/setLevel",
        }
