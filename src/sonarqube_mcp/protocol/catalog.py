"""Static catalog handlers: tools, prompts, resources, roots and log level.

This server publishes no prompts, resources or roots; the handlers exist so
that clients probing for them get well-formed empty answers.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sonarqube_mcp.errors import InvalidRequestError, NotFoundError
from sonarqube_mcp.protocol.params import decode_dataclass
from sonarqube_mcp.protocol.tools import ToolDefinition

if TYPE_CHECKING:
    from sonarqube_mcp.registry import MethodRegistry

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "sonarqube_mcp"

# MCP log levels (RFC 5424 names) to stdlib levels
MCP_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "emergency": logging.CRITICAL,
}


@dataclass
class GetPromptParams:
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_params(cls, params: Any) -> GetPromptParams:
        return decode_dataclass(cls, params)


@dataclass
class ReadResourceParams:
    uri: str

    @classmethod
    def from_params(cls, params: Any) -> ReadResourceParams:
        return decode_dataclass(cls, params)


@dataclass
class SetLevelParams:
    level: str

    @classmethod
    def from_params(cls, params: Any) -> SetLevelParams:
        return decode_dataclass(cls, params)


class Catalog:
    """Serves the fixed catalogs of the server."""

    def __init__(self, tools: Sequence[ToolDefinition] = ()) -> None:
        self._tools = list(tools)

    def list_tools(self) -> dict[str, Any]:
        return {"tools": [tool.to_dict() for tool in self._tools]}

    def list_prompts(self) -> dict[str, Any]:
        return {"prompts": []}

    def get_prompt(self, params: GetPromptParams) -> dict[str, Any]:
        return {
            "description": (
                f"No prompt found for '{params.name}'. "
                "Prompts functionality is not currently implemented."
            ),
            "messages": [],
        }

    def list_resources(self) -> dict[str, Any]:
        return {"resources": []}

    def read_resource(self, params: ReadResourceParams) -> dict[str, Any]:
        raise NotFoundError(f"Resource not found: {params.uri}")

    def list_roots(self) -> dict[str, Any]:
        return {"roots": []}

    def set_level(self, params: SetLevelParams) -> dict[str, Any]:
        """Change the package log level at runtime.

        Raises:
            InvalidRequestError: If the level is not an MCP log level.
        """
        level = MCP_LOG_LEVELS.get(str(params.level).lower())
        if level is None:
            raise InvalidRequestError(f"Unknown log level: {params.level}")
        logging.getLogger(PACKAGE_LOGGER).setLevel(level)
        logger.info("Log level set to %s", params.level)
        return {}

    def register(self, registry: MethodRegistry) -> None:
        """Register the catalog methods on a MethodRegistry."""
        registry.register("tools/list", self.list_tools)
        registry.register("prompts/list", self.list_prompts)
        registry.register("prompts/get", self.get_prompt, GetPromptParams)
        registry.register("resources/list", self.list_resources)
        registry.register("resources/read", self.read_resource, ReadResourceParams)
        registry.register("roots/list", self.list_roots)
        registry.register("logging/setLevel", self.set_level, SetLevelParams)
