"""MCP tool definitions, call results and argument validation."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from sonarqube_mcp.errors import InternalError, SerializationError


@dataclass
class ToolDefinition:
    """Definition of a tool exposed through tools/list."""

    name: str
    description: str
    input_schema: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP tool format.

        Returns:
            Dictionary in MCP tools/list format.
        """
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass
class CallToolResult:
    """Result of a tool invocation."""

    content: list[dict[str, Any]]
    is_error: bool = False

    @classmethod
    def json(cls, payload: Any) -> CallToolResult:
        """Wrap a JSON-serializable payload as pretty-printed text content."""
        return cls(content=[{"type": "text", "text": json.dumps(payload, indent=2)}])

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP result format.

        Returns:
            Dictionary in MCP tools/call result format.
        """
        return {
            "content": self.content,
            "isError": self.is_error,
        }


def validate_arguments(tool_name: str, schema: dict[str, Any], arguments: Any) -> None:
    """Validate tool arguments against the tool's input schema.

    Args:
        tool_name: Name of the tool (for error messages).
        schema: JSON Schema for the tool's input.
        arguments: Decoded arguments.

    Raises:
        SerializationError: If the arguments do not match the schema.
        InternalError: If the schema itself is invalid.
    """
    try:
        validator = Draft202012Validator(schema)
        errors = list(validator.iter_errors(arguments))
    except SchemaError as e:
        raise InternalError(f"Invalid schema for tool {tool_name}: {e.message}") from e
    if errors:
        # Report first error
        error = errors[0]
        path = ".".join(str(p) for p in error.path) if error.path else "root"
        raise SerializationError(f"{tool_name}: invalid arguments at '{path}': {error.message}")
