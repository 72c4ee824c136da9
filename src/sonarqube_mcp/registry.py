"""Method registry binding JSON-RPC method names to handlers.

Handlers are registered once at startup through MethodRegistry and then
frozen with build(). A handler either takes no parameters, or takes a single
parameter record decoded from the request's ``params`` by the record's
``from_params`` classmethod.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from sonarqube_mcp.protocol.params import require_object
from sonarqube_mcp.protocol.tools import ToolDefinition, validate_arguments

Handler = Callable[..., Any]


class RegistrationError(RuntimeError):
    """Raised on registry misuse at startup (duplicate name, late registration)."""

    pass


@dataclass(frozen=True)
class HandlerEntry:
    """A handler bound to a method name."""

    name: str
    handler: Handler
    params_type: type | None = None
    schema: dict[str, Any] | None = None

    async def invoke(self, params: Any) -> Any:
        """Decode params for this handler, call it and await the result.

        Raises:
            McpError: Whatever the decoding step or the handler raises.
        """
        if self.schema is not None:
            validate_arguments(self.name, self.schema, {} if params is None else params)

        if self.params_type is None:
            result = self.handler()
        elif self.params_type is dict:
            result = self.handler(require_object(params, self.name))
        else:
            result = self.handler(self.params_type.from_params(params))  # type: ignore[attr-defined]

        if inspect.isawaitable(result):
            result = await result
        return result


class Registry:
    """Immutable method-name lookup produced by MethodRegistry.build()."""

    def __init__(self, entries: dict[str, HandlerEntry], tools: list[ToolDefinition]) -> None:
        self._entries = MappingProxyType(dict(entries))
        self._tools = tuple(tools)

    def resolve(self, name: str) -> HandlerEntry | None:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def tools(self) -> tuple[ToolDefinition, ...]:
        return self._tools


class MethodRegistry:
    """Builder for the method registry."""

    def __init__(self) -> None:
        self._entries: dict[str, HandlerEntry] = {}
        self._tools: list[ToolDefinition] = []
        self._built = False

    def register(self, name: str, handler: Handler, params_type: type | None = None) -> None:
        """Bind a method name to a handler.

        Args:
            name: JSON-RPC method name.
            handler: Sync or async callable.
            params_type: None for handlers taking no parameters, ``dict`` for
                handlers taking the raw params object, or a record type with a
                ``from_params`` classmethod.

        Raises:
            RegistrationError: If the name is already bound or the registry
                has been built.
        """
        self._add(HandlerEntry(name=name, handler=handler, params_type=params_type))

    def register_tool(
        self, definition: ToolDefinition, handler: Handler, params_type: type | None = None
    ) -> None:
        """Bind a tool as a direct method and list it in tools/list.

        Arguments are validated against the definition's input schema
        before they are decoded.
        """
        self._add(
            HandlerEntry(
                name=definition.name,
                handler=handler,
                params_type=params_type,
                schema=definition.input_schema,
            )
        )
        self._tools.append(definition)

    def _add(self, entry: HandlerEntry) -> None:
        if self._built:
            raise RegistrationError(f"Cannot register '{entry.name}': registry already built")
        if entry.name in self._entries:
            raise RegistrationError(f"Method already registered: {entry.name}")
        self._entries[entry.name] = entry

    def tool_definitions(self) -> list[ToolDefinition]:
        """Return the tools registered so far."""
        return list(self._tools)

    def build(self) -> Registry:
        """Freeze the registry. No further registration is allowed."""
        self._built = True
        return Registry(self._entries, self._tools)
