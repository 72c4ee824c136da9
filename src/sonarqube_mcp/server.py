"""MCP Server - dispatch loop.

Reads one JSON-RPC message per line, routes requests through the method
registry and writes one response line per answered request. Every line read
and written is mirrored to the audit log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sonarqube_mcp.config import Config
from sonarqube_mcp.errors import (
    McpError,
    MethodNotFoundError,
    SerializationError,
    log_and_convert,
)
from sonarqube_mcp.protocol.audit import AuditLog
from sonarqube_mcp.protocol.catalog import Catalog
from sonarqube_mcp.protocol.jsonrpc import (
    NOTIFICATION_CANCELLED,
    NOTIFICATION_INITIALIZED,
    CancelledNotification,
    DispatchRequest,
    Notification,
    classify,
    decode_line,
    format_error,
    format_generic_error,
    format_response,
    rewrite_tool_call,
)
from sonarqube_mcp.protocol.lifecycle import InitializeParams, LifecycleManager, SessionState
from sonarqube_mcp.protocol.transport import StdioTransport
from sonarqube_mcp.registry import MethodRegistry, Registry
from sonarqube_mcp.sonarqube.client import SonarQubeClient
from sonarqube_mcp.sonarqube.tools import SonarQubeTools

logger = logging.getLogger(__name__)

NOTIFICATION_EXIT = "exit"


@dataclass
class ServerContext:
    """Dependencies shared by the handlers.

    ``client`` is None when SonarQube is not configured.
    """

    config: Config = field(default_factory=Config)
    client: SonarQubeClient | None = None
    session: SessionState = field(default_factory=SessionState)


def _to_json_value(result: Any) -> Any:
    to_dict = getattr(result, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return result


class MCPServer:
    """MCP Server implementation.

    Handles:
    - Lifecycle management (initialize/initialized/ping/shutdown/exit)
    - Tool listing and execution, including tools/call rewriting
    - Static prompt, resource and root catalogs
    """

    def __init__(self, context: ServerContext, audit: AuditLog | None = None) -> None:
        """Initialize the server.

        Args:
            context: Injected configuration, upstream client and session state.
            audit: Audit log mirroring all traffic (required by serve()).
        """
        self._context = context
        self._audit = audit
        self._lifecycle = LifecycleManager(session=context.session)
        self._registry = self._build_registry()

    @property
    def context(self) -> ServerContext:
        return self._context

    @property
    def lifecycle(self) -> LifecycleManager:
        return self._lifecycle

    @property
    def registry(self) -> Registry:
        return self._registry

    def _build_registry(self) -> Registry:
        builder = MethodRegistry()
        builder.register("initialize", self._lifecycle.initialize, InitializeParams)
        builder.register("ping", self._lifecycle.ping)
        builder.register("shutdown", self._lifecycle.shutdown)

        SonarQubeTools(self._context.client).register(builder)
        Catalog(builder.tool_definitions()).register(builder)

        return builder.build()

    async def handle_line(self, line: str) -> str | None:
        """Handle one raw input line.

        Args:
            line: Raw line read from the transport.

        Returns:
            Response line, or None when nothing is to be written (empty or
            undecodable line, notification, or null result).
        """
        if not line.strip():
            return None

        data = decode_line(line)
        if data is None:
            return None

        message = classify(data)
        if message is None:
            logger.debug("Dropping message without a method: %.200s", line)
            return None

        if isinstance(message, Notification):
            self._handle_notification(message)
            return None
        return await self._handle_request(message)

    def _handle_notification(self, notification: Notification) -> None:
        """Handle a notification. Failures are logged, never answered."""
        method = notification.method
        if method == NOTIFICATION_INITIALIZED:
            self._lifecycle.initialized()
        elif method == NOTIFICATION_CANCELLED:
            try:
                cancelled = CancelledNotification.from_params(notification.params)
            except McpError as e:
                log_and_convert(e, method)
                return
            # Handlers are not preemptible; cancellation is advisory only
            logger.info(
                "Request %s cancelled by client: %s",
                cancelled.request_id,
                cancelled.reason or "no reason given",
            )
        elif method == NOTIFICATION_EXIT:
            self._lifecycle.exit()
        else:
            logger.debug("Ignoring notification: %s", method)

    async def _handle_request(self, request: DispatchRequest) -> str | None:
        """Dispatch a request and format its response.

        Args:
            request: The request to handle.

        Returns:
            JSON-RPC response string, or None for a null result.
        """
        try:
            request = rewrite_tool_call(request)
        except McpError as e:
            error = log_and_convert(e, request.method)
            return format_error(request.id, error.to_error_object())

        entry = self._registry.resolve(request.method)
        if entry is None:
            MethodNotFoundError(request.method).log("dispatch")
            return format_generic_error(request.id)

        try:
            result = await entry.invoke(request.params)
        except Exception as e:
            error = log_and_convert(e, request.method)
            return format_error(request.id, error.to_error_object())

        if result is None:
            return None

        try:
            return format_response(request.id, _to_json_value(result))
        except (TypeError, ValueError) as e:
            error = SerializationError(f"Failed to serialize {request.method} result: {e}")
            error.log(request.method)
            return format_error(request.id, error.to_error_object())

    async def serve(self, transport: StdioTransport) -> None:
        """Run the dispatch loop until end of input.

        Lines are handled strictly one at a time, so responses leave in
        request order. Transport and audit log failures propagate.

        Args:
            transport: Line transport to read from and write to.
        """
        if self._audit is None:
            raise RuntimeError("serve() requires an audit log")

        while True:
            line = transport.read_line()
            if line is None:
                logger.info("EOF received, stopping dispatch loop")
                break

            self._audit.write(line)
            response = await self.handle_line(line)
            if response is not None:
                self._audit.write(response)
                transport.write_line(response)
