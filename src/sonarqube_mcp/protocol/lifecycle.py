"""MCP lifecycle management.

Handles the initialize/initialized handshake, ping, shutdown and exit, and
tracks connection state. Out-of-order calls are logged and tolerated.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sonarqube_mcp import SERVER_NAME, __version__
from sonarqube_mcp.errors import SerializationError

logger = logging.getLogger(__name__)

# Default version to advertise when the client sends none
MCP_PROTOCOL_VERSION = "2024-11-05"

# Seconds after initialize during which termination signals are ignored
INITIALIZE_GRACE_PERIOD = 10.0

SERVER_CAPABILITIES: dict[str, Any] = {
    "tools": {"call": True, "list": True},
    "resources": {"get": True, "list": True},
    "prompts": {},
}

SERVER_INSTRUCTIONS = (
    "This server exposes SonarQube analysis data. Use sonarqube_list_projects to "
    "discover project keys, then sonarqube_get_metrics, sonarqube_get_issues and "
    "sonarqube_get_quality_gate to inspect a project."
)


class LifecycleState(Enum):
    """MCP connection lifecycle states."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    SHUTTING_DOWN = "shutting_down"
    EXITED = "exited"


class SessionState:
    """Records whether an initialize handshake completed recently.

    Shared between the dispatch loop (writer) and the termination signal
    handler (reader). Signal handlers run on the main thread, possibly while
    the loop holds the lock, so the lock must be reentrant.
    """

    def __init__(
        self,
        grace_period: float = INITIALIZE_GRACE_PERIOD,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._grace_period = grace_period
        self._clock = clock
        self._lock = threading.RLock()
        self._initialized_at: float | None = None

    def mark_initialized(self) -> None:
        with self._lock:
            self._initialized_at = self._clock()

    def recently_initialized(self) -> bool:
        """True if initialize was handled within the grace period."""
        with self._lock:
            if self._initialized_at is None:
                return False
            if self._clock() - self._initialized_at >= self._grace_period:
                self._initialized_at = None
                return False
            return True

    def clear(self) -> None:
        with self._lock:
            self._initialized_at = None


@dataclass
class InitializeParams:
    """Params of the initialize request.

    Accepts either the params object itself or a single-element array
    wrapping it.
    """

    protocol_version: str = MCP_PROTOCOL_VERSION
    capabilities: dict[str, Any] = field(default_factory=dict)
    client_info: dict[str, Any] | None = None

    @classmethod
    def from_params(cls, params: Any) -> InitializeParams:
        """Decode initialize params.

        Raises:
            SerializationError: If params are neither an object nor a
                single-element array holding one.
        """
        if isinstance(params, list):
            if len(params) != 1:
                raise SerializationError(
                    f"InitializeParams: expected a single-element array, got {len(params)} elements"
                )
            params = params[0]
        if params is None:
            return cls()
        if not isinstance(params, dict):
            raise SerializationError(
                f"InitializeParams: expected an object, got {type(params).__name__}"
            )

        version = params.get("protocolVersion", MCP_PROTOCOL_VERSION)
        if not isinstance(version, str):
            raise SerializationError("InitializeParams: protocolVersion must be a string")
        capabilities = params.get("capabilities") or {}
        if not isinstance(capabilities, dict):
            raise SerializationError("InitializeParams: capabilities must be an object")
        client_info = params.get("clientInfo")
        if client_info is not None and not isinstance(client_info, dict):
            raise SerializationError("InitializeParams: clientInfo must be an object")

        return cls(protocol_version=version, capabilities=capabilities, client_info=client_info)


@dataclass
class LifecycleManager:
    """Manages MCP connection lifecycle.

    State transitions are checked but never enforced: a call in the wrong
    state is logged as a warning and then handled normally.
    """

    session: SessionState = field(default_factory=SessionState)
    server_info: dict[str, str] = field(
        default_factory=lambda: {"name": SERVER_NAME, "version": __version__}
    )
    capabilities: dict[str, Any] = field(default_factory=lambda: dict(SERVER_CAPABILITIES))
    instructions: str = SERVER_INSTRUCTIONS
    state: LifecycleState = LifecycleState.UNINITIALIZED
    client_info: dict[str, Any] | None = None
    client_capabilities: dict[str, Any] | None = None

    @property
    def is_ready(self) -> bool:
        """Check if the connection is ready for operations."""
        return self.state == LifecycleState.READY

    def _expect(self, method: str, *states: LifecycleState) -> None:
        if self.state not in states:
            logger.warning(
                "%s received in state %s (expected %s)",
                method,
                self.state.value,
                " or ".join(s.value for s in states),
            )

    def initialize(self, params: InitializeParams) -> dict[str, Any]:
        """Handle initialize request.

        Args:
            params: Decoded initialize params.

        Returns:
            Initialize response result.
        """
        self._expect("initialize", LifecycleState.UNINITIALIZED)

        self.client_info = params.client_info
        self.client_capabilities = params.capabilities
        self.state = LifecycleState.INITIALIZING
        self.session.mark_initialized()

        client_name = (params.client_info or {}).get("name", "unknown")
        logger.info(
            "Initialize from client %s (protocol %s)", client_name, params.protocol_version
        )

        # Echo the client's protocol version
        return {
            "protocolVersion": params.protocol_version,
            "capabilities": self.capabilities,
            "serverInfo": self.server_info,
            "instructions": self.instructions,
        }

    def initialized(self) -> None:
        """Handle initialized notification."""
        self._expect("notifications/initialized", LifecycleState.INITIALIZING)
        self.state = LifecycleState.READY
        logger.info("Client initialization complete")

    def ping(self) -> None:
        """Handle ping. The null result means no response line is written."""
        self._expect("ping", LifecycleState.READY)
        return None

    def shutdown(self) -> None:
        """Handle shutdown request. Does not stop the process."""
        self._expect("shutdown", LifecycleState.READY)
        self.state = LifecycleState.SHUTTING_DOWN
        self.session.clear()
        logger.info("Shutdown requested")
        return None

    def exit(self) -> None:
        """Handle exit notification. Process termination is left to the caller."""
        self._expect("exit", LifecycleState.SHUTTING_DOWN)
        self.state = LifecycleState.EXITED
        logger.info("Exit received")
