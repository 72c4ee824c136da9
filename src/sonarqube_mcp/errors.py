"""Unified error taxonomy for the SonarQube MCP server.

Every failure that can reach a client is an McpError subclass carrying a
fixed JSON-RPC error code. Lower-level failures (I/O, HTTP transport, JSON
decoding, upstream SonarQube errors) are converted with McpError.from_exception.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from sonarqube_mcp.sonarqube.errors import (
    ProjectNotFoundError,
    SonarApiError,
    SonarAuthError,
    SonarConfigError,
    SonarError,
    SonarHttpError,
    SonarParseError,
)

logger = logging.getLogger(__name__)

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR_START = -32000

# Server-defined error codes
AUTH_ERROR = -33001
CONFIG_ERROR = -33002
NOT_FOUND_ERROR = -33003
EXTERNAL_API_ERROR = -33004


class McpError(Exception):
    """Base class for all errors surfaced over the wire."""

    code: int = INTERNAL_ERROR
    prefix: str = "Internal error"
    error_type: str = "internal"
    level: int = logging.ERROR
    summary: str = "Internal server error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.logged = False

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"

    def error_code(self) -> int:
        """Return the fixed JSON-RPC code for this kind."""
        return self.code

    def to_error_object(self) -> dict[str, Any]:
        """Convert to a JSON-RPC error object."""
        return {"code": self.code, "message": str(self)}

    def log(self, context: str) -> None:
        """Emit one log record at the severity fixed by this error's kind.

        Args:
            context: Where the error was detected (handler or method name).
        """
        logger.log(
            self.level,
            "%s [%s]: %s",
            self.summary,
            context,
            self.message,
            extra={"error_type": self.error_type, "context": context},
        )
        self.logged = True

    def with_log(self, context: str) -> McpError:
        """Log the error and return it, for use in raise statements."""
        self.log(context)
        return self

    def clone(self) -> McpError:
        """Return an independent copy of this error."""
        return type(self)(self.message)

    @classmethod
    def from_error_object(cls, error: dict[str, Any]) -> McpError:
        """Map a wire error object back to its error kind.

        Unknown codes become InternalError.
        """
        message = str(error.get("message", ""))
        kind = _KINDS_BY_CODE.get(error.get("code"), InternalError)
        return kind(message)

    @classmethod
    def from_exception(cls, exc: BaseException) -> McpError:
        """Convert any exception into the error taxonomy.

        This never raises; anything unrecognised becomes an InternalError.
        """
        if isinstance(exc, McpError):
            return exc
        if isinstance(exc, SonarError):
            return from_sonar_error(exc)
        if isinstance(exc, httpx.HTTPError):
            return RequestError(exc)
        if isinstance(exc, OSError):
            return IoError(exc)
        # json.JSONDecodeError is a ValueError
        if isinstance(exc, ValueError):
            return SerializationError(str(exc))
        return InternalError(str(exc) or type(exc).__name__)


class InvalidRequestError(McpError):
    """Malformed JSON-RPC envelope or request payload."""

    code = INVALID_REQUEST
    prefix = "Invalid request"
    error_type = "invalid_request"
    level = logging.INFO
    summary = "Invalid request"


class MethodNotFoundError(McpError):
    """Method name not registered."""

    code = METHOD_NOT_FOUND
    prefix = "Method not found"
    error_type = "method_not_found"
    level = logging.INFO
    summary = "Method not found"


class AuthError(McpError):
    """Upstream service rejected the credentials."""

    code = AUTH_ERROR
    prefix = "Authentication failed"
    error_type = "auth"
    level = logging.WARNING
    summary = "Authentication error"


class ConfigError(McpError):
    """Missing or invalid configuration."""

    code = CONFIG_ERROR
    prefix = "Configuration error"
    error_type = "config"
    level = logging.WARNING
    summary = "Configuration error"


class NotFoundError(McpError):
    """Requested resource does not exist."""

    code = NOT_FOUND_ERROR
    prefix = "Not found"
    error_type = "not_found"
    level = logging.INFO
    summary = "Resource not found"


class ExternalApiError(McpError):
    """Upstream service returned an error or a malformed payload."""

    code = EXTERNAL_API_ERROR
    prefix = "External API error"
    error_type = "external_api"
    level = logging.WARNING
    summary = "External API error"


class DatabaseError(McpError):
    """Failure in a storage backend."""

    code = SERVER_ERROR_START
    prefix = "Database error"
    error_type = "database"
    level = logging.ERROR
    summary = "Database error"


class IoError(McpError):
    """Wraps an OSError."""

    code = SERVER_ERROR_START - 1
    prefix = "IO error"
    error_type = "io"
    level = logging.ERROR
    summary = "IO error"

    def __init__(self, error: OSError | str) -> None:
        if isinstance(error, str):
            error = OSError(error)
        super().__init__(str(error))
        self.error = error

    def clone(self) -> McpError:
        return IoError(self.message)


class RequestError(McpError):
    """Wraps an httpx transport error.

    httpx errors hold live request/response objects and cannot be copied,
    so clone() degrades this to an ExternalApiError with the same text.
    """

    code = SERVER_ERROR_START - 2
    prefix = "Request error"
    error_type = "request"
    level = logging.ERROR
    summary = "Request error"

    def __init__(self, error: httpx.HTTPError | str) -> None:
        if isinstance(error, str):
            super().__init__(error)
            self.error: httpx.HTTPError | None = None
            self.url: str | None = None
            return
        super().__init__(str(error) or type(error).__name__)
        self.error = error
        self.url = _request_url(error)

    def log(self, context: str) -> None:
        logger.log(
            self.level,
            "%s [%s] url=%s: %s",
            self.summary,
            context,
            self.url,
            self.message,
            extra={"error_type": self.error_type, "context": context},
        )
        self.logged = True

    def clone(self) -> McpError:
        return ExternalApiError(self.message)


class SerializationError(McpError):
    """Payload could not be (de)serialized into the expected shape."""

    code = PARSE_ERROR
    prefix = "Serialization error"
    error_type = "serialization"
    level = logging.INFO
    summary = "Serialization error"


class InternalError(McpError):
    """Unclassified internal failure."""


_KINDS_BY_CODE: dict[Any, type[McpError]] = {
    INVALID_REQUEST: InvalidRequestError,
    METHOD_NOT_FOUND: MethodNotFoundError,
    AUTH_ERROR: AuthError,
    CONFIG_ERROR: ConfigError,
    NOT_FOUND_ERROR: NotFoundError,
    EXTERNAL_API_ERROR: ExternalApiError,
    PARSE_ERROR: SerializationError,
    INTERNAL_ERROR: InternalError,
    SERVER_ERROR_START: DatabaseError,
    SERVER_ERROR_START - 1: IoError,
    SERVER_ERROR_START - 2: RequestError,
}


def _request_url(error: httpx.HTTPError) -> str | None:
    # .request raises RuntimeError when the error was built without one
    try:
        return str(error.request.url)
    except RuntimeError:
        return None


def from_sonar_error(error: SonarError) -> McpError:
    """Convert an upstream client error into the taxonomy."""
    if isinstance(error, SonarHttpError):
        if error.cause is not None:
            return RequestError(error.cause)
        return RequestError(error.message)
    if isinstance(error, SonarParseError):
        return SerializationError(error.message)
    if isinstance(error, SonarApiError):
        return ExternalApiError(error.message)
    if isinstance(error, SonarAuthError):
        return AuthError("SonarQube authentication failed")
    if isinstance(error, ProjectNotFoundError):
        return NotFoundError(f"SonarQube project not found: {error.project_key}")
    if isinstance(error, SonarConfigError):
        return ConfigError(error.message)
    return ExternalApiError(error.message)


def log_and_convert(exc: BaseException, context: str) -> McpError:
    """Convert an exception and log it unless it was already logged."""
    error = McpError.from_exception(exc)
    if not error.logged:
        error.log(context)
    return error
