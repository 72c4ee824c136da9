"""Errors raised by the SonarQube REST client."""

from __future__ import annotations

import httpx


class SonarError(Exception):
    """Base exception for SonarQube client failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SonarHttpError(SonarError):
    """Raised when the HTTP request itself fails (connect, timeout, ...)."""

    def __init__(self, cause: httpx.HTTPError | None = None, message: str | None = None) -> None:
        super().__init__(message or f"HTTP request failed: {cause}")
        self.cause = cause


class SonarParseError(SonarError):
    """Raised when a response body cannot be parsed."""

    pass


class SonarApiError(SonarError):
    """Raised when SonarQube answers with a non-success status."""

    pass


class SonarAuthError(SonarError):
    """Raised on 401/403 responses."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class ProjectNotFoundError(SonarError):
    """Raised on 404 responses."""

    def __init__(self, project_key: str) -> None:
        super().__init__(f"Project not found: {project_key}")
        self.project_key = project_key


class SonarConfigError(SonarError):
    """Raised when the client is missing required configuration."""

    pass
