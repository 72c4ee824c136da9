"""URL query builder for SonarQube API requests.

Keeps the client methods flat when an endpoint takes dozens of optional
filters: ``None`` values and empty arrays are skipped.
"""

from __future__ import annotations

import urllib.parse
from collections.abc import Iterable, Sequence
from typing import Any


class QueryBuilder:
    """Builds a URL with optional query parameters.

    Example:
        url = (
            QueryBuilder("https://sonar.example.com/api/issues/search")
            .add_param("componentKeys", "my-project")
            .add_array_param("severities", ["MAJOR", "BLOCKER"])
            .add_bool_param("resolved", False)
            .build()
        )
    """

    def __init__(self, base_url: str) -> None:
        self._url = base_url
        self._has_params = False

    def add_param(self, name: str, value: Any | None) -> QueryBuilder:
        """Append ``name=value`` if value is not None."""
        if value is None:
            return self
        if isinstance(value, bool):
            value = "true" if value else "false"
        separator = "&" if self._has_params else "?"
        self._url += f"{separator}{name}={urllib.parse.quote(str(value), safe='')}"
        self._has_params = True
        return self

    def add_bool_param(self, name: str, value: bool | None) -> QueryBuilder:
        return self.add_param(name, value)

    def add_array_param(self, name: str, values: Sequence[Any] | None) -> QueryBuilder:
        """Append a comma-joined list if values is non-empty."""
        if not values:
            return self
        return self.add_param(name, ",".join(str(v) for v in values))

    def add_params(self, params: Iterable[tuple[str, Any | None]]) -> QueryBuilder:
        for name, value in params:
            self.add_param(name, value)
        return self

    def build(self) -> str:
        """Return the complete URL."""
        return self._url
