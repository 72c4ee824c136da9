"""Decoding of JSON-RPC ``params`` into typed parameter records."""

from __future__ import annotations

import dataclasses
from typing import Any, TypeVar

from sonarqube_mcp.errors import SerializationError

T = TypeVar("T")


def require_object(params: Any, what: str) -> dict[str, Any]:
    """Return params as a dict, treating a missing payload as empty.

    Raises:
        SerializationError: If params is present but not a JSON object.
    """
    if params is None:
        return {}
    if not isinstance(params, dict):
        raise SerializationError(f"{what}: expected an object, got {type(params).__name__}")
    return params


def decode_dataclass(cls: type[T], params: Any, aliases: dict[str, str] | None = None) -> T:
    """Build a dataclass instance from a params object.

    Unknown keys are ignored. Fields without a default are required.

    Args:
        cls: Dataclass type to build.
        params: Decoded JSON value.
        aliases: Optional mapping of field name to wire key.

    Raises:
        SerializationError: If params is not an object or a required field is missing.
    """
    data = require_object(params, cls.__name__)
    aliases = aliases or {}
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):  # type: ignore[arg-type]
        key = aliases.get(f.name, f.name)
        if key in data:
            kwargs[f.name] = data[key]
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            raise SerializationError(f"{cls.__name__}: missing field `{key}`")
    return cls(**kwargs)
