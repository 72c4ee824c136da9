"""JSON-RPC 2.0 message classification and formatting.

Each input line is decoded into either a Notification (no ``id``) or a
DispatchRequest. Generic ``tools/call`` envelopes are rewritten into a direct
call of the named tool.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from sonarqube_mcp.errors import InvalidRequestError, SerializationError
from sonarqube_mcp.protocol.params import decode_dataclass

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"

# Fallback for failures that carry no structured error (e.g. unknown method)
GENERIC_ERROR_CODE = -1
GENERIC_ERROR_MESSAGE = "Invalid json-rpc call"

TOOLS_CALL = "tools/call"
NOTIFICATION_INITIALIZED = "notifications/initialized"
NOTIFICATION_CANCELLED = "notifications/cancelled"

_SEPARATORS = (",", ":")

RequestId = int | str | None


@dataclass
class DispatchRequest:
    """A request (has id) normalized for dispatch."""

    id: RequestId
    method: str
    params: Any = None


@dataclass
class Notification:
    """A notification (no id). Never answered."""

    method: str
    params: Any = None


@dataclass
class CancelledNotification:
    """Params of notifications/cancelled."""

    request_id: int | str
    reason: str | None = None

    @classmethod
    def from_params(cls, params: Any) -> CancelledNotification:
        """Decode cancellation params.

        Raises:
            InvalidRequestError: If params are missing or malformed.
        """
        try:
            decoded = decode_dataclass(cls, params, aliases={"request_id": "requestId"})
        except SerializationError as e:
            raise InvalidRequestError(f"Malformed cancellation: {e.message}") from e
        if isinstance(decoded.request_id, bool) or not isinstance(decoded.request_id, int | str):
            raise InvalidRequestError("Malformed cancellation: requestId must be a string or number")
        if decoded.reason is not None and not isinstance(decoded.reason, str):
            raise InvalidRequestError("Malformed cancellation: reason must be a string")
        return decoded


def decode_line(line: str) -> Any | None:
    """Decode one input line, returning None if it is not JSON."""
    try:
        return json.loads(line)
    except json.JSONDecodeError:
        logger.debug("Dropping undecodable line: %.200s", line)
        return None


def classify(data: Any) -> DispatchRequest | Notification | None:
    """Classify a decoded message.

    Returns:
        A DispatchRequest if the message has an ``id``, a Notification if it
        has none, or None if it is not a message envelope at all.
    """
    if not isinstance(data, dict):
        return None
    method = data.get("method")
    if not isinstance(method, str):
        return None
    params = data.get("params")
    if "id" in data:
        return DispatchRequest(id=data["id"], method=method, params=params)
    return Notification(method=method, params=params)


def rewrite_tool_call(request: DispatchRequest) -> DispatchRequest:
    """Turn a tools/call envelope into a direct call of the named tool.

    Other requests are returned unchanged.

    Raises:
        InvalidRequestError: If params or params.name are missing or invalid.
    """
    if request.method != TOOLS_CALL:
        return request
    params = request.params
    if not isinstance(params, dict):
        raise InvalidRequestError("tools/call requires an object with a tool name")
    name = params.get("name")
    if not isinstance(name, str) or not name:
        raise InvalidRequestError("tools/call requires a string 'name'")
    arguments = params.get("arguments")
    if arguments is None:
        arguments = {}
    return DispatchRequest(id=request.id, method=name, params=arguments)


def format_response(msg_id: RequestId, result: Any) -> str:
    """Format a successful JSON-RPC response.

    Args:
        msg_id: Request ID to echo back.
        result: Result payload.

    Returns:
        JSON string.
    """
    response = {
        "jsonrpc": JSONRPC_VERSION,
        "id": msg_id,
        "result": result,
    }
    return json.dumps(response, separators=_SEPARATORS)


def format_error(msg_id: RequestId, error: dict[str, Any]) -> str:
    """Format a JSON-RPC error response.

    Args:
        msg_id: Request ID to echo back.
        error: Error object with ``code`` and ``message``.

    Returns:
        JSON string.
    """
    response = {
        "jsonrpc": JSONRPC_VERSION,
        "error": error,
        "id": msg_id,
    }
    return json.dumps(response, separators=_SEPARATORS)


def format_generic_error(msg_id: RequestId) -> str:
    """Format the fallback error response for unstructured dispatch failures."""
    return format_error(msg_id, {"code": GENERIC_ERROR_CODE, "message": GENERIC_ERROR_MESSAGE})
