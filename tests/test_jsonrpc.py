"""Tests for JSON-RPC classification and formatting."""

import json

import pytest

from sonarqube_mcp.errors import InvalidRequestError
from sonarqube_mcp.protocol.jsonrpc import (
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


class TestDecodeAndClassify:
    """Tests for decode_line and classify."""

    def test_invalid_json_decodes_to_none(self):
        """Should return None for undecodable lines."""
        assert decode_line("not json at all") is None
        assert decode_line('{"jsonrpc":') is None

    def test_message_with_id_is_request(self):
        """Should classify messages with an id as requests."""
        message = classify({"jsonrpc": "2.0", "id": 7, "method": "ping"})
        assert message == DispatchRequest(id=7, method="ping", params=None)

    def test_null_id_is_still_a_request(self):
        """Should treat a present but null id as a request."""
        message = classify({"jsonrpc": "2.0", "id": None, "method": "ping"})
        assert isinstance(message, DispatchRequest)
        assert message.id is None

    def test_message_without_id_is_notification(self):
        """Should classify messages without an id as notifications."""
        message = classify({"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert message == Notification(method="notifications/initialized")

    def test_keeps_params(self):
        """Should keep params of any JSON shape."""
        message = classify({"id": "a", "method": "initialize", "params": [{"x": 1}]})
        assert message.params == [{"x": 1}]

    @pytest.mark.parametrize("data", [[1, 2], "text", 42, {"id": 1}, {"id": 1, "method": 3}])
    def test_non_envelopes_are_dropped(self, data):
        """Should return None for values that are not message envelopes."""
        assert classify(data) is None


class TestToolCallRewrite:
    """Tests for tools/call rewriting."""

    def test_rewrites_name_and_arguments(self):
        """Should dispatch to the named tool with its arguments."""
        request = DispatchRequest(
            id=3,
            method="tools/call",
            params={"name": "sonarqube_get_metrics", "arguments": {"project_key": "p"}},
        )

        rewritten = rewrite_tool_call(request)

        assert rewritten == DispatchRequest(
            id=3, method="sonarqube_get_metrics", params={"project_key": "p"}
        )

    def test_missing_arguments_become_empty_object(self):
        """Should default arguments to an empty object."""
        request = DispatchRequest(id=1, method="tools/call", params={"name": "tools/list"})
        assert rewrite_tool_call(request).params == {}

    def test_other_methods_unchanged(self):
        """Should leave other requests alone."""
        request = DispatchRequest(id=1, method="ping")
        assert rewrite_tool_call(request) is request

    @pytest.mark.parametrize("params", [None, [], {"arguments": {}}, {"name": ""}, {"name": 4}])
    def test_malformed_envelope(self, params):
        """Should raise InvalidRequestError for malformed envelopes."""
        request = DispatchRequest(id=1, method="tools/call", params=params)

        with pytest.raises(InvalidRequestError):
            rewrite_tool_call(request)


class TestCancelledNotification:
    """Tests for cancellation params."""

    def test_decodes_request_id_and_reason(self):
        """Should decode requestId and reason."""
        cancelled = CancelledNotification.from_params({"requestId": 12, "reason": "timeout"})
        assert cancelled == CancelledNotification(request_id=12, reason="timeout")

    def test_reason_is_optional(self):
        """Should accept a missing reason."""
        assert CancelledNotification.from_params({"requestId": "abc"}).reason is None

    @pytest.mark.parametrize(
        "params", [None, {}, {"requestId": True}, {"requestId": [1]}, {"requestId": 1, "reason": 2}]
    )
    def test_malformed_params(self, params):
        """Should raise InvalidRequestError for malformed params."""
        with pytest.raises(InvalidRequestError):
            CancelledNotification.from_params(params)


class TestFormatting:
    """Tests for response formatting."""

    def test_success_envelope(self):
        """Should format a success response."""
        line = format_response(1, {"ok": True})
        assert json.loads(line) == {"jsonrpc": "2.0", "id": 1, "result": {"ok": True}}
        assert "\n" not in line

    def test_error_envelope(self):
        """Should format a structured error response."""
        line = format_error("x", {"code": -33003, "message": "Not found: p"})
        assert json.loads(line) == {
            "jsonrpc": "2.0",
            "error": {"code": -33003, "message": "Not found: p"},
            "id": "x",
        }

    def test_generic_error_envelope(self):
        """Should use the fixed fallback code and message."""
        assert json.loads(format_generic_error(9)) == {
            "jsonrpc": "2.0",
            "error": {"code": -1, "message": "Invalid json-rpc call"},
            "id": 9,
        }
