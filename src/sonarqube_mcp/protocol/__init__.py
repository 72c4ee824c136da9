"""MCP protocol layer for JSON-RPC communication."""

from sonarqube_mcp.protocol.audit import DEFAULT_AUDIT_LOG, AuditLog
from sonarqube_mcp.protocol.jsonrpc import (
    GENERIC_ERROR_CODE,
    GENERIC_ERROR_MESSAGE,
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
from sonarqube_mcp.protocol.lifecycle import (
    MCP_PROTOCOL_VERSION,
    InitializeParams,
    LifecycleManager,
    LifecycleState,
    SessionState,
)
from sonarqube_mcp.protocol.tools import CallToolResult, ToolDefinition
from sonarqube_mcp.protocol.transport import StdioTransport

__all__ = [
    "AuditLog",
    "CallToolResult",
    "CancelledNotification",
    "DEFAULT_AUDIT_LOG",
    "DispatchRequest",
    "GENERIC_ERROR_CODE",
    "GENERIC_ERROR_MESSAGE",
    "InitializeParams",
    "LifecycleManager",
    "LifecycleState",
    "MCP_PROTOCOL_VERSION",
    "Notification",
    "SessionState",
    "StdioTransport",
    "ToolDefinition",
    "classify",
    "decode_line",
    "format_error",
    "format_generic_error",
    "format_response",
    "rewrite_tool_call",
]
