"""STDIO transport layer for MCP communication.

Reads raw JSON-RPC lines from stdin and writes responses to stdout.
"""

from __future__ import annotations

import sys
from typing import TextIO


class StdioTransport:
    """STDIO transport for MCP communication.

    Reads one line per message from stdin and writes one line per response
    to stdout. Logging goes to stderr to avoid corrupting the protocol stream.
    """

    def __init__(
        self,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            stdin: Input stream (defaults to sys.stdin).
            stdout: Output stream (defaults to sys.stdout).
        """
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    def read_line(self) -> str | None:
        """Read one raw line from stdin.

        Empty lines are returned as-is; skipping them is the caller's job.
        Read errors propagate.

        Returns:
            The line without its trailing newline, or None on EOF.
        """
        line = self._stdin.readline()
        if not line:  # EOF
            return None
        return line.removesuffix("\n")

    def write_line(self, message: str) -> None:
        """Write one message line to stdout.

        Args:
            message: JSON string to write.
        """
        self._stdout.write(message + "\n")
        self._stdout.flush()
