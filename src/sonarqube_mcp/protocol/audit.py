"""Append-only audit log of protocol traffic.

Every line read from and written to the transport is mirrored here, one
line per message, for post-hoc debugging.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any

DEFAULT_AUDIT_LOG = Path(tempfile.gettempdir()) / "sonarqube-mcp" / "audit.log"


class AuditLog:
    """Append-only line log.

    The file is opened at construction and flushed after each write.
    Open and write failures raise OSError.
    """

    def __init__(self, log_path: Path = DEFAULT_AUDIT_LOG) -> None:
        """Initialize the audit log.

        Args:
            log_path: Path to the audit log file.
        """
        self._log_path = Path(log_path)
        self._ensure_directory()
        self._file = open(self._log_path, "a", encoding="utf-8")  # noqa: SIM115

    @property
    def path(self) -> Path:
        return self._log_path

    def _ensure_directory(self) -> None:
        """Create log directory if it doesn't exist."""
        self._log_path.parent.mkdir(parents=True, exist_ok=True)

    def write(self, line: str) -> None:
        """Append one line, unmodified, and flush."""
        self._file.write(line + "\n")
        self._file.flush()

    def close(self) -> None:
        """Close the log file."""
        if self._file and not self._file.closed:
            self._file.close()

    def __enter__(self) -> AuditLog:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()
