"""Tests for the protocol audit log."""

from pathlib import Path

import pytest

from sonarqube_mcp.protocol.audit import AuditLog


class TestAuditLog:
    """Tests for AuditLog."""

    def test_creates_parent_directories(self, tmp_path: Path):
        """Should create the log directory if missing."""
        log_path = tmp_path / "nested" / "dir" / "audit.log"

        with AuditLog(log_path):
            pass

        assert log_path.exists()

    def test_writes_lines_unmodified(self, tmp_path: Path):
        """Should append each line verbatim followed by a newline."""
        log_path = tmp_path / "audit.log"

        with AuditLog(log_path) as audit:
            audit.write('{"jsonrpc":"2.0","id":1,"method":"ping"}')
            audit.write("  not json  ")
            audit.write("")

        assert log_path.read_text() == (
            '{"jsonrpc":"2.0","id":1,"method":"ping"}\n  not json  \n\n'
        )

    def test_flushes_after_each_write(self, tmp_path: Path):
        """Should make every line visible before close."""
        log_path = tmp_path / "audit.log"
        audit = AuditLog(log_path)

        audit.write("first")

        assert log_path.read_text() == "first\n"
        audit.close()

    def test_appends_to_existing_file(self, tmp_path: Path):
        """Should never truncate an existing log."""
        log_path = tmp_path / "audit.log"
        log_path.write_text("earlier\n")

        with AuditLog(log_path) as audit:
            audit.write("later")

        assert log_path.read_text() == "earlier\nlater\n"

    def test_close_is_idempotent(self, tmp_path: Path):
        """Should allow closing twice."""
        audit = AuditLog(tmp_path / "audit.log")
        audit.close()
        audit.close()

    def test_unwritable_location_raises(self, tmp_path: Path):
        """Should raise OSError when the log cannot be opened."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")

        with pytest.raises(OSError):
            AuditLog(blocker / "audit.log")
