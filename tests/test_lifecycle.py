"""Tests for STDIO transport, MCP lifecycle management and session state."""

import io
import logging
import signal
from unittest.mock import MagicMock

import pytest

from sonarqube_mcp.errors import SerializationError
from sonarqube_mcp.protocol.lifecycle import (
    MCP_PROTOCOL_VERSION,
    InitializeParams,
    LifecycleManager,
    LifecycleState,
    SessionState,
)
from sonarqube_mcp.protocol.transport import StdioTransport
from sonarqube_mcp.signals import install_signal_handlers


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestStdioTransport:
    """Tests for STDIO transport layer."""

    def test_reads_line_from_stdin(self):
        """Should read a line without its trailing newline."""
        mock_stdin = io.StringIO('{"jsonrpc":"2.0","id":1,"method":"test"}\n')
        transport = StdioTransport(stdin=mock_stdin, stdout=io.StringIO())

        assert transport.read_line() == '{"jsonrpc":"2.0","id":1,"method":"test"}'

    def test_keeps_raw_content(self):
        """Should not strip whitespace or skip empty lines."""
        transport = StdioTransport(stdin=io.StringIO("  {}  \n\nlast"), stdout=io.StringIO())

        assert transport.read_line() == "  {}  "
        assert transport.read_line() == ""
        assert transport.read_line() == "last"
        assert transport.read_line() is None

    def test_returns_none_on_eof(self):
        """Should return None when stdin is exhausted."""
        transport = StdioTransport(stdin=io.StringIO(""), stdout=io.StringIO())
        assert transport.read_line() is None

    def test_read_errors_propagate(self):
        """Should let stream read errors propagate."""
        mock_stdin = MagicMock()
        mock_stdin.readline.side_effect = OSError("Pipe broken")
        transport = StdioTransport(stdin=mock_stdin, stdout=io.StringIO())

        with pytest.raises(OSError, match="Pipe broken"):
            transport.read_line()

    def test_writes_line_to_stdout(self):
        """Should write a line to stdout with newline."""
        mock_stdout = io.StringIO()
        transport = StdioTransport(stdin=io.StringIO(), stdout=mock_stdout)

        transport.write_line('{"jsonrpc":"2.0","id":1,"result":{}}')

        assert mock_stdout.getvalue() == '{"jsonrpc":"2.0","id":1,"result":{}}\n'


class TestInitializeParams:
    """Tests for the two accepted initialize param shapes."""

    PARAMS = {
        "protocolVersion": "2025-03-26",
        "capabilities": {"roots": {}},
        "clientInfo": {"name": "test-client", "version": "1.0"},
    }

    def test_accepts_object(self):
        """Should decode a bare object."""
        params = InitializeParams.from_params(self.PARAMS)

        assert params.protocol_version == "2025-03-26"
        assert params.capabilities == {"roots": {}}
        assert params.client_info == {"name": "test-client", "version": "1.0"}

    def test_accepts_single_element_array(self):
        """Should decode an object wrapped in a one-element array."""
        assert InitializeParams.from_params([self.PARAMS]) == InitializeParams.from_params(
            self.PARAMS
        )

    def test_defaults(self):
        """Should default the protocol version when absent."""
        params = InitializeParams.from_params(None)
        assert params.protocol_version == MCP_PROTOCOL_VERSION
        assert params.client_info is None

    @pytest.mark.parametrize(
        "raw", [[], [{}, {}], "2024-11-05", {"protocolVersion": 1}, {"clientInfo": "x"}]
    )
    def test_rejects_other_shapes(self, raw):
        """Should raise SerializationError for anything else."""
        with pytest.raises(SerializationError):
            InitializeParams.from_params(raw)


class TestLifecycleManager:
    """Tests for lifecycle state transitions."""

    def test_full_lifecycle(self):
        """Should walk through every state in order."""
        manager = LifecycleManager()
        assert manager.state == LifecycleState.UNINITIALIZED

        manager.initialize(InitializeParams())
        assert manager.state == LifecycleState.INITIALIZING

        manager.initialized()
        assert manager.is_ready

        assert manager.ping() is None

        assert manager.shutdown() is None
        assert manager.state == LifecycleState.SHUTTING_DOWN

        manager.exit()
        assert manager.state == LifecycleState.EXITED

    def test_initialize_result(self):
        """Should echo the protocol version and advertise capabilities."""
        manager = LifecycleManager()

        result = manager.initialize(
            InitializeParams(protocol_version="2025-03-26", client_info={"name": "c"})
        )

        assert result["protocolVersion"] == "2025-03-26"
        assert result["serverInfo"] == {"name": "sonarqube-mcp-server", "version": "0.1.0"}
        assert result["capabilities"]["tools"] == {"call": True, "list": True}
        assert result["capabilities"]["resources"] == {"get": True, "list": True}
        assert result["instructions"]
        assert manager.client_info == {"name": "c"}

    def test_initialize_marks_session(self):
        """Should record the handshake in the session state."""
        session = SessionState()
        LifecycleManager(session=session).initialize(InitializeParams())
        assert session.recently_initialized()

    def test_out_of_order_calls_warn_but_succeed(self, caplog):
        """Should log warnings for out-of-order calls without rejecting them."""
        caplog.set_level(logging.WARNING, logger="sonarqube_mcp")
        manager = LifecycleManager()

        assert manager.ping() is None
        manager.initialize(InitializeParams())
        manager.initialize(InitializeParams())

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 2
        assert "ping" in warnings[0].getMessage()
        assert "initialize" in warnings[1].getMessage()
        assert manager.state == LifecycleState.INITIALIZING

    def test_shutdown_clears_session(self):
        """Should clear the recently-initialized flag on shutdown."""
        session = SessionState()
        manager = LifecycleManager(session=session)
        manager.initialize(InitializeParams())

        manager.shutdown()

        assert not session.recently_initialized()


class TestSessionState:
    """Tests for the initialize grace window."""

    def test_not_initialized_by_default(self):
        """Should start without the flag."""
        assert not SessionState().recently_initialized()

    def test_flag_expires_after_grace_period(self):
        """Should report the flag only within the grace period."""
        clock = FakeClock()
        session = SessionState(clock=clock)
        session.mark_initialized()

        clock.now += 9
        assert session.recently_initialized()

        clock.now += 1
        assert not session.recently_initialized()

    def test_clear(self):
        """Should clear the flag."""
        session = SessionState()
        session.mark_initialized()
        session.clear()
        assert not session.recently_initialized()


class TestSignalHandlers:
    """Tests for termination signal handling."""

    @pytest.fixture
    def installed(self):
        session = SessionState(clock=FakeClock())
        stop = MagicMock()
        previous = install_signal_handlers(session, stop, signals=[signal.SIGTERM])
        handler = signal.getsignal(signal.SIGTERM)
        yield session, stop, handler
        signal.signal(signal.SIGTERM, previous[signal.SIGTERM])

    def test_signal_requests_stop(self, installed):
        """Should call stop with the signal number."""
        _, stop, handler = installed

        handler(signal.SIGTERM, None)

        stop.assert_called_once_with(signal.SIGTERM)

    def test_signal_while_session_is_updated(self):
        """Should handle a signal that arrives while the session lock is held."""
        delivered = []

        def clock():
            if not delivered:
                delivered.append(True)
                signal.raise_signal(signal.SIGTERM)
            return 1000.0

        session = SessionState(clock=clock)
        stop = MagicMock()
        previous = install_signal_handlers(session, stop, signals=[signal.SIGTERM])
        try:
            session.mark_initialized()
        finally:
            signal.signal(signal.SIGTERM, previous[signal.SIGTERM])

        stop.assert_called_once_with(signal.SIGTERM)
        assert session.recently_initialized()

    def test_signal_ignored_right_after_initialize(self, installed):
        """Should ignore signals within the grace period."""
        session, stop, handler = installed
        session.mark_initialized()

        handler(signal.SIGTERM, None)

        stop.assert_not_called()
