"""Termination signal handling.

Some clients send a stray SIGTERM while the initialize handshake is still
settling. Signals arriving within the grace period after initialize are
ignored; any later signal requests a stop.
"""

from __future__ import annotations

import logging
import signal
from collections.abc import Callable, Iterable
from typing import Any

from sonarqube_mcp.protocol.lifecycle import SessionState

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def install_signal_handlers(
    session: SessionState,
    stop: Callable[[int], None],
    signals: Iterable[signal.Signals] = DEFAULT_SIGNALS,
) -> dict[signal.Signals, Any]:
    """Install handlers that call ``stop`` unless initialize just happened.

    Args:
        session: Session state consulted on every signal.
        stop: Called with the signal number to stop the server. It may
            raise to unwind the loop.
        signals: Signals to handle.

    Returns:
        The previously installed handlers, keyed by signal.
    """

    def handler(signum: int, frame: Any) -> None:
        name = signal.Signals(signum).name
        if session.recently_initialized():
            logger.warning("Ignoring %s received shortly after initialize", name)
            return
        logger.info("Received %s, shutting down", name)
        stop(signum)

    previous = {}
    for sig in signals:
        previous[sig] = signal.signal(sig, handler)
    return previous
