"""Logging setup for the SonarQube MCP server.

Protocol traffic owns stdout, so every log record goes to stderr (and
optionally a file). Credentials are masked before records are emitted.
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import Any

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

PACKAGE_LOGGERS = ["sonarqube_mcp"]

MASK = "********"

_SENSITIVE_PATTERNS = [
    (re.compile(r"(Bearer\s+)[^\s'\"]+", re.IGNORECASE), r"\g<1>" + MASK),
    (re.compile(r"(token=)[^&\s'\"]+", re.IGNORECASE), r"\g<1>" + MASK),
    (re.compile(r"(\"token\"\s*:\s*\")[^\"]*(\")", re.IGNORECASE), r"\g<1>" + MASK + r"\g<2>"),
]


def mask_sensitive_data(value: Any) -> Any:
    """Mask bearer tokens and token parameters in a string.

    Non-string values are returned unchanged.
    """
    if not isinstance(value, str):
        return value
    for pattern, replacement in _SENSITIVE_PATTERNS:
        value = pattern.sub(replacement, value)
    return value


class SensitiveDataFilter(logging.Filter):
    """Logging filter that masks credentials in messages and arguments.

    Always lets the record through.
    """

    def __init__(self, name: str = "SensitiveDataFilter") -> None:
        super().__init__(name)

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = mask_sensitive_data(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(mask_sensitive_data(arg) for arg in record.args)
        return True


def setup_logging(level: str = "INFO", log_file: Path | None = None) -> None:
    """Configure logging for the server.

    Args:
        level: Logging level name.
        log_file: Optional file receiving the same records as stderr.
    """
    level = level.upper()

    # Remove any existing handlers from the root logger
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    formatter = logging.Formatter(LOG_FORMAT)
    sensitive_filter = SensitiveDataFilter()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.addFilter(sensitive_filter)
    root_logger.addHandler(stderr_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.addFilter(sensitive_filter)
        root_logger.addHandler(file_handler)

    for logger_name in PACKAGE_LOGGERS:
        package_logger = logging.getLogger(logger_name)
        package_logger.setLevel(level)
        package_logger.propagate = True

    # Keep HTTP client chatter down unless debugging
    if level != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured at %s", level)
