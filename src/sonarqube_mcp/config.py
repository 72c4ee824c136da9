"""Configuration management for the SonarQube MCP server.

Settings are layered, lowest to highest precedence: defaults, a YAML file,
environment variables, then command-line arguments.

Example YAML file::

    sonarqube:
      url: https://sonarcloud.io
      token: ${SONARQUBE_TOKEN}
      organization: my-org
      debug: false
    logging:
      level: INFO
      file: /var/log/sonarqube-mcp.log
    audit_log: /tmp/sonarqube-mcp/audit.log
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from sonarqube_mcp.errors import ConfigError
from sonarqube_mcp.protocol.audit import DEFAULT_AUDIT_LOG
from sonarqube_mcp.sonarqube.types import SonarQubeClientConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = "SONARQUBE_MCP_CONFIG"
CONFIG_FILE_NAME = "sonarqube-mcp.yaml"

URL_ENV = "SONARQUBE_URL"
TOKEN_ENV = "SONARQUBE_TOKEN"
ORGANIZATION_ENV = "SONARQUBE_ORGANIZATION"
DEBUG_ENV = "SONARQUBE_DEBUG"
LOG_LEVEL_ENV = "SONARQUBE_MCP_LOG_LEVEL"
AUDIT_LOG_ENV = "SONARQUBE_MCP_AUDIT_LOG"

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def expand_env_vars(value: Any) -> Any:
    """Expand ${VAR_NAME} references in a string.

    Unknown variables are left unchanged; non-strings pass through.
    """
    if not isinstance(value, str):
        return value

    def replacer(match: re.Match[str]) -> str:
        env_value = os.environ.get(match.group(1))
        if env_value is not None:
            return env_value
        return match.group(0)

    return _ENV_VAR_PATTERN.sub(replacer, value)


def parse_bool(value: Any, name: str = "value") -> bool:
    """Parse a boolean from a config or environment value.

    Raises:
        ConfigError: If the value is not a recognised boolean.
    """
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {name}: {value!r}")


@dataclass
class SonarQubeConfig:
    """SonarQube connection settings."""

    url: str = ""
    token: str = ""
    organization: str | None = None
    debug: bool = False

    def validate(self) -> None:
        """Validate connection settings.

        Raises:
            ConfigError: If the URL or token is missing.
        """
        if not self.url:
            raise ConfigError(f"SonarQube URL is required. Set {URL_ENV} or use --sonarqube-url")
        if not self.token:
            raise ConfigError(
                f"SonarQube token is required. Set {TOKEN_ENV} or use --sonarqube-token"
            )

    def to_client_config(self) -> SonarQubeClientConfig:
        return SonarQubeClientConfig(
            base_url=self.url,
            token=self.token,
            organization=self.organization,
            debug=self.debug,
        )


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Path | None = None


@dataclass
class Config:
    """Main server configuration."""

    sonarqube: SonarQubeConfig = field(default_factory=SonarQubeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    audit_log: Path = DEFAULT_AUDIT_LOG

    @classmethod
    def load_from_file(cls, config_path: Path) -> Config:
        """Load configuration from a YAML file.

        Raises:
            ConfigError: If the file cannot be read or has the wrong shape.
        """
        try:
            with open(config_path, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f) or {}
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        return cls.from_dict(raw_config, source=str(config_path))

    @classmethod
    def from_dict(cls, raw_config: Any, source: str = "config") -> Config:
        """Build configuration from a parsed YAML mapping."""
        if not isinstance(raw_config, dict):
            raise ConfigError(f"{source}: top level must be a mapping")
        sonar = raw_config.get("sonarqube") or {}
        log = raw_config.get("logging") or {}
        if not isinstance(sonar, dict) or not isinstance(log, dict):
            raise ConfigError(f"{source}: 'sonarqube' and 'logging' must be mappings")

        organization = expand_env_vars(sonar.get("organization"))
        log_file = expand_env_vars(log.get("file"))
        audit_log = expand_env_vars(raw_config.get("audit_log"))

        return cls(
            sonarqube=SonarQubeConfig(
                url=expand_env_vars(sonar.get("url", "")) or "",
                token=expand_env_vars(sonar.get("token", "")) or "",
                organization=organization or None,
                debug=parse_bool(sonar.get("debug", False), "sonarqube.debug"),
            ),
            logging=LoggingConfig(
                level=str(log.get("level", "INFO")).upper(),
                file=Path(log_file) if log_file else None,
            ),
            audit_log=Path(audit_log) if audit_log else DEFAULT_AUDIT_LOG,
        )

    def apply_environment(self, environ: Mapping[str, str] | None = None) -> None:
        """Override settings from environment variables."""
        env = os.environ if environ is None else environ
        if env.get(URL_ENV):
            self.sonarqube.url = env[URL_ENV]
        if env.get(TOKEN_ENV):
            self.sonarqube.token = env[TOKEN_ENV]
        if env.get(ORGANIZATION_ENV):
            self.sonarqube.organization = env[ORGANIZATION_ENV]
        if env.get(DEBUG_ENV):
            self.sonarqube.debug = parse_bool(env[DEBUG_ENV], DEBUG_ENV)
        if env.get(LOG_LEVEL_ENV):
            self.logging.level = env[LOG_LEVEL_ENV].upper()
        if env.get(AUDIT_LOG_ENV):
            self.audit_log = Path(env[AUDIT_LOG_ENV])

    def apply_overrides(
        self,
        url: str | None = None,
        token: str | None = None,
        organization: str | None = None,
        log_level: str | None = None,
        audit_log: Path | None = None,
    ) -> None:
        """Override settings from command-line arguments (None means unset)."""
        if url:
            self.sonarqube.url = url
        if token:
            self.sonarqube.token = token
        if organization:
            self.sonarqube.organization = organization
        if log_level:
            self.logging.level = log_level.upper()
        if audit_log:
            self.audit_log = Path(audit_log)

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            ConfigError: If required settings are missing or invalid.
        """
        self.sonarqube.validate()
        if not isinstance(logging.getLevelName(self.logging.level), int):
            raise ConfigError(f"Unknown log level: {self.logging.level}")


def find_config_file(
    explicit: Path | None = None, environ: Mapping[str, str] | None = None
) -> Path | None:
    """Locate the YAML config file.

    An explicit path or SONARQUBE_MCP_CONFIG must exist; otherwise the
    working directory and home directory are searched.

    Raises:
        ConfigError: If an explicitly requested file does not exist.
    """
    env = os.environ if environ is None else environ
    requested = explicit or (Path(env[CONFIG_FILE_ENV]) if env.get(CONFIG_FILE_ENV) else None)
    if requested is not None:
        if not requested.exists():
            raise ConfigError(f"Config file not found: {requested}")
        return requested

    for candidate in (Path.cwd() / CONFIG_FILE_NAME, Path.home() / f".{CONFIG_FILE_NAME}"):
        if candidate.exists():
            return candidate
    return None


def load_config(
    config_path: Path | None = None, environ: Mapping[str, str] | None = None
) -> Config:
    """Load configuration from file (if any) and environment.

    Args:
        config_path: Explicit YAML file, overriding the search.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        Loaded Config. It is not validated.
    """
    path = find_config_file(config_path, environ)
    if path is not None:
        logger.debug("Loading configuration from %s", path)
        config = Config.load_from_file(path)
    else:
        config = Config()
    config.apply_environment(environ)
    return config
