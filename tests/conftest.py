"""Pytest configuration and shared fixtures."""

import logging
from pathlib import Path

import pytest
import respx

from sonarqube_mcp.config import Config
from sonarqube_mcp.server import MCPServer, ServerContext
from sonarqube_mcp.sonarqube.client import SonarQubeClient
from sonarqube_mcp.sonarqube.types import SonarQubeClientConfig

SONAR_URL = "https://sonar.example.com"
SONAR_TOKEN = "test-token"


@pytest.fixture(autouse=True)
def restore_package_log_level():
    """Undo runtime log level changes (logging/setLevel) after each test."""
    package_logger = logging.getLogger("sonarqube_mcp")
    original_level = package_logger.level
    yield
    package_logger.setLevel(original_level)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path: Path):
    """Keep real SonarQube settings and config files out of the tests."""
    for name in (
        "SONARQUBE_URL",
        "SONARQUBE_TOKEN",
        "SONARQUBE_ORGANIZATION",
        "SONARQUBE_DEBUG",
        "SONARQUBE_MCP_CONFIG",
        "SONARQUBE_MCP_LOG_LEVEL",
        "SONARQUBE_MCP_AUDIT_LOG",
    ):
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def sonar_api():
    """Mocked SonarQube REST API."""
    with respx.mock(base_url=SONAR_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def client_config():
    return SonarQubeClientConfig(base_url=SONAR_URL, token=SONAR_TOKEN)


@pytest.fixture
def client(client_config):
    return SonarQubeClient(client_config)


@pytest.fixture
def server(client):
    """Server wired to the mocked SonarQube API."""
    return MCPServer(ServerContext(config=Config(), client=client))


@pytest.fixture
def projects_payload():
    """Build a /api/components/search response body for the given keys."""

    def build(*keys):
        return {
            "paging": {"pageIndex": 1, "pageSize": 100, "total": len(keys)},
            "components": [
                {"key": key, "name": key.replace("-", " ").title(), "qualifier": "TRK"}
                for key in keys
            ],
        }

    return build


@pytest.fixture
def metrics_payload():
    return {
        "component": {
            "key": "my-project",
            "name": "My Project",
            "measures": [
                {"metric": "ncloc", "value": "1200"},
                {"metric": "coverage", "value": "87.5", "bestValue": False},
            ],
        }
    }


@pytest.fixture
def issues_payload():
    return {
        "total": 1,
        "p": 1,
        "ps": 100,
        "paging": {"pageIndex": 1, "pageSize": 100, "total": 1},
        "issues": [
            {
                "key": "AX-1",
                "rule": "python:S1481",
                "severity": "MINOR",
                "component": "my-project:src/app.py",
                "project": "my-project",
                "line": 42,
                "message": "Remove the unused local variable",
                "type": "CODE_SMELL",
                "status": "OPEN",
            }
        ],
        "components": [
            {
                "key": "my-project:src/app.py",
                "name": "app.py",
                "qualifier": "FIL",
                "path": "src/app.py",
            }
        ],
    }


@pytest.fixture
def quality_gate_payload():
    return {
        "projectStatus": {
            "status": "ERROR",
            "conditions": [
                {
                    "status": "ERROR",
                    "metricKey": "new_coverage",
                    "comparator": "LT",
                    "errorThreshold": "80",
                    "actualValue": "42.1",
                }
            ],
        }
    }
