"""MCP tools backed by the SonarQube client.

Each tool is registered as a direct JSON-RPC method (reachable through
tools/call as well) and listed by tools/list.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sonarqube_mcp.errors import ConfigError, NotFoundError, from_sonar_error
from sonarqube_mcp.protocol.tools import CallToolResult, ToolDefinition
from sonarqube_mcp.sonarqube.client import SonarQubeClient
from sonarqube_mcp.sonarqube.errors import SonarError
from sonarqube_mcp.sonarqube.types import (
    IssuesRequest,
    ListProjectsRequest,
    MetricsRequest,
    QualityGateRequest,
)

if TYPE_CHECKING:
    from sonarqube_mcp.registry import MethodRegistry

logger = logging.getLogger(__name__)

_STRING_ARRAY = {"type": "array", "items": {"type": "string"}}

_PROJECT_KEY = {"type": "string", "description": "SonarQube project key"}

_ISSUE_ARRAY_FILTERS = (
    ("severities", "Severities (INFO, MINOR, MAJOR, CRITICAL, BLOCKER)"),
    ("types", "Issue types (CODE_SMELL, BUG, VULNERABILITY, SECURITY_HOTSPOT)"),
    ("statuses", "Statuses (OPEN, CONFIRMED, REOPENED, RESOLVED, CLOSED)"),
    ("impact_severities", "Impact severities (LOW, MEDIUM, HIGH)"),
    ("impact_software_qualities", "Software qualities (MAINTAINABILITY, RELIABILITY, SECURITY)"),
    ("assignees", "Assignee logins"),
    ("authors", "SCM authors"),
    ("code_variants", "Code variants"),
    ("cwe", "CWE identifiers"),
    ("directories", "Directories"),
    ("facets", "Facets to compute"),
    ("files", "File paths"),
    ("issue_statuses", "Issue statuses"),
    ("languages", "Language keys"),
    ("owasp_top10", "OWASP Top 10 (2017) categories"),
    ("owasp_top10_2021", "OWASP Top 10 (2021) categories"),
    ("resolutions", "Resolutions (FALSE-POSITIVE, WONTFIX, FIXED, REMOVED)"),
    ("rules", "Rule keys"),
    ("sans_top25", "SANS Top 25 categories"),
    ("sonarsource_security", "SonarSource security categories"),
    ("tags", "Issue tags"),
)


def _issues_schema() -> dict[str, Any]:
    properties: dict[str, Any] = {"project_key": _PROJECT_KEY}
    for name, description in _ISSUE_ARRAY_FILTERS:
        properties[name] = {**_STRING_ARRAY, "description": description}
    properties.update(
        {
            "assigned_to_me": {"type": "boolean"},
            "resolved": {"type": "boolean"},
            "asc": {"type": "boolean", "description": "Ascending sort"},
            "created_after": {"type": "string", "description": "Date or datetime"},
            "created_before": {"type": "string", "description": "Date or datetime"},
            "created_in_last": {"type": "string", "description": "Period, e.g. 1m2w"},
            "sort_field": {"type": "string"},
            "page": {"type": "integer", "minimum": 1},
            "page_size": {"type": "integer", "minimum": 1, "maximum": 500},
        }
    )
    return {"type": "object", "properties": properties, "required": ["project_key"]}


GET_METRICS = ToolDefinition(
    name="sonarqube_get_metrics",
    description="Retrieve metrics (coverage, bugs, code smells, ...) for a SonarQube project",
    input_schema={
        "type": "object",
        "properties": {
            "project_key": _PROJECT_KEY,
            "metrics": {**_STRING_ARRAY, "description": "Metric keys, e.g. ncloc, coverage"},
        },
        "required": ["project_key"],
    },
)

GET_ISSUES = ToolDefinition(
    name="sonarqube_get_issues",
    description="Search the issues of a SonarQube project",
    input_schema=_issues_schema(),
)

GET_QUALITY_GATE = ToolDefinition(
    name="sonarqube_get_quality_gate",
    description="Retrieve the quality gate status of a SonarQube project",
    input_schema={
        "type": "object",
        "properties": {"project_key": _PROJECT_KEY},
        "required": ["project_key"],
    },
)

LIST_PROJECTS = ToolDefinition(
    name="sonarqube_list_projects",
    description="List SonarQube projects",
    input_schema={
        "type": "object",
        "properties": {
            "page": {"type": "integer", "minimum": 1},
            "page_size": {"type": "integer", "minimum": 1, "maximum": 500},
            "organization": {"type": "string", "description": "Organization override"},
        },
    },
)

TOOL_DEFINITIONS = [GET_METRICS, GET_ISSUES, GET_QUALITY_GATE, LIST_PROJECTS]

# Requested when sonarqube_get_metrics is called without metric keys
DEFAULT_METRICS = [
    "ncloc",
    "bugs",
    "vulnerabilities",
    "code_smells",
    "coverage",
    "duplicated_lines_density",
]

# Largest page size /api/components/search accepts
PROJECT_PAGE_SIZE = 500


class SonarQubeTools:
    """Tool handlers sharing one injected SonarQube client.

    The client may be None when the server runs without SonarQube
    configuration; every tool then fails with ConfigError.
    """

    def __init__(self, client: SonarQubeClient | None) -> None:
        self._client = client

    def _require_client(self, tool: str) -> SonarQubeClient:
        if self._client is None:
            raise ConfigError(
                "SonarQube client not configured; set SONARQUBE_URL and SONARQUBE_TOKEN"
            ).with_log(tool)
        return self._client

    async def _ensure_project_exists(
        self, client: SonarQubeClient, project_key: str, tool: str
    ) -> None:
        page = 1
        while True:
            projects = await client.list_projects(page=page, page_size=PROJECT_PAGE_SIZE)
            if any(p.key == project_key for p in projects.components):
                return
            if not projects.components or page * PROJECT_PAGE_SIZE >= projects.paging.total:
                break
            page += 1
        raise NotFoundError(f"Project not found: {project_key}").with_log(tool)

    async def _call(self, tool: str, coro: Any) -> Any:
        try:
            return await coro
        except SonarError as e:
            raise from_sonar_error(e).with_log(tool) from e

    async def get_metrics(self, request: MetricsRequest) -> CallToolResult:
        client = self._require_client(GET_METRICS.name)
        await self._call(
            GET_METRICS.name,
            self._ensure_project_exists(client, request.project_key, GET_METRICS.name),
        )
        metric_keys = request.metrics or DEFAULT_METRICS
        metrics = await self._call(
            GET_METRICS.name, client.get_metrics(request.project_key, metric_keys)
        )
        return CallToolResult.json(metrics.to_dict())

    async def get_issues(self, request: IssuesRequest) -> CallToolResult:
        client = self._require_client(GET_ISSUES.name)
        await self._call(
            GET_ISSUES.name,
            self._ensure_project_exists(client, request.project_key, GET_ISSUES.name),
        )
        issues = await self._call(GET_ISSUES.name, client.get_issues(request))
        return CallToolResult.json(issues.to_dict())

    async def get_quality_gate(self, request: QualityGateRequest) -> CallToolResult:
        client = self._require_client(GET_QUALITY_GATE.name)
        await self._call(
            GET_QUALITY_GATE.name,
            self._ensure_project_exists(client, request.project_key, GET_QUALITY_GATE.name),
        )
        gate = await self._call(GET_QUALITY_GATE.name, client.get_quality_gate(request.project_key))
        return CallToolResult.json(gate.to_dict())

    async def list_projects(self, request: ListProjectsRequest) -> dict[str, Any]:
        """List projects as ``{"projects": [{"key", "name"}]}``."""
        client = self._require_client(LIST_PROJECTS.name)
        projects = await self._call(
            LIST_PROJECTS.name,
            client.list_projects(request.page, request.page_size, request.organization),
        )
        logger.debug("Listed %d projects", len(projects.components))
        return {"projects": [{"key": p.key, "name": p.name} for p in projects.components]}

    def register(self, registry: MethodRegistry) -> None:
        """Register all tools on a MethodRegistry."""
        registry.register_tool(GET_METRICS, self.get_metrics, MetricsRequest)
        registry.register_tool(GET_ISSUES, self.get_issues, IssuesRequest)
        registry.register_tool(GET_QUALITY_GATE, self.get_quality_gate, QualityGateRequest)
        registry.register_tool(LIST_PROJECTS, self.list_projects, ListProjectsRequest)
