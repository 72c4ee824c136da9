"""Async REST client for the SonarQube Web API."""

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

import httpx

from sonarqube_mcp.sonarqube.errors import (
    ProjectNotFoundError,
    SonarApiError,
    SonarAuthError,
    SonarHttpError,
    SonarParseError,
)
from sonarqube_mcp.sonarqube.query import QueryBuilder
from sonarqube_mcp.sonarqube.types import (
    IssuesRequest,
    IssuesResponse,
    MetricsResponse,
    ProjectsResponse,
    QualityGateResponse,
    SonarQubeClientConfig,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Characters of a response body kept in parse error messages
PREVIEW_LENGTH = 200


def _preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


class SonarQubeClient:
    """Async client for the SonarQube REST API.

    All methods raise SonarError subclasses; they never return partial data.
    """

    TIMEOUT = 30.0

    def __init__(
        self,
        config: SonarQubeClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Base URL, token and optional organization.
            http_client: Optional preconfigured httpx client (tests).
        """
        self.base_url = config.base_url.rstrip("/")
        self.token = config.token
        self.organization = config.organization
        self.debug = config.debug
        self._client = http_client

    async def __aenter__(self) -> SonarQubeClient:
        self._get_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.TIMEOUT)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def has_organization(self) -> bool:
        return self.organization is not None

    def _debug(self, message: str, *args: Any) -> None:
        if self.debug:
            logger.debug(message, *args)

    async def _get(self, url: str, project_key: str) -> httpx.Response:
        """Perform a GET and map failure statuses to SonarError.

        Raises:
            SonarHttpError: On transport failures.
            SonarAuthError: On 401/403.
            ProjectNotFoundError: On 404.
            SonarApiError: On any other non-success status.
        """
        self._debug("Making request to: %s", url)
        try:
            response = await self._get_client().get(
                url, headers={"Authorization": f"Bearer {self.token}"}
            )
        except httpx.HTTPError as e:
            raise SonarHttpError(e) from e

        if response.is_success:
            return response
        if response.status_code in (401, 403):
            raise SonarAuthError()
        if response.status_code == 404:
            raise ProjectNotFoundError(project_key)
        body = response.text or "Unknown error"
        raise SonarApiError(f"HTTP {response.status_code}: {body}")

    def _parse(self, response: httpx.Response, model: type[T], entity: str) -> T:
        """Parse a response body into a model.

        Raises:
            SonarParseError: If the body is not JSON or lacks required fields.
        """
        text = response.text
        self._debug("Response body (first %d chars): %s", PREVIEW_LENGTH, _preview(text))
        try:
            return model.from_dict(json.loads(text))  # type: ignore[attr-defined]
        except (ValueError, KeyError, TypeError) as e:
            detail = f"missing field {e}" if isinstance(e, KeyError) else str(e)
            self._debug("Failed to parse %s response: %s", entity, detail)
            raise SonarParseError(
                f"Failed to parse {entity} response: {detail} - Response preview: {_preview(text)}"
            ) from e

    async def get_metrics(self, project_key: str, metrics: list[str]) -> MetricsResponse:
        """Fetch measures for a project."""
        url = (
            QueryBuilder(f"{self.base_url}/api/measures/component")
            .add_param("component", project_key)
            .add_param("metricKeys", ",".join(metrics))
            .add_param("organization", self.organization)
            .build()
        )
        response = await self._get(url, project_key)
        return self._parse(response, MetricsResponse, "metrics")

    async def get_issues(self, query: IssuesRequest) -> IssuesResponse:
        """Search issues of a project with the given filters."""
        url = (
            QueryBuilder(f"{self.base_url}/api/issues/search")
            .add_param("componentKeys", query.project_key)
            .add_param("organization", self.organization)
            # Classification
            .add_array_param("severities", query.severities)
            .add_array_param("types", query.types)
            .add_array_param("statuses", query.statuses)
            .add_array_param("impactSeverities", query.impact_severities)
            .add_array_param("impactSoftwareQualities", query.impact_software_qualities)
            # Ownership
            .add_bool_param("assignedToMe", query.assigned_to_me)
            .add_array_param("assignees", query.assignees)
            .add_array_param("authors", query.authors)
            # Code location
            .add_array_param("codeVariants", query.code_variants)
            .add_array_param("directories", query.directories)
            .add_array_param("files", query.files)
            .add_array_param("languages", query.languages)
            # Time
            .add_param("createdAfter", query.created_after)
            .add_param("createdBefore", query.created_before)
            .add_param("createdInLast", query.created_in_last)
            # Standards
            .add_array_param("cwe", query.cwe)
            .add_array_param("owaspTop10", query.owasp_top10)
            .add_array_param("owaspTop10-2021", query.owasp_top10_2021)
            .add_array_param("sansTop25", query.sans_top25)
            .add_array_param("sonarsourceSecurity", query.sonarsource_security)
            # Resolution
            .add_array_param("resolutions", query.resolutions)
            .add_bool_param("resolved", query.resolved)
            .add_array_param("rules", query.rules)
            .add_array_param("tags", query.tags)
            .add_array_param("issueStatuses", query.issue_statuses)
            # Response shape
            .add_array_param("facets", query.facets)
            .add_param("s", query.sort_field)
            .add_bool_param("asc", query.asc)
            .add_param("p", query.page)
            .add_param("ps", query.page_size)
            .build()
        )
        response = await self._get(url, query.project_key)
        return self._parse(response, IssuesResponse, "issues")

    async def get_quality_gate(self, project_key: str) -> QualityGateResponse:
        """Fetch the quality gate status of a project."""
        url = (
            QueryBuilder(f"{self.base_url}/api/qualitygates/project_status")
            .add_param("projectKey", project_key)
            .add_param("organization", self.organization)
            .build()
        )
        response = await self._get(url, project_key)
        return self._parse(response, QualityGateResponse, "quality gate")

    async def list_projects(
        self,
        page: int | None = None,
        page_size: int | None = None,
        organization: str | None = None,
    ) -> ProjectsResponse:
        """List projects, optionally overriding the configured organization."""
        url = (
            QueryBuilder(f"{self.base_url}/api/components/search")
            .add_param("qualifiers", "TRK")
            .add_param("organization", organization or self.organization)
            .add_param("p", page)
            .add_param("ps", page_size)
            .build()
        )
        response = await self._get(url, "")
        result = self._parse(response, ProjectsResponse, "projects")
        self._debug("Successfully parsed response: %d projects found", len(result.components))
        return result
