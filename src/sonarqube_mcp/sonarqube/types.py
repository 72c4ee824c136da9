"""Data models for SonarQube API payloads and tool parameters.

Response models are parsed from the JSON returned by SonarQube and
serialized back with the upstream field names. Request models describe
the arguments accepted by the MCP tools.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sonarqube_mcp.protocol.params import decode_dataclass


@dataclass
class SonarQubeClientConfig:
    """Connection settings for the SonarQube client."""

    base_url: str
    token: str
    organization: str | None = None
    debug: bool = False


# --------------------------------------------------------------------------
# API responses
# --------------------------------------------------------------------------


@dataclass
class Measure:
    metric: str
    value: str | None = None
    best_value: bool | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Measure:
        return cls(
            metric=data["metric"],
            value=data.get("value"),
            best_value=data.get("bestValue"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"metric": self.metric, "value": self.value, "bestValue": self.best_value}


@dataclass
class ComponentMeasures:
    key: str
    name: str
    measures: list[Measure] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ComponentMeasures:
        return cls(
            key=data["key"],
            name=data["name"],
            measures=[Measure.from_dict(m) for m in data["measures"]],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "measures": [m.to_dict() for m in self.measures],
        }


@dataclass
class MetricsResponse:
    """Response of /api/measures/component."""

    component: ComponentMeasures

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetricsResponse:
        return cls(component=ComponentMeasures.from_dict(data["component"]))

    def to_dict(self) -> dict[str, Any]:
        return {"component": self.component.to_dict()}


@dataclass
class Paging:
    page_index: int
    page_size: int
    total: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Paging:
        return cls(
            page_index=data["pageIndex"],
            page_size=data["pageSize"],
            total=data["total"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"pageIndex": self.page_index, "pageSize": self.page_size, "total": self.total}


@dataclass
class Issue:
    key: str
    rule: str
    severity: str
    component: str
    project: str
    message: str
    issue_type: str
    status: str
    line: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Issue:
        return cls(
            key=data["key"],
            rule=data["rule"],
            severity=data["severity"],
            component=data["component"],
            project=data["project"],
            message=data["message"],
            issue_type=data["type"],
            status=data["status"],
            line=data.get("line"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "rule": self.rule,
            "severity": self.severity,
            "component": self.component,
            "project": self.project,
            "line": self.line,
            "message": self.message,
            "type": self.issue_type,
            "status": self.status,
        }


@dataclass
class Component:
    key: str
    name: str
    qualifier: str
    path: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Component:
        return cls(
            key=data["key"],
            name=data["name"],
            qualifier=data["qualifier"],
            path=data.get("path"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "name": self.name, "qualifier": self.qualifier, "path": self.path}


@dataclass
class IssuesResponse:
    """Response of /api/issues/search."""

    total: int
    p: int
    ps: int
    paging: Paging
    issues: list[Issue] = field(default_factory=list)
    components: list[Component] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IssuesResponse:
        paging = Paging.from_dict(data["paging"])
        # Newer servers only report paging; fall back to it for p/ps/total
        return cls(
            total=data.get("total", paging.total),
            p=data.get("p", paging.page_index),
            ps=data.get("ps", paging.page_size),
            paging=paging,
            issues=[Issue.from_dict(i) for i in data["issues"]],
            components=[Component.from_dict(c) for c in data.get("components", [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "p": self.p,
            "ps": self.ps,
            "paging": self.paging.to_dict(),
            "issues": [i.to_dict() for i in self.issues],
            "components": [c.to_dict() for c in self.components],
        }


@dataclass
class Condition:
    metric_key: str
    comparator: str
    error_threshold: str
    actual_value: str
    status: str
    period_index: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Condition:
        return cls(
            metric_key=data["metricKey"],
            comparator=data["comparator"],
            error_threshold=data["errorThreshold"],
            actual_value=data["actualValue"],
            status=data["status"],
            period_index=data.get("periodIndex"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "metricKey": self.metric_key,
            "comparator": self.comparator,
            "periodIndex": self.period_index,
            "errorThreshold": self.error_threshold,
            "actualValue": self.actual_value,
            "status": self.status,
        }


@dataclass
class ProjectStatus:
    status: str
    conditions: list[Condition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectStatus:
        return cls(
            status=data["status"],
            conditions=[Condition.from_dict(c) for c in data.get("conditions", [])],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status, "conditions": [c.to_dict() for c in self.conditions]}


@dataclass
class QualityGateResponse:
    """Response of /api/qualitygates/project_status."""

    project_status: ProjectStatus

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QualityGateResponse:
        return cls(project_status=ProjectStatus.from_dict(data["projectStatus"]))

    def to_dict(self) -> dict[str, Any]:
        return {"projectStatus": self.project_status.to_dict()}


@dataclass
class Project:
    key: str
    name: str
    qualifier: str
    description: str | None = None
    visibility: str | None = None
    last_analysis_date: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        return cls(
            key=data["key"],
            name=data["name"],
            qualifier=data["qualifier"],
            description=data.get("description"),
            visibility=data.get("visibility"),
            last_analysis_date=data.get("lastAnalysisDate"),
        )


@dataclass
class ProjectsResponse:
    """Response of /api/components/search."""

    paging: Paging
    components: list[Project] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectsResponse:
        return cls(
            paging=Paging.from_dict(data["paging"]),
            components=[Project.from_dict(c) for c in data["components"]],
        )


# --------------------------------------------------------------------------
# Tool parameters
# --------------------------------------------------------------------------


@dataclass
class MetricsRequest:
    """Arguments of the sonarqube_get_metrics tool."""

    project_key: str
    metrics: list[str] | None = None

    @classmethod
    def from_params(cls, params: Any) -> MetricsRequest:
        return decode_dataclass(cls, params)


@dataclass
class IssuesRequest:
    """Arguments of the sonarqube_get_issues tool."""

    project_key: str
    severities: list[str] | None = None
    types: list[str] | None = None
    statuses: list[str] | None = None
    impact_severities: list[str] | None = None
    impact_software_qualities: list[str] | None = None
    assigned_to_me: bool | None = None
    assignees: list[str] | None = None
    authors: list[str] | None = None
    code_variants: list[str] | None = None
    created_after: str | None = None
    created_before: str | None = None
    created_in_last: str | None = None
    cwe: list[str] | None = None
    directories: list[str] | None = None
    facets: list[str] | None = None
    files: list[str] | None = None
    issue_statuses: list[str] | None = None
    languages: list[str] | None = None
    owasp_top10: list[str] | None = None
    owasp_top10_2021: list[str] | None = None
    resolutions: list[str] | None = None
    resolved: bool | None = None
    rules: list[str] | None = None
    sans_top25: list[str] | None = None
    sonarsource_security: list[str] | None = None
    tags: list[str] | None = None
    sort_field: str | None = None
    asc: bool | None = None
    page: int | None = None
    page_size: int | None = None

    @classmethod
    def from_params(cls, params: Any) -> IssuesRequest:
        return decode_dataclass(cls, params)


@dataclass
class QualityGateRequest:
    """Arguments of the sonarqube_get_quality_gate tool."""

    project_key: str

    @classmethod
    def from_params(cls, params: Any) -> QualityGateRequest:
        return decode_dataclass(cls, params)


@dataclass
class ListProjectsRequest:
    """Arguments of the sonarqube_list_projects tool."""

    page: int | None = None
    page_size: int | None = None
    organization: str | None = None

    @classmethod
    def from_params(cls, params: Any) -> ListProjectsRequest:
        return decode_dataclass(cls, params)
