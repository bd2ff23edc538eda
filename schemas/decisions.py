"""Decision records returned by the agents.

One model per agent kind. Each record is built once at the end of a
pipeline run and returned as-is; nothing here is persisted.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .analysis import BuildPrediction, Vulnerability


class ReviewStatus(str, Enum):
    """Outcome of a code review."""

    APPROVED = "approved"
    CHANGES_REQUESTED = "changes_requested"


class DecisionRecord(BaseModel):
    """Fields shared by every decision."""

    timestamp: str = Field(..., description="Completion instant, ISO-8601 UTC")


class CodeReviewDecision(DecisionRecord):
    status: ReviewStatus
    analysis: str = Field(..., description="Full analysis text from the model")
    risk_level: str
    suggestions: list[str] = Field(default_factory=list)
    model_used: str
    provider: str

    def to_markdown(self) -> str:
        """Render the decision as a pull request comment."""
        headline = (
            "Changes requested" if self.status == ReviewStatus.CHANGES_REQUESTED
            else "Approved"
        )
        lines = [
            f"## Automated review: {headline}",
            "",
            f"**Risk level:** {self.risk_level}",
            "",
            "### Analysis",
            "",
            self.analysis.strip(),
        ]
        if self.suggestions:
            lines.extend(["", "### Suggestions", ""])
            lines.extend(f"- {s.lstrip('-* ').strip()}" for s in self.suggestions)
        lines.extend(["", f"_Model: {self.model_used} ({self.provider})_"])
        return "\n".join(lines)


class TestWriterDecision(DecisionRecord):
    __test__ = False  # not a pytest class

    tests_generated: int
    test_files: list[str] = Field(default_factory=list)
    frameworks: dict[str, str] = Field(
        default_factory=dict, description="Test file -> framework used"
    )
    coverage_estimate: float = Field(
        ..., description="Placeholder figure in [85, 95); not a measurement"
    )
    coverage_estimate_source: str = "simulated"


class BuildPredictionDecision(DecisionRecord, BuildPrediction):
    prediction_source: str = Field(..., description="'llm' or 'default'")
    commit_sha: str | None = None
    branch: str | None = None
    model_used: str
    provider: str
    dependency_analysis: dict[str, Any] | None = None


class DockerHandlerDecision(DecisionRecord):
    image_tag: str
    image_pushed: bool
    k8s_manifests: dict[str, str]
    registry_url: str | None = None
    simulated: bool = False


class DeploymentDecision(DecisionRecord):
    deployment_id: str
    deployment_url: str
    status: str
    environment: str
    image_tag: str
    simulated: bool = False


class ConversationalDeploymentDecision(DecisionRecord):
    deployment_id: str
    deployment_url: str
    status: str
    steps_completed: list[str]
    environment: str
    branch: str | None = None
    estimated_completion: str
    next_steps: list[str]


class MonitoringMetrics(BaseModel):
    cpu_usage: float
    memory_usage: float
    response_time: float
    error_rate: float


class MonitoringDecision(DecisionRecord):
    deployment_id: str
    environment: str | None = None
    status: str
    metrics: MonitoringMetrics
    dashboard_url: str
    alerts: list[str] = Field(default_factory=list)
    monitoring_duration: str


class VulnerabilityScanDecision(DecisionRecord):
    repository: str
    branch: str
    scan_type: str
    risk_level: str
    vulnerabilities: list[Vulnerability] = Field(default_factory=list)
    total_issues: int
    analysis_source: str = Field(..., description="'structured' or 'heuristic'")
    model_used: str
    provider: str
