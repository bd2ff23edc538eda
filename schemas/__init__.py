"""Schemas module for structured agent I/O.

Provides Pydantic models for:
- Agent request bodies (validated at the boundary)
- LLM analysis results and the JSON shapes requested from the model
- Decision records returned by each agent
"""

from .analysis import (
    AnalysisResult,
    BuildPrediction,
    RiskLevel,
    Vulnerability,
    VulnerabilityReport,
    default_build_prediction,
)
from .decisions import (
    BuildPredictionDecision,
    CodeReviewDecision,
    ConversationalDeploymentDecision,
    DecisionRecord,
    DeploymentDecision,
    DockerHandlerDecision,
    MonitoringDecision,
    MonitoringMetrics,
    ReviewStatus,
    TestWriterDecision,
    VulnerabilityScanDecision,
)
from .requests import (
    AgentRequest,
    BuildPredictorRequest,
    CodeReviewRequest,
    ConversationalDeployRequest,
    DeployRequest,
    DockerHandlerRequest,
    MonitorRequest,
    TestWriterRequest,
    VulnerabilityScanRequest,
    parse_agent_request,
)

__all__ = [
    # Analysis
    "AnalysisResult",
    "BuildPrediction",
    "RiskLevel",
    "Vulnerability",
    "VulnerabilityReport",
    "default_build_prediction",
    # Decisions
    "DecisionRecord",
    "ReviewStatus",
    "CodeReviewDecision",
    "TestWriterDecision",
    "BuildPredictionDecision",
    "DockerHandlerDecision",
    "DeploymentDecision",
    "ConversationalDeploymentDecision",
    "MonitoringMetrics",
    "MonitoringDecision",
    "VulnerabilityScanDecision",
    # Requests
    "AgentRequest",
    "CodeReviewRequest",
    "TestWriterRequest",
    "BuildPredictorRequest",
    "DockerHandlerRequest",
    "DeployRequest",
    "ConversationalDeployRequest",
    "MonitorRequest",
    "VulnerabilityScanRequest",
    "parse_agent_request",
]
