"""Agents module for the DevOps agent router.

One agent per automation intent:
- CodeReviewAgent: Review a pull request diff and comment on it
- TestWriterAgent: Generate tests for changed source files
- BuildPredictorAgent: Predict the next CI build outcome
- DockerAgent: Build/push images and render Kubernetes manifests
- DeployAgent: Roll an image out to an environment
- ConversationalDeployAgent: Answer chat-driven deploy requests
- MonitorAgent: Sample deployment metrics and raise alerts
- VulnerabilityScanAgent: Scan a repository for vulnerabilities
"""

from .base import AnalysisProvider, BaseAgent
from .build_predictor_agent import BuildPredictorAgent
from .code_review_agent import CodeReviewAgent
from .deploy_agent import ConversationalDeployAgent, DeployAgent
from .docker_agent import DockerAgent
from .monitor_agent import MonitorAgent
from .test_writer_agent import TestWriterAgent
from .vulnerability_scan_agent import VulnerabilityScanAgent

__all__ = [
    "AnalysisProvider",
    "BaseAgent",
    "BuildPredictorAgent",
    "CodeReviewAgent",
    "ConversationalDeployAgent",
    "DeployAgent",
    "DockerAgent",
    "MonitorAgent",
    "TestWriterAgent",
    "VulnerabilityScanAgent",
]
