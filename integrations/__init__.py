"""DevOps collaborators used by the agent pipelines.

Supports:
- GitHub (pull requests, contents, commits, Actions runs)
- Deployment runtimes (simulated, docker + kubectl)
- Deployment metrics sampling
"""

from .base import ChangedFile, DevOpsProvider
from .github import GitHubClient
from .metrics import MetricsSampler
from .runtime import (
    DeploymentOutcome,
    DeploymentRuntime,
    ImageBuild,
    KubectlRuntime,
    SimulatedRuntime,
    get_runtime,
)

__all__ = [
    "ChangedFile",
    "DeploymentOutcome",
    "DeploymentRuntime",
    "DevOpsProvider",
    "GitHubClient",
    "ImageBuild",
    "KubectlRuntime",
    "MetricsSampler",
    "SimulatedRuntime",
    "get_runtime",
]
