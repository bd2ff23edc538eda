"""Deployment runtimes.

Two implementations behind one interface:
- SimulatedRuntime: synthesizes build and rollout outcomes (default)
- KubectlRuntime: docker build/push and kubectl rollouts via subprocess

Both share deployment id/URL synthesis and Kubernetes manifest generation.
"""

import logging
import re
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import yaml

from pipeline.config import DevOpsConfig
from pipeline.errors import UpstreamError
from utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass
class ImageBuild:
    """Result of building (and pushing) a container image."""

    image_tag: str
    image_ref: str
    pushed: bool
    simulated: bool
    logs: str = ""


@dataclass
class DeploymentOutcome:
    """Result of rolling an image out to an environment."""

    deployment_id: str
    deployment_url: str
    status: str
    simulated: bool
    details: dict[str, Any] = field(default_factory=dict)


def app_name(repository: str | None) -> str:
    """Kubernetes-safe application name derived from "owner/repo"."""
    name = repository.split("/")[-1] if repository else ""
    name = re.sub(r"[^a-z0-9-]+", "-", name.lower()).strip("-")
    return name[:63] or "app"


class DeploymentRuntime(ABC):
    """Builds images and rolls them out."""

    simulated: bool = False

    def __init__(self, config: DevOpsConfig | None = None, clock: Clock | None = None) -> None:
        self.config = config or DevOpsConfig()
        self.clock = clock or utc_now

    def new_deployment_id(self) -> str:
        """Return ``deploy-<epoch ms>`` for the current instant."""
        return f"deploy-{int(self.clock().timestamp() * 1000)}"

    def deployment_url(self, repository: str | None, environment: str) -> str:
        """Predictable public URL for a deployment."""
        if repository:
            name = repository.split("/", 1)[1] if "/" in repository else repository
        else:
            name = ""
        return f"https://{environment}.{name or 'app'}.{self.config.deployment_domain}"

    def image_ref(self, image_tag: str) -> str:
        """Fully qualified image reference, registry-prefixed when configured."""
        ref = image_tag.lower()
        registry = self.config.registry_url.rstrip("/")
        return f"{registry}/{ref}" if registry else ref

    def generate_manifests(
        self,
        repository: str,
        image_tag: str,
        environment: str | None = None,
    ) -> dict[str, str]:
        """Render Deployment and Service manifests as YAML documents."""
        name = app_name(repository)
        labels = {"app": name}
        if environment:
            labels["environment"] = environment
        namespace = self.config.k8s_namespace or environment or "default"
        port = self.config.container_port

        deployment = {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {"name": name, "namespace": namespace, "labels": labels},
            "spec": {
                "replicas": self.config.replicas,
                "selector": {"matchLabels": {"app": name}},
                "template": {
                    "metadata": {"labels": labels},
                    "spec": {
                        "containers": [
                            {
                                "name": name,
                                "image": self.image_ref(image_tag),
                                "ports": [{"containerPort": port}],
                                "resources": {
                                    "requests": {"cpu": "100m", "memory": "128Mi"},
                                    "limits": {"cpu": "500m", "memory": "512Mi"},
                                },
                            }
                        ]
                    },
                },
            },
        }
        service = {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": {"name": name, "namespace": namespace, "labels": labels},
            "spec": {
                "selector": {"app": name},
                "ports": [{"port": 80, "targetPort": port, "protocol": "TCP"}],
                "type": "ClusterIP",
            },
        }
        return {
            "deployment.yaml": yaml.safe_dump(deployment, sort_keys=False),
            "service.yaml": yaml.safe_dump(service, sort_keys=False),
        }

    @abstractmethod
    def build_image(self, repository: str, image_tag: str, commit_sha: str | None = None) -> ImageBuild:
        """Build and push the image for a repository revision."""
        ...

    @abstractmethod
    def deploy(
        self,
        kubernetes_config: dict[str, Any] | None,
        environment: str,
        image_tag: str,
        repository: str | None = None,
    ) -> DeploymentOutcome:
        """Roll ``image_tag`` out to ``environment``."""
        ...


class SimulatedRuntime(DeploymentRuntime):
    """Runtime that performs no external calls."""

    simulated = True

    def build_image(self, repository: str, image_tag: str, commit_sha: str | None = None) -> ImageBuild:
        logger.info("Simulated image build for %s", image_tag)
        return ImageBuild(
            image_tag=image_tag,
            image_ref=self.image_ref(image_tag),
            pushed=True,
            simulated=True,
        )

    def deploy(
        self,
        kubernetes_config: dict[str, Any] | None,
        environment: str,
        image_tag: str,
        repository: str | None = None,
    ) -> DeploymentOutcome:
        deployment_id = self.new_deployment_id()
        logger.info("Simulated deployment %s of %s to %s", deployment_id, image_tag, environment)
        return DeploymentOutcome(
            deployment_id=deployment_id,
            deployment_url=self.deployment_url(repository, environment),
            status="deployed",
            simulated=True,
            details={"kubernetes_config": kubernetes_config or {}},
        )


class KubectlRuntime(DeploymentRuntime):
    """Runtime driving the docker and kubectl CLIs."""

    def build_image(self, repository: str, image_tag: str, commit_sha: str | None = None) -> ImageBuild:
        ref = self.image_ref(image_tag)
        context = f"https://github.com/{repository}.git"
        if commit_sha:
            context = f"{context}#{commit_sha}"

        build = self._run(["docker", "build", "-t", ref, context], "Docker build")
        push = self._run(["docker", "push", ref], "Docker push")
        return ImageBuild(
            image_tag=image_tag,
            image_ref=ref,
            pushed=True,
            simulated=False,
            logs=f"{build.stdout}\n{push.stdout}",
        )

    def deploy(
        self,
        kubernetes_config: dict[str, Any] | None,
        environment: str,
        image_tag: str,
        repository: str | None = None,
    ) -> DeploymentOutcome:
        k8s = kubernetes_config or {}
        deployment = k8s.get("deployment") or app_name(repository)
        container = k8s.get("container") or deployment
        namespace = k8s.get("namespace") or self.config.k8s_namespace or environment
        ref = self.image_ref(image_tag)

        cmd = [
            "kubectl", "set", "image", f"deployment/{deployment}",
            f"{container}={ref}", "-n", namespace,
        ]
        self._run(self._with_context(cmd), "kubectl set image")

        rollout_cmd = [
            "kubectl", "rollout", "status", f"deployment/{deployment}",
            "-n", namespace, f"--timeout={self.config.rollout_timeout}s",
        ]
        rollout = self._run(
            self._with_context(rollout_cmd),
            "kubectl rollout status",
            timeout=self.config.rollout_timeout + 30,
        )

        return DeploymentOutcome(
            deployment_id=self.new_deployment_id(),
            deployment_url=self.deployment_url(repository, environment),
            status="deployed",
            simulated=False,
            details={
                "namespace": namespace,
                "deployment": deployment,
                "image": ref,
                "rollout": rollout.stdout.strip(),
            },
        )

    def _with_context(self, cmd: list[str]) -> list[str]:
        if self.config.k8s_context:
            return [*cmd, "--context", self.config.k8s_context]
        return cmd

    def _run(
        self,
        cmd: list[str],
        what: str,
        timeout: int | None = None,
    ) -> subprocess.CompletedProcess:
        logger.info("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except FileNotFoundError as e:
            raise UpstreamError(f"{what} failed: {cmd[0]} not found") from e
        except subprocess.TimeoutExpired as e:
            raise UpstreamError(f"{what} timed out after {timeout}s") from e

        if result.returncode != 0:
            raise UpstreamError(f"{what} failed: {result.stderr[:200]}")
        return result


def get_runtime(config: DevOpsConfig, clock: Clock | None = None) -> DeploymentRuntime:
    """Factory for the configured runtime.

    Raises:
        ValueError: If the mode is unknown
    """
    if config.mode == "simulated":
        return SimulatedRuntime(config, clock=clock)
    if config.mode == "kubectl":
        return KubectlRuntime(config, clock=clock)
    raise ValueError(f"Unknown devops mode: {config.mode}. Available: simulated, kubectl")
