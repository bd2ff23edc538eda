"""Docker Handler Agent.

Builds and pushes the container image for a repository revision and
renders the Kubernetes manifests that deploy it.
"""

from integrations.runtime import DeploymentRuntime
from pipeline.errors import ValidationError
from schemas.decisions import DockerHandlerDecision
from schemas.requests import DockerHandlerRequest

from .base import BaseAgent

SUPPORTED_ACTIONS = ("build_and_push",)


def image_tag_for(repository: str, commit_sha: str | None) -> str:
    """``owner/repo:<sha[:8]>``, or ``owner/repo:latest`` without a commit."""
    return f"{repository}:{commit_sha[:8] if commit_sha else 'latest'}"


class DockerAgent(BaseAgent):
    """Agent for container image builds and manifest generation."""

    name = "docker-handler"
    title = "Docker/K8s operation"
    request_model = DockerHandlerRequest

    def __init__(self, runtime: DeploymentRuntime, **kwargs) -> None:
        super().__init__(**kwargs)
        self.runtime = runtime

    def run(self, request: DockerHandlerRequest) -> DockerHandlerDecision:
        if request.action not in SUPPORTED_ACTIONS:
            raise ValidationError(
                f"Unsupported action: {request.action}",
                required=self.request_model.required_fields(),
                title="Unsupported action",
                extra={"supported_actions": list(SUPPORTED_ACTIONS)},
            )

        if request.build_prediction:
            self.logger.info(
                "Build prediction attached: %s%% success",
                request.build_prediction.get("success_probability", "?"),
            )

        image_tag = image_tag_for(request.repository, request.commit_sha)
        build = self.runtime.build_image(request.repository, image_tag, request.commit_sha)
        manifests = self.runtime.generate_manifests(request.repository, image_tag)

        return DockerHandlerDecision(
            image_tag=image_tag,
            image_pushed=build.pushed,
            k8s_manifests=manifests,
            registry_url=self.runtime.config.registry_url or None,
            simulated=build.simulated,
            timestamp=self._timestamp(),
        )
