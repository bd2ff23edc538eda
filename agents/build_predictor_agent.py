"""Build Predictor Agent.

Gathers recent changes, CI history and (optionally) dependency manifests,
then asks the LLM for a JSON prediction of the next build. A prose or
malformed answer falls back to a fixed default prediction.
"""

from integrations.base import DevOpsProvider
from schemas.analysis import BuildPrediction, default_build_prediction
from schemas.decisions import BuildPredictionDecision
from schemas.requests import BuildPredictorRequest
from utils.json_repair import parse_or_default

from .base import AnalysisProvider, BaseAgent


class BuildPredictorAgent(BaseAgent):
    """Agent for predicting CI build outcomes."""

    name = "build-predictor"
    title = "Build prediction"
    request_model = BuildPredictorRequest
    failure_fields = {"success_probability": 50}

    def __init__(self, llm: AnalysisProvider, devops: DevOpsProvider, **kwargs) -> None:
        super().__init__(**kwargs)
        self.llm = llm
        self.devops = devops

    def run(self, request: BuildPredictorRequest) -> BuildPredictionDecision:
        # Sequential on purpose: each call is a separate upstream request
        changes = self.devops.get_recent_changes(request.repository, request.commit_sha)
        history = self.devops.get_build_history(request.repository, request.branch)

        dependencies = None
        if request.include_dependencies:
            dependencies = self.devops.analyze_dependencies(
                request.repository, request.commit_sha
            )

        result = self.llm.predict_build(
            changes, history, dependencies, model=request.llm_model
        )
        parsed = parse_or_default(
            result.text, BuildPrediction, lambda _text: default_build_prediction()
        )
        if not parsed.structured:
            self.logger.warning("Unparseable prediction from %s, using default", result.model)

        return BuildPredictionDecision(
            **parsed.value.model_dump(),
            prediction_source="llm" if parsed.structured else "default",
            commit_sha=request.commit_sha,
            branch=request.branch,
            model_used=result.model,
            provider=result.provider,
            dependency_analysis=dependencies,
            timestamp=self._timestamp(),
        )
