"""Base agent class for all pipeline agents."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Protocol, runtime_checkable

from pipeline.errors import PipelineError, ValidationError, as_pipeline_error
from schemas.analysis import AnalysisResult
from schemas.decisions import DecisionRecord
from schemas.requests import AgentRequest, parse_agent_request
from utils.clock import Clock, iso_timestamp, utc_now


@runtime_checkable
class AnalysisProvider(Protocol):
    """Protocol for the LLM collaborator.

    Any client implementing this protocol can be used with agents;
    ``llm_backend.LLMAnalyzer`` is the shipped implementation.
    """

    def analyze_code(
        self, diff: str, analysis_type: str = "comprehensive", model: str | None = None
    ) -> AnalysisResult:
        """Review a unified diff."""
        ...

    def generate(
        self,
        prompt: str,
        model: str | None = None,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
    ) -> AnalysisResult:
        """Free-form completion."""
        ...

    def generate_tests(
        self, content: str, framework: str, model: str | None = None
    ) -> AnalysisResult:
        """Write tests for one source file."""
        ...

    def predict_build(
        self,
        changes: Any,
        history: Any,
        dependencies: Any = None,
        model: str | None = None,
    ) -> AnalysisResult:
        """Predict the next build outcome; answer is expected to be JSON."""
        ...

    def analyze_vulnerabilities(
        self, content: str, scan_type: str = "comprehensive", model: str | None = None
    ) -> AnalysisResult:
        """Scan repository content; answer is expected to be JSON."""
        ...


class BaseAgent(ABC):
    """Abstract base class for pipeline agents.

    Each agent follows the pattern:
    - A request schema validated before any stage runs
    - A fixed sequence of collaborator calls in ``run``
    - One decision record per request

    Subclasses set:
        name: Identifier used for logging (``agent.<name>``)
        title: Headline prefix for failures ("Code review" -> "Code review failed")
        request_model: AgentRequest subclass for the body
        failure_fields: Extra fields merged into failure payloads

    Example:
        agent = CodeReviewAgent(llm=analyzer, devops=github)
        decision = agent.handle({"repository": "o/r", "pr_number": 7})
    """

    name: ClassVar[str] = "agent"
    title: ClassVar[str] = "Agent"
    request_model: ClassVar[type[AgentRequest]]
    failure_fields: ClassVar[dict[str, Any]] = {}

    def __init__(
        self,
        clock: Clock | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.clock = clock or utc_now
        self.logger = logger or logging.getLogger(f"agent.{self.name}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"

    @abstractmethod
    def run(self, request: Any) -> DecisionRecord:
        """Execute the agent's stages for a validated request.

        Args:
            request: Instance of ``request_model``

        Returns:
            The decision record for this request.
        """
        ...

    def handle(self, payload: Any) -> DecisionRecord:
        """Validate a raw body and run the pipeline.

        Raises:
            ValidationError: Body is malformed or a stage rejected the input
            PipelineError: Any other stage failure, titled for this agent
        """
        request = parse_agent_request(self.request_model, payload)
        start_time = self._log_run_start(request)

        try:
            decision = self.run(request)
        except ValidationError as e:
            self.logger.warning("Rejected %s: %s", self.name, e.message)
            raise
        except Exception as e:
            error = as_pipeline_error(e)
            error.title = f"{self.title} failed"
            for key, value in self.failure_fields.items():
                error.extra.setdefault(key, value)
            self.logger.error(
                "Failed %s in %.2fs: %s",
                self.name,
                time.time() - start_time,
                error.message,
                exc_info=not isinstance(e, PipelineError),
            )
            if error is e:
                raise
            raise error from e

        self._log_run_end(start_time)
        return decision

    def _timestamp(self) -> str:
        return iso_timestamp(self.clock())

    def _log_run_start(self, request: AgentRequest) -> float:
        """Log run start and return start time."""
        self.logger.info(
            "Starting %s (fields: %s)",
            self.name,
            sorted(request.model_dump(exclude_none=True)),
        )
        return time.time()

    def _log_run_end(self, start_time: float) -> None:
        self.logger.info("Completed %s in %.2fs", self.name, time.time() - start_time)
