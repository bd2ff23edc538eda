"""LLM collaborator used by the agents.

Wraps an LLMBackend with the prompts for each kind of analysis and
returns AnalysisResult records. Each call is one blocking completion.
"""

import json
import logging
from typing import Any

from schemas.analysis import AnalysisResult

from . import prompts
from .base import LLMBackend

logger = logging.getLogger(__name__)

# Keep prompts inside typical context windows
MAX_PROMPT_CHARS = 60_000


class LLMAnalyzer:
    """Prompted analysis calls over a single backend."""

    def __init__(
        self,
        backend: LLMBackend,
        temperature: float = 0.3,
        max_tokens: int | None = 4000,
    ) -> None:
        self.backend = backend
        self.temperature = temperature
        self.max_tokens = max_tokens

    def __repr__(self) -> str:
        return f"LLMAnalyzer(backend={self.backend!r})"

    def analyze_code(
        self, diff: str, analysis_type: str = "comprehensive", model: str | None = None
    ) -> AnalysisResult:
        focus = prompts.ANALYSIS_FOCUS.get(analysis_type, prompts.ANALYSIS_FOCUS["comprehensive"])
        prompt = prompts.CODE_ANALYSIS_PROMPT.format(focus=focus, diff=_clip(diff))
        return self._complete(prompts.REVIEWER_SYSTEM_PROMPT, prompt, model=model)

    def generate(
        self,
        prompt: str,
        model: str | None = None,
        max_tokens: int | None = None,
        system_prompt: str | None = None,
    ) -> AnalysisResult:
        return self._complete(
            system_prompt or prompts.REVIEWER_SYSTEM_PROMPT,
            prompt,
            model=model,
            max_tokens=max_tokens,
        )

    def generate_tests(
        self, content: str, framework: str, model: str | None = None
    ) -> AnalysisResult:
        prompt = prompts.TEST_GENERATION_PROMPT.format(
            framework=framework, content=_clip(content)
        )
        return self._complete(prompts.TEST_WRITER_SYSTEM_PROMPT, prompt, model=model)

    def predict_build(
        self,
        changes: Any,
        history: Any,
        dependencies: Any = None,
        model: str | None = None,
    ) -> AnalysisResult:
        prompt = prompts.BUILD_PREDICTION_PROMPT.format(
            changes=_clip(_render(changes), 20_000),
            history=_clip(_render(history), 10_000),
            dependencies=_clip(_render(dependencies), 20_000),
        )
        return self._complete(
            prompts.BUILD_PREDICTOR_SYSTEM_PROMPT, prompt, model=model, temperature=0.1
        )

    def analyze_vulnerabilities(
        self, content: str, scan_type: str = "comprehensive", model: str | None = None
    ) -> AnalysisResult:
        depth = prompts.SCAN_DEPTH.get(scan_type, prompts.SCAN_DEPTH["comprehensive"])
        prompt = prompts.VULNERABILITY_PROMPT.format(depth=depth, content=_clip(content))
        return self._complete(
            prompts.SECURITY_SYSTEM_PROMPT, prompt, model=model, temperature=0.1
        )

    def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> AnalysisResult:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        logger.debug("Sending %d chars to %s", len(user_prompt), self.backend)
        completion = self.backend.complete(
            messages,
            model=model,
            temperature=self.temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.max_tokens,
        )
        return AnalysisResult(
            text=completion.text,
            model=completion.model,
            provider=completion.provider,
        )


def _render(value: Any) -> str:
    if value is None:
        return "Not available"
    if isinstance(value, str):
        return value
    return json.dumps(value, indent=2, default=str)


def _clip(text: str, limit: int = MAX_PROMPT_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "\n... (truncated)"
