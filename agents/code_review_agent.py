"""Code Review Agent for pull request review.

Stages:
- Fetch the PR diff from the source-control collaborator
- Ask the LLM for an analysis of the diff
- Tier risk from the analysis text (keyword scan)
- Ask the LLM for a short list of actionable suggestions (soft-failing)
- Post the review as a PR comment
"""

from integrations.base import DevOpsProvider
from llm_backend import prompts
from pipeline.errors import ValidationError
from schemas.decisions import CodeReviewDecision
from schemas.requests import CodeReviewRequest

from .base import AnalysisProvider, BaseAgent
from .risk import classify_review

MAX_SUGGESTIONS = 5
FALLBACK_SUGGESTION = "Review the analysis for detailed recommendations"


class CodeReviewAgent(BaseAgent):
    """Agent for reviewing pull requests like a senior engineer."""

    name = "code-review"
    title = "Code review"
    request_model = CodeReviewRequest

    def __init__(self, llm: AnalysisProvider, devops: DevOpsProvider, **kwargs) -> None:
        """Initialize CodeReviewAgent.

        Args:
            llm: LLM collaborator for the analysis and suggestions
            devops: Source-control collaborator for the diff and the comment
        """
        super().__init__(**kwargs)
        self.llm = llm
        self.devops = devops

    def run(self, request: CodeReviewRequest) -> CodeReviewDecision:
        diff = self.devops.fetch_pr_diff(
            request.repository,
            request.pr_number,
            diff_url=request.diff_url,
            base_sha=request.base_sha,
            head_sha=request.head_sha,
        )
        if not diff or not diff.strip():
            raise ValidationError(
                "No diff content available for analysis",
                missing=["diff"],
                required=self.request_model.required_fields(),
            )

        self.logger.info(
            "Analyzing %d chars of diff for %s#%s (%s)",
            len(diff),
            request.repository,
            request.pr_number,
            request.analysis_type,
        )
        analysis = self.llm.analyze_code(
            diff, analysis_type=request.analysis_type, model=request.llm_model
        )

        risk = classify_review(analysis.text)
        if risk.matched:
            self.logger.info("Risk keywords found: %s", ", ".join(risk.matched))

        suggestions = self._suggestions(analysis.text, request.llm_model)

        decision = CodeReviewDecision(
            status=risk.status,
            analysis=analysis.text,
            risk_level=risk.level.value,
            suggestions=suggestions,
            model_used=analysis.model,
            provider=analysis.provider,
            timestamp=self._timestamp(),
        )

        self.devops.post_review_comment(
            request.repository, request.pr_number, decision.to_markdown()
        )
        return decision

    def _suggestions(self, analysis_text: str, model: str | None) -> list[str]:
        """Extract up to five suggestions; never fails the review."""
        try:
            result = self.llm.generate(
                prompts.SUGGESTIONS_PROMPT.format(analysis=analysis_text),
                model=model,
                max_tokens=1000,
            )
        except Exception as e:
            self.logger.warning("Suggestion extraction failed, using fallback: %s", e)
            return [FALLBACK_SUGGESTION]

        lines = [line.strip() for line in result.text.splitlines()]
        suggestions = [line for line in lines if line][:MAX_SUGGESTIONS]
        return suggestions or [FALLBACK_SUGGESTION]
