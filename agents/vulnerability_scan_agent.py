"""Vulnerability Scan Agent.

Asks the LLM for a JSON vulnerability report over a repository snapshot.
When the answer is not usable JSON, the risk tier is derived from the
raw text and the findings list stays empty.
"""

from integrations.base import DevOpsProvider
from schemas.analysis import VulnerabilityReport
from schemas.decisions import VulnerabilityScanDecision
from schemas.requests import VulnerabilityScanRequest
from utils.json_repair import parse_or_default

from .base import AnalysisProvider, BaseAgent
from .risk import classify_scan_text


def heuristic_report(text: str) -> VulnerabilityReport:
    """Fallback report tiered by keywords in the raw analysis."""
    return VulnerabilityReport(vulnerabilities=[], risk_level=classify_scan_text(text).value)


class VulnerabilityScanAgent(BaseAgent):
    """Agent for repository security scans."""

    name = "vulnerability-scan"
    title = "Vulnerability scan"
    request_model = VulnerabilityScanRequest
    failure_fields = {"risk_level": "unknown"}

    def __init__(self, llm: AnalysisProvider, devops: DevOpsProvider, **kwargs) -> None:
        super().__init__(**kwargs)
        self.llm = llm
        self.devops = devops

    def run(self, request: VulnerabilityScanRequest) -> VulnerabilityScanDecision:
        content = self.devops.fetch_repository_content(request.repository, request.branch)
        self.logger.info(
            "Scanning %d chars of %s@%s (%s)",
            len(content),
            request.repository,
            request.branch,
            request.scan_type,
        )

        result = self.llm.analyze_vulnerabilities(
            content, scan_type=request.scan_type, model=request.llm_model
        )
        parsed = parse_or_default(result.text, VulnerabilityReport, heuristic_report)
        report = parsed.value

        return VulnerabilityScanDecision(
            repository=request.repository,
            branch=request.branch,
            scan_type=request.scan_type,
            risk_level=report.risk_level,
            vulnerabilities=report.vulnerabilities,
            total_issues=len(report.vulnerabilities),
            analysis_source="structured" if parsed.structured else "heuristic",
            model_used=result.model,
            provider=result.provider,
            timestamp=self._timestamp(),
        )
