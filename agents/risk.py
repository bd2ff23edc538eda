"""Keyword risk tiering over free-text analysis.

Both classifiers are plain substring scans on lowercased text. They are
biased toward caution: a stray "security" in a benign sentence flags the
review, which is acceptable; missing a real risk is not.
"""

from dataclasses import dataclass

from schemas.analysis import RiskLevel
from schemas.decisions import ReviewStatus

REVIEW_RISK_KEYWORDS = ("security", "vulnerability", "critical", "dangerous", "unsafe")

SCAN_HIGH_KEYWORDS = ("critical", "high risk")
SCAN_MEDIUM_KEYWORDS = ("medium", "moderate")


@dataclass(frozen=True)
class ReviewRisk:
    """Risk tier and review status derived from an analysis."""

    level: RiskLevel
    status: ReviewStatus
    matched: tuple[str, ...] = ()


def classify_review(analysis_text: str) -> ReviewRisk:
    """Tier a code review analysis.

    Any keyword hit gives high risk and requests changes.
    """
    lowered = analysis_text.lower()
    matched = tuple(k for k in REVIEW_RISK_KEYWORDS if k in lowered)
    if matched:
        return ReviewRisk(RiskLevel.HIGH, ReviewStatus.CHANGES_REQUESTED, matched)
    return ReviewRisk(RiskLevel.LOW, ReviewStatus.APPROVED)


def classify_scan_text(text: str) -> RiskLevel:
    """Tier an unstructured vulnerability analysis."""
    lowered = text.lower()
    if any(k in lowered for k in SCAN_HIGH_KEYWORDS):
        return RiskLevel.HIGH
    if any(k in lowered for k in SCAN_MEDIUM_KEYWORDS):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
