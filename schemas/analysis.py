"""Structured results exchanged with the LLM collaborator.

AnalysisResult is what every LLM call returns. BuildPrediction and
VulnerabilityReport are the JSON shapes the model is asked to produce;
they are validated with ``utils.json_repair.parse_or_default`` and fall
back to deterministic defaults when the model answers in prose.
"""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)

UNSPECIFIED_FINDING = "Unspecified finding"

DEFAULT_DURATION = "5-8 minutes"
DEFAULT_POTENTIAL_ISSUES = ("Dependency conflicts possible",)
DEFAULT_RESOURCES = {"cpu": "medium", "memory": "medium"}


class AnalysisResult(BaseModel):
    """Text produced by one LLM call, with the model that produced it."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Raw completion text")
    model: str = Field(..., description="Model identifier that answered")
    provider: str = Field(..., description="Backend provider name")


class RiskLevel(str, Enum):
    """Risk tier attached to reviews and scans."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Vulnerability(BaseModel):
    """A single finding extracted from a vulnerability analysis."""

    model_config = ConfigDict(extra="allow")

    description: str = Field(..., description="What is wrong")
    severity: str = Field("unknown", description="Severity as reported by the model")
    location: str | None = Field(None, description="File, line or component")

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        # Models answer with bare strings or use their own key names.
        if isinstance(data, str):
            return {"description": data}
        if isinstance(data, dict):
            data = dict(data)
            if not data.get("description"):
                data["description"] = UNSPECIFIED_FINDING
                for key in ("title", "issue", "name", "type", "cwe", "id"):
                    if data.get(key):
                        data["description"] = str(data[key])
                        break
            if "location" not in data:
                for key in ("file", "path", "file_path", "line"):
                    if data.get(key) is not None:
                        data["location"] = data[key]
                        break
        return data

    @field_validator("description", mode="before")
    @classmethod
    def _text_description(cls, value: Any) -> Any:
        return value if isinstance(value, str) else str(value)

    @field_validator("severity", mode="before")
    @classmethod
    def _lower_severity(cls, value: Any) -> str:
        return str(value).strip().lower() if value is not None else "unknown"

    @field_validator("location", mode="before")
    @classmethod
    def _text_location(cls, value: Any) -> str | None:
        # Line numbers come back as integers.
        if value is None or isinstance(value, str):
            return value
        return str(value)


class VulnerabilityReport(BaseModel):
    """Expected JSON answer for a vulnerability scan.

    Findings are validated one at a time: an entry the model mangled is
    dropped and logged, the rest of the report (and its risk level) is kept.
    """

    vulnerabilities: list[Vulnerability] = Field(default_factory=list)
    risk_level: str = Field(RiskLevel.LOW.value, description="Overall risk tier")

    @field_validator("vulnerabilities", mode="before")
    @classmethod
    def _keep_valid_entries(cls, value: Any) -> list[Vulnerability]:
        if value is None:
            return []
        if isinstance(value, (str, dict)):
            value = [value]
        if not isinstance(value, list):
            logger.info("Ignoring vulnerabilities of type %s", type(value).__name__)
            return []

        kept = []
        for index, entry in enumerate(value):
            try:
                kept.append(Vulnerability.model_validate(entry))
            except PydanticValidationError as exc:
                logger.info(
                    "Dropping vulnerability entry %d (%d errors)", index, exc.error_count()
                )
        return kept

    @field_validator("risk_level", mode="before")
    @classmethod
    def _normalize_risk(cls, value: Any) -> str:
        if not value:
            return RiskLevel.LOW.value
        return str(value).strip().lower()


class BuildPrediction(BaseModel):
    """Expected JSON answer for a build prediction.

    Probability and confidence are required; the descriptive fields fall
    back to the default prediction's values when the model leaves them out.
    """

    success_probability: float = Field(..., ge=0, le=100)
    estimated_duration: str = DEFAULT_DURATION
    potential_issues: list[str] = Field(default_factory=lambda: list(DEFAULT_POTENTIAL_ISSUES))
    resource_requirements: dict[str, Any] = Field(default_factory=lambda: dict(DEFAULT_RESOURCES))
    confidence_score: float = Field(..., ge=0, le=1)


def default_build_prediction() -> BuildPrediction:
    """Prediction used when the model's answer cannot be parsed."""
    return BuildPrediction(success_probability=75, confidence_score=0.7)
