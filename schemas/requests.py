"""Inbound request schemas, one per agent kind.

Bodies arrive as loose JSON from webhooks and workflow engines. Each
agent declares its schema here so malformed input is rejected before any
stage runs. Unknown keys are ignored; blank strings count as missing.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from pipeline.errors import ValidationError

# pydantic error types that mean "the caller did not send it"
_MISSING_TYPES = {"missing", "string_too_short"}


class AgentRequest(BaseModel):
    """Base schema for agent request bodies."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    @classmethod
    def required_fields(cls) -> list[str]:
        return [name for name, info in cls.model_fields.items() if info.is_required()]


class CodeReviewRequest(AgentRequest):
    repository: str = Field(..., min_length=1, description="owner/repo")
    pr_number: int = Field(..., gt=0, description="Pull request number")
    diff_url: str | None = None
    base_sha: str | None = None
    head_sha: str | None = None
    llm_model: str | None = None
    analysis_type: str = "comprehensive"


class TestWriterRequest(AgentRequest):
    __test__ = False  # not a pytest class

    repository: str = Field(..., min_length=1)
    pr_number: int = Field(..., gt=0)
    changed_files: list[str] | None = Field(
        None, description="Restrict generation to these paths"
    )
    llm_model: str | None = None
    test_framework: str | None = Field(None, description="Override framework detection")


class BuildPredictorRequest(AgentRequest):
    repository: str = Field(..., min_length=1)
    branch: str | None = None
    commit_sha: str | None = None
    llm_model: str | None = None
    include_dependencies: bool = True


class DockerHandlerRequest(AgentRequest):
    repository: str = Field(..., min_length=1)
    action: str = Field(..., min_length=1)
    commit_sha: str | None = None
    build_prediction: dict[str, Any] | None = None


class DeployRequest(AgentRequest):
    environment: str = Field(..., min_length=1)
    image_tag: str = Field(..., min_length=1)
    repository: str | None = None
    kubernetes_config: dict[str, Any] | None = None


class ConversationalDeployRequest(AgentRequest):
    environment: str = Field(..., min_length=1)
    repository: str | None = None
    branch: str | None = None
    user_id: str | None = None
    conversational_context: dict[str, Any] | str | None = None


class MonitorRequest(AgentRequest):
    deployment_id: str = Field(..., min_length=1)
    environment: str | None = None
    monitoring_duration: int = Field(300, gt=0, description="Seconds")


class VulnerabilityScanRequest(AgentRequest):
    repository: str = Field(..., min_length=1)
    branch: str = "main"
    scan_type: str = "comprehensive"
    llm_model: str | None = None

    @field_validator("branch", "scan_type", mode="before")
    @classmethod
    def _blank_uses_default(cls, value: Any, info: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls.model_fields[info.field_name].default
        return value


def parse_agent_request(schema: type[AgentRequest], payload: Any) -> AgentRequest:
    """Validate a raw body against an agent schema.

    Raises:
        ValidationError: naming the missing or invalid fields, together
            with the full set of required fields so callers can retry.
    """
    required = schema.required_fields()
    if not isinstance(payload, dict):
        raise ValidationError(
            "Request body must be a JSON object",
            required=required,
        )

    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        missing: list[str] = []
        invalid: dict[str, str] = {}
        for error in exc.errors():
            name = str(error["loc"][0]) if error["loc"] else "body"
            if error["type"] in _MISSING_TYPES or payload.get(name) is None:
                if name not in missing:
                    missing.append(name)
            else:
                invalid.setdefault(name, error["msg"])

    if missing:
        plural = "s" if len(missing) > 1 else ""
        message = f"Missing required parameter{plural}: {', '.join(missing)}"
    else:
        details = ", ".join(f"{name} ({msg})" for name, msg in invalid.items())
        message = f"Invalid parameter: {details}"
    raise ValidationError(message, missing=missing, required=required)
