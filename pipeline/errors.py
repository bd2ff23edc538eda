"""Error taxonomy for agent pipelines.

Every failure that reaches the HTTP layer is a PipelineError subclass.
Collaborators translate library exceptions (httpx, subprocess, LLM SDKs)
into these at their boundary; the API maps them onto status codes.
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for errors surfaced to callers.

    Attributes:
        status_code: HTTP status the error maps to
        code: Stable machine-readable error code
        message: Human-readable explanation
        title: Short headline used as the ``error`` field
        extra: Additional fields merged into the error payload
    """

    status_code: int = 500
    code: str = "pipeline_error"
    default_title: str = "Request failed"

    def __init__(
        self,
        message: str,
        *,
        title: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.title = title or self.default_title
        self.extra: dict[str, Any] = dict(extra or {})

    def to_payload(self) -> dict[str, Any]:
        """Render the JSON body for this error."""
        payload: dict[str, Any] = {
            "error": self.title,
            "message": self.message,
            "code": self.code,
        }
        payload.update(self.extra)
        return payload


class ValidationError(PipelineError):
    """A required field is missing, blank, or has the wrong shape."""

    status_code = 400
    code = "validation_error"
    default_title = "Invalid request"

    def __init__(
        self,
        message: str,
        *,
        missing: list[str] | None = None,
        required: list[str] | None = None,
        title: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, title=title or message, extra=extra)
        self.missing = list(missing or [])
        self.required = list(required or [])

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.required:
            payload["required_parameters"] = self.required
        if self.missing:
            payload["missing_parameters"] = self.missing
        return payload


class AuthError(PipelineError):
    """The inbound credential was rejected."""

    status_code = 401
    code = "auth_error"
    default_title = "Invalid token"


class MissingCredential(AuthError):
    code = "missing_credential"
    default_title = "Access denied. No token provided or invalid format."


class EmptyCredential(AuthError):
    code = "empty_credential"
    default_title = "Access denied. Empty token provided."


class InvalidCredential(AuthError):
    code = "invalid_credential"
    default_title = "Invalid token"


class UpstreamError(PipelineError):
    """A collaborator (LLM provider, GitHub, Docker, kubectl) failed."""

    status_code = 500
    code = "upstream_error"


class UpstreamNotFound(UpstreamError):
    """The collaborator reports that the resource does not exist."""

    status_code = 404
    code = "upstream_not_found"


class UpstreamAuthError(UpstreamError):
    """The collaborator rejected our own credential."""

    status_code = 401
    code = "upstream_auth_error"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        title: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, title=title, extra=extra)
        if hint:
            self.extra.setdefault("hint", hint)


class InternalError(PipelineError):
    """Unexpected failure inside the core."""

    status_code = 500
    code = "internal_error"


def as_pipeline_error(exc: BaseException) -> PipelineError:
    """Wrap an arbitrary exception into the taxonomy.

    Backends raise the builtin ConnectionError/TimeoutError/RuntimeError
    for provider failures; those are upstream problems. Anything else is
    treated as an internal error.
    """
    if isinstance(exc, PipelineError):
        return exc
    if isinstance(exc, (ConnectionError, TimeoutError, RuntimeError)):
        return UpstreamError(str(exc) or exc.__class__.__name__)
    return InternalError(str(exc) or exc.__class__.__name__)
