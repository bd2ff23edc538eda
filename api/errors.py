"""Exception handlers mapping the error taxonomy onto JSON responses."""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pipeline.errors import AuthError, InternalError, PipelineError, ValidationError

logger = logging.getLogger(__name__)


def _is_development(request: Request) -> bool:
    config = getattr(request.app.state, "config", None)
    return bool(config and config.is_development)


def _error_response(request: Request, error: PipelineError, exc: BaseException) -> JSONResponse:
    payload = error.to_payload()
    if error.status_code >= 500 and _is_development(request):
        payload["details"] = "".join(traceback.format_exception(exc))

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(error, AuthError) else None
    return JSONResponse(status_code=error.status_code, content=payload, headers=headers)


async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Handle errors raised by the gate, the agents and their collaborators."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log("%s %s -> %d %s: %s", request.method, request.url.path, exc.status_code, exc.code, exc.message)
    return _error_response(request, exc, exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Bodies that are not JSON at all never reach an agent schema."""
    logger.warning("Unreadable body on %s: %s", request.url.path, exc.errors())
    error = ValidationError("Request body must be valid JSON")
    return _error_response(request, error, exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions."""
    logger.exception("Unhandled exception: %s %s", request.method, request.url.path)
    error = InternalError("An internal error occurred", title="Internal Server Error")
    return _error_response(request, error, exc)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

