"""Agent endpoints.

Every route is gated by the access gate. Bodies are passed to the agent
untouched so each agent's schema decides what is missing or invalid.
Handlers are plain functions: FastAPI runs them in its thread pool.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request

from api.auth import require_identity
from api.dependencies import get_agent

router = APIRouter(prefix="/agent", dependencies=[Depends(require_identity)])


def _handle(request: Request, name: str, payload: Any) -> dict[str, Any]:
    decision = get_agent(request, name).handle(payload)
    return decision.model_dump(mode="json")


@router.post("/code-review")
def code_review(request: Request, payload: Any = Body(None)):
    """Review a pull request and comment on it."""
    return _handle(request, "code-review", payload)


@router.post("/test-writer")
def test_writer(request: Request, payload: Any = Body(None)):
    """Generate tests for the files a pull request changes."""
    return _handle(request, "test-writer", payload)


@router.post("/build-predictor")
def build_predictor(request: Request, payload: Any = Body(None)):
    return _handle(request, "build-predictor", payload)


@router.post("/docker-handler")
def docker_handler(request: Request, payload: Any = Body(None)):
    return _handle(request, "docker-handler", payload)


@router.post("/deploy")
def deploy(request: Request, payload: Any = Body(None)):
    return _handle(request, "deploy", payload)


@router.post("/deploy/conversational")
def conversational_deploy(request: Request, payload: Any = Body(None)):
    return _handle(request, "deploy-conversational", payload)


@router.post("/monitor")
def monitor(request: Request, payload: Any = Body(None)):
    return _handle(request, "monitor", payload)


@router.post("/security/vulnerability-scan")
def vulnerability_scan(request: Request, payload: Any = Body(None)):
    """Scan a repository branch for vulnerabilities."""
    return _handle(request, "vulnerability-scan", payload)
