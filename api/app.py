"""FastAPI application factory."""

import logging
import random
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from agents import AnalysisProvider
from integrations import DeploymentRuntime, DevOpsProvider, MetricsSampler
from pipeline import __version__
from pipeline.config import Config, get_config
from pipeline.log_config import request_id_var
from utils.clock import Clock

from .auth import AccessGate
from .dependencies import build_agents
from .errors import register_exception_handlers
from .routes import agents, health

logger = logging.getLogger(__name__)


def create_app(
    config: Config | None = None,
    *,
    llm: AnalysisProvider | None = None,
    devops: DevOpsProvider | None = None,
    runtime: DeploymentRuntime | None = None,
    sampler: MetricsSampler | None = None,
    rng: random.Random | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        config: Configuration (defaults to the cached global config)
        llm, devops, runtime, sampler: Collaborator overrides
        rng: Random source for simulated figures
        clock: Time source for ids and timestamps
    """
    config = config or get_config()

    app = FastAPI(
        title="DevOps Agent Router",
        description="LLM-backed agents for code review, tests, builds, deploys and scans",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.server.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        token = request_id_var.set(request_id)
        start = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={"request_id": request_id},
        )
        return response

    app.state.config = config
    app.state.gate = AccessGate(config.auth)
    app.state.agents = build_agents(
        config,
        llm=llm,
        devops=devops,
        runtime=runtime,
        sampler=sampler,
        rng=rng,
        clock=clock,
    )

    register_exception_handlers(app)
    app.include_router(health.router, tags=["health"])
    app.include_router(agents.router, tags=["agents"])

    logger.info(
        "Agent router ready (environment=%s, devops=%s, agents=%d)",
        config.environment,
        config.devops.mode,
        len(app.state.agents),
    )
    return app
