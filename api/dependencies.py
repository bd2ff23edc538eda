"""Service wiring for the HTTP surface.

Collaborators are built once per application from the immutable Config;
tests pass fakes in through ``create_app`` instead.
"""

import random
from typing import Any

from fastapi import Request

from agents import (
    AnalysisProvider,
    BaseAgent,
    BuildPredictorAgent,
    CodeReviewAgent,
    ConversationalDeployAgent,
    DeployAgent,
    DockerAgent,
    MonitorAgent,
    TestWriterAgent,
    VulnerabilityScanAgent,
)
from integrations import DeploymentRuntime, DevOpsProvider, GitHubClient, MetricsSampler, get_runtime
from llm_backend import LLMAnalyzer, get_backend
from pipeline.config import Config, LLMConfig
from utils.clock import Clock, utc_now


def build_analyzer(config: LLMConfig) -> LLMAnalyzer:
    """LLM collaborator for the configured backend."""
    options: dict[str, Any] = {"timeout": config.timeout}
    if config.model:
        options["model"] = config.model
    if config.base_url:
        options["base_url"] = config.base_url
    backend = get_backend(config.backend, **options)
    return LLMAnalyzer(backend, temperature=config.temperature, max_tokens=config.max_tokens)


def build_agents(
    config: Config,
    *,
    llm: AnalysisProvider | None = None,
    devops: DevOpsProvider | None = None,
    runtime: DeploymentRuntime | None = None,
    sampler: MetricsSampler | None = None,
    rng: random.Random | None = None,
    clock: Clock | None = None,
) -> dict[str, BaseAgent]:
    """Build one agent per route, keyed by agent name."""
    clock = clock or utc_now
    rng = rng or random.Random()
    llm = llm or build_analyzer(config.llm)
    devops = devops or GitHubClient.from_config(config.github)
    runtime = runtime or get_runtime(config.devops, clock=clock)
    sampler = sampler or MetricsSampler(rng)

    agents: list[BaseAgent] = [
        CodeReviewAgent(llm, devops, clock=clock),
        TestWriterAgent(llm, devops, rng=rng, clock=clock),
        BuildPredictorAgent(llm, devops, clock=clock),
        DockerAgent(runtime, clock=clock),
        DeployAgent(runtime, clock=clock),
        ConversationalDeployAgent(runtime, clock=clock),
        MonitorAgent(sampler, monitoring_url=config.devops.monitoring_url, clock=clock),
        VulnerabilityScanAgent(llm, devops, clock=clock),
    ]
    return {agent.name: agent for agent in agents}


def get_agent(request: Request, name: str) -> BaseAgent:
    return request.app.state.agents[name]
