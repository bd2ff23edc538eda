"""Shared fixtures: in-memory collaborators, a pinned clock and random source."""

from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Any

import pytest

from integrations.base import ChangedFile, DevOpsProvider
from pipeline.config import Config
from schemas.analysis import AnalysisResult

FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
FIXED_TIMESTAMP = "2026-10-19T12:00:00.000Z"

SHARED_SECRET = "shared-secret-value"
SIGNING_KEY = "signing-key-for-tests"

DEFAULT_REPLIES = {
    "analyze_code": "The change looks reasonable and well structured.",
    "generate": "Add docstrings\nExtract a helper\n\nCover the error path",
    "generate_tests": "def test_placeholder():\n    assert True\n",
    "predict_build": (
        '{"success_probability": 92, "estimated_duration": "3 minutes", '
        '"potential_issues": [], "resource_requirements": {"cpu": "low", "memory": "low"}, '
        '"confidence_score": 0.85}'
    ),
    "analyze_vulnerabilities": '{"vulnerabilities": [], "risk_level": "low"}',
}


class FakeLLM:
    """AnalysisProvider returning canned replies and recording calls.

    A reply that is an exception instance is raised instead.
    """

    def __init__(
        self,
        replies: dict[str, str | Exception] | None = None,
        model: str = "fake-model",
        provider: str = "fake",
    ) -> None:
        self.replies = {**DEFAULT_REPLIES, **(replies or {})}
        self.model = model
        self.provider = provider
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def _reply(self, kind: str, **kwargs: Any) -> AnalysisResult:
        self.calls.append((kind, kwargs))
        reply = self.replies[kind]
        if isinstance(reply, Exception):
            raise reply
        return AnalysisResult(
            text=reply,
            model=kwargs.get("model") or self.model,
            provider=self.provider,
        )

    def called(self, kind: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == kind]

    def analyze_code(self, diff, analysis_type="comprehensive", model=None):
        return self._reply("analyze_code", diff=diff, analysis_type=analysis_type, model=model)

    def generate(self, prompt, model=None, max_tokens=None, system_prompt=None):
        return self._reply("generate", prompt=prompt, model=model, max_tokens=max_tokens)

    def generate_tests(self, content, framework, model=None):
        return self._reply("generate_tests", content=content, framework=framework, model=model)

    def predict_build(self, changes, history, dependencies=None, model=None):
        return self._reply(
            "predict_build",
            changes=changes,
            history=history,
            dependencies=dependencies,
            model=model,
        )

    def analyze_vulnerabilities(self, content, scan_type="comprehensive", model=None):
        return self._reply(
            "analyze_vulnerabilities", content=content, scan_type=scan_type, model=model
        )


class FakeDevOps(DevOpsProvider):
    """In-memory source-control collaborator.

    ``calls`` records method names in order so stage ordering can be checked.
    """

    def __init__(
        self,
        diff: str = "diff --git a/app.py b/app.py\n+print('hello')\n",
        files: list[ChangedFile] | None = None,
        repository_content: str = "### File: app.py\n```\nprint('hello')\n```",
        fail: dict[str, Exception] | None = None,
    ) -> None:
        self.diff = diff
        self.files = files or []
        self.repository_content = repository_content
        self.fail = fail or {}
        self.calls: list[str] = []
        self.comments: list[tuple[str, int, str]] = []
        self.created_files: list[tuple[str, str, str, int | None]] = []
        self.diff_requests: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return "fake"

    def _enter(self, method: str) -> None:
        self.calls.append(method)
        if method in self.fail:
            raise self.fail[method]

    def fetch_pr_diff(self, repository, pr_number, diff_url=None, base_sha=None, head_sha=None):
        self._enter("fetch_pr_diff")
        self.diff_requests.append(
            {"diff_url": diff_url, "base_sha": base_sha, "head_sha": head_sha}
        )
        return self.diff

    def fetch_changed_files(self, repository, pr_number, only=None):
        self._enter("fetch_changed_files")
        if only:
            return [f for f in self.files if f.filename in only]
        return list(self.files)

    def fetch_repository_content(self, repository, branch="main"):
        self._enter("fetch_repository_content")
        return self.repository_content

    def post_review_comment(self, repository, pr_number, body):
        self._enter("post_review_comment")
        self.comments.append((repository, pr_number, body))
        return {"id": len(self.comments), "url": None}

    def create_test_file(self, repository, path, content, pr_number=None):
        self._enter("create_test_file")
        self.created_files.append((repository, path, content, pr_number))
        return {"path": path}

    def get_recent_changes(self, repository, commit_sha=None):
        self._enter("get_recent_changes")
        return [{"sha": commit_sha or "abc123", "message": "Update app"}]

    def get_build_history(self, repository, branch=None):
        self._enter("get_build_history")
        return [{"id": 1, "conclusion": "success"}]

    def analyze_dependencies(self, repository, commit_sha=None):
        self._enter("analyze_dependencies")
        return {"manifests": {"requirements.txt": "fastapi\n"}, "ecosystems": ["pip"]}


class SequenceRandom(random.Random):
    """Random source that replays a fixed sequence of ``random()`` values."""

    def __init__(self, values: list[float]) -> None:
        super().__init__(0)
        self._values = list(values)

    def random(self) -> float:
        return self._values.pop(0)


def make_config(**overrides: Any) -> Config:
    data: dict[str, Any] = {
        "environment": "production",
        "auth": {"shared_secret": SHARED_SECRET, "signing_key": SIGNING_KEY},
    }
    data.update(overrides)
    return Config.from_dict(data)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def fake_devops() -> FakeDevOps:
    return FakeDevOps()


@pytest.fixture
def config() -> Config:
    return make_config()
