"""Tests for the agent pipelines with in-memory collaborators."""

from __future__ import annotations

import pytest

from agents import (
    BuildPredictorAgent,
    CodeReviewAgent,
    ConversationalDeployAgent,
    DeployAgent,
    DockerAgent,
    MonitorAgent,
    TestWriterAgent,
    VulnerabilityScanAgent,
)
from agents.code_review_agent import FALLBACK_SUGGESTION
from agents.monitor_agent import metric_alerts
from conftest import FIXED_NOW, FIXED_TIMESTAMP, FakeDevOps, FakeLLM, SequenceRandom
from integrations import ChangedFile, MetricsSampler, SimulatedRuntime
from pipeline.config import DevOpsConfig
from pipeline.errors import (
    InternalError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamNotFound,
    ValidationError,
)
from schemas.decisions import MonitoringMetrics, ReviewStatus

EPOCH_MS = int(FIXED_NOW.timestamp() * 1000)


@pytest.fixture
def runtime(fixed_clock):
    return SimulatedRuntime(DevOpsConfig(registry_url="registry.example.com"), clock=fixed_clock)


class TestCodeReviewAgent:
    def _agent(self, llm, devops, clock):
        return CodeReviewAgent(llm, devops, clock=clock)

    def test_unsafe_change_requests_changes(self, fake_devops, fixed_clock):
        llm = FakeLLM({"analyze_code": "Unsafe deserialization of request bodies via pickle."})
        decision = self._agent(llm, fake_devops, fixed_clock).handle(
            {"repository": "octo/app", "pr_number": 5}
        )
        assert decision.status == ReviewStatus.CHANGES_REQUESTED
        assert decision.risk_level == "high"
        assert decision.timestamp == FIXED_TIMESTAMP

    def test_clean_change_approved(self, fake_llm, fake_devops, fixed_clock):
        decision = self._agent(fake_llm, fake_devops, fixed_clock).handle(
            {"repository": "octo/app", "pr_number": 5}
        )
        assert decision.status == ReviewStatus.APPROVED
        assert decision.risk_level == "low"
        assert decision.model_used == "fake-model"
        assert decision.provider == "fake"

    def test_suggestions_are_non_empty_lines(self, fake_llm, fake_devops, fixed_clock):
        decision = self._agent(fake_llm, fake_devops, fixed_clock).handle(
            {"repository": "octo/app", "pr_number": 5}
        )
        assert decision.suggestions == [
            "Add docstrings",
            "Extract a helper",
            "Cover the error path",
        ]

    def test_at_most_five_suggestions(self, fake_devops, fixed_clock):
        llm = FakeLLM({"generate": "\n".join(f"Suggestion {i}" for i in range(8))})
        decision = self._agent(llm, fake_devops, fixed_clock).handle(
            {"repository": "octo/app", "pr_number": 5}
        )
        assert len(decision.suggestions) == 5

    def test_suggestion_failure_is_soft(self, fake_devops, fixed_clock):
        llm = FakeLLM({"generate": ConnectionError("model went away")})
        decision = self._agent(llm, fake_devops, fixed_clock).handle(
            {"repository": "octo/app", "pr_number": 5}
        )
        assert decision.suggestions == [FALLBACK_SUGGESTION]
        assert fake_devops.comments

    def test_empty_diff_rejected_before_llm(self, fake_llm, fixed_clock):
        devops = FakeDevOps(diff="  \n ")
        with pytest.raises(ValidationError) as exc_info:
            self._agent(fake_llm, devops, fixed_clock).handle(
                {"repository": "octo/app", "pr_number": 5}
            )
        assert exc_info.value.message == "No diff content available for analysis"
        assert exc_info.value.missing == ["diff"]
        assert exc_info.value.to_payload()["required_parameters"] == ["repository", "pr_number"]
        assert fake_llm.calls == []
        assert devops.comments == []

    def test_missing_pr_number_never_calls_collaborators(self, fake_llm, fake_devops, fixed_clock):
        with pytest.raises(ValidationError) as exc_info:
            self._agent(fake_llm, fake_devops, fixed_clock).handle({"repository": "octo/app"})
        assert exc_info.value.missing == ["pr_number"]
        assert fake_devops.calls == []

    def test_stage_order_and_comment(self, fake_llm, fake_devops, fixed_clock):
        self._agent(fake_llm, fake_devops, fixed_clock).handle(
            {
                "repository": "octo/app",
                "pr_number": 5,
                "base_sha": "aaa",
                "head_sha": "bbb",
                "analysis_type": "security",
                "llm_model": "big-model",
            }
        )
        assert fake_devops.calls == ["fetch_pr_diff", "post_review_comment"]
        assert fake_devops.diff_requests[0] == {"diff_url": None, "base_sha": "aaa", "head_sha": "bbb"}
        assert [name for name, _ in fake_llm.calls] == ["analyze_code", "generate"]
        assert fake_llm.called("analyze_code")[0]["analysis_type"] == "security"
        assert fake_llm.called("analyze_code")[0]["model"] == "big-model"
        repository, pr_number, body = fake_devops.comments[0]
        assert (repository, pr_number) == ("octo/app", 5)
        assert "Approved" in body

    def test_analysis_failure_aborts_with_title(self, fake_devops, fixed_clock):
        llm = FakeLLM({"analyze_code": TimeoutError("timed out")})
        with pytest.raises(UpstreamError) as exc_info:
            self._agent(llm, fake_devops, fixed_clock).handle(
                {"repository": "octo/app", "pr_number": 5}
            )
        assert exc_info.value.to_payload()["error"] == "Code review failed"
        assert exc_info.value.message == "timed out"
        assert fake_devops.comments == []

    def test_upstream_not_found_keeps_status(self, fake_llm, fixed_clock):
        devops = FakeDevOps(fail={"fetch_pr_diff": UpstreamNotFound("no such PR")})
        with pytest.raises(UpstreamNotFound) as exc_info:
            self._agent(fake_llm, devops, fixed_clock).handle(
                {"repository": "octo/app", "pr_number": 99}
            )
        assert exc_info.value.status_code == 404
        assert exc_info.value.title == "Code review failed"

    def test_comment_failure_surfaces(self, fake_llm, fixed_clock):
        devops = FakeDevOps(
            fail={"post_review_comment": UpstreamAuthError("denied", hint="check token")}
        )
        with pytest.raises(UpstreamAuthError) as exc_info:
            self._agent(fake_llm, devops, fixed_clock).handle(
                {"repository": "octo/app", "pr_number": 5}
            )
        assert exc_info.value.to_payload()["hint"] == "check token"

    def test_unexpected_error_is_internal(self, fake_llm, fixed_clock):
        devops = FakeDevOps(fail={"fetch_pr_diff": KeyError("diff")})
        with pytest.raises(InternalError):
            self._agent(fake_llm, devops, fixed_clock).handle(
                {"repository": "octo/app", "pr_number": 5}
            )


class TestTestWriterAgent:
    FILES = [
        ChangedFile("src/app.py", "def add(a, b):\n    return a + b\n"),
        ChangedFile("src/Widget.java", "class Widget {}"),
        ChangedFile("src/api.test.js", "test('x', () => {})"),
        ChangedFile("README.md", "# Title"),
        ChangedFile("src/empty.go", ""),
    ]

    def _agent(self, llm, devops, clock, rng=None):
        return TestWriterAgent(llm, devops, rng=rng or SequenceRandom([0.5]), clock=clock)

    def test_generates_for_supported_files(self, fake_llm, fixed_clock):
        devops = FakeDevOps(files=self.FILES)
        decision = self._agent(fake_llm, devops, fixed_clock).handle(
            {"repository": "octo/app", "pr_number": 3}
        )
        assert decision.tests_generated == 2
        assert decision.test_files == ["test_app.py", "src/WidgetTest.java"]
        assert decision.frameworks == {
            "test_app.py": "pytest",
            "src/WidgetTest.java": "junit",
        }
        assert [path for _, path, _, _ in devops.created_files] == decision.test_files
        assert all(pr == 3 for _, _, _, pr in devops.created_files)

    def test_colliding_test_filenames_written_once(self, fake_llm, fixed_clock):
        devops = FakeDevOps(
            files=[
                ChangedFile("a/app.py", "def one():\n    return 1\n"),
                ChangedFile("b/app.py", "def two():\n    return 2\n"),
            ]
        )
        decision = self._agent(fake_llm, devops, fixed_clock).handle(
            {"repository": "octo/app", "pr_number": 3}
        )
        assert decision.tests_generated == 1
        assert decision.test_files == ["test_app.py"]
        assert len(devops.created_files) == 1
        assert len(fake_llm.called("generate_tests")) == 1

    def test_coverage_estimate_is_simulated(self, fake_llm, fixed_clock):
        devops = FakeDevOps(files=self.FILES[:1])
        decision = self._agent(fake_llm, devops, fixed_clock, SequenceRandom([0.5])).handle(
            {"repository": "octo/app", "pr_number": 3}
        )
        assert decision.coverage_estimate == pytest.approx(90.0)
        assert decision.coverage_estimate_source == "simulated"

    def test_framework_override(self, fake_llm, fixed_clock):
        devops = FakeDevOps(files=self.FILES[:1])
        decision = self._agent(fake_llm, devops, fixed_clock).handle(
            {"repository": "octo/app", "pr_number": 3, "test_framework": "unittest"}
        )
        assert decision.frameworks == {"src/app.test.py": "unittest"}
        assert fake_llm.called("generate_tests")[0]["framework"] == "unittest"

    def test_changed_files_filter(self, fake_llm, fixed_clock):
        devops = FakeDevOps(files=self.FILES)
        decision = self._agent(fake_llm, devops, fixed_clock).handle(
            {"repository": "octo/app", "pr_number": 3, "changed_files": ["src/Widget.java"]}
        )
        assert decision.test_files == ["src/WidgetTest.java"]

    def test_no_files_generates_nothing(self, fake_llm, fixed_clock):
        decision = self._agent(fake_llm, FakeDevOps(), fixed_clock).handle(
            {"repository": "octo/app", "pr_number": 3}
        )
        assert decision.tests_generated == 0
        assert fake_llm.calls == []

    def test_failure_carries_zero_count(self, fixed_clock):
        llm = FakeLLM({"generate_tests": RuntimeError("quota exceeded")})
        devops = FakeDevOps(files=self.FILES[:1])
        with pytest.raises(UpstreamError) as exc_info:
            self._agent(llm, devops, fixed_clock).handle({"repository": "o/r", "pr_number": 3})
        payload = exc_info.value.to_payload()
        assert payload["error"] == "Test generation failed"
        assert payload["tests_generated"] == 0


class TestBuildPredictorAgent:
    def test_structured_prediction(self, fake_llm, fake_devops, fixed_clock):
        decision = BuildPredictorAgent(fake_llm, fake_devops, clock=fixed_clock).handle(
            {"repository": "octo/app", "branch": "main", "commit_sha": "abc"}
        )
        assert decision.prediction_source == "llm"
        assert decision.success_probability == 92
        assert decision.confidence_score == 0.85
        assert decision.commit_sha == "abc"
        assert decision.dependency_analysis["ecosystems"] == ["pip"]

    def test_prose_falls_back_to_default(self, fake_devops, fixed_clock):
        llm = FakeLLM({"predict_build": "Looks fine to me, probably passes."})
        decision = BuildPredictorAgent(llm, fake_devops, clock=fixed_clock).handle(
            {"repository": "octo/app"}
        )
        assert decision.prediction_source == "default"
        assert decision.success_probability == 75
        assert decision.estimated_duration == "5-8 minutes"
        assert decision.potential_issues == ["Dependency conflicts possible"]
        assert decision.resource_requirements == {"cpu": "medium", "memory": "medium"}
        assert decision.confidence_score == 0.7

    def test_partial_reply_keeps_model_probability(self, fake_devops, fixed_clock):
        llm = FakeLLM({"predict_build": '{"success_probability": 20, "confidence_score": 0.3}'})
        decision = BuildPredictorAgent(llm, fake_devops, clock=fixed_clock).handle(
            {"repository": "octo/app"}
        )
        assert decision.prediction_source == "llm"
        assert decision.success_probability == 20
        assert decision.confidence_score == 0.3
        assert decision.resource_requirements == {"cpu": "medium", "memory": "medium"}

    def test_inputs_gathered_in_order(self, fake_llm, fake_devops, fixed_clock):
        BuildPredictorAgent(fake_llm, fake_devops, clock=fixed_clock).handle({"repository": "o/r"})
        assert fake_devops.calls == [
            "get_recent_changes",
            "get_build_history",
            "analyze_dependencies",
        ]

    def test_dependencies_skipped(self, fake_llm, fake_devops, fixed_clock):
        decision = BuildPredictorAgent(fake_llm, fake_devops, clock=fixed_clock).handle(
            {"repository": "o/r", "include_dependencies": False}
        )
        assert "analyze_dependencies" not in fake_devops.calls
        assert decision.dependency_analysis is None
        assert fake_llm.called("predict_build")[0]["dependencies"] is None

    def test_failure_carries_fifty_percent(self, fake_llm, fixed_clock):
        devops = FakeDevOps(fail={"get_build_history": UpstreamError("GitHub API error: 502")})
        with pytest.raises(UpstreamError) as exc_info:
            BuildPredictorAgent(fake_llm, devops, clock=fixed_clock).handle({"repository": "o/r"})
        payload = exc_info.value.to_payload()
        assert payload["error"] == "Build prediction failed"
        assert payload["success_probability"] == 50


class TestDockerAgent:
    def test_build_and_push(self, runtime, fixed_clock):
        decision = DockerAgent(runtime, clock=fixed_clock).handle(
            {"repository": "octo/app", "action": "build_and_push", "commit_sha": "0123456789abcdef"}
        )
        assert decision.image_tag == "octo/app:01234567"
        assert decision.image_pushed is True
        assert decision.simulated is True
        assert decision.registry_url == "registry.example.com"
        assert set(decision.k8s_manifests) == {"deployment.yaml", "service.yaml"}
        assert "registry.example.com/octo/app:01234567" in decision.k8s_manifests["deployment.yaml"]

    def test_latest_without_commit(self, runtime, fixed_clock):
        decision = DockerAgent(runtime, clock=fixed_clock).handle(
            {"repository": "octo/app", "action": "build_and_push"}
        )
        assert decision.image_tag == "octo/app:latest"

    def test_unsupported_action(self, runtime, fixed_clock):
        with pytest.raises(ValidationError) as exc_info:
            DockerAgent(runtime, clock=fixed_clock).handle(
                {"repository": "octo/app", "action": "destroy"}
            )
        payload = exc_info.value.to_payload()
        assert exc_info.value.status_code == 400
        assert payload["error"] == "Unsupported action"
        assert payload["supported_actions"] == ["build_and_push"]
        assert payload["required_parameters"] == ["repository", "action"]


class TestDeployAgents:
    def test_deploy(self, runtime, fixed_clock):
        decision = DeployAgent(runtime, clock=fixed_clock).handle(
            {"environment": "staging", "image_tag": "octo/app:abc", "repository": "octo/app"}
        )
        assert decision.deployment_id == f"deploy-{EPOCH_MS}"
        assert decision.deployment_url == "https://staging.app.example.com"
        assert decision.status == "deployed"
        assert decision.environment == "staging"
        assert decision.image_tag == "octo/app:abc"

    def test_deploy_without_repository(self, runtime, fixed_clock):
        decision = DeployAgent(runtime, clock=fixed_clock).handle(
            {"environment": "prod", "image_tag": "x:1"}
        )
        assert decision.deployment_url == "https://prod.app.example.com"

    def test_deploy_requires_image_tag(self, runtime, fixed_clock):
        with pytest.raises(ValidationError) as exc_info:
            DeployAgent(runtime, clock=fixed_clock).handle({"environment": "prod"})
        assert exc_info.value.missing == ["image_tag"]

    def test_conversational(self, runtime, fixed_clock):
        decision = ConversationalDeployAgent(runtime, clock=fixed_clock).handle(
            {"environment": "staging", "repository": "octo/shop", "branch": "release", "user_id": "u1"}
        )
        assert decision.status == "success"
        assert decision.deployment_id == f"deploy-{EPOCH_MS}"
        assert decision.deployment_url == "https://staging.shop.example.com"
        assert len(decision.steps_completed) == 6
        assert decision.steps_completed[0] == "Validating deployment parameters"
        assert decision.next_steps == [
            "Monitor deployment health",
            "Run smoke tests",
            "Update documentation",
        ]
        assert decision.estimated_completion == "3-5 minutes"
        assert decision.branch == "release"


class TestMonitorAgent:
    def _agent(self, values, clock):
        return MonitorAgent(MetricsSampler(SequenceRandom(values)), clock=clock)

    def test_both_alerts(self, fixed_clock):
        decision = self._agent([0.81, 0.5, 0.2, 0.61], fixed_clock).handle(
            {"deployment_id": "deploy-1", "environment": "prod"}
        )
        assert decision.metrics.cpu_usage == pytest.approx(81.0)
        assert decision.metrics.error_rate == pytest.approx(3.05)
        assert decision.alerts == ["High CPU usage detected", "Elevated error rate detected"]
        assert decision.status == "healthy"

    def test_cpu_at_threshold_no_alert(self, fixed_clock):
        decision = self._agent([0.8, 0.5, 0.2, 0.1], fixed_clock).handle(
            {"deployment_id": "deploy-1"}
        )
        assert decision.metrics.cpu_usage == 80.0
        assert decision.alerts == []

    def test_threshold_is_exclusive(self):
        metrics = MonitoringMetrics(
            cpu_usage=80, memory_usage=10, response_time=100, error_rate=3
        )
        assert metric_alerts(metrics) == []

    def test_dashboard_and_duration(self, fixed_clock):
        decision = self._agent([0.1, 0.1, 0.1, 0.1], fixed_clock).handle(
            {"deployment_id": "deploy-42", "monitoring_duration": 60}
        )
        assert decision.dashboard_url == "https://monitoring.example.com/dashboard/deploy-42"
        assert decision.monitoring_duration == "60s"
        assert decision.timestamp == FIXED_TIMESTAMP


class TestVulnerabilityScanAgent:
    def test_structured_report(self, fake_devops, fixed_clock):
        llm = FakeLLM(
            {
                "analyze_vulnerabilities": (
                    '{"vulnerabilities": [{"description": "Hardcoded key", "severity": "high"},'
                    ' {"description": "Hardcoded key", "severity": "high"}], "risk_level": "high"}'
                )
            }
        )
        decision = VulnerabilityScanAgent(llm, fake_devops, clock=fixed_clock).handle(
            {"repository": "octo/app"}
        )
        assert decision.analysis_source == "structured"
        assert decision.risk_level == "high"
        assert decision.total_issues == 2
        assert decision.branch == "main"
        assert decision.scan_type == "comprehensive"

    def test_numeric_location_keeps_report(self, fake_devops, fixed_clock):
        llm = FakeLLM(
            {
                "analyze_vulnerabilities": (
                    '{"vulnerabilities": [{"description": "SQL injection", "severity": "high",'
                    ' "location": 42}], "risk_level": "high"}'
                )
            }
        )
        decision = VulnerabilityScanAgent(llm, fake_devops, clock=fixed_clock).handle(
            {"repository": "octo/app"}
        )
        assert decision.analysis_source == "structured"
        assert decision.risk_level == "high"
        assert decision.total_issues == 1
        assert decision.vulnerabilities[0].location == "42"

    def test_entry_without_description_keeps_risk(self, fake_devops, fixed_clock):
        llm = FakeLLM(
            {
                "analyze_vulnerabilities": (
                    '{"vulnerabilities": [{"severity": "high", "cwe": "CWE-89"}, 7],'
                    ' "risk_level": "high"}'
                )
            }
        )
        decision = VulnerabilityScanAgent(llm, fake_devops, clock=fixed_clock).handle(
            {"repository": "octo/app"}
        )
        assert decision.analysis_source == "structured"
        assert decision.risk_level == "high"
        assert decision.total_issues == 1
        assert decision.vulnerabilities[0].description == "CWE-89"

    def test_prose_critical_is_high(self, fake_devops, fixed_clock):
        llm = FakeLLM({"analyze_vulnerabilities": "Critical issue found in auth module"})
        decision = VulnerabilityScanAgent(llm, fake_devops, clock=fixed_clock).handle(
            {"repository": "octo/app"}
        )
        assert decision.analysis_source == "heuristic"
        assert decision.risk_level == "high"
        assert decision.vulnerabilities == []
        assert decision.total_issues == 0

    def test_prose_moderate_is_medium(self, fake_devops, fixed_clock):
        llm = FakeLLM({"analyze_vulnerabilities": "A few moderate concerns"})
        decision = VulnerabilityScanAgent(llm, fake_devops, clock=fixed_clock).handle(
            {"repository": "octo/app", "branch": "dev", "scan_type": "secrets"}
        )
        assert decision.risk_level == "medium"
        assert decision.branch == "dev"
        assert fake_llm_scan_type(llm) == "secrets"

    def test_failure_carries_unknown_risk(self, fake_llm, fixed_clock):
        devops = FakeDevOps(fail={"fetch_repository_content": UpstreamNotFound("missing")})
        with pytest.raises(UpstreamNotFound) as exc_info:
            VulnerabilityScanAgent(fake_llm, devops, clock=fixed_clock).handle(
                {"repository": "octo/gone"}
            )
        payload = exc_info.value.to_payload()
        assert payload["error"] == "Vulnerability scan failed"
        assert payload["risk_level"] == "unknown"


def fake_llm_scan_type(llm: FakeLLM) -> str:
    return llm.called("analyze_vulnerabilities")[0]["scan_type"]
