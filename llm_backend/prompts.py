"""Prompt templates for the DevOps analysis calls."""

REVIEWER_SYSTEM_PROMPT = """You are a senior software engineer reviewing pull requests.
Be direct and actionable. Call out security problems explicitly, naming the
risk (for example "security", "vulnerability", "unsafe"), so that they are
never buried in style feedback."""

ANALYSIS_FOCUS = {
    "comprehensive": (
        "correctness, security, performance, maintainability, and test coverage"
    ),
    "security": "security vulnerabilities, unsafe input handling, secrets, and auth flaws",
    "performance": "algorithmic complexity, I/O patterns, allocations, and caching",
    "style": "naming, readability, consistency, and idiomatic usage",
    "quick": "the most significant problems only",
}

CODE_ANALYSIS_PROMPT = """Review the following pull request diff.
Focus on {focus}.

For each finding give the file, the problem, and why it matters.
Finish with an overall assessment.

```diff
{diff}
```"""

SUGGESTIONS_PROMPT = """Based on this code analysis, extract 3-5 specific, actionable suggestions:

{analysis}"""

TEST_WRITER_SYSTEM_PROMPT = """You are an expert test engineer.
You write clean, comprehensive tests that cover edge cases and error conditions,
using descriptive test names and the arrange-act-assert pattern.
Answer with the test file contents only, no commentary."""

TEST_GENERATION_PROMPT = """Write {framework} tests for the following source file.
If the framework is "generic", use the most common test framework for the language.

```
{content}
```"""

BUILD_PREDICTOR_SYSTEM_PROMPT = """You are a CI/CD expert predicting build outcomes.
Answer with a single JSON object and nothing else."""

BUILD_PREDICTION_PROMPT = """Predict the outcome of the next build from this data.

## Recent changes
{changes}

## Build history
{history}

## Dependency analysis
{dependencies}

Respond with JSON using exactly these keys:
{{
  "success_probability": <number 0-100>,
  "estimated_duration": "<e.g. 5-8 minutes>",
  "potential_issues": ["<issue>", ...],
  "resource_requirements": {{"cpu": "<low|medium|high>", "memory": "<low|medium|high>"}},
  "confidence_score": <number 0-1>
}}"""

SECURITY_SYSTEM_PROMPT = """You are an application security engineer performing a
vulnerability assessment. Answer with a single JSON object and nothing else."""

SCAN_DEPTH = {
    "comprehensive": "all vulnerability classes (OWASP Top 10, secrets, dependencies, config)",
    "quick": "only high-confidence, high-impact vulnerabilities",
    "dependencies": "vulnerable or outdated third-party dependencies",
    "secrets": "hardcoded credentials, tokens, and keys",
}

VULNERABILITY_PROMPT = """Scan the following repository content for {depth}.

{content}

Respond with JSON:
{{
  "vulnerabilities": [
    {{"description": "<what>", "severity": "<critical|high|medium|low>", "location": "<file:line>"}}
  ],
  "risk_level": "<high|medium|low>"
}}"""
