"""Source-control collaborator interface.

Agents talk to the repository host only through DevOpsProvider. The
GitHub client is the shipped implementation; tests use an in-memory fake.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ChangedFile:
    """A file touched by a pull request, with its new contents."""

    filename: str
    content: str
    status: str = "modified"


class DevOpsProvider(ABC):
    """Repository operations consumed by the agent pipelines.

    Implementations raise UpstreamNotFound, UpstreamAuthError or
    UpstreamError (pipeline.errors) on failure.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'github')."""
        ...

    @abstractmethod
    def fetch_pr_diff(
        self,
        repository: str,
        pr_number: int,
        diff_url: str | None = None,
        base_sha: str | None = None,
        head_sha: str | None = None,
    ) -> str:
        """Return the unified diff for a pull request."""
        ...

    @abstractmethod
    def fetch_changed_files(
        self,
        repository: str,
        pr_number: int,
        only: list[str] | None = None,
    ) -> list[ChangedFile]:
        """Return the changed files of a pull request with their contents.

        Args:
            repository: "owner/repo"
            pr_number: Pull request number
            only: Optional subset of paths to return
        """
        ...

    @abstractmethod
    def fetch_repository_content(self, repository: str, branch: str = "main") -> str:
        """Return a text bundle of the repository's source files."""
        ...

    @abstractmethod
    def post_review_comment(self, repository: str, pr_number: int, body: str) -> dict[str, Any]:
        """Post a comment on the pull request."""
        ...

    @abstractmethod
    def create_test_file(
        self,
        repository: str,
        path: str,
        content: str,
        pr_number: int | None = None,
    ) -> dict[str, Any]:
        """Create or update a file, on the PR head branch when given."""
        ...

    @abstractmethod
    def get_recent_changes(self, repository: str, commit_sha: str | None = None) -> Any:
        """Return recent commits, or the details of one commit."""
        ...

    @abstractmethod
    def get_build_history(self, repository: str, branch: str | None = None) -> Any:
        """Return recent CI runs."""
        ...

    @abstractmethod
    def analyze_dependencies(self, repository: str, commit_sha: str | None = None) -> dict[str, Any]:
        """Return the dependency manifests found in the repository."""
        ...
