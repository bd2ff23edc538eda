"""GitHub REST client implementing the source-control collaborator."""

import base64
import logging
from typing import Any

import httpx

from pipeline.config import GitHubConfig
from pipeline.errors import UpstreamAuthError, UpstreamError, UpstreamNotFound, ValidationError

from .base import ChangedFile, DevOpsProvider

logger = logging.getLogger(__name__)

DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"

# Files worth sending to a vulnerability scan
SCANNABLE_EXTENSIONS = (
    ".py", ".js", ".ts", ".jsx", ".tsx", ".java", ".go", ".rb", ".php", ".cs",
    ".yml", ".yaml", ".toml", ".json", ".tf", ".sh",
)
SCANNABLE_NAMES = ("Dockerfile", "docker-compose.yml", ".env.example")

DEPENDENCY_MANIFESTS = {
    "package.json": "npm",
    "requirements.txt": "pip",
    "pyproject.toml": "pip",
    "go.mod": "go",
    "pom.xml": "maven",
    "build.gradle": "gradle",
    "Gemfile": "bundler",
    "composer.json": "composer",
}

TOKEN_HINT = "Check that GITHUB_TOKEN is set and has repo scope for this repository."

# Hosts a caller-supplied diff_url may point at; the token is sent along
GITHUB_HOSTS = ("github.com", "api.github.com")


class GitHubClient(DevOpsProvider):
    """Client for the GitHub REST API.

    Authentication via GITHUB_TOKEN (or GH_TOKEN), read into GitHubConfig.

    Usage:
        client = GitHubClient.from_config(config.github)
        diff = client.fetch_pr_diff("owner/repo", 42)
    """

    def __init__(
        self,
        token: str = "",
        api_url: str = "https://api.github.com",
        timeout: int = 30,
        max_repository_files: int = 25,
        max_file_bytes: int = 20_000,
        commit_message_prefix: str = "[agent]",
        client: httpx.Client | None = None,
    ) -> None:
        self.max_repository_files = max_repository_files
        self.max_file_bytes = max_file_bytes
        self.commit_message_prefix = commit_message_prefix

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = client or httpx.Client(
            base_url=api_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
        )

    @classmethod
    def from_config(cls, config: GitHubConfig) -> "GitHubClient":
        return cls(
            token=config.token,
            api_url=config.api_url,
            timeout=config.timeout,
            max_repository_files=config.max_repository_files,
            max_file_bytes=config.max_file_bytes,
            commit_message_prefix=config.commit_message_prefix,
        )

    @property
    def name(self) -> str:
        return "github"

    def close(self) -> None:
        self._client.close()

    # -- pull requests -----------------------------------------------------

    def fetch_pr_diff(
        self,
        repository: str,
        pr_number: int,
        diff_url: str | None = None,
        base_sha: str | None = None,
        head_sha: str | None = None,
    ) -> str:
        what = f"{repository}#{pr_number}"
        if base_sha and head_sha:
            url = f"/repos/{repository}/compare/{base_sha}...{head_sha}"
        elif diff_url:
            url = self._trusted_diff_url(diff_url)
        else:
            url = f"/repos/{repository}/pulls/{pr_number}"

        response = self._request("GET", url, what=what, accept=DIFF_MEDIA_TYPE)
        return response.text

    def _trusted_diff_url(self, diff_url: str) -> str:
        """Reject diff URLs that would carry the token off GitHub."""
        try:
            parsed = httpx.URL(diff_url)
        except httpx.InvalidURL as exc:
            raise ValidationError(f"Invalid diff_url: {exc}") from exc

        if not parsed.host:
            return diff_url
        api_host = self._client.base_url.host
        if parsed.host == api_host:
            return diff_url
        if parsed.host in GITHUB_HOSTS and parsed.scheme == "https":
            return diff_url

        logger.warning("Refusing diff_url on untrusted host %s", parsed.host)
        raise ValidationError(
            "diff_url must point at the configured GitHub API or github.com",
            extra={"diff_url_host": parsed.host},
        )

    def fetch_changed_files(
        self,
        repository: str,
        pr_number: int,
        only: list[str] | None = None,
    ) -> list[ChangedFile]:
        wanted = set(only) if only else None
        files: list[ChangedFile] = []

        for entry in self._paginate(
            f"/repos/{repository}/pulls/{pr_number}/files",
            what=f"{repository}#{pr_number}",
        ):
            filename = entry.get("filename", "")
            status = entry.get("status", "modified")
            if status == "removed":
                continue
            if wanted is not None and filename not in wanted:
                continue

            content = ""
            if entry.get("sha"):
                content = self._read_blob(repository, entry["sha"], filename)
            files.append(ChangedFile(filename=filename, content=content, status=status))

        return files

    def post_review_comment(self, repository: str, pr_number: int, body: str) -> dict[str, Any]:
        response = self._request(
            "POST",
            f"/repos/{repository}/issues/{pr_number}/comments",
            what=f"{repository}#{pr_number}",
            json={"body": body},
        )
        data = response.json()
        logger.info("Posted review comment on %s#%s", repository, pr_number)
        return {"id": data.get("id"), "url": data.get("html_url")}

    def create_test_file(
        self,
        repository: str,
        path: str,
        content: str,
        pr_number: int | None = None,
    ) -> dict[str, Any]:
        branch = self._head_branch(repository, pr_number) if pr_number else None

        payload: dict[str, Any] = {
            "message": f"{self.commit_message_prefix} Add generated tests: {path}",
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }
        if branch:
            payload["branch"] = branch

        existing_sha = self._existing_file_sha(repository, path, branch)
        if existing_sha:
            payload["sha"] = existing_sha

        response = self._request(
            "PUT",
            f"/repos/{repository}/contents/{path}",
            what=f"{repository}:{path}",
            json=payload,
        )
        data = response.json()
        return {
            "path": path,
            "branch": branch,
            "commit": (data.get("commit") or {}).get("sha"),
            "updated": existing_sha is not None,
        }

    # -- repository content ------------------------------------------------

    def fetch_repository_content(self, repository: str, branch: str = "main") -> str:
        response = self._request(
            "GET",
            f"/repos/{repository}/git/trees/{branch}",
            what=f"{repository}@{branch}",
            params={"recursive": "1"},
        )
        tree = response.json().get("tree", [])

        selected = [
            item for item in tree
            if item.get("type") == "blob"
            and _is_scannable(item.get("path", ""))
            and item.get("size", 0) <= self.max_file_bytes
        ][: self.max_repository_files]

        sections = []
        for item in selected:
            content = self._read_blob(repository, item["sha"], item["path"])
            sections.append(f"### File: {item['path']}\n```\n{content}\n```")

        logger.info(
            "Collected %d of %d files from %s@%s",
            len(selected),
            len(tree),
            repository,
            branch,
        )
        return "\n\n".join(sections)

    def get_recent_changes(self, repository: str, commit_sha: str | None = None) -> Any:
        if commit_sha:
            data = self._request(
                "GET",
                f"/repos/{repository}/commits/{commit_sha}",
                what=f"{repository}@{commit_sha}",
            ).json()
            return {
                "sha": data.get("sha"),
                "message": (data.get("commit") or {}).get("message", ""),
                "author": ((data.get("commit") or {}).get("author") or {}).get("name"),
                "stats": data.get("stats", {}),
                "files": [
                    {
                        "filename": f.get("filename"),
                        "status": f.get("status"),
                        "additions": f.get("additions", 0),
                        "deletions": f.get("deletions", 0),
                    }
                    for f in data.get("files", [])
                ],
            }

        commits = self._request(
            "GET",
            f"/repos/{repository}/commits",
            what=repository,
            params={"per_page": 10},
        ).json()
        return [
            {
                "sha": c.get("sha"),
                "message": (c.get("commit") or {}).get("message", ""),
                "author": ((c.get("commit") or {}).get("author") or {}).get("name"),
                "date": ((c.get("commit") or {}).get("author") or {}).get("date"),
            }
            for c in commits
        ]

    def get_build_history(self, repository: str, branch: str | None = None) -> Any:
        params: dict[str, Any] = {"per_page": 10}
        if branch:
            params["branch"] = branch
        data = self._request(
            "GET",
            f"/repos/{repository}/actions/runs",
            what=repository,
            params=params,
        ).json()
        return [
            {
                "id": run.get("id"),
                "name": run.get("name"),
                "status": run.get("status"),
                "conclusion": run.get("conclusion"),
                "head_sha": run.get("head_sha"),
                "created_at": run.get("created_at"),
                "updated_at": run.get("updated_at"),
            }
            for run in data.get("workflow_runs", [])
        ]

    def analyze_dependencies(self, repository: str, commit_sha: str | None = None) -> dict[str, Any]:
        manifests: dict[str, str] = {}
        for path in DEPENDENCY_MANIFESTS:
            try:
                content = self._read_file(repository, path, ref=commit_sha)
            except UpstreamNotFound:
                continue
            if content is not None:
                manifests[path] = content

        return {
            "manifests": manifests,
            "ecosystems": sorted({DEPENDENCY_MANIFESTS[p] for p in manifests}),
        }

    # -- helpers -------------------------------------------------------------

    def _request(
        self,
        method: str,
        url: str,
        what: str,
        accept: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = {"Accept": accept} if accept else None
        try:
            response = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as e:
            raise UpstreamError(f"Failed to connect to GitHub: {e}") from e

        _raise_for_status(response, what)
        return response

    def _paginate(self, url: str, what: str, per_page: int = 100) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            batch = self._request(
                "GET", url, what=what, params={"per_page": per_page, "page": page}
            ).json()
            items.extend(batch)
            if len(batch) < per_page:
                return items
            page += 1

    def _read_blob(self, repository: str, sha: str, path: str) -> str:
        data = self._request(
            "GET", f"/repos/{repository}/git/blobs/{sha}", what=f"{repository}:{path}"
        ).json()
        return _decode_content(data)

    def _read_file(self, repository: str, path: str, ref: str | None = None) -> str | None:
        params = {"ref": ref} if ref else None
        data = self._request(
            "GET",
            f"/repos/{repository}/contents/{path}",
            what=f"{repository}:{path}",
            params=params,
        ).json()
        if isinstance(data, list):  # a directory
            return None
        return _decode_content(data)

    def _existing_file_sha(self, repository: str, path: str, branch: str | None) -> str | None:
        params = {"ref": branch} if branch else None
        try:
            data = self._request(
                "GET",
                f"/repos/{repository}/contents/{path}",
                what=f"{repository}:{path}",
                params=params,
            ).json()
        except UpstreamNotFound:
            return None
        return data.get("sha") if isinstance(data, dict) else None

    def _head_branch(self, repository: str, pr_number: int) -> str | None:
        data = self._request(
            "GET",
            f"/repos/{repository}/pulls/{pr_number}",
            what=f"{repository}#{pr_number}",
        ).json()
        return (data.get("head") or {}).get("ref")

    def __repr__(self) -> str:
        return f"GitHubClient(base_url={str(self._client.base_url)!r})"


def _raise_for_status(response: httpx.Response, what: str) -> None:
    status = response.status_code
    if status < 400:
        return
    if status == 404:
        raise UpstreamNotFound(
            f"GitHub resource not found: {what}. "
            "Please check the repository name and PR number."
        )
    if status == 401:
        raise UpstreamAuthError("GitHub authentication failed.", hint=TOKEN_HINT)
    if status == 403:
        if "rate limit" in response.text.lower():
            raise UpstreamAuthError(
                "GitHub API rate limit exceeded.",
                hint="Set GITHUB_TOKEN for higher limits.",
            )
        raise UpstreamAuthError(f"Access denied to {what}.", hint=TOKEN_HINT)
    raise UpstreamError(f"GitHub API error: {status} - {response.text[:200]}")


def _decode_content(data: dict[str, Any]) -> str:
    content = data.get("content") or ""
    if data.get("encoding") == "base64":
        return base64.b64decode(content).decode("utf-8", errors="replace")
    return content


def _is_scannable(path: str) -> bool:
    name = path.rsplit("/", 1)[-1]
    return name in SCANNABLE_NAMES or name.endswith(SCANNABLE_EXTENSIONS)
