"""Configuration management for the agent router.

Loads configuration from:
1. config.toml (defaults)
2. Environment variables (overrides)

The resulting Config is immutable and is handed to the access gate and
the collaborators when the application is built.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass(frozen=True)
class LLMConfig:
    """LLM backend configuration."""

    backend: str = "auto"  # "auto", "ollama", "openai", "anthropic", "lmstudio"
    model: str = ""  # empty = backend default
    base_url: str = ""
    timeout: int = 120
    temperature: float = 0.3
    max_tokens: int = 4000


@dataclass(frozen=True)
class AuthConfig:
    """Bearer credential configuration.

    ``development`` enables the shared-secret shortcut that is checked
    before token verification. It follows APP_ENV/NODE_ENV and is an
    audit point: deployed environments should leave it off.
    """

    shared_secret: str = ""
    signing_key: str = ""
    algorithm: str = "HS256"
    development: bool = False
    token_ttl_minutes: int = 60


@dataclass(frozen=True)
class GitHubConfig:
    """Source-control collaborator configuration."""

    token: str = ""
    api_url: str = "https://api.github.com"
    timeout: int = 30
    max_repository_files: int = 25
    max_file_bytes: int = 20_000
    commit_message_prefix: str = "[agent]"


@dataclass(frozen=True)
class DevOpsConfig:
    """Container and deployment collaborator configuration."""

    mode: str = "simulated"  # "simulated" | "kubectl"
    registry_url: str = ""
    k8s_namespace: str = ""  # empty = use the request's environment
    k8s_context: str = ""
    container_port: int = 8080
    replicas: int = 2
    rollout_timeout: int = 300
    deployment_domain: str = "example.com"
    monitoring_url: str = "https://monitoring.example.com/dashboard"


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server and logging configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    log_format: str = "json"  # "json" | "rich"
    cors_origins: tuple[str, ...] = ("*",)


@dataclass(frozen=True)
class Config:
    """Main configuration container."""

    environment: str = "production"
    llm: LLMConfig = field(default_factory=LLMConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    devops: DevOpsConfig = field(default_factory=DevOpsConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        environment = str(data.get("environment", "production")).lower()

        auth_data = dict(data.get("auth", {}))
        # The shared-secret shortcut follows the environment only
        auth_data["development"] = environment == "development"

        server_data = dict(data.get("server", {}))
        if "cors_origins" in server_data:
            server_data["cors_origins"] = tuple(server_data["cors_origins"])

        return cls(
            environment=environment,
            llm=_build(LLMConfig, data.get("llm", {})),
            auth=_build(AuthConfig, auth_data),
            github=_build(GitHubConfig, data.get("github", {})),
            devops=_build(DevOpsConfig, data.get("devops", {})),
            server=_build(ServerConfig, server_data),
        )


def _build(section_cls: type, values: dict[str, Any]) -> Any:
    known = {f.name for f in fields(section_cls)}
    return section_cls(**{k: v for k, v in values.items() if k in known})


def find_config_file() -> Path | None:
    """Find config.toml in current or parent directories.

    Returns:
        Path to config.toml or None if not found.
    """
    current = Path.cwd()

    for directory in [current, *current.parents]:
        config_path = directory / "config.toml"
        if config_path.exists():
            return config_path

    return None


def load_config(config_path: Path | str | None = None) -> Config:
    """Load configuration from file and environment.

    Args:
        config_path: Optional explicit path to config.toml

    Returns:
        Config object with merged settings.
    """
    config_data: dict[str, Any] = {}

    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            with open(path, "rb") as f:
                config_data = tomllib.load(f)

    environment = os.getenv("APP_ENV") or os.getenv("NODE_ENV")
    if environment:
        config_data["environment"] = environment

    env_overrides = {
        "llm": {
            "backend": os.getenv("LLM_BACKEND"),
            "model": os.getenv("LLM_MODEL"),
            "base_url": os.getenv("LLM_BASE_URL"),
            "timeout": _int_or_none(os.getenv("LLM_TIMEOUT")),
        },
        "auth": {
            "shared_secret": os.getenv("MCP_SERVER_TOKEN"),
            "signing_key": os.getenv("JWT_SECRET"),
            "algorithm": os.getenv("JWT_ALGORITHM"),
        },
        "github": {
            "token": os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN"),
            "api_url": os.getenv("GITHUB_API_URL"),
        },
        "devops": {
            "mode": os.getenv("DEVOPS_MODE"),
            "registry_url": os.getenv("DOCKER_REGISTRY_URL"),
            "k8s_namespace": os.getenv("K8S_NAMESPACE"),
            "k8s_context": os.getenv("K8S_CONTEXT"),
            "deployment_domain": os.getenv("DEPLOYMENT_DOMAIN"),
        },
        "server": {
            "host": os.getenv("HOST"),
            "port": _int_or_none(os.getenv("PORT")),
            "log_level": os.getenv("LOG_LEVEL"),
            "log_format": os.getenv("LOG_FORMAT"),
        },
    }

    # Merge env overrides (only non-None values)
    for section, values in env_overrides.items():
        section_data = config_data.setdefault(section, {})
        for key, value in values.items():
            if value is not None:
                section_data[key] = value

    return Config.from_dict(config_data)


def _int_or_none(value: str | None) -> int | None:
    """Convert string to int, or return None."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Returns:
        Config object (loaded once, cached).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Force reload of configuration.

    Returns:
        Fresh Config object.
    """
    global _config
    _config = load_config()
    return _config
