"""LLM Backend abstraction layer.

Provides a unified interface for different LLM providers.
Supports auto-detection based on available API keys.

Priority order for "auto" mode:
1. Anthropic (if ANTHROPIC_API_KEY set)
2. OpenAI (if OPENAI_API_KEY set)
3. LM Studio (if running on localhost:1234)
4. Ollama (local fallback)
"""

import logging
import os
import socket

from .analyzer import LLMAnalyzer
from .base import Completion, LLMBackend
from .ollama_backend import OllamaBackend

logger = logging.getLogger(__name__)

__all__ = [
    "Completion",
    "LLMAnalyzer",
    "LLMBackend",
    "OllamaBackend",
    "detect_backend",
    "get_backend",
]

LM_STUDIO_DEFAULT_URL = "http://localhost:1234/v1"


def _check_lmstudio_running() -> bool:
    """Check if LM Studio server is listening on its default port."""
    try:
        with socket.create_connection(("localhost", 1234), timeout=1):
            return True
    except OSError:
        return False


def detect_backend() -> str:
    """Auto-detect the best available backend.

    Returns:
        Backend name: "anthropic", "openai", "lmstudio", or "ollama"
    """
    if os.environ.get("ANTHROPIC_API_KEY"):
        logger.info("Auto-detected: Anthropic API key found")
        return "anthropic"

    if os.environ.get("OPENAI_API_KEY"):
        logger.info("Auto-detected: OpenAI API key found")
        return "openai"

    if _check_lmstudio_running():
        logger.info("Auto-detected: LM Studio running on localhost:1234")
        return "lmstudio"

    logger.info("Auto-detected: No API keys found, using Ollama (local)")
    return "ollama"


def get_backend(kind: str, **kwargs) -> LLMBackend:
    """Factory function to get an LLM backend instance.

    Args:
        kind: Backend type ("auto", "ollama", "openai", "anthropic", "lmstudio")
        **kwargs: Backend-specific configuration (model, base_url, timeout, ...)

    Returns:
        LLMBackend instance

    Raises:
        ValueError: If backend type is unknown
    """
    if kind == "auto":
        kind = detect_backend()
        logger.info("Auto-selected backend: %s", kind)

    # SDK-backed providers are imported lazily so that a missing optional
    # SDK only matters when that provider is selected.
    if kind == "ollama":
        return OllamaBackend(**kwargs)
    if kind == "openai":
        from .openai_backend import OpenAIBackend

        return OpenAIBackend(**kwargs)
    if kind == "anthropic":
        from .anthropic_backend import AnthropicBackend

        return AnthropicBackend(**kwargs)
    if kind == "lmstudio":
        from .openai_backend import OpenAIBackend

        kwargs["base_url"] = kwargs.get("base_url") or LM_STUDIO_DEFAULT_URL
        kwargs["model"] = kwargs.get("model") or "local-model"
        return OpenAIBackend(api_key="lm-studio", provider="lmstudio", **kwargs)

    available = "auto, ollama, openai, anthropic, lmstudio"
    raise ValueError(f"Unknown LLM backend: {kind}. Available: {available}")
