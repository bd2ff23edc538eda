"""Ollama backend for local LLM inference."""

from typing import Any

import requests

from .base import Completion, LLMBackend


class OllamaBackend(LLMBackend):
    """Ollama backend for local LLM execution.

    Connects to a local Ollama server for inference.
    See: https://ollama.ai/
    """

    provider = "ollama"

    def __init__(
        self,
        model: str | None = None,
        base_url: str | None = None,
        timeout: int = 600,
        **kwargs: Any,
    ) -> None:
        self.model = model or "llama3.1:8b"
        self.base_url = (base_url or "http://localhost:11434").rstrip("/")
        self.timeout = timeout

    def complete(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> Completion:
        payload: dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": temperature},
        }
        if max_tokens is not None:
            payload["options"]["num_predict"] = max_tokens

        try:
            response = requests.post(
                f"{self.base_url}/api/chat", json=payload, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.exceptions.ConnectionError as e:
            raise ConnectionError(
                f"Failed to connect to Ollama at {self.base_url}. "
                "Is Ollama running? Try: ollama serve"
            ) from e
        except requests.exceptions.Timeout as e:
            raise TimeoutError(f"Ollama request timed out after {self.timeout}s") from e
        except requests.exceptions.HTTPError as e:
            raise RuntimeError(f"Ollama returned an error: {e}") from e

        data = response.json()

        # Ollama returns {"model": ..., "message": {"role": "assistant", "content": "..."}}
        message = data.get("message") or {}
        if "content" not in message:
            raise RuntimeError(f"Unexpected Ollama response format: {data}")

        return Completion(
            text=message["content"],
            model=data.get("model") or payload["model"],
            provider=self.provider,
        )

    def is_available(self) -> bool:
        try:
            response = requests.get(f"{self.base_url}/api/tags", timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False

    def __repr__(self) -> str:
        return f"OllamaBackend(model={self.model!r}, base_url={self.base_url!r})"
