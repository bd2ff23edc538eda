"""OpenAI backend, also used for OpenAI-compatible servers (LM Studio)."""

import os
from typing import Any

from openai import APIConnectionError, APIError, APITimeoutError, OpenAI

from .base import Completion, LLMBackend


class OpenAIBackend(LLMBackend):
    """OpenAI chat completions backend.

    Requires OPENAI_API_KEY unless an explicit key is passed.
    See: https://platform.openai.com/docs/api-reference
    """

    provider = "openai"

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: int = 120,
        provider: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize OpenAI backend.

        Args:
            model: Default model (gpt-4o-mini if not set)
            api_key: API key (defaults to OPENAI_API_KEY env var)
            base_url: Optional base URL override (Azure, proxies, LM Studio)
            timeout: Request timeout in seconds
            provider: Provider name to report (e.g. "lmstudio")
        """
        self.model = model or "gpt-4o-mini"
        if provider:
            self.provider = provider

        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ValueError(
                "OpenAI API key not found. Set OPENAI_API_KEY environment variable "
                "or pass api_key parameter."
            )

        client_kwargs: dict[str, Any] = {"api_key": api_key, "timeout": timeout}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = OpenAI(**client_kwargs)

    def complete(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> Completion:
        request_kwargs: dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens is not None:
            request_kwargs["max_tokens"] = max_tokens

        try:
            response = self._client.chat.completions.create(**request_kwargs)
        except APITimeoutError as e:
            raise TimeoutError(f"OpenAI request timed out: {e}") from e
        except APIConnectionError as e:
            raise ConnectionError(f"Failed to connect to OpenAI API: {e}") from e
        except APIError as e:
            raise RuntimeError(f"OpenAI API error: {e}") from e

        if not response.choices:
            raise RuntimeError("OpenAI returned empty response")
        content = response.choices[0].message.content
        if content is None:
            raise RuntimeError("OpenAI returned null content")

        return Completion(
            text=content,
            model=response.model or request_kwargs["model"],
            provider=self.provider,
        )

    def is_available(self) -> bool:
        try:
            self._client.models.list()
            return True
        except APIError:
            return False

    @staticmethod
    def has_api_key() -> bool:
        return bool(os.environ.get("OPENAI_API_KEY"))

    def __repr__(self) -> str:
        return f"OpenAIBackend(model={self.model!r}, provider={self.provider!r})"
