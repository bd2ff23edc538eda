"""Anthropic backend for Claude models."""

import os
from typing import Any

from anthropic import Anthropic, APIConnectionError, APIError, APITimeoutError

from .base import Completion, LLMBackend


class AnthropicBackend(LLMBackend):
    """Anthropic Messages API backend.

    Requires ANTHROPIC_API_KEY environment variable.
    See: https://docs.anthropic.com/en/api/getting-started
    """

    provider = "anthropic"

    def __init__(
        self,
        model: str | None = None,
        api_key: str | None = None,
        timeout: int = 120,
        max_tokens: int = 4000,
        **kwargs: Any,
    ) -> None:
        """Initialize Anthropic backend.

        Args:
            model: Default model (claude-sonnet-4-20250514 if not set)
            api_key: API key (defaults to ANTHROPIC_API_KEY env var)
            timeout: Request timeout in seconds
            max_tokens: Default max tokens for responses
        """
        self.model = model or "claude-sonnet-4-20250514"
        self.default_max_tokens = max_tokens

        api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError(
                "Anthropic API key not found. Set ANTHROPIC_API_KEY environment variable "
                "or pass api_key parameter."
            )

        self._client = Anthropic(api_key=api_key, timeout=timeout)

    def complete(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> Completion:
        # Anthropic takes the system prompt as a separate parameter
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        chat_messages = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m["role"] != "system"
        ]

        # Conversation must open with a user turn
        if chat_messages and chat_messages[0]["role"] != "user":
            chat_messages.insert(0, {"role": "user", "content": "Please assist me."})

        request_kwargs: dict[str, Any] = {
            "model": model or self.model,
            "messages": chat_messages,
            "max_tokens": max_tokens or self.default_max_tokens,
            "temperature": temperature,
        }
        if system_parts:
            request_kwargs["system"] = "\n\n".join(system_parts)

        try:
            response = self._client.messages.create(**request_kwargs)
        except APITimeoutError as e:
            raise TimeoutError(f"Anthropic request timed out: {e}") from e
        except APIConnectionError as e:
            raise ConnectionError(f"Failed to connect to Anthropic API: {e}") from e
        except APIError as e:
            raise RuntimeError(f"Anthropic API error: {e}") from e

        text_blocks = [block.text for block in response.content if hasattr(block, "text")]
        if not text_blocks:
            raise RuntimeError("Anthropic returned no text content")

        return Completion(
            text="\n".join(text_blocks),
            model=getattr(response, "model", None) or request_kwargs["model"],
            provider=self.provider,
        )

    def is_available(self) -> bool:
        try:
            self._client.messages.create(
                model=self.model,
                max_tokens=10,
                messages=[{"role": "user", "content": "hi"}],
            )
            return True
        except APIError:
            return False

    @staticmethod
    def has_api_key() -> bool:
        return bool(os.environ.get("ANTHROPIC_API_KEY"))

    def __repr__(self) -> str:
        return f"AnthropicBackend(model={self.model!r})"
