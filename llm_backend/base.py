"""Abstract base class for LLM backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Completion:
    """A single chat completion and where it came from."""

    text: str
    model: str
    provider: str


class LLMBackend(ABC):
    """Abstract interface for LLM providers.

    All LLM backends must implement this interface to ensure
    consistent behavior across different providers.
    """

    #: Provider name reported alongside every completion
    provider: str = "unknown"
    model: str = ""

    @abstractmethod
    def complete(
        self,
        messages: list[dict[str, str]],
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> Completion:
        """Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
                     Roles: "system", "user", "assistant"
            model: Optional model override (uses default if not specified)
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            **kwargs: Provider-specific parameters

        Returns:
            Completion with the response text and the model that answered.

        Raises:
            ConnectionError: If unable to connect to the backend
            TimeoutError: If the request times out
            RuntimeError: If the backend returns an error
        """
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the backend is available and responding.

        Returns:
            True if backend is reachable and ready.
        """
        ...
