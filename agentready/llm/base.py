"""Contract for chat-completion providers used by the summarizer and assessor."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol


class ChatModel(Protocol):
    """Protocol implemented by LLM handles injected into the pipeline."""

    def run(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Send one chat turn and return the response text."""


class LLMError(RuntimeError):
    """Raised when the provider call fails; upstream hints are passed through."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        retry_after: Optional[float] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.retry_after = retry_after


__all__ = ["ChatModel", "LLMError"]
