"""LLM provider adapters."""

from .base import ChatModel, LLMError
from .runner import LLMRequest, LLMRunner

__all__ = ["ChatModel", "LLMError", "LLMRequest", "LLMRunner"]
