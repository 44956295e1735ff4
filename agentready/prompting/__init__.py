"""Prompt templates and builders for summaries and rubric assessment."""

from .builder import ManifestExcerpt, PromptRequest, RubricPromptBuilder, find_manifest_chunk

__all__ = ["ManifestExcerpt", "PromptRequest", "RubricPromptBuilder", "find_manifest_chunk"]
