"""Shared constants for summary and rubric prompting."""

from __future__ import annotations

SUMMARY_TEMPLATE_SYSTEM = "summary_system.j2"
SUMMARY_TEMPLATE_USER = "summary_user.j2"
RUBRIC_TEMPLATE_SYSTEM = "rubric_system.j2"
RUBRIC_TEMPLATE_USER = "rubric_user.j2"

# Files whose content is quoted verbatim so the model can check dependencies.
MANIFEST_FILENAMES: tuple[str, ...] = (
    "package.json",
    "requirements.txt",
    "pyproject.toml",
    "Pipfile",
    "setup.py",
    "setup.cfg",
    "go.mod",
    "Cargo.toml",
)

MANIFEST_EXCERPT_CHARS = 2000

AI_LIBRARIES: tuple[str, ...] = (
    "openai",
    "anthropic",
    "langchain",
    "transformers",
    "@anthropic-ai/sdk",
    "llama-index",
    "cohere",
)

AI_LIBRARIES_EXTENDED: tuple[str, ...] = AI_LIBRARIES + ("replicate",)

LLM_CALL_PATTERNS: tuple[str, ...] = (
    "chat.completions.create",
    "messages.create",
    "generate()",
    "complete()",
    "embed()",
)


__all__ = [
    "AI_LIBRARIES",
    "AI_LIBRARIES_EXTENDED",
    "LLM_CALL_PATTERNS",
    "MANIFEST_EXCERPT_CHARS",
    "MANIFEST_FILENAMES",
    "RUBRIC_TEMPLATE_SYSTEM",
    "RUBRIC_TEMPLATE_USER",
    "SUMMARY_TEMPLATE_SYSTEM",
    "SUMMARY_TEMPLATE_USER",
]
