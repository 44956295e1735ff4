"""Builds summary and rubric prompts from Jinja2 templates."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models import AnalysisContext, Chunk, FileSummary
from .constants import (
    AI_LIBRARIES,
    AI_LIBRARIES_EXTENDED,
    LLM_CALL_PATTERNS,
    MANIFEST_EXCERPT_CHARS,
    MANIFEST_FILENAMES,
    RUBRIC_TEMPLATE_SYSTEM,
    RUBRIC_TEMPLATE_USER,
    SUMMARY_TEMPLATE_SYSTEM,
    SUMMARY_TEMPLATE_USER,
)

SUMMARY_MAX_WORDS = 200


@dataclass(frozen=True)
class ManifestExcerpt:
    """Leading slice of a dependency manifest quoted into the rubric prompt."""

    path: str
    excerpt: str


@dataclass
class PromptRequest:
    """A rendered system/user prompt pair ready for the LLM."""

    name: str
    system: str
    prompt: str
    metadata: Dict[str, object] = field(default_factory=dict)


def find_manifest_chunk(chunks: Sequence[Chunk]) -> Optional[Chunk]:
    """Return the first root-level dependency manifest chunk, if any."""
    for chunk in chunks:
        if chunk.path in MANIFEST_FILENAMES:
            return chunk
    return None


class RubricPromptBuilder:
    """Assembles per-chunk summary prompts and the final rubric prompt."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self._env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
            undefined=StrictUndefined,
        )

    def build_summary_request(self, chunk: Chunk) -> PromptRequest:
        system = self._render(SUMMARY_TEMPLATE_SYSTEM, max_words=SUMMARY_MAX_WORDS)
        prompt = self._render(SUMMARY_TEMPLATE_USER, chunk=chunk)
        return PromptRequest(
            name=f"summary:{chunk.citation_id}",
            system=system,
            prompt=prompt,
            metadata={"path": chunk.path, "citation_id": chunk.citation_id},
        )

    def build_rubric_request(
        self,
        context: AnalysisContext,
        summaries: Sequence[FileSummary],
        chunks: Sequence[Chunk],
    ) -> PromptRequest:
        """Render the assessment prompt with repository context and evidence."""
        manifest_chunk = find_manifest_chunk(chunks)
        manifest = None
        if manifest_chunk is not None:
            manifest = ManifestExcerpt(
                path=manifest_chunk.path,
                excerpt=manifest_chunk.content[:MANIFEST_EXCERPT_CHARS],
            )

        system = self._render(
            RUBRIC_TEMPLATE_SYSTEM,
            ai_libraries=AI_LIBRARIES_EXTENDED,
            llm_call_patterns=LLM_CALL_PATTERNS,
        )
        prompt = self._render(
            RUBRIC_TEMPLATE_USER,
            context=context,
            manifest=manifest,
            ai_libraries=AI_LIBRARIES,
            summaries=list(summaries),
            chunks=list(chunks),
        )
        return PromptRequest(
            name="rubric",
            system=system,
            prompt=prompt,
            metadata={
                "manifest_path": manifest.path if manifest else None,
                "summary_count": len(summaries),
                "citation_count": len(chunks),
            },
        )

    def _render(self, template_name: str, **values: object) -> str:
        template = self._env.get_template(template_name)
        return template.render(**values).strip()


__all__ = ["ManifestExcerpt", "PromptRequest", "RubricPromptBuilder", "find_manifest_chunk"]
