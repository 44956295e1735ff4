"""Rubric assessment: prompt, schema-constrained LLM call, enrichment, validation."""

from __future__ import annotations

import copy
import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .chunking import DEFAULT_URL_BASE, citation_url
from .llm.base import ChatModel
from .logging import get_logger
from .models import AnalysisContext, Chunk, FileSummary
from .prompting.builder import RubricPromptBuilder
from .schema import default_schema
from .validators import (
    RubricValidationError,
    RubricValidator,
    ValidationResult,
    Validator,
)

DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 8000
RAW_PREVIEW_CHARS = 200

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class RubricParseError(RuntimeError):
    """Raised when the LLM response is not a JSON object."""

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


@dataclass
class AssessmentOutcome:
    """Parsed rubric plus the raw response and any advisory validation issues."""

    rubric: Dict[str, Any]
    raw: str
    validation: ValidationResult = field(default_factory=ValidationResult)

    @property
    def validation_errors(self) -> List[str]:
        return self.validation.messages()


def parse_rubric(raw: str) -> Dict[str, Any]:
    """Decode the model's structured output; anything but a JSON object is fatal."""
    text = raw.strip()
    fenced = _FENCE_PATTERN.match(text)
    if fenced:
        text = fenced.group(1)
    preview = raw[:RAW_PREVIEW_CHARS]
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RubricParseError(f"Failed to parse LLM response as JSON: {preview}...", raw) from exc
    if not isinstance(parsed, dict):
        raise RubricParseError(f"LLM response is not a JSON object: {preview}...", raw)
    return parsed


def enrich_citations(
    rubric: Mapping[str, Any],
    context: AnalysisContext,
    chunks: Sequence[Chunk] = (),
    *,
    url_base: str = DEFAULT_URL_BASE,
) -> Dict[str, Any]:
    """Return a copy of ``rubric`` whose citations carry computed locator URLs.

    Citations whose id matches a known chunk take that chunk's coordinates. The
    revision is always the analysed commit. Any model-authored ``url`` is
    replaced; entries without usable coordinates are left without one.
    """
    enriched = copy.deepcopy(dict(rubric))
    citations = enriched.get("citations")
    if not isinstance(citations, list):
        return enriched

    by_id = {chunk.citation_id: chunk for chunk in chunks}
    for citation in citations:
        if not isinstance(citation, dict):
            continue
        citation.pop("url", None)
        cited = citation.get("id")
        chunk = by_id.get(cited) if isinstance(cited, str) else None
        if chunk is not None:
            citation["path"] = chunk.path
            citation["line_start"] = chunk.line_start
            citation["line_end"] = chunk.line_end
        citation["commit_sha"] = context.commit_sha

        path = citation.get("path")
        line_start = citation.get("line_start")
        line_end = citation.get("line_end")
        if (
            isinstance(path, str)
            and isinstance(line_start, int)
            and isinstance(line_end, int)
            and not isinstance(line_start, bool)
            and not isinstance(line_end, bool)
        ):
            citation["url"] = citation_url(
                context.owner,
                context.repo,
                context.commit_sha,
                path,
                line_start,
                line_end,
                url_base=url_base,
            )
    return enriched


class RubricAssessor:
    """Builds the rubric prompt, calls the LLM and post-processes its output."""

    def __init__(
        self,
        llm: ChatModel,
        *,
        prompt_builder: RubricPromptBuilder | None = None,
        response_schema: Optional[Dict[str, Any]] = None,
        validator: Validator | None = None,
        strict: bool = False,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        url_base: str = DEFAULT_URL_BASE,
    ) -> None:
        self.llm = llm
        self.prompt_builder = prompt_builder or RubricPromptBuilder()
        self.response_schema = response_schema if response_schema is not None else default_schema()
        self.validator = validator or RubricValidator()
        self.strict = strict
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.url_base = url_base
        self.logger = get_logger("assessment")

    def build_assessment(
        self,
        context: AnalysisContext,
        summaries: Sequence[FileSummary],
        chunks: Sequence[Chunk],
    ) -> AssessmentOutcome:
        """Produce a validated, citation-enriched rubric.

        Raises :class:`RubricParseError` when the response is not JSON and, in
        strict mode, :class:`RubricValidationError` when it fails validation.
        """
        request = self.prompt_builder.build_rubric_request(context, summaries, chunks)
        self.logger.info(
            "Requesting rubric assessment for %s/%s (%d summaries, %d citations)",
            context.owner,
            context.repo,
            len(summaries),
            len(chunks),
        )
        raw = self.llm.run(
            request.prompt,
            system=request.system,
            response_schema=self.response_schema,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        parsed = parse_rubric(raw)
        rubric = enrich_citations(parsed, context, chunks, url_base=self.url_base)
        result = self.validator.validate(rubric)

        if not result.valid:
            if self.strict:
                for issue in result.errors:
                    self.logger.error("Rubric validation: %s", issue)
                raise RubricValidationError(
                    "Rubric validation failed:\n" + "\n".join(result.messages()),
                    result.errors,
                )
            for issue in result.errors:
                self.logger.warning("Rubric validation: %s", issue)
        else:
            self.logger.debug("Rubric passed validation")

        return AssessmentOutcome(rubric=rubric, raw=raw, validation=result)


def build_assessment(
    context: AnalysisContext,
    summaries: Sequence[FileSummary],
    chunks: Sequence[Chunk],
    llm: ChatModel,
    *,
    strict: bool = False,
    response_schema: Optional[Dict[str, Any]] = None,
) -> AssessmentOutcome:
    """Functional entrypoint around :class:`RubricAssessor`."""
    assessor = RubricAssessor(llm, strict=strict, response_schema=response_schema)
    return assessor.build_assessment(context, summaries, chunks)


__all__ = [
    "AssessmentOutcome",
    "RubricAssessor",
    "RubricParseError",
    "build_assessment",
    "enrich_citations",
    "parse_rubric",
]
