"""Tests for agentready.assessment."""

from __future__ import annotations

import copy
import json

import pytest

from agentready.assessment import (
    RubricAssessor,
    RubricParseError,
    build_assessment,
    enrich_citations,
    parse_rubric,
)
from agentready.models import FileSummary
from agentready.schema import DEFAULT_RUBRIC_SCHEMA
from agentready.validators import RubricValidationError
from tests._fixtures.fakes import RecordingLLM, make_chunk, make_context, make_rubric


def _model_output(**overrides) -> dict:
    """Rubric as the model returns it: citations without locator URLs."""
    rubric = make_rubric(**overrides)
    for citation in rubric["citations"]:
        citation.pop("url", None)
    return rubric


def test_parse_rubric_accepts_fenced_json() -> None:
    assert parse_rubric('```json\n{"a": 1}\n```') == {"a": 1}


def test_parse_rubric_rejects_non_json() -> None:
    with pytest.raises(RubricParseError) as excinfo:
        parse_rubric("I think this repo is great")

    assert "Failed to parse LLM response as JSON" in str(excinfo.value)
    assert excinfo.value.raw == "I think this repo is great"


def test_parse_rubric_rejects_non_object() -> None:
    with pytest.raises(RubricParseError, match="not a JSON object"):
        parse_rubric("[1, 2, 3]")


def test_enrich_citations_builds_urls_from_chunk_coordinates() -> None:
    chunk = make_chunk(path="src/app.ts", line_start=10, line_end=20, citation_id="CIT-00000001")
    rubric = _model_output()
    rubric["citations"][0].update({"path": "wrong.ts", "line_start": 1, "line_end": 2})
    original = copy.deepcopy(rubric)

    enriched = enrich_citations(rubric, make_context(commit_sha="abc123"), [chunk])

    citation = enriched["citations"][0]
    assert citation["path"] == "src/app.ts"
    assert (citation["line_start"], citation["line_end"]) == (10, 20)
    assert citation["url"] == "https://github.com/acme/widgets/blob/abc123/src/app.ts#L10-L20"
    assert rubric == original


def test_enrich_citations_replaces_model_urls_and_pins_revision() -> None:
    rubric = make_rubric(citation_ids=["CIT-unknown0"])
    rubric["citations"][0]["url"] = "https://evil.example.com"
    rubric["citations"][0]["commit_sha"] = "HEAD"

    enriched = enrich_citations(rubric, make_context(commit_sha="feedface"), [], url_base="https://git.local")

    citation = enriched["citations"][0]
    assert citation["commit_sha"] == "feedface"
    assert citation["url"] == "https://git.local/acme/widgets/blob/feedface/app.py#L1-L10"


def test_enrich_citations_leaves_unlocatable_entries_without_url() -> None:
    rubric = make_rubric()
    rubric["citations"][0]["line_start"] = "one"

    enriched = enrich_citations(rubric, make_context(), [])

    assert "url" not in enriched["citations"][0]


def test_assessor_calls_llm_with_schema_and_rubric_parameters() -> None:
    llm = RecordingLLM(json.dumps(_model_output()))
    summaries = [FileSummary("app.py", "CIT-00000001", "Routes.", ["CRUD"])]

    outcome = RubricAssessor(llm).build_assessment(make_context(), summaries, [make_chunk()])

    assert len(llm.calls) == 1
    call = llm.calls[0]
    assert call["response_schema"] == DEFAULT_RUBRIC_SCHEMA
    assert call["temperature"] == 0.2
    assert call["max_tokens"] == 8000
    assert "### app.py [CIT-00000001]" in call["prompt"]
    assert outcome.validation.valid
    assert outcome.rubric["citations"][0]["url"].endswith("/app.py#L1-L10")


def test_strict_mode_raises_on_invalid_rubric() -> None:
    llm = RecordingLLM(json.dumps(_model_output(classification="Z_UNKNOWN")))

    with pytest.raises(RubricValidationError) as excinfo:
        build_assessment(make_context(), [], [make_chunk()], llm, strict=True)

    assert [issue.path for issue in excinfo.value.issues] == ["classification"]


def test_permissive_mode_returns_rubric_with_errors() -> None:
    llm = RecordingLLM(json.dumps(_model_output(classification="Z_UNKNOWN")))

    outcome = build_assessment(make_context(), [], [make_chunk()], llm)

    assert outcome.rubric["classification"] == "Z_UNKNOWN"
    assert len(outcome.validation_errors) == 1
    assert outcome.validation_errors[0].startswith("classification: Invalid value")


def test_parse_failure_is_fatal_in_any_mode() -> None:
    llm = RecordingLLM("not json at all")

    with pytest.raises(RubricParseError):
        build_assessment(make_context(), [], [make_chunk()], llm, strict=False)


def test_custom_schema_is_forwarded() -> None:
    llm = RecordingLLM(json.dumps(_model_output()))
    schema = {"type": "object"}

    build_assessment(make_context(), [], [make_chunk()], llm, response_schema=schema)

    assert llm.calls[0]["response_schema"] == schema
