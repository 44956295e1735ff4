"""Tests for agentready.prompting.builder."""

from __future__ import annotations

from agentready.models import FileSummary
from agentready.prompting.builder import RubricPromptBuilder, find_manifest_chunk
from tests._fixtures.fakes import make_chunk, make_context


def test_summary_request_renders_chunk_coordinates() -> None:
    chunk = make_chunk(path="src/app.py", line_start=5, line_end=9, content="def run():\n    pass")

    request = RubricPromptBuilder().build_summary_request(chunk)

    assert request.prompt.startswith("File: src/app.py (lines 5-9)")
    assert "Citation ID: CIT-00000001" in request.prompt
    assert "def run():\n    pass" in request.prompt
    assert "under 200 words" in request.system
    assert request.metadata == {"path": "src/app.py", "citation_id": "CIT-00000001"}


def test_rubric_request_includes_context_summaries_and_citations() -> None:
    chunks = [
        make_chunk(path="README.md", line_start=1, line_end=12, citation_id="CIT-aaaaaaaa"),
        make_chunk(path="app.py", line_start=1, line_end=40, citation_id="CIT-bbbbbbbb"),
    ]
    summaries = [
        FileSummary("README.md", "CIT-aaaaaaaa", "Describes the service.", ["Mentions AI"]),
        FileSummary("app.py", "CIT-bbbbbbbb", "Flask routes.", ["CRUD only"]),
    ]

    request = RubricPromptBuilder().build_rubric_request(make_context(), summaries, chunks)

    prompt = request.prompt
    assert prompt.startswith("## Repository Information")
    assert "- URL: https://github.com/acme/widgets" in prompt
    assert "- Detected Stack: python" in prompt
    assert "### app.py [CIT-bbbbbbbb]" in prompt
    assert "- CRUD only" in prompt
    assert "- CIT-aaaaaaaa: README.md (L1-L12)" in prompt
    assert "- CIT-bbbbbbbb: app.py (L1-L40)" in prompt
    assert "No dependency manifest found" in prompt
    assert "(2 files)" in prompt
    assert request.metadata == {"manifest_path": None, "summary_count": 2, "citation_count": 2}


def test_section_order_is_stable() -> None:
    request = RubricPromptBuilder().build_rubric_request(make_context(), [], [make_chunk()])

    headings = [line for line in request.prompt.splitlines() if line.startswith("## ")]
    assert headings == [
        "## Repository Information",
        "## Analyzed Files",
        "## Dependencies Analysis",
        "## File Summaries",
        "## Available Citations",
        "## Instructions",
    ]


def test_manifest_excerpt_is_quoted_and_capped() -> None:
    manifest = make_chunk(path="package.json", content="{" + "x" * 3000, citation_id="CIT-cccccccc")

    request = RubricPromptBuilder().build_rubric_request(
        make_context(detected_stack=[]), [], [make_chunk(), manifest]
    )

    assert "File: package.json" in request.prompt
    assert "{" + "x" * 1999 in request.prompt
    assert "x" * 2000 not in request.prompt
    assert "- Detected Stack: Unknown" in request.prompt
    assert "Check if ANY of these AI libraries are present: openai, anthropic" in request.prompt
    assert request.metadata["manifest_path"] == "package.json"


def test_find_manifest_chunk_ignores_nested_manifests() -> None:
    nested = make_chunk(path="web/package.json")
    root = make_chunk(path="requirements.txt")

    assert find_manifest_chunk([nested, root]) is root
    assert find_manifest_chunk([nested]) is None


def test_rubric_system_prompt_carries_code_over_docs_policy() -> None:
    request = RubricPromptBuilder().build_rubric_request(make_context(), [], [make_chunk()])

    assert "Documentation claims are INSUFFICIENT evidence" in request.system
    assert "choose the LOWER classification" in request.system
    assert "replicate" in request.system
    assert "chat.completions.create" in request.system
