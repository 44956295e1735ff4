"""Tests for agentready.chunking."""

from __future__ import annotations

import hashlib

import pytest

from agentready.chunking import chunk_file, citation_id, citation_url


def _lines(count: int, width: int = 9) -> str:
    return "\n".join("x" * width for _ in range(count))


def test_thousand_lines_split_into_four_windows() -> None:
    result = chunk_file(_lines(1000), "src/big.py", "rev1", max_lines_per_chunk=300, max_file_chars=None)

    ranges = [(chunk.line_start, chunk.line_end) for chunk in result.chunks]
    assert ranges == [(1, 300), (301, 600), (601, 900), (901, 1000)]
    assert result.total_lines == 1000
    assert result.truncated is False


def test_small_file_is_single_chunk_with_full_content() -> None:
    content = "line one\nline two\n"

    result = chunk_file(content, "README.md", "rev1")

    assert len(result.chunks) == 1
    chunk = result.chunks[0]
    assert chunk.content == content
    assert (chunk.line_start, chunk.line_end) == (1, 3)
    assert chunk.citation_id == citation_id("README.md", "rev1", 1, 3)


def test_windows_cover_every_line_without_gaps() -> None:
    result = chunk_file(_lines(47), "a.py", "rev", max_lines_per_chunk=10, max_file_chars=None)

    expected_start = 1
    for chunk in result.chunks:
        assert chunk.line_start == expected_start
        assert chunk.line_end >= chunk.line_start
        expected_start = chunk.line_end + 1
    assert result.chunks[-1].line_end == 47


def test_chunking_is_deterministic() -> None:
    content = _lines(120)

    first = chunk_file(content, "a.py", "rev", max_lines_per_chunk=50)
    second = chunk_file(content, "a.py", "rev", max_lines_per_chunk=50)

    assert first == second


def test_character_cap_truncates_final_window() -> None:
    result = chunk_file(_lines(100), "a.py", "rev", max_lines_per_chunk=10, max_file_chars=250)

    assert result.truncated is True
    assert [(c.line_start, c.line_end) for c in result.chunks] == [(1, 10), (11, 20), (21, 26)]
    assert sum(len(chunk.content) for chunk in result.chunks) == 250


def test_zero_character_budget_yields_no_chunks() -> None:
    result = chunk_file(_lines(500), "a.py", "rev", max_lines_per_chunk=100, max_file_chars=0)

    assert result.chunks == []
    assert result.truncated is True


def test_rejects_non_positive_window() -> None:
    with pytest.raises(ValueError):
        chunk_file("abc", "a.py", "rev", max_lines_per_chunk=0)


def test_citation_id_format_and_stability() -> None:
    expected = "CIT-" + hashlib.sha256(b"src/app.ts:abc123:1:40").hexdigest()[:8]

    assert citation_id("src/app.ts", "abc123", 1, 40) == expected
    assert citation_id("src/app.ts", "abc123", 1, 40) != citation_id("src/app.ts", "abc124", 1, 40)


def test_citation_url_points_at_line_range() -> None:
    url = citation_url("acme", "widgets", "abc123", "src/app.ts", 10, 20)

    assert url == "https://github.com/acme/widgets/blob/abc123/src/app.ts#L10-L20"


def test_citation_url_honours_custom_base() -> None:
    url = citation_url("acme", "widgets", "abc", "a.py", 1, 2, url_base="https://git.example.com/")

    assert url == "https://git.example.com/acme/widgets/blob/abc/a.py#L1-L2"
