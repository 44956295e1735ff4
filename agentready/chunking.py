"""Deterministic line-range chunking with stable citation identifiers."""

from __future__ import annotations

import hashlib
from typing import List, Optional

from .models import Chunk, ChunkResult

DEFAULT_MAX_LINES_PER_CHUNK = 300
DEFAULT_MAX_FILE_CHARS = 40_000
DEFAULT_URL_BASE = "https://github.com"

CITATION_PREFIX = "CIT-"
CITATION_HASH_LENGTH = 8


def citation_id(path: str, revision_id: str, line_start: int, line_end: int) -> str:
    """Return the citation id for a line range; a pure function of its coordinates."""
    key = f"{path}:{revision_id}:{line_start}:{line_end}"
    digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
    return f"{CITATION_PREFIX}{digest[:CITATION_HASH_LENGTH]}"


def citation_url(
    owner: str,
    repo: str,
    revision_id: str,
    path: str,
    line_start: int,
    line_end: int,
    *,
    url_base: str = DEFAULT_URL_BASE,
) -> str:
    """Build the browsable locator for a cited line range."""
    base = url_base.rstrip("/")
    return f"{base}/{owner}/{repo}/blob/{revision_id}/{path}#L{line_start}-L{line_end}"


def _make_chunk(path: str, revision_id: str, line_start: int, line_end: int, content: str) -> Chunk:
    return Chunk(
        path=path,
        revision_id=revision_id,
        line_start=line_start,
        line_end=line_end,
        content=content,
        citation_id=citation_id(path, revision_id, line_start, line_end),
    )


def chunk_file(
    content: str,
    path: str,
    revision_id: str,
    *,
    max_lines_per_chunk: int = DEFAULT_MAX_LINES_PER_CHUNK,
    max_file_chars: Optional[int] = DEFAULT_MAX_FILE_CHARS,
) -> ChunkResult:
    """Split ``content`` into line windows, truncating once ``max_file_chars`` is spent.

    ``max_file_chars=None`` disables the character cap. Line numbers are 1-based
    and inclusive; a truncated final window reports the last line it actually
    contains.
    """
    if max_lines_per_chunk < 1:
        raise ValueError("max_lines_per_chunk must be at least 1")

    lines = content.split("\n")
    total_lines = len(lines)
    char_cap = max_file_chars if max_file_chars is not None else len(content)

    if len(content) <= char_cap and total_lines <= max_lines_per_chunk:
        chunk = _make_chunk(path, revision_id, 1, total_lines, content)
        return ChunkResult(chunks=[chunk], total_lines=total_lines, truncated=False)

    chunks: List[Chunk] = []
    truncated = False
    used_chars = 0
    line_start = 1

    while line_start <= total_lines:
        line_end = min(line_start + max_lines_per_chunk - 1, total_lines)
        window = "\n".join(lines[line_start - 1 : line_end])

        if used_chars + len(window) > char_cap:
            remaining = char_cap - used_chars
            truncated = True
            if remaining <= 0:
                break
            window = window[:remaining]
            line_end = line_start + window.count("\n")

        chunks.append(_make_chunk(path, revision_id, line_start, line_end, window))
        used_chars += len(window)

        if truncated:
            break
        line_start = line_end + 1

    return ChunkResult(chunks=chunks, total_lines=total_lines, truncated=truncated)


__all__ = ["chunk_file", "citation_id", "citation_url"]
