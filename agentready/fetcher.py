"""Fetch-and-chunk orchestration across a selected path list."""

from __future__ import annotations

from typing import Callable, Optional, Protocol, Sequence

from .chunking import DEFAULT_MAX_FILE_CHARS, DEFAULT_MAX_LINES_PER_CHUNK, chunk_file
from .logging import get_logger
from .models import FetchedContent, FetchResult, FileDigest

DEFAULT_MAX_TOTAL_CHARS = 250_000

FetchContentFn = Callable[[str], FetchedContent]

_LOGGER = get_logger("fetcher")


class FileRef(Protocol):
    """Anything carrying a path and a size estimate (tree entries, candidates)."""

    path: str
    size_bytes: Optional[int]


def fetch_and_chunk(
    files: Sequence[FileRef],
    fetch_content: FetchContentFn,
    revision_id: str,
    *,
    max_total_chars: int = DEFAULT_MAX_TOTAL_CHARS,
    max_file_chars: Optional[int] = DEFAULT_MAX_FILE_CHARS,
    max_lines_per_chunk: int = DEFAULT_MAX_LINES_PER_CHUNK,
) -> FetchResult:
    """Fetch each file in order and chunk it until the run's character budget is spent.

    Fetch failures are recorded as warnings and never abort the batch. Files are
    processed strictly in the given order so the budget cut-off is reproducible.
    ``max_file_chars=None`` leaves only the run budget as the per-file cap.
    """
    result = FetchResult()
    stats = result.stats

    for ref in files:
        if stats.total_chars >= max_total_chars:
            message = f"Stopped fetching at {len(result.digests)} files due to character limit"
            result.warnings.append(message)
            _LOGGER.warning(message)
            break

        try:
            fetched = fetch_content(ref.path)
        except Exception as exc:  # collaborator errors are reported, not raised
            detail = str(exc) or exc.__class__.__name__
            message = f"Failed to fetch: {ref.path} - {detail}"
            result.warnings.append(message)
            _LOGGER.warning(message)
            continue

        file_budget = max_total_chars - stats.total_chars
        if max_file_chars is not None:
            file_budget = min(max_file_chars, file_budget)
        chunked = chunk_file(
            fetched.text(),
            ref.path,
            revision_id,
            max_lines_per_chunk=max_lines_per_chunk,
            max_file_chars=file_budget,
        )

        if chunked.truncated:
            stats.truncated_files += 1
            result.warnings.append(f"File truncated: {ref.path}")
            _LOGGER.debug("Truncated %s after %d chunk(s)", ref.path, len(chunked.chunks))

        result.chunks.extend(chunked.chunks)
        stats.total_chars += sum(len(chunk.content) for chunk in chunked.chunks)
        result.digests.append(
            FileDigest(
                path=ref.path,
                revision_id=revision_id,
                size_bytes=ref.size_bytes if ref.size_bytes is not None else fetched.size_bytes,
                line_count=chunked.total_lines,
                chunk_count=len(chunked.chunks),
            )
        )

    stats.total_files = len(result.digests)
    stats.total_chunks = len(result.chunks)
    _LOGGER.debug(
        "Fetched %d file(s) into %d chunk(s), %d chars",
        stats.total_files,
        stats.total_chunks,
        stats.total_chars,
    )
    return result


__all__ = ["FetchContentFn", "FileRef", "fetch_and_chunk"]
