"""Per-chunk LLM summaries dispatched in fixed-size concurrent batches."""

from __future__ import annotations

import re
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import List, Optional, Sequence

from .llm.base import ChatModel
from .logging import get_logger
from .models import Chunk, FileSummary
from .prompting.builder import RubricPromptBuilder

DEFAULT_CONCURRENCY = 3
DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_TOKENS = 500
PLACEHOLDER_FINDING = "See summary above"

_FINDINGS_MARKERS = ("key finding", "findings:")
_BULLET_PATTERN = re.compile(r"^[-*•]\s*")


class SummarizationError(RuntimeError):
    """Raised when a chunk's summary call fails; aborts the batch."""

    def __init__(self, message: str, *, path: str, citation_id: str) -> None:
        super().__init__(message)
        self.path = path
        self.citation_id = citation_id


def parse_summary(text: str) -> tuple[str, List[str]]:
    """Split a summary response into prose and bulleted key findings.

    Lines before the first "key findings" marker form the prose; bulleted lines
    after it become findings. Without a marker the whole response is the prose
    and a single placeholder finding is returned.
    """
    prose: List[str] = []
    findings: List[str] = []
    in_findings = False
    saw_marker = False

    for raw_line in text.splitlines():
        line = raw_line.strip()
        lowered = line.lower()
        if not in_findings and any(marker in lowered for marker in _FINDINGS_MARKERS):
            in_findings = True
            saw_marker = True
            continue
        if in_findings:
            if _BULLET_PATTERN.match(line):
                finding = _BULLET_PATTERN.sub("", line, count=1).strip()
                if finding:
                    findings.append(finding)
        elif line:
            prose.append(line)

    summary = " ".join(prose) if saw_marker else text.strip()
    if not summary:
        summary = text.strip()
    return summary, findings or [PLACEHOLDER_FINDING]


class Summarizer:
    """Issues one summary call per chunk, ``concurrency`` calls at a time."""

    def __init__(
        self,
        llm: ChatModel,
        *,
        prompt_builder: RubricPromptBuilder | None = None,
        concurrency: int = DEFAULT_CONCURRENCY,
        retries: int = 0,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.llm = llm
        self.prompt_builder = prompt_builder or RubricPromptBuilder()
        self.concurrency = concurrency
        self.retries = max(0, retries)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.logger = get_logger("summarizer")

    def summarize(self, chunks: Sequence[Chunk]) -> List[FileSummary]:
        """Return one summary per chunk, in chunk order."""
        summaries: List[FileSummary] = []
        if not chunks:
            return summaries

        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            for start in range(0, len(chunks), self.concurrency):
                batch = chunks[start : start + self.concurrency]
                self.logger.debug(
                    "Summarizing batch %d (%d chunk(s))",
                    start // self.concurrency + 1,
                    len(batch),
                )
                summaries.extend(self._run_batch(executor, batch))

        self.logger.info("Summarized %d chunk(s)", len(summaries))
        return summaries

    def summarize_chunk(
        self, chunk: Chunk, cancelled: Optional[threading.Event] = None
    ) -> FileSummary:
        """Summarize one chunk, retrying up to ``retries`` times.

        When ``cancelled`` is set no further attempt is started; a call already
        in flight is allowed to return and its result is dropped.
        """
        request = self.prompt_builder.build_summary_request(chunk)
        last_error: Optional[Exception] = None
        for attempt in range(self.retries + 1):
            if cancelled is not None and cancelled.is_set():
                raise SummarizationError(
                    f"Summary for {chunk.path} [{chunk.citation_id}] cancelled after a sibling failed",
                    path=chunk.path,
                    citation_id=chunk.citation_id,
                ) from last_error
            try:
                response = self.llm.run(
                    request.prompt,
                    system=request.system,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens,
                )
            except Exception as exc:  # provider errors are re-raised below
                last_error = exc
                if attempt < self.retries:
                    self.logger.warning(
                        "Summary for %s failed (attempt %d/%d): %s",
                        chunk.path,
                        attempt + 1,
                        self.retries + 1,
                        exc,
                    )
                continue
            summary_text, findings = parse_summary(response)
            return FileSummary(
                path=chunk.path,
                citation_id=chunk.citation_id,
                summary_text=summary_text,
                key_findings=findings,
            )

        raise SummarizationError(
            f"Failed to summarize {chunk.path} [{chunk.citation_id}]: {last_error}",
            path=chunk.path,
            citation_id=chunk.citation_id,
        ) from last_error

    def _run_batch(
        self, executor: ThreadPoolExecutor, batch: Sequence[Chunk]
    ) -> List[FileSummary]:
        cancelled = threading.Event()
        futures: List[Future[FileSummary]] = [
            executor.submit(self.summarize_chunk, chunk, cancelled) for chunk in batch
        ]
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        failed = next((future for future in futures if future in done and future.exception()), None)
        if failed is not None:
            cancelled.set()
            for future in pending:
                future.cancel()
            # In-flight siblings finish their current call without retrying; results are dropped.
            wait(pending)
            error = failed.exception()
            self.logger.error("Summarization batch aborted: %s", error)
            raise error  # type: ignore[misc]

        return [future.result() for future in futures]


def summarize(
    chunks: Sequence[Chunk],
    llm: ChatModel,
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    retries: int = 0,
) -> List[FileSummary]:
    """Functional entrypoint around :class:`Summarizer`."""
    return Summarizer(llm, concurrency=concurrency, retries=retries).summarize(chunks)


__all__ = ["SummarizationError", "Summarizer", "parse_summary", "summarize"]
