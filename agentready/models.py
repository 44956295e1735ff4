"""Core data models shared across agentready components."""

from dataclasses import dataclass, field
from typing import List, Optional, Union


@dataclass(frozen=True)
class TreeEntry:
    """One repository object at a fixed revision."""

    path: str
    kind: str
    content_id: str
    size_bytes: Optional[int] = None

    @property
    def is_file(self) -> bool:
        return self.kind == "file"


@dataclass(frozen=True)
class CandidateFile:
    """A tree entry that survived filtering, with its priority tier."""

    path: str
    tier: int
    weight: int
    size_bytes: int
    reason: str


@dataclass(frozen=True)
class SelectionStats:
    total_candidates: int
    selected_count: int
    estimated_chars: int


@dataclass(frozen=True)
class SelectionResult:
    """Outcome of ranking and budgeting candidate files."""

    selected: List[CandidateFile]
    detected_stack: List[str]
    truncated: bool
    warnings: List[str]
    stats: SelectionStats

    @property
    def paths(self) -> List[str]:
        return [candidate.path for candidate in self.selected]


@dataclass(frozen=True)
class Chunk:
    """Line-addressable slice of one file at one revision."""

    path: str
    revision_id: str
    line_start: int
    line_end: int
    content: str
    citation_id: str


@dataclass
class ChunkResult:
    chunks: List[Chunk]
    total_lines: int
    truncated: bool


@dataclass(frozen=True)
class FileDigest:
    """Audit record for a successfully fetched file."""

    path: str
    revision_id: str
    size_bytes: int
    line_count: int
    chunk_count: int


@dataclass
class FetchStats:
    total_files: int = 0
    total_chunks: int = 0
    total_chars: int = 0
    truncated_files: int = 0


@dataclass
class FetchResult:
    """Chunks, digests and warnings produced by the fetch stage."""

    chunks: List[Chunk] = field(default_factory=list)
    digests: List[FileDigest] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stats: FetchStats = field(default_factory=FetchStats)


@dataclass(frozen=True)
class FileSummary:
    """Short LLM summary for a single chunk."""

    path: str
    citation_id: str
    summary_text: str
    key_findings: List[str]


@dataclass(frozen=True)
class ContentCaps:
    max_files: int
    max_total_chars: int
    truncated: bool


@dataclass
class AnalysisContext:
    """Repository identity handed to the rubric prompt and citation enrichment."""

    repo_url: str
    owner: str
    repo: str
    commit_sha: str
    default_branch: str
    detected_stack: List[str] = field(default_factory=list)
    analyzed_paths: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FetchedContent:
    """Payload returned by a content-fetch collaborator for one path."""

    content: Union[str, bytes]
    size_bytes: int

    def text(self) -> str:
        if isinstance(self.content, bytes):
            return self.content.decode("utf-8", errors="replace")
        return self.content
