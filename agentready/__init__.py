"""Citation-backed agentic-workflow readiness assessment for source repositories."""

from .assessment import (
    AssessmentOutcome,
    RubricAssessor,
    RubricParseError,
    build_assessment,
    enrich_citations,
)
from .chunking import chunk_file, citation_id, citation_url
from .fetcher import fetch_and_chunk
from .models import (
    AnalysisContext,
    CandidateFile,
    Chunk,
    ChunkResult,
    FetchedContent,
    FetchResult,
    FileDigest,
    FileSummary,
    SelectionResult,
    TreeEntry,
)
from .pipeline import AnalysisResult, NoContentError, RepositoryAnalyzer, analyze_repository
from .selector import FileSelector, detect_stack, select_files
from .summarizer import SummarizationError, Summarizer, summarize
from .validators import PolicyValidator, RubricValidationError, RubricValidator, validate

__all__ = [
    "AnalysisContext",
    "AnalysisResult",
    "AssessmentOutcome",
    "CandidateFile",
    "Chunk",
    "ChunkResult",
    "FetchResult",
    "FetchedContent",
    "FileDigest",
    "FileSelector",
    "FileSummary",
    "NoContentError",
    "PolicyValidator",
    "RepositoryAnalyzer",
    "RubricAssessor",
    "RubricParseError",
    "RubricValidationError",
    "RubricValidator",
    "SelectionResult",
    "SummarizationError",
    "Summarizer",
    "TreeEntry",
    "analyze_repository",
    "build_assessment",
    "chunk_file",
    "citation_id",
    "citation_url",
    "detect_stack",
    "enrich_citations",
    "fetch_and_chunk",
    "select_files",
    "summarize",
    "validate",
]
