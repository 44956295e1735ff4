"""Pipeline orchestration: select, fetch, summarize, assess, validate."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .assessment import RubricAssessor
from .config import AgentReadyConfig
from .fetcher import FetchContentFn, fetch_and_chunk
from .llm.base import ChatModel
from .logging import get_logger
from .models import (
    AnalysisContext,
    Chunk,
    ContentCaps,
    FetchResult,
    FileSummary,
    SelectionResult,
    TreeEntry,
)
from .prompting.builder import RubricPromptBuilder
from .schema import load_schema
from .selector import FileSelector
from .summarizer import Summarizer
from .validators import PolicyValidator, ValidationIssue, ValidationResult


class NoContentError(RuntimeError):
    """Raised when nothing could be fetched, before any LLM call is made."""


@dataclass
class AnalysisResult:
    """Rubric and summaries for one run; validation errors are advisory here."""

    rubric: Dict[str, Any]
    summaries: List[FileSummary]
    validation: ValidationResult = field(default_factory=ValidationResult)

    @property
    def validation_errors(self) -> List[str]:
        return self.validation.messages()


@dataclass
class RunReport:
    """Everything a caller needs to present or persist one full analysis run."""

    rubric: Dict[str, Any]
    summaries: List[FileSummary]
    selection: SelectionResult
    fetch: FetchResult
    analyzed_paths: List[str]
    warnings: List[str]
    validation_errors: List[str]
    policy_issues: List[ValidationIssue]

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "files_analyzed": self.fetch.stats.total_files,
            "chunks_processed": self.fetch.stats.total_chunks,
            "total_chars": self.fetch.stats.total_chars,
            "detected_stack": list(self.selection.detected_stack),
        }


def analyze_repository(
    context: AnalysisContext,
    chunks: Sequence[Chunk],
    llm: ChatModel,
    *,
    strict: bool = False,
    summarizer: Summarizer | None = None,
    assessor: RubricAssessor | None = None,
) -> AnalysisResult:
    """Summarize every chunk, then build and validate the rubric.

    In permissive mode validation issues are returned rather than raised.
    """
    summarizer = summarizer or Summarizer(llm)
    assessor = assessor or RubricAssessor(llm, strict=strict)

    summaries = summarizer.summarize(chunks)
    outcome = assessor.build_assessment(context, summaries, chunks)
    return AnalysisResult(rubric=outcome.rubric, summaries=summaries, validation=outcome.validation)


class RepositoryAnalyzer:
    """Coordinates a full run against an injected source and LLM."""

    def __init__(
        self,
        llm: ChatModel,
        *,
        selector: FileSelector | None = None,
        summarizer: Summarizer | None = None,
        assessor: RubricAssessor | None = None,
        policy: PolicyValidator | None = None,
        max_total_chars: int = 250_000,
        max_file_chars: int = 40_000,
        max_lines_per_chunk: int = 300,
    ) -> None:
        self.llm = llm
        self.selector = selector or FileSelector()
        self.summarizer = summarizer or Summarizer(llm)
        self.assessor = assessor or RubricAssessor(llm)
        self.policy = policy or PolicyValidator()
        self.max_total_chars = max_total_chars
        self.max_file_chars = max_file_chars
        self.max_lines_per_chunk = max_lines_per_chunk
        self.logger = get_logger("pipeline")

    @classmethod
    def from_config(cls, config: AgentReadyConfig, llm: ChatModel) -> "RepositoryAnalyzer":
        """Wire every component from a loaded configuration."""
        builder = RubricPromptBuilder()
        return cls(
            llm,
            selector=FileSelector(
                max_files=config.selection.max_files,
                max_total_chars=config.selection.max_total_chars,
                max_test_files=config.selection.max_test_files,
            ),
            summarizer=Summarizer(
                llm,
                prompt_builder=builder,
                concurrency=config.summaries.concurrency,
                retries=config.summaries.retries,
                temperature=config.llm.summary_temperature,
                max_tokens=config.llm.summary_max_tokens,
            ),
            assessor=RubricAssessor(
                llm,
                prompt_builder=builder,
                response_schema=load_schema(config.validation.schema_path),
                strict=config.validation.strict,
                temperature=config.llm.rubric_temperature,
                max_tokens=config.llm.rubric_max_tokens,
                url_base=config.citations.url_base,
            ),
            max_total_chars=config.chunking.max_total_chars,
            max_file_chars=config.chunking.max_file_chars,
            max_lines_per_chunk=config.chunking.max_lines_per_chunk,
        )

    def run(
        self,
        tree: Sequence[TreeEntry],
        fetch_content: FetchContentFn,
        revision_id: str,
        *,
        repo_url: str,
        owner: str,
        repo: str,
        default_branch: str,
        extra_paths: Sequence[str] = (),
        selected_paths: Optional[Sequence[str]] = None,
    ) -> RunReport:
        """Analyse one repository revision end to end."""
        self.logger.info("Starting analysis of %s/%s at %s", owner, repo, revision_id)
        selection = self.selector.select(tree)
        paths = self._resolve_paths(tree, selection, extra_paths, selected_paths)
        files = self._file_refs(tree, paths)

        fetched = fetch_and_chunk(
            files,
            fetch_content,
            revision_id,
            max_total_chars=self.max_total_chars,
            max_file_chars=self.max_file_chars,
            max_lines_per_chunk=self.max_lines_per_chunk,
        )
        if not fetched.chunks:
            raise NoContentError("No file content could be fetched")

        context = AnalysisContext(
            repo_url=repo_url,
            owner=owner,
            repo=repo,
            commit_sha=revision_id,
            default_branch=default_branch,
            detected_stack=list(selection.detected_stack),
            analyzed_paths=list(paths),
        )
        analysis = analyze_repository(
            context,
            fetched.chunks,
            self.llm,
            summarizer=self.summarizer,
            assessor=self.assessor,
        )

        rubric = dict(analysis.rubric)
        rubric["meta"] = self._build_meta(
            rubric.get("meta"),
            context,
            ContentCaps(
                max_files=self.selector.max_files,
                max_total_chars=self.selector.max_total_chars,
                truncated=selection.truncated or fetched.stats.truncated_files > 0,
            ),
        )

        policy_issues = self.policy.validate(rubric).errors
        for issue in policy_issues:
            self.logger.info("Policy check: %s", issue)

        warnings = list(selection.warnings) + list(fetched.warnings)
        if analysis.validation_errors:
            warnings.append(f"Validation warnings: {', '.join(analysis.validation_errors)}")

        self.logger.info(
            "Finished analysis of %s/%s: classification=%s",
            owner,
            repo,
            rubric.get("classification"),
        )
        return RunReport(
            rubric=rubric,
            summaries=analysis.summaries,
            selection=selection,
            fetch=fetched,
            analyzed_paths=list(paths),
            warnings=warnings,
            validation_errors=analysis.validation_errors,
            policy_issues=policy_issues,
        )

    @staticmethod
    def _resolve_paths(
        tree: Sequence[TreeEntry],
        selection: SelectionResult,
        extra_paths: Sequence[str],
        selected_paths: Optional[Sequence[str]],
    ) -> List[str]:
        files = {entry.path for entry in tree if entry.is_file}
        if selected_paths:
            # Override mode: exactly the requested files that exist, heuristics bypassed.
            return list(dict.fromkeys(path for path in selected_paths if path in files))
        combined = selection.paths + [path for path in extra_paths if path in files]
        return list(dict.fromkeys(combined))

    @staticmethod
    def _file_refs(tree: Sequence[TreeEntry], paths: Sequence[str]) -> List[TreeEntry]:
        by_path = {entry.path: entry for entry in tree if entry.is_file}
        return [by_path[path] for path in paths]

    @staticmethod
    def _build_meta(
        existing: Any, context: AnalysisContext, caps: ContentCaps
    ) -> Dict[str, Any]:
        meta: Dict[str, Any] = dict(existing) if isinstance(existing, dict) else {}
        meta.update(
            {
                "repo_url": context.repo_url,
                "owner": context.owner,
                "repo": context.repo,
                "commit_sha": context.commit_sha,
                "default_branch": context.default_branch,
                "detected_stack": list(context.detected_stack),
                "analyzed_paths": list(context.analyzed_paths),
                "content_caps": asdict(caps),
            }
        )
        return meta


__all__ = [
    "AnalysisResult",
    "NoContentError",
    "RepositoryAnalyzer",
    "RunReport",
    "analyze_repository",
]
