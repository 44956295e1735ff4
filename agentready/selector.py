"""Tiered file selection under file-count and character budgets."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from .logging import get_logger
from .models import CandidateFile, SelectionResult, SelectionStats, TreeEntry

DEFAULT_MAX_FILES = 25
DEFAULT_MAX_TOTAL_CHARS = 250_000
DEFAULT_MAX_TEST_FILES = 3
AVG_CHARS_PER_BYTE = 1
LARGE_TREE_THRESHOLD = 1000
FEW_CANDIDATES_THRESHOLD = 5

TIER_WEIGHTS = {0: 100, 1: 80, 2: 50, 3: 30, 4: 10}
TEST_TIER = 3
FALLBACK_TIER = 4
FALLBACK_REASON = "General code"

_IGNORED_DIRS = {
    "node_modules",
    "dist",
    "build",
    ".next",
    ".venv",
    "__pycache__",
    "coverage",
    "vendor",
    "logs",
    "tmp",
    ".git",
    ".cache",
    ".turbo",
}

_IGNORED_SUFFIXES = {
    ".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".ico",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".zip", ".tar", ".gz", ".rar", ".7z",
    ".pt", ".onnx", ".bin", ".pkl", ".h5",
    ".exe", ".dmg", ".app", ".msi",
    ".woff", ".woff2", ".ttf", ".eot",
    ".mp3", ".mp4", ".wav", ".avi", ".mov",
    ".sqlite", ".db",
    ".lock",
}

_TEXT_SUFFIXES = {
    ".md", ".txt", ".rst",
    ".json", ".yml", ".yaml", ".toml", ".ini",
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".py", ".pyi",
    ".go", ".rs", ".java", ".kt", ".cs", ".rb", ".php",
    ".sh", ".ps1", ".sql", ".tf", ".hcl",
    ".html", ".css", ".scss",
    ".prisma", ".graphql", ".proto",
}

_SPECIAL_FILENAMES = {"Dockerfile", "Makefile", "Procfile", "CODEOWNERS", "LICENSE"}

_README_PATTERN = re.compile(r"^README\.md$", re.IGNORECASE)


@dataclass(frozen=True)
class TierRule:
    """Ordered selection rule: the first matching predicate decides the tier."""

    predicate: Callable[[str], bool]
    tier: int
    weight: int
    reason: str


def _pattern(regex: str, flags: int = 0) -> Callable[[str], bool]:
    compiled = re.compile(regex, flags)
    return lambda path: compiled.search(path) is not None


def _rules(tier: int, entries: Sequence[Tuple[str, str, int]]) -> List[TierRule]:
    weight = TIER_WEIGHTS[tier]
    return [TierRule(_pattern(regex, flags), tier, weight, reason) for regex, reason, flags in entries]


_I = re.IGNORECASE

TIER_RULES: Tuple[TierRule, ...] = tuple(
    # Canonical docs, licensing and CI
    _rules(
        0,
        (
            (r"^README\.md$", "Primary project description", _I),
            (r"^README\..+$", "Project description", _I),
            (r"^docs/README\.md$", "Documentation overview", _I),
            (r"^docs/overview\.md$", "Architecture documentation", _I),
            (r"^LICENSE(\..*)?$", "Licensing", _I),
            (r"^SECURITY\.md$", "Security practices", _I),
            (r"^CONTRIBUTING\.md$", "Contribution guidelines", _I),
            (r"^CODEOWNERS$", "Ownership structure", _I),
            (r"^\.github/workflows/.+\.ya?ml$", "CI/CD pipeline", _I),
            (r"^Dockerfile$", "Container config", _I),
            (r"^docker-compose\.ya?ml$", "Container orchestration", _I),
        ),
    )
    # Runtime manifests and entrypoints
    + _rules(
        1,
        (
            (r"^package\.json$", "Dependencies and scripts", 0),
            (r"^next\.config\.(js|mjs|ts)$", "Next.js configuration", 0),
            (r"^tsconfig\.json$", "TypeScript config", 0),
            (r"^app/layout\.tsx$", "Next.js App Router root", 0),
            (r"^app/page\.tsx$", "Next.js homepage", 0),
            (r"^pages/_app\.tsx$", "Next.js Pages Router", 0),
            (r"^pages/index\.tsx$", "Next.js Pages Router homepage", 0),
            (r"^src/index\.(ts|js)$", "Entry point", 0),
            (r"^src/server\.(ts|js)$", "Server entry point", 0),
            (r"^server\.(ts|js)$", "Server entry point", 0),
            (r"^pyproject\.toml$", "Python project config", 0),
            (r"^requirements\.txt$", "Python dependencies", 0),
            (r"^Pipfile$", "Pipenv config", 0),
            (r"^setup\.py$", "Python package config", 0),
            (r"^setup\.cfg$", "Python package config", 0),
            (r"^main\.py$", "Python entry point", 0),
            (r"^app\.py$", "Python entry point", 0),
            (r"^terraform/[^/]+\.tf$", "Terraform config", 0),
            (r"^serverless\.(yml|ts)$", "Serverless config", 0),
            (r"^cdk\.json$", "AWS CDK config", 0),
            (r"^prisma/schema\.prisma$", "Database schema", 0),
        ),
    )
    # Architecture, API surface and workflows
    + _rules(
        2,
        (
            (r"^docs/[^/]+\.md$", "Documentation", 0),
            (r"^docs/adr/[^/]+\.md$", "Architecture decision", 0),
            (r"^docs/decisions/[^/]+\.md$", "Architecture decision", 0),
            (r"^openapi\.ya?ml$", "API specification", 0),
            (r"^swagger\.json$", "API specification", 0),
            (r"^\.env\.example$", "Environment variables", 0),
            (r"^config/[^/]+\.(yml|json)$", "Configuration", 0),
            (r"^src/.*routes.*\.(ts|js)$", "Route definitions", _I),
            (r"^src/.*controllers.*\.(ts|js)$", "Controller logic", _I),
            (r"^src/.*services.*\.(ts|js)$", "Service layer", _I),
            (r"^app/api/.*/route\.(ts|js)$", "API route", 0),
            (r"^lib/[^/]+\.(ts|js)$", "Library code", 0),
        ),
    )
    # Tests and test configuration
    + _rules(
        3,
        (
            (r"^jest\.config\.(js|ts|mjs)$", "Test configuration", 0),
            (r"^vitest\.config\.(js|ts|mjs)$", "Test configuration", 0),
            (r"^pytest\.ini$", "Python test configuration", 0),
            (r"^playwright\.config\.(js|ts)$", "E2E test configuration", 0),
            (r"\.test\.(ts|tsx|js|jsx)$", "Test file", 0),
            (r"\.spec\.(ts|tsx|js|jsx)$", "Test file", 0),
            (r"_test\.py$", "Python test file", 0),
            (r"test_.*\.py$", "Python test file", 0),
        ),
    )
)


def _suffix(path: str) -> str:
    match = re.search(r"\.[^./]+$", path)
    return match.group(0).lower() if match else ""


def _depth(path: str) -> int:
    return path.count("/")


def _in_ignored_dir(path: str) -> bool:
    return any(part in _IGNORED_DIRS for part in path.split("/"))


def is_candidate(entry: TreeEntry) -> bool:
    """Return True when the entry is a text file worth considering."""
    if not entry.is_file:
        return False
    if _in_ignored_dir(entry.path):
        return False
    suffix = _suffix(entry.path)
    if suffix in _IGNORED_SUFFIXES:
        return False
    if suffix in _TEXT_SUFFIXES:
        return True
    filename = entry.path.rsplit("/", 1)[-1]
    return filename in _SPECIAL_FILENAMES


def tier_for_path(path: str, rules: Sequence[TierRule] = TIER_RULES) -> Tuple[int, int, str]:
    """Return ``(tier, weight, reason)`` for the first rule matching ``path``."""
    for rule in rules:
        if rule.predicate(path):
            return rule.tier, rule.weight, rule.reason
    return FALLBACK_TIER, TIER_WEIGHTS[FALLBACK_TIER], FALLBACK_REASON


def sort_key(candidate: CandidateFile) -> Tuple[int, int, int, str]:
    """Total ordering: weight desc, depth asc, size asc, path asc."""
    return (-candidate.weight, _depth(candidate.path), candidate.size_bytes, candidate.path)


def detect_stack(tree: Iterable[TreeEntry]) -> List[str]:
    """Best-effort stack hints from marker files; never blocks selection."""
    paths = [entry.path for entry in tree]
    path_set = set(paths)
    detected: List[str] = []

    if (
        any(re.match(r"^next\.config\.(js|mjs|ts)$", path) for path in paths)
        or "app/layout.tsx" in path_set
        or "pages/_app.tsx" in path_set
    ):
        detected.append("next.js")

    if "next.js" not in detected and "package.json" in path_set:
        detected.append("react")

    if "requirements.txt" in path_set or "pyproject.toml" in path_set:
        if any(path == "manage.py" or path.endswith("/manage.py") for path in paths):
            detected.append("django")
        detected.append("python")

    if path_set & {"Dockerfile", "docker-compose.yml", "docker-compose.yaml"}:
        detected.append("docker")

    if any(path.endswith(".tf") for path in paths):
        detected.append("terraform")

    if "tsconfig.json" in path_set:
        detected.append("typescript")

    if "prisma/schema.prisma" in path_set:
        detected.append("prisma")

    return detected


class FileSelector:
    """Ranks candidate files from a tree snapshot and applies selection budgets."""

    def __init__(
        self,
        *,
        max_files: int = DEFAULT_MAX_FILES,
        max_total_chars: int = DEFAULT_MAX_TOTAL_CHARS,
        max_test_files: int = DEFAULT_MAX_TEST_FILES,
        rules: Sequence[TierRule] = TIER_RULES,
    ) -> None:
        self.max_files = max_files
        self.max_total_chars = max_total_chars
        self.max_test_files = max_test_files
        self.rules = tuple(rules)
        self.logger = get_logger("selector")

    def select(self, tree: Sequence[TreeEntry]) -> SelectionResult:
        """Return the budgeted selection for ``tree``."""
        warnings: List[str] = []
        stack = detect_stack(tree)
        candidates = self.rank(tree)

        if not candidates:
            warnings.append("No candidate files found in repository")
            self._log_warnings(warnings)
            return SelectionResult(
                selected=[],
                detected_stack=stack,
                truncated=False,
                warnings=warnings,
                stats=SelectionStats(total_candidates=0, selected_count=0, estimated_chars=0),
            )

        if len(candidates) < FEW_CANDIDATES_THRESHOLD:
            warnings.append("Very few files found - assessment confidence may be low")

        if not any(_README_PATTERN.match(candidate.path) for candidate in candidates):
            warnings.append("No README.md found")

        selected, estimated_chars, truncated = self._apply_budgets(candidates)

        if truncated:
            warnings.append(
                "Selection truncated due to limits; consider adding specific files manually"
            )
        if len(tree) > LARGE_TREE_THRESHOLD:
            warnings.append(
                f"Large repository (>{LARGE_TREE_THRESHOLD} files); some files may be missed"
            )

        self.logger.debug(
            "Selected %d of %d candidate files (~%d chars)",
            len(selected),
            len(candidates),
            estimated_chars,
        )
        self._log_warnings(warnings)
        return SelectionResult(
            selected=selected,
            detected_stack=stack,
            truncated=truncated,
            warnings=warnings,
            stats=SelectionStats(
                total_candidates=len(candidates),
                selected_count=len(selected),
                estimated_chars=estimated_chars,
            ),
        )

    def rank(self, tree: Iterable[TreeEntry]) -> List[CandidateFile]:
        """Filter the tree to candidates and sort them by priority."""
        ranked: List[CandidateFile] = []
        for entry in tree:
            if not is_candidate(entry):
                continue
            tier, weight, reason = tier_for_path(entry.path, self.rules)
            ranked.append(
                CandidateFile(
                    path=entry.path,
                    tier=tier,
                    weight=weight,
                    size_bytes=entry.size_bytes or 0,
                    reason=reason,
                )
            )
        ranked.sort(key=sort_key)
        return ranked

    def _apply_budgets(
        self, candidates: Sequence[CandidateFile]
    ) -> Tuple[List[CandidateFile], int, bool]:
        selected: List[CandidateFile] = []
        total_chars = 0
        test_files = 0
        truncated = False

        for candidate in candidates:
            if len(selected) >= self.max_files:
                truncated = True
                break

            estimated = candidate.size_bytes * AVG_CHARS_PER_BYTE
            if total_chars + estimated > self.max_total_chars:
                # Keep probing: a smaller file later in the order may still fit.
                truncated = True
                continue

            if candidate.tier == TEST_TIER:
                if test_files >= self.max_test_files:
                    continue
                test_files += 1

            selected.append(candidate)
            total_chars += estimated

        return selected, total_chars, truncated

    def _log_warnings(self, warnings: Sequence[str]) -> None:
        for warning in warnings:
            self.logger.warning("Selection: %s", warning)


def select_files(
    tree: Sequence[TreeEntry],
    *,
    max_files: Optional[int] = None,
    max_total_chars: Optional[int] = None,
    max_test_files: Optional[int] = None,
) -> SelectionResult:
    """Functional entrypoint around :class:`FileSelector`."""
    selector = FileSelector(
        max_files=max_files if max_files is not None else DEFAULT_MAX_FILES,
        max_total_chars=max_total_chars if max_total_chars is not None else DEFAULT_MAX_TOTAL_CHARS,
        max_test_files=max_test_files if max_test_files is not None else DEFAULT_MAX_TEST_FILES,
    )
    return selector.select(tree)


__all__ = [
    "FileSelector",
    "TIER_RULES",
    "TIER_WEIGHTS",
    "TierRule",
    "detect_stack",
    "is_candidate",
    "select_files",
    "sort_key",
    "tier_for_path",
]
