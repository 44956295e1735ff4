"""Tree listing and content fetching for a repository checked out on disk."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import FetchedContent, TreeEntry

_SKIPPED_DIRS = {".git", ".hg", ".svn"}


@dataclass(frozen=True)
class IgnorePattern:
    """One .gitignore line, reduced to what tree listing needs."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool

    @classmethod
    def parse(cls, line: str) -> Optional["IgnorePattern"]:
        line = line.strip()
        if not line or line.startswith("#"):
            return None
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        directory_only = line.endswith("/")
        line = line.rstrip("/")
        anchored = line.startswith("/") or "/" in line
        line = line.lstrip("/")
        if not line:
            return None
        return cls(pattern=line, directory_only=directory_only, anchored=anchored, negate=negate)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.anchored:
            return fnmatchcase(rel_path, self.pattern)
        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _load_ignore_patterns(root: Path) -> List[IgnorePattern]:
    gitignore = root / ".gitignore"
    if not gitignore.is_file():
        return []
    patterns: List[IgnorePattern] = []
    for line in gitignore.read_text(encoding="utf-8", errors="replace").splitlines():
        parsed = IgnorePattern.parse(line)
        if parsed is not None:
            patterns.append(parsed)
    return patterns


def _is_ignored(rel_path: str, is_dir: bool, patterns: Sequence[IgnorePattern]) -> bool:
    ignored = False
    for pattern in patterns:
        if pattern.matches(rel_path, is_dir):
            ignored = not pattern.negate
    return ignored


def _hash_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for block in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(block)
    return digest.hexdigest()


class LocalRepository:
    """Exposes a directory through the tree/fetch/revision collaborator interface."""

    def __init__(self, root: str | Path) -> None:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")
        self.root = root_path
        self.logger = get_logger("sources.local")
        self._tree: Optional[List[TreeEntry]] = None
        self._revision: Optional[str] = None

    @property
    def name(self) -> str:
        return self.root.name or "repository"

    def tree(self) -> List[TreeEntry]:
        """Return directory and file entries in walk order, honouring .gitignore."""
        if self._tree is None:
            self._tree = list(self._walk())
            self.logger.debug("Listed %d entries under %s", len(self._tree), self.root)
        return list(self._tree)

    def revision_id(self) -> str:
        """Content hash over every listed file, stable across machines."""
        if self._revision is None:
            digest = hashlib.sha256()
            for entry in sorted(self.tree(), key=lambda item: item.path):
                if entry.is_file:
                    digest.update(f"{entry.path}:{entry.content_id}\n".encode("utf-8"))
            self._revision = digest.hexdigest()
        return self._revision

    def fetch_content(self, path: str) -> FetchedContent:
        target = (self.root / path).resolve()
        if target != self.root and self.root not in target.parents:
            raise ValueError(f"Path escapes repository root: {path}")
        data = target.read_bytes()
        return FetchedContent(content=data, size_bytes=len(data))

    def _walk(self) -> Iterator[TreeEntry]:
        patterns = _load_ignore_patterns(self.root)
        for dirpath, dirnames, filenames in os.walk(self.root):
            current = Path(dirpath)
            rel_dir = "" if current == self.root else current.relative_to(self.root).as_posix()

            kept_dirs: List[str] = []
            for name in sorted(dirnames):
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if name in _SKIPPED_DIRS or _is_ignored(rel_path, True, patterns):
                    continue
                kept_dirs.append(name)
                yield TreeEntry(path=rel_path, kind="dir", content_id="")
            dirnames[:] = kept_dirs

            for name, rel_path, file_path in self._files(current, rel_dir, filenames, patterns):
                yield TreeEntry(
                    path=rel_path,
                    kind="file",
                    content_id=_hash_file(file_path),
                    size_bytes=file_path.stat().st_size,
                )

    @staticmethod
    def _files(
        current: Path,
        rel_dir: str,
        filenames: Sequence[str],
        patterns: Sequence[IgnorePattern],
    ) -> Iterator[Tuple[str, str, Path]]:
        for name in sorted(filenames):
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            file_path = current / name
            if not file_path.is_file() or _is_ignored(rel_path, False, patterns):
                continue
            yield name, rel_path, file_path


__all__ = ["IgnorePattern", "LocalRepository"]
