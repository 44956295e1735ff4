"""Throwaway on-disk repositories exposed through ``LocalRepository``."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import List, Mapping, Union

from agentready.models import TreeEntry
from agentready.sources.local import LocalRepository


class RepoBuilder:
    """Writes fixture files under ``tmp_path/repo`` and lists them like a source."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()

    def write(self, files: Mapping[str, Union[str, bytes]]) -> None:
        """Write ``path -> contents``; text is dedented, bytes are written as-is."""
        for relative, content in files.items():
            target = self.root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")

    def write_lines(self, relative: str, count: int, template: str = "line {n}") -> None:
        """Write a file of ``count`` numbered lines, for chunk-boundary tests."""
        body = "\n".join(template.format(n=n) for n in range(1, count + 1))
        self.write({relative: body})

    def source(self) -> LocalRepository:
        """A fresh source, so tree and revision caches reflect the latest writes."""
        return LocalRepository(self.root)

    def file_paths(self) -> List[str]:
        return [entry.path for entry in self.source().tree() if entry.is_file]

    def tree(self) -> List[TreeEntry]:
        return self.source().tree()

    def path(self) -> Path:
        return self.root


__all__ = ["RepoBuilder"]
