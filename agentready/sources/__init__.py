"""Repository sources implementing the tree/fetch/revision interface."""

from .local import LocalRepository

__all__ = ["LocalRepository"]
