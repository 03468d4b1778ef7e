"""Exceptions raised by the virtual file system."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class GameError(Exception):
    """Base class for every error the package raises."""


class FilesystemError(GameError):
    """A file system operation failed or is not allowed."""


class ResourceNotFoundError(GameError):
    """No file system in an overlay could provide the requested resource."""

    def __init__(self, path: str, tried: Iterable[tuple[Path, GameError]]) -> None:
        self.path = str(path)
        self.tried = list(tried)
        searched = ", ".join(f"{root}: {err}" for root, err in self.tried) or "nowhere"
        super().__init__(f"Resource not found: {self.path}; searched {searched}")