"""Utility helpers for the repository context toolkit."""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import Mapping

import git


def safe_abs_path(path: str | Path) -> str:
    """Return a resolved absolute path using the platform's native separators."""

    return str(Path(path).expanduser().resolve())


def resolve_root(root: str | Path | None) -> Path | None:
    """Validate an optional repository root, returning ``None`` when unset."""

    if root is None:
        return None

    resolved = Path(safe_abs_path(root))
    if not resolved.exists():
        raise ValueError(f"Repository root does not exist: {resolved}")
    if not resolved.is_dir():
        raise ValueError(f"Repository root must be a directory: {resolved}")
    return resolved


class _BaseTemporaryDirectory(tempfile.TemporaryDirectory):
    """Temporary directory that cleans up aggressively on exit."""

    def cleanup(self) -> None:  # pragma: no cover - exercised indirectly in tests
        try:
            super().cleanup()
        except (PermissionError, OSError):
            shutil.rmtree(self.name, ignore_errors=True)


class GitTemporaryDirectory(_BaseTemporaryDirectory):
    """Temporary directory holding a fresh Git repository with optional remotes."""

    def __init__(self, remotes: Mapping[str, str] | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.remotes = dict(remotes or {})

    def __enter__(self) -> str:
        path = super().__enter__()
        repo = git.Repo.init(path)
        for name, url in self.remotes.items():
            repo.create_remote(name, url)
        return path


class IgnorantTemporaryDirectory(_BaseTemporaryDirectory):
    """Plain temporary directory that swallows common deletion errors."""


__all__ = [
    "safe_abs_path",
    "resolve_root",
    "GitTemporaryDirectory",
    "IgnorantTemporaryDirectory",
]
