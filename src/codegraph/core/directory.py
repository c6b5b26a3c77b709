"""Resolve user input into a canonical, existing, readable directory."""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from pathlib import Path

from codegraph.core.errors import (
    DirectoryNotFoundError,
    DirectoryPermissionError,
    DirectoryResolutionError,
    IsAFileError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedDirectory:
    """A canonical absolute directory path, verified to exist and be readable."""

    path: Path

    def __str__(self) -> str:
        return str(self.path)

    def __fspath__(self) -> str:
        return str(self.path)


def _absolute(raw: str | os.PathLike[str] | None) -> Path:
    """Turn raw input into an absolute path without touching the filesystem beyond getcwd."""
    text = os.fspath(raw) if raw is not None else ""
    try:
        if not text:
            return Path(os.getcwd())
        return Path(os.path.abspath(text))
    except OSError as e:
        # getcwd fails when the working directory was removed under us
        raise DirectoryResolutionError(f"failed to resolve path '{text}': {e}", text or ".") from e


def _canonical(path: Path) -> Path:
    """Resolve symlinks. A missing path is returned as-is for validation to report."""
    try:
        return path.resolve(strict=False)
    except (OSError, RuntimeError) as e:
        # RuntimeError: symlink loop on Python < 3.13
        raise DirectoryResolutionError(f"failed to resolve symlinks for '{path}': {e}", path) from e


def validate_directory(path: Path) -> None:
    """
    Check that path exists, is a directory, and can be listed.

    Raises DirectoryNotFoundError, DirectoryPermissionError, IsAFileError or
    DirectoryResolutionError.
    """
    try:
        info = os.stat(path)
    except FileNotFoundError as e:
        raise DirectoryNotFoundError(f"directory does not exist: {path}", path) from e
    except NotADirectoryError as e:
        # a parent component is a regular file
        raise DirectoryNotFoundError(f"directory does not exist: {path}", path) from e
    except PermissionError as e:
        raise DirectoryPermissionError(f"permission denied accessing '{path}'", path) from e
    except OSError as e:
        raise DirectoryResolutionError(f"error accessing '{path}': {e}", path) from e

    if not stat.S_ISDIR(info.st_mode):
        raise IsAFileError(f"'{path}' is a file, not a directory", path)
    if not os.access(path, os.R_OK | os.X_OK):
        raise DirectoryPermissionError(f"permission denied accessing '{path}'", path)


def resolve_directory(raw: str | os.PathLike[str] | None = "") -> ResolvedDirectory:
    """
    Resolve raw input into a ResolvedDirectory.

    Empty input means the current working directory. Relative input is taken
    relative to the current working directory. Symlinks are resolved before
    validation, so the result never contains one.

    Args:
        raw: Directory as typed by the user; may be empty, relative, or a symlink.

    Returns:
        ResolvedDirectory holding the canonical absolute path.

    Raises:
        DirectoryError subclass describing the first violation found.
    """
    absolute = _absolute(raw)
    canonical = _canonical(absolute)
    validate_directory(canonical)
    if canonical != absolute:
        logger.debug("resolved %s -> %s", absolute, canonical)
    return ResolvedDirectory(path=canonical)
