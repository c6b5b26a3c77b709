"""Exceptions raised for hard failures: bad directories, engine failures, bad configuration."""

from __future__ import annotations

from pathlib import Path


class CodegraphError(Exception):
    """Base class for every hard error raised by codegraph."""


class DirectoryError(CodegraphError):
    """The target directory cannot be used."""

    def __init__(self, message: str, path: Path | str) -> None:
        super().__init__(message)
        self.path = Path(path)


class DirectoryNotFoundError(DirectoryError):
    """The path does not exist."""


class IsAFileError(DirectoryError):
    """The path exists but is not a directory."""


class DirectoryPermissionError(DirectoryError):
    """The path exists but cannot be accessed."""


class DirectoryResolutionError(DirectoryError):
    """Any other failure while turning the input into a canonical directory."""


class EngineError(CodegraphError):
    """The loading engine itself failed (bad pattern, missing driver, driver failure)."""


class LoadError(CodegraphError):
    """The package load could not produce any output."""


class ConfigError(CodegraphError):
    """A setting has an unusable value."""
