"""Public API: use codegraph from Python or from other tools."""

from __future__ import annotations

import os

from codegraph.config import Settings
from codegraph.core.directory import ResolvedDirectory, resolve_directory
from codegraph.core.engine import Engine
from codegraph.core.errors import ConfigError
from codegraph.core.golist import GoListEngine
from codegraph.core.loader import LoadOutcome, load
from codegraph.core.source import SourceTreeEngine


def get_engine(name: str | None = None, settings: Settings | None = None) -> Engine:
    """
    Build the engine called name ("source" or "golist").

    When name is None the engine named in settings is used. Settings also
    provide the go binary and timeout for "golist".
    """
    if settings is None:
        settings = Settings()
    name = (name or settings.engine).lower()
    if name == "source":
        return SourceTreeEngine()
    if name == "golist":
        return GoListEngine(go=settings.go_binary, timeout=settings.go_list_timeout)
    raise ConfigError(f"unknown engine: {name!r} (expected 'source' or 'golist')")


def load_packages(
    directory: str | os.PathLike[str] | ResolvedDirectory | None = "",
    *,
    include_tests: bool = False,
    engine: Engine | str | None = None,
    settings: Settings | None = None,
) -> LoadOutcome:
    """
    Resolve directory and load every Go package beneath it.

    Args:
        directory: Directory to load; empty means the current working directory.
        include_tests: Fold _test.go files into their packages.
        engine: Engine instance or name; None uses settings.
        settings: Settings to use; defaults to Settings.from_env().

    Returns:
        LoadOutcome with packages sorted by import path and the error count.

    Raises:
        DirectoryError, LoadError or ConfigError.
    """
    if settings is None:
        settings = Settings.from_env()
    if not isinstance(directory, ResolvedDirectory):
        directory = resolve_directory(directory)
    if engine is None or isinstance(engine, str):
        engine = get_engine(engine, settings)
    return load(directory, include_tests, engine=engine)
