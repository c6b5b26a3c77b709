"""Core library: directory resolution, loading engines, the package load pipeline."""

from codegraph.core.directory import ResolvedDirectory, resolve_directory
from codegraph.core.engine import (
    Engine,
    LoadConfig,
    LoadedPackage,
    LoadMode,
    Module,
    PackageError,
    print_errors,
)
from codegraph.core.errors import (
    CodegraphError,
    ConfigError,
    DirectoryError,
    DirectoryNotFoundError,
    DirectoryPermissionError,
    DirectoryResolutionError,
    EngineError,
    IsAFileError,
    LoadError,
)
from codegraph.core.golist import GoListEngine
from codegraph.core.loader import LOAD_MODE, LoadOutcome, load
from codegraph.core.source import SourceTreeEngine

__all__ = [
    "ResolvedDirectory",
    "resolve_directory",
    "Engine",
    "LoadConfig",
    "LoadedPackage",
    "LoadMode",
    "Module",
    "PackageError",
    "print_errors",
    "CodegraphError",
    "ConfigError",
    "DirectoryError",
    "DirectoryNotFoundError",
    "DirectoryPermissionError",
    "DirectoryResolutionError",
    "EngineError",
    "IsAFileError",
    "LoadError",
    "GoListEngine",
    "LOAD_MODE",
    "LoadOutcome",
    "load",
    "SourceTreeEngine",
]
