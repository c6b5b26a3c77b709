"""codegraph: load a Go codebase's packages into a deterministic, de-duplicated view (library, CLI, TUI)."""

from importlib.metadata import version, PackageNotFoundError

from codegraph.api import get_engine, load_packages
from codegraph.core.directory import ResolvedDirectory, resolve_directory
from codegraph.core.loader import LoadOutcome, load

__all__ = [
    "get_engine",
    "load_packages",
    "load",
    "resolve_directory",
    "ResolvedDirectory",
    "LoadOutcome",
    "__version__",
]

try:
    __version__ = version("codegraph")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed as package
