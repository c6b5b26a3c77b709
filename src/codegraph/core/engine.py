"""Package records and the contract every loading engine implements."""

from __future__ import annotations

import enum
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Protocol, TextIO

from codegraph.core.errors import EngineError

logger = logging.getLogger(__name__)

# Reserved suffix of the synthetic package an engine fabricates for a compiled test binary.
TEST_BINARY_SUFFIX = ".test"


class LoadMode(enum.Flag):
    """Capabilities requested from an engine."""

    NAME = enum.auto()
    FILES = enum.auto()
    IMPORTS = enum.auto()
    SYNTAX = enum.auto()
    # No engine type-checks; engines keep syntax trees only when TYPES is also set.
    TYPES = enum.auto()
    MODULE = enum.auto()


class ErrorKind(enum.Enum):
    UNKNOWN = "unknown"
    LIST = "list"
    PARSE = "parse"
    TYPE = "type"


@dataclass(frozen=True)
class PackageError:
    """A per-file or per-package failure embedded in a package record."""

    pos: str
    msg: str
    kind: ErrorKind = ErrorKind.UNKNOWN

    def __str__(self) -> str:
        # errors without a position print as "-: msg"
        return f"{self.pos or '-'}: {self.msg}"


@dataclass(frozen=True)
class Module:
    """The module a package belongs to (from go.mod)."""

    path: str
    dir: Path | None = None
    go_version: str = ""


@dataclass
class SourceFile:
    """A parsed source file retained on a package."""

    path: Path
    tree: Any  # tree_sitter.Tree


@dataclass
class LoadedPackage:
    """One package record as returned by an engine."""

    id: str
    pkg_path: str
    name: str = ""
    go_files: list[Path] = field(default_factory=list)
    errors: list[PackageError] = field(default_factory=list)
    imports: list[str] = field(default_factory=list)
    module: Module | None = None
    syntax: list[SourceFile] = field(default_factory=list)
    for_test: str = ""

    @property
    def is_test_binary(self) -> bool:
        """True for the synthetic record standing for a compiled test executable."""
        return self.pkg_path.endswith(TEST_BINARY_SUFFIX)


@dataclass(frozen=True)
class LoadConfig:
    """What to load: root directory, requested capabilities, whether to include tests."""

    dir: Path
    mode: LoadMode
    tests: bool = False

    @property
    def retains_syntax(self) -> bool:
        return LoadMode.SYNTAX in self.mode and LoadMode.TYPES in self.mode


class Engine(Protocol):
    """Loads package records for patterns relative to config.dir.

    Raises EngineError only for engine-level failures; per-file problems are
    reported on each record's errors.
    """

    def load(self, config: LoadConfig, *patterns: str) -> list[LoadedPackage]: ...


def parse_pattern(pattern: str) -> tuple[PurePosixPath, bool]:
    """
    Split a relative package pattern into (directory, recursive).

    Accepted forms: ".", "./...", "./sub", "./sub/...".
    Raises EngineError for anything else.
    """
    if pattern in (".", "./"):
        return PurePosixPath("."), False
    if pattern == "./...":
        return PurePosixPath("."), True
    if not pattern.startswith("./"):
        raise EngineError(f"invalid pattern {pattern!r}: must be '.' or start with './'")
    rest = pattern[2:]
    recursive = rest.endswith("/...")
    if recursive:
        rest = rest[: -len("/...")]
    rel = PurePosixPath(rest)
    if not rest or "..." in rest or ".." in rel.parts or rel.is_absolute():
        raise EngineError(f"invalid pattern {pattern!r}")
    return rel, recursive


def print_errors(packages: list[LoadedPackage], file: TextIO | None = None) -> int:
    """
    Print every embedded error as '<pos>: <msg>', one per line.

    Writes to stderr unless file is given. Returns the number of errors printed.
    """
    out = file if file is not None else sys.stderr
    count = 0
    for pkg in packages:
        for err in pkg.errors:
            print(err, file=out)
            count += 1
    return count
