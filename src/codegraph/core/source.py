"""Load Go packages straight from the source tree, without the go toolchain."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from codegraph.core.engine import (
    TEST_BINARY_SUFFIX,
    ErrorKind,
    LoadConfig,
    LoadedPackage,
    LoadMode,
    Module,
    PackageError,
    SourceFile,
    parse_pattern,
)
from codegraph.core.errors import EngineError
from codegraph.core.syntax import ParsedFile, parse_go_file

logger = logging.getLogger(__name__)

GO_MOD = "go.mod"
# Directory names the go tool never treats as part of ./...
_SKIP_DIRS = frozenset({"testdata", "vendor"})
_MODULE_RE = re.compile(r'^\s*module\s+(?:"([^"]+)"|(\S+))', re.MULTILINE)
_GO_VERSION_RE = re.compile(r"^\s*go\s+(\S+)", re.MULTILINE)


def read_go_mod(go_mod: Path) -> Module | None:
    """Parse the module path and go version from a go.mod file. None if unreadable or no module line."""
    try:
        content = go_mod.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("cannot read %s: %s", go_mod, e)
        return None
    match = _MODULE_RE.search(content)
    if match is None:
        return None
    version = _GO_VERSION_RE.search(content)
    return Module(
        path=match.group(1) or match.group(2),
        dir=go_mod.parent,
        go_version=version.group(1) if version else "",
    )


def find_module(start: Path) -> Module | None:
    """Return the module of the nearest go.mod at or above start (first one found wins)."""
    for candidate in (start, *start.parents):
        go_mod = candidate / GO_MOD
        if go_mod.is_file():
            return read_go_mod(go_mod)
    return None


def _ignored(name: str) -> bool:
    return name.startswith((".", "_"))


def _package_dirs(start: Path, recursive: bool) -> list[Path]:
    """Directories matched by a pattern rooted at start, in walk order."""
    if not recursive:
        return [start]
    found: list[Path] = []
    for root, dirs, _files in os.walk(start, topdown=True):
        current = Path(root)
        found.append(current)
        # Nested modules are not part of this module's ./...
        dirs[:] = sorted(
            d
            for d in dirs
            if not _ignored(d) and d not in _SKIP_DIRS and not (current / d / GO_MOD).is_file()
        )
    return found


def _import_path(directory: Path, module: Module | None) -> str:
    if module is None or module.dir is None:
        return "_" + directory.as_posix()
    rel = directory.relative_to(module.dir).as_posix()
    return module.path if rel == "." else f"{module.path}/{rel}"


@dataclass
class _DirFiles:
    """Parsed files of one directory, split by role."""

    production: list[ParsedFile] = field(default_factory=list)
    internal_tests: list[ParsedFile] = field(default_factory=list)
    external_tests: list[ParsedFile] = field(default_factory=list)


def _parse(path: Path) -> ParsedFile:
    try:
        return parse_go_file(path)
    except OSError as e:
        return ParsedFile(path=path, tree=None, errors=[PackageError(f"{path}:1:1", str(e), ErrorKind.LIST)])


def _collect(directory: Path, tests: bool) -> _DirFiles:
    collected = _DirFiles()
    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as e:
        logger.warning("cannot list %s: %s", directory, e)
        return collected
    for entry in entries:
        if not entry.name.endswith(".go") or _ignored(entry.name) or not entry.is_file():
            continue
        path = Path(entry.path)
        if not entry.name.endswith("_test.go"):
            collected.production.append(_parse(path))
            continue
        if not tests:
            continue
        parsed = _parse(path)
        if parsed.package_name.endswith("_test"):
            collected.external_tests.append(parsed)
        else:
            collected.internal_tests.append(parsed)
    return collected


def _package_name(files: list[ParsedFile], directory: Path) -> tuple[str, list[PackageError]]:
    """First declared package name, plus an error if files disagree."""
    name = ""
    first_file = None
    for parsed in files:
        if not parsed.package_name:
            continue
        if not name:
            name, first_file = parsed.package_name, parsed.path
        elif parsed.package_name != name:
            msg = (
                f"found packages {name} ({first_file.name}) and "
                f"{parsed.package_name} ({parsed.path.name}) in {directory}"
            )
            return name, [PackageError("", msg, ErrorKind.LIST)]
    return name, []


class SourceTreeEngine:
    """
    Engine that walks the directory tree and parses each .go file with tree-sitter.

    Emits the same record shapes as the go tool: with tests enabled a package
    with test files yields its production record, a "p [p.test]" variant with
    the in-package tests folded in, a "p_test [p.test]" record for external
    tests, and the synthetic "p.test" binary.
    """

    def load(self, config: LoadConfig, *patterns: str) -> list[LoadedPackage]:
        root = config.dir
        if not root.is_dir():
            raise EngineError(f"cannot load from {root}: not a directory")
        module = find_module(root)
        if module is None:
            logger.debug("no %s at or above %s", GO_MOD, root)

        directories: list[Path] = []
        seen: set[Path] = set()
        for pattern in patterns or (".",):
            rel, recursive = parse_pattern(pattern)
            start = root / rel
            if not start.is_dir():
                logger.warning("pattern %s matched no packages", pattern)
                continue
            for directory in _package_dirs(start, recursive):
                if directory not in seen:
                    seen.add(directory)
                    directories.append(directory)

        records: list[LoadedPackage] = []
        for directory in directories:
            records.extend(self._load_dir(directory, config, module))
        logger.debug("source engine produced %d records from %d directories", len(records), len(directories))
        return records

    def _load_dir(self, directory: Path, config: LoadConfig, module: Module | None) -> list[LoadedPackage]:
        files = _collect(directory, config.tests)
        if not (files.production or files.internal_tests or files.external_tests):
            return []
        pkg_path = _import_path(directory, module)
        name, name_errors = _package_name(files.production + files.internal_tests, directory)

        records: list[LoadedPackage] = []
        if files.production:
            records.append(
                self._record(config, module, pkg_path, pkg_path, name, files.production, name_errors)
            )
        if not (files.internal_tests or files.external_tests):
            return records

        test_binary = pkg_path + TEST_BINARY_SUFFIX
        if files.internal_tests:
            records.append(
                self._record(
                    config,
                    module,
                    f"{pkg_path} [{test_binary}]",
                    pkg_path,
                    name,
                    files.production + files.internal_tests,
                    name_errors,
                    for_test=pkg_path,
                )
            )
        imports = [pkg_path]
        if files.external_tests:
            xname, xerrors = _package_name(files.external_tests, directory)
            records.append(
                self._record(
                    config,
                    module,
                    f"{pkg_path}_test [{test_binary}]",
                    f"{pkg_path}_test",
                    xname,
                    files.external_tests,
                    xerrors,
                    for_test=pkg_path,
                )
            )
            imports.append(f"{pkg_path}_test")
        records.append(
            LoadedPackage(
                id=test_binary,
                pkg_path=test_binary,
                name="main" if LoadMode.NAME in config.mode else "",
                imports=sorted(imports) if LoadMode.IMPORTS in config.mode else [],
                module=module if LoadMode.MODULE in config.mode else None,
            )
        )
        return records

    @staticmethod
    def _record(
        config: LoadConfig,
        module: Module | None,
        record_id: str,
        pkg_path: str,
        name: str,
        files: list[ParsedFile],
        extra_errors: list[PackageError],
        *,
        for_test: str = "",
    ) -> LoadedPackage:
        mode = config.mode
        errors = [err for parsed in files for err in parsed.errors] + extra_errors
        pkg = LoadedPackage(
            id=record_id,
            pkg_path=pkg_path,
            name=name if LoadMode.NAME in mode else "",
            errors=errors,
            module=module if LoadMode.MODULE in mode else None,
            for_test=for_test,
        )
        if LoadMode.FILES in mode:
            pkg.go_files = [parsed.path for parsed in files]
        if LoadMode.IMPORTS in mode:
            pkg.imports = sorted({imp for parsed in files for imp in parsed.imports})
        if config.retains_syntax:
            pkg.syntax = [SourceFile(parsed.path, parsed.tree) for parsed in files if parsed.tree is not None]
        logger.debug("loaded %s: %d files, %d errors", record_id, len(files), len(errors))
        return pkg
