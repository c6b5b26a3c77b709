"""Load all packages under a directory: count failures, reconcile variants, sort."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from codegraph.core.directory import ResolvedDirectory
from codegraph.core.engine import (
    Engine,
    LoadConfig,
    LoadedPackage,
    LoadMode,
    print_errors,
)
from codegraph.core.errors import EngineError, LoadError
from codegraph.core.source import SourceTreeEngine

logger = logging.getLogger(__name__)

ALL_PACKAGES_PATTERN = "./..."

# TYPES is not used downstream. Engines only keep syntax trees when it is requested,
# so it has to be part of the mode for SYNTAX to have any effect.
LOAD_MODE = (
    LoadMode.NAME
    | LoadMode.FILES
    | LoadMode.SYNTAX
    | LoadMode.IMPORTS
    | LoadMode.TYPES
    | LoadMode.MODULE
)


@dataclass
class LoadOutcome:
    """Reconciled packages ordered by import path, plus the number of embedded errors reported."""

    packages: list[LoadedPackage] = field(default_factory=list)
    error_count: int = 0

    @property
    def total_files(self) -> int:
        return sum(len(pkg.go_files) for pkg in self.packages)

    @property
    def modules(self) -> list[str]:
        """Distinct module paths across all packages, sorted."""
        return sorted({pkg.module.path for pkg in self.packages if pkg.module is not None})

    @property
    def module_path(self) -> str | None:
        """The module of this load, or None when there is none or it is ambiguous."""
        modules = self.modules
        return modules[0] if len(modules) == 1 else None


def reconcile_variants(packages: list[LoadedPackage]) -> list[LoadedPackage]:
    """
    Keep one record per import path: the one with the most files.

    With tests enabled an engine returns both the production record and the
    production+test variant under the same import path; the variant carries the
    superset of files. Ties keep the record seen first. Result order is first
    appearance of each import path.
    """
    best: dict[str, LoadedPackage] = {}
    for pkg in packages:
        existing = best.get(pkg.pkg_path)
        if existing is None or len(pkg.go_files) > len(existing.go_files):
            best[pkg.pkg_path] = pkg
    return list(best.values())


def drop_test_binaries(packages: list[LoadedPackage]) -> list[LoadedPackage]:
    """Remove synthetic test-binary records; they carry no source of their own."""
    return [pkg for pkg in packages if not pkg.is_test_binary]


def sort_packages(packages: list[LoadedPackage]) -> list[LoadedPackage]:
    """Sort by import path, byte-wise ascending."""
    return sorted(packages, key=lambda pkg: pkg.pkg_path.encode("utf-8"))


def load(
    directory: ResolvedDirectory,
    include_tests: bool = False,
    *,
    engine: Engine | None = None,
) -> LoadOutcome:
    """
    Load every package under directory.

    Per-package parse errors are printed to stderr and counted but never abort
    the load; a package with errors is still returned.

    Args:
        directory: Output of resolve_directory; not validated again here.
        include_tests: Also load _test.go files (folded into their package).
        engine: Engine to use; defaults to SourceTreeEngine.

    Returns:
        LoadOutcome with packages sorted by import path.

    Raises:
        LoadError: the engine could not run at all.
    """
    if directory is None:
        raise LoadError("failed to load packages: no directory given")
    if engine is None:
        engine = SourceTreeEngine()

    config = LoadConfig(dir=directory.path, mode=LOAD_MODE, tests=include_tests)
    try:
        records = engine.load(config, ALL_PACKAGES_PATTERN)
    except EngineError as e:
        raise LoadError(f"failed to load packages: {e}") from e

    error_count = print_errors(records)
    reconciled = drop_test_binaries(reconcile_variants(records))
    logger.debug(
        "engine returned %d records, %d after reconciliation, %d errors",
        len(records),
        len(reconciled),
        error_count,
    )
    return LoadOutcome(packages=sort_packages(reconciled), error_count=error_count)
