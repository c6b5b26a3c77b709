"""Load Go packages through `go list -json`, the go toolchain's own package loader."""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Any, Iterator

from codegraph.core.engine import (
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
from codegraph.core.syntax import parse_go_file

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0


def _strip_variant(import_path: str) -> str:
    """'p [p.test]' -> 'p'."""
    return import_path.split(" ", 1)[0]


def decode_stream(text: str) -> Iterator[dict[str, Any]]:
    """Yield each object of the concatenated JSON stream `go list -json` prints."""
    decoder = json.JSONDecoder()
    index = 0
    length = len(text)
    while True:
        while index < length and text[index].isspace():
            index += 1
        if index >= length:
            return
        try:
            obj, index = decoder.raw_decode(text, index)
        except json.JSONDecodeError as e:
            raise EngineError(f"malformed go list output: {e}") from e
        yield obj


def _error_file(pos: str, base: Path) -> Path | None:
    """File named by a go list error position ("file:line:col", relative to the go list cwd)."""
    parts = pos.rsplit(":", 2)
    if len(parts) != 3 or not (parts[1].isdigit() and parts[2].isdigit()):
        return None
    return base / parts[0]


def _check_pattern_failure(obj: dict[str, Any], patterns: tuple[str, ...]) -> None:
    """
    Raise for the placeholder record go list -e prints when a pattern itself fails.

    Such a record is named after the pattern and has no directory or files,
    e.g. "./..." outside any module.
    """
    if obj.get("ImportPath") not in patterns or obj.get("Dir") or obj.get("GoFiles"):
        return
    error = obj.get("Error") or {}
    raise EngineError(error.get("Err") or f"pattern {obj['ImportPath']} matched no packages")


class GoListEngine:
    """Engine backed by the go toolchain.

    Needs a go binary on PATH (or the configured one) and a directory inside a module.
    """

    def __init__(self, go: str = "go", timeout: float = DEFAULT_TIMEOUT) -> None:
        self.go = go
        self.timeout = timeout

    def command(self, config: LoadConfig, patterns: tuple[str, ...]) -> list[str]:
        binary = shutil.which(self.go)
        if binary is None:
            raise EngineError(f"go binary not found: {self.go}")
        cmd = [binary, "list", "-e", "-json"]
        if config.tests:
            cmd.append("-test")
        cmd.extend(patterns)
        return cmd

    def load(self, config: LoadConfig, *patterns: str) -> list[LoadedPackage]:
        patterns = patterns or (".",)
        for pattern in patterns:
            parse_pattern(pattern)
        cmd = self.command(config, patterns)
        logger.debug("running %s in %s", " ".join(cmd), config.dir)
        try:
            result = subprocess.run(
                cmd,
                cwd=config.dir,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise EngineError(f"go list timed out after {self.timeout:g}s") from e
        except OSError as e:
            raise EngineError(f"cannot run {cmd[0]}: {e}") from e

        if result.returncode != 0:
            detail = result.stderr.strip() or f"exit status {result.returncode}"
            raise EngineError(f"go list failed: {detail}")
        if result.stderr.strip():
            # e.g. "matched no packages"
            logger.warning("go list: %s", result.stderr.strip())

        records = []
        for obj in decode_stream(result.stdout):
            _check_pattern_failure(obj, patterns)
            records.append(self._convert(obj, config))
        return records

    @staticmethod
    def _convert(obj: dict[str, Any], config: LoadConfig) -> LoadedPackage:
        mode = config.mode
        record_id = obj.get("ImportPath", "")
        directory = Path(obj.get("Dir") or config.dir)
        pkg = LoadedPackage(
            id=record_id,
            pkg_path=_strip_variant(record_id),
            name=obj.get("Name", "") if LoadMode.NAME in mode else "",
            for_test=obj.get("ForTest", ""),
        )

        error = obj.get("Error")
        if error:
            pkg.errors.append(PackageError(error.get("Pos", ""), error.get("Err", ""), ErrorKind.LIST))

        files = [directory / name for name in (obj.get("GoFiles") or []) + (obj.get("CgoFiles") or [])]
        if LoadMode.FILES in mode:
            pkg.go_files = files
        if LoadMode.IMPORTS in mode:
            pkg.imports = sorted({_strip_variant(imp) for imp in obj.get("Imports") or []})
        module = obj.get("Module")
        if LoadMode.MODULE in mode and module:
            pkg.module = Module(
                path=module.get("Path", ""),
                dir=Path(module["Dir"]) if module.get("Dir") else None,
                go_version=module.get("GoVersion", ""),
            )
        if LoadMode.SYNTAX in mode:
            # go list only reads package clauses and imports; bodies are checked here
            reported = {_error_file(err.pos, config.dir) for err in pkg.errors}
            for path in files:
                try:
                    parsed = parse_go_file(path)
                except OSError as e:
                    # go list already reports unreadable files
                    logger.debug("cannot parse %s: %s", path, e)
                    continue
                if path not in reported:
                    pkg.errors.extend(parsed.errors)
                if config.retains_syntax:
                    pkg.syntax.append(SourceFile(path, parsed.tree))
        return pkg
