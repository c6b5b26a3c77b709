"""Shared fixtures: small Go module trees and a scripted engine."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from codegraph.core.engine import LoadConfig, LoadedPackage


def write_files(root: Path, files: dict[str, str]) -> Path:
    """Create files (relative path -> content) under root and return root."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


class FakeEngine:
    """Engine returning canned records, or raising a canned error."""

    def __init__(self, records: list[LoadedPackage] | None = None, error: Exception | None = None) -> None:
        self.records = records or []
        self.error = error
        self.calls: list[tuple[LoadConfig, tuple[str, ...]]] = []

    def load(self, config: LoadConfig, *patterns: str) -> list[LoadedPackage]:
        self.calls.append((config, patterns))
        if self.error is not None:
            raise self.error
        return list(self.records)


@pytest.fixture
def go_module(tmp_path: Path) -> Path:
    """A module with a root main package and two sibling packages a and b, plus tests in a."""
    return write_files(
        tmp_path,
        {
            "go.mod": "module example.com/demo\n\ngo 1.18\n",
            "main.go": 'package main\n\nimport "example.com/demo/a"\n\nfunc main() { a.Hello() }\n',
            "a/a.go": 'package a\n\nimport "fmt"\n\nfunc Hello() { fmt.Println("hi") }\n',
            "a/a_test.go": 'package a\n\nimport "testing"\n\nfunc TestHello(t *testing.T) { Hello() }\n',
            "a/example_test.go": (
                'package a_test\n\nimport "example.com/demo/a"\n\nfunc ExampleHello() { a.Hello() }\n'
            ),
            "b/b.go": "package b\n\nconst B = 1\n",
        },
    )


@pytest.fixture(autouse=True)
def _reset_codegraph_logger():
    """Undo configure_logging() calls made by CLI tests."""
    yield
    logger = logging.getLogger("codegraph")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
