"""Tests for codegraph CLI."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import pytest

from codegraph.cli import _print_outcome, cmd_parse, main
from codegraph.config import Settings
from codegraph.core.engine import LoadedPackage, Module
from codegraph.core.loader import LoadOutcome

from conftest import write_files


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("CODEGRAPH_ENGINE", "CODEGRAPH_GO", "CODEGRAPH_GO_LIST_TIMEOUT", "CODEGRAPH_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def _args(**kwargs) -> argparse.Namespace:
    defaults = {
        "directory": "",
        "output": "out.json",
        "include_tests": False,
        "engine": None,
        "settings": Settings(),
    }
    defaults.update(kwargs)
    return argparse.Namespace(**defaults)


class TestPrintOutcome:
    """Tests for _print_outcome helper."""

    def test_package_block(self, capsys) -> None:
        pkg = LoadedPackage(
            id="m/a",
            pkg_path="m/a",
            name="a",
            go_files=[Path("/w/a/a.go"), Path("/w/a/b.go")],
            module=Module("m"),
        )
        _print_outcome(LoadOutcome([pkg]))
        out = capsys.readouterr().out
        assert "Package: m/a\n" in out
        assert "  Name: a\n" in out
        assert "  Files (2):\n" in out
        assert "    - /w/a/a.go\n" in out
        assert "Errors" not in out
        assert "Module: m\n" in out
        assert out.endswith("Loaded 1 packages, parsed 2 files\n")

    def test_error_summary_on_stderr(self, capsys) -> None:
        _print_outcome(LoadOutcome([], error_count=3))
        captured = capsys.readouterr()
        assert "Loaded 0 packages, parsed 0 files" in captured.out
        assert captured.err == "Encountered 3 parse errors\n"

    def test_no_error_summary_when_clean(self, capsys) -> None:
        _print_outcome(LoadOutcome([]))
        assert capsys.readouterr().err == ""

    def test_ambiguous_module(self, capsys) -> None:
        pkgs = [
            LoadedPackage(id="x", pkg_path="x", module=Module("m/one")),
            LoadedPackage(id="y", pkg_path="y", module=Module("m/two")),
        ]
        _print_outcome(LoadOutcome(pkgs))
        assert "Module: undetermined (m/one, m/two)" in capsys.readouterr().out

    def test_no_module_line_without_module(self, capsys) -> None:
        _print_outcome(LoadOutcome([LoadedPackage(id="x", pkg_path="x")]))
        assert "Module:" not in capsys.readouterr().out


class TestCmdParse:
    """Tests for cmd_parse."""

    def test_loads_directory(self, go_module: Path, capsys) -> None:
        assert cmd_parse(_args(directory=str(go_module))) == 0
        out = capsys.readouterr().out
        assert "Package: example.com/demo/a" in out
        assert "Module: example.com/demo" in out
        assert "Loaded 3 packages, parsed 3 files" in out

    def test_include_tests(self, go_module: Path, capsys) -> None:
        assert cmd_parse(_args(directory=str(go_module), include_tests=True)) == 0
        out = capsys.readouterr().out
        assert "Package: example.com/demo/a_test" in out
        assert "Loaded 4 packages, parsed 5 files" in out

    def test_current_directory_default(self, go_module: Path, monkeypatch, capsys) -> None:
        monkeypatch.chdir(go_module / "a")
        assert cmd_parse(_args()) == 0
        assert "Package: example.com/demo/a\n" in capsys.readouterr().out

    def test_empty_output(self, go_module: Path, capsys) -> None:
        assert cmd_parse(_args(directory=str(go_module), output="")) == 1
        assert "Error: --output flag requires a file path" in capsys.readouterr().err

    def test_missing_directory(self, tmp_path: Path, capsys) -> None:
        assert cmd_parse(_args(directory=str(tmp_path / "nope"))) == 1
        assert "Error: directory does not exist:" in capsys.readouterr().err

    def test_file_target(self, tmp_path: Path, capsys) -> None:
        target = tmp_path / "main.go"
        target.write_text("package main\n")
        assert cmd_parse(_args(directory=str(target))) == 1
        assert "is a file, not a directory" in capsys.readouterr().err

    def test_partial_failure_exits_zero(self, tmp_path: Path, capsys) -> None:
        write_files(
            tmp_path,
            {"go.mod": "module m\n", "ok/ok.go": "package ok\n", "bad/bad.go": "package bad\n\nfunc ( {\n"},
        )
        assert cmd_parse(_args(directory=str(tmp_path))) == 0
        captured = capsys.readouterr()
        assert "Package: m/bad" in captured.out
        assert "Package: m/ok" in captured.out
        assert "Encountered" in captured.err
        assert str(tmp_path / "bad" / "bad.go") in captured.err

    def test_output_file_not_written(self, go_module: Path, tmp_path: Path) -> None:
        output = tmp_path / "graph.json"
        assert cmd_parse(_args(directory=str(go_module), output=str(output))) == 0
        assert not output.exists()


class TestMain:
    """Tests for argument handling in main."""

    def test_parse(self, go_module: Path, capsys) -> None:
        assert main(["parse", str(go_module), "--output", "out.json"]) == 0
        assert "Loaded 3 packages" in capsys.readouterr().out

    def test_parse_short_flag_and_tests(self, go_module: Path, capsys) -> None:
        assert main(["parse", str(go_module), "-o", "out.json", "--include-tests"]) == 0
        assert "Loaded 4 packages" in capsys.readouterr().out

    def test_output_required(self, go_module: Path, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["parse", str(go_module)])
        assert exc.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_unknown_flag(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["parse", "--output", "x", "--bogus"])
        assert exc.value.code == 1

    def test_no_command(self, capsys) -> None:
        assert main([]) == 1
        assert "usage:" in capsys.readouterr().err

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert "codegraph" in capsys.readouterr().out

    def test_missing_directory(self, tmp_path: Path, capsys) -> None:
        assert main(["parse", str(tmp_path / "missing"), "--output", "x"]) == 1
        assert capsys.readouterr().err.startswith("Error: directory does not exist:")

    def test_bad_engine_env(self, go_module: Path, monkeypatch, capsys) -> None:
        monkeypatch.setenv("CODEGRAPH_ENGINE", "nope")
        assert main(["parse", str(go_module), "--output", "x"]) == 1
        assert "CODEGRAPH_ENGINE" in capsys.readouterr().err

    def test_golist_without_go(self, go_module: Path, monkeypatch, capsys) -> None:
        monkeypatch.setenv("CODEGRAPH_GO", "definitely-not-a-go-binary")
        assert main(["parse", str(go_module), "--output", "x", "--engine", "golist"]) == 1
        assert "go binary not found" in capsys.readouterr().err

    def test_verbose_configures_debug_logging(self, go_module: Path) -> None:
        assert main(["-v", "parse", str(go_module), "--output", "x"]) == 0
        assert logging.getLogger("codegraph").level == logging.DEBUG

    def test_log_level_from_env(self, go_module: Path, monkeypatch) -> None:
        monkeypatch.setenv("CODEGRAPH_LOG_LEVEL", "info")
        assert main(["parse", str(go_module), "--output", "x"]) == 0
        assert logging.getLogger("codegraph").level == logging.INFO

    def test_tui_missing_directory(self, tmp_path: Path, capsys) -> None:
        assert main(["tui", str(tmp_path / "missing")]) == 1
        assert "Error:" in capsys.readouterr().err
