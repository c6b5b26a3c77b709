"""Textual TUI for browsing the packages of a Go codebase."""

from __future__ import annotations

from typing import Any

from rich.markup import escape
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, LoadingIndicator, Static, Tree
from textual.widgets.tree import TreeNode
from textual.worker import Worker, WorkerState

from codegraph.core.directory import ResolvedDirectory
from codegraph.core.engine import Engine, LoadedPackage
from codegraph.core.loader import LoadOutcome, load

WELCOME_DESC = """[bold cyan]codegraph[/bold cyan]

[dim]Browse the packages of a Go codebase: files, imports, and parse errors.
Packages are listed by import path; test files are folded into their package when enabled.[/]"""

# Limits to keep huge codebases responsive
MAX_FILES_PER_PACKAGE = 200
MAX_ERRORS_PER_PACKAGE = 50

COLOR_HEADER = "bold magenta"
COLOR_PKG = "white"
COLOR_OK = "bold green"
COLOR_ERROR = "bold red"
COLOR_STATS = "cyan"
COLOR_PATH = "dim"


def _package_stats(pkg: Any) -> tuple[int, int, int]:
    """Return (files, imports, errors) for a package record."""
    return (
        len(getattr(pkg, "go_files", None) or []),
        len(getattr(pkg, "imports", None) or []),
        len(getattr(pkg, "errors", None) or []),
    )


def _package_label(pkg: LoadedPackage) -> str:
    files, _imports, errors = _package_stats(pkg)
    color = COLOR_ERROR if errors else COLOR_PKG
    label = f"[{color}]{escape(pkg.pkg_path)}[/] [dim]({files} files)[/]"
    if errors:
        label += f" [{COLOR_ERROR}]✗ {errors}[/]"
    return label


def _format_package(pkg: LoadedPackage) -> str:
    files, imports, errors = _package_stats(pkg)
    module = pkg.module.path if pkg.module is not None else "(none)"
    lines = [
        f"[{COLOR_HEADER}]Package[/]",
        f"  [{COLOR_PKG}]{escape(pkg.pkg_path)}[/]  [dim]package {escape(pkg.name or '?')}[/]",
        "",
        f"[{COLOR_HEADER}]Stats[/]",
        f"  Files:    [{COLOR_STATS}]{files}[/]",
        f"  Imports:  [{COLOR_STATS}]{imports}[/]",
        f"  Errors:   [{COLOR_ERROR if errors else COLOR_STATS}]{errors}[/]",
        "",
        f"[{COLOR_HEADER}]Module[/]",
        f"  [{COLOR_PATH}]{escape(module)}[/]",
    ]
    return "\n".join(lines)


def _format_summary(outcome: LoadOutcome, include_tests: bool) -> str:
    if outcome.module_path is not None:
        module = escape(outcome.module_path)
    elif outcome.modules:
        module = "undetermined (" + escape(", ".join(outcome.modules)) + ")"
    else:
        module = "(none)"
    status = f"[{COLOR_ERROR}]{outcome.error_count} errors[/]" if outcome.error_count else f"[{COLOR_OK}]no errors[/]"
    return (
        f"[{COLOR_HEADER}]Summary[/]\n\n"
        f"Module: {module}\n"
        f"Packages: [{COLOR_STATS}]{len(outcome.packages)}[/]  ·  "
        f"Files: [{COLOR_STATS}]{outcome.total_files}[/]  ·  {status}\n"
        f"Tests: {'included' if include_tests else 'excluded'}\n\n"
        "[dim]↑/↓[/] move  ·  [dim]Enter[/] select  ·  [dim]t[/] = toggle tests  ·  [dim]r[/] = reload"
    )


def _match_fields(pkg: LoadedPackage, query: str) -> list[str]:
    """Describe which fields of pkg contain query (case-insensitive); empty when none do."""
    query = query.lower()
    hits: list[str] = []
    if query in pkg.pkg_path.lower():
        hits.append("import path")
    if pkg.name and query in pkg.name.lower():
        hits.append(f"package {pkg.name}")
    hits.extend(f"file {path.name}" for path in pkg.go_files if query in path.name.lower())
    hits.extend(f"import {imp}" for imp in pkg.imports if query in imp.lower())
    return hits


class SearchScreen(ModalScreen[str | None]):
    """Ask for a query matched against import paths, package names, file names and imports."""

    BINDINGS = [Binding("escape", "dismiss_empty", "Cancel", show=True)]

    DEFAULT_CSS = """
    SearchScreen {
        align: center middle;
    }
    SearchScreen > Vertical {
        width: 70;
        height: auto;
        padding: 1 2;
        border: thick $primary;
    }
    SearchScreen Input {
        margin: 1 0;
    }
    """

    def __init__(self, previous: str = "", package_count: int = 0, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._previous = previous
        self._package_count = package_count

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(f"[bold cyan]Find package[/]  [dim]({self._package_count} loaded)[/]", markup=True)
            yield Input(value=self._previous, placeholder="e.g. internal/http, handler.go, net/url")
            yield Static("[dim]Enter[/] search  ·  [dim]Esc[/] cancel  ·  then [dim]n[/]/[dim]N[/] to step", markup=True)

    def on_mount(self) -> None:
        self.query_one(Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value.strip() or None)

    def action_dismiss_empty(self) -> None:
        self.dismiss(None)


class PackageBrowserApp(App[None]):
    """Terminal UI listing the packages loaded from one directory."""

    TITLE = "codegraph"
    BINDINGS = [
        Binding("/", "search", "Search"),
        Binding("n", "next_match", "Next match", show=False),
        Binding("N", "prev_match", "Prev match", show=False),
        Binding("t", "toggle_tests", "Tests"),
        Binding("d", "toggle_details", "Details"),
        Binding("r", "refresh", "Reload"),
        Binding("e", "expand_all", "Expand all"),
        Binding("c", "collapse_all", "Collapse"),
        Binding("q", "quit", "Quit"),
    ]

    DEFAULT_CSS = """
    #welcome {
        text-align: center;
        padding: 1 4;
    }
    #loading {
        height: 3;
        display: none;
    }
    #loading.loading {
        display: block;
    }
    #details {
        padding: 1 2;
        border: solid $primary;
        height: auto;
        min-height: 8;
    }
    """

    def __init__(
        self,
        directory: ResolvedDirectory,
        include_tests: bool = False,
        engine: Engine | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._directory = directory
        self._include_tests = include_tests
        self._engine = engine
        self._outcome: LoadOutcome | None = None
        self._loading = False
        self._query = ""
        self._hits: list[tuple[TreeNode, list[str]]] = []
        self._hit_index = 0
        self._details_visible: bool = True

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        yield Static(WELCOME_DESC, id="welcome", markup=True)
        with Container(id="loading"):
            yield LoadingIndicator()
        yield Tree("Packages", id="pkg_tree")
        yield Static("[dim]Loading packages...[/]", id="details")
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = str(self._directory)
        self._start_load()

    def _start_load(self) -> None:
        """Load packages in a background thread."""
        if self._loading:
            return
        self._loading = True
        self.query_one("#loading").add_class("loading")
        self._set_details(f"[dim]Loading packages from {escape(str(self._directory))}...[/]")
        self.run_worker(self._load_worker, thread=True)

    def _load_worker(self) -> LoadOutcome:
        return load(self._directory, self._include_tests, engine=self._engine)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        if event.state == WorkerState.SUCCESS:
            self._loading = False
            self._outcome = event.worker.result
            self.query_one("#loading").remove_class("loading")
            self._populate()
        elif event.state == WorkerState.ERROR:
            self._loading = False
            self.query_one("#loading").remove_class("loading")
            self._set_details(f"[red]Error: {escape(str(event.worker.error))}[/]")

    def _clear_tree(self, tree: Tree) -> None:
        while tree.root.children:
            tree.root.children[0].remove()

    def _populate(self) -> None:
        outcome = self._outcome
        if outcome is None:
            return
        tree = self.query_one("#pkg_tree", Tree)
        self._clear_tree(tree)
        self._hits = []
        tree.root.label = f"[{COLOR_HEADER}]Packages ({len(outcome.packages)})[/]"
        tree.root.expand()
        if not outcome.packages:
            tree.root.add_leaf("[dim]No Go packages found[/]")
        for pkg in outcome.packages:
            pkg_node = tree.root.add(_package_label(pkg), data=pkg, expand=False)
            files_node = pkg_node.add(f"Files ({len(pkg.go_files)})", expand=False)
            for path in pkg.go_files[:MAX_FILES_PER_PACKAGE]:
                files_node.add_leaf(f"[{COLOR_PATH}]{escape(path.name)}[/]", data=str(path))
            if len(pkg.go_files) > MAX_FILES_PER_PACKAGE:
                files_node.add_leaf(f"[dim]… and {len(pkg.go_files) - MAX_FILES_PER_PACKAGE} more[/]")
            if pkg.imports:
                imports_node = pkg_node.add(f"Imports ({len(pkg.imports)})", expand=False)
                for imp in pkg.imports:
                    imports_node.add_leaf(escape(imp), data=imp)
            if pkg.errors:
                errors_node = pkg_node.add(f"[{COLOR_ERROR}]Errors ({len(pkg.errors)})[/]", expand=True)
                for err in pkg.errors[:MAX_ERRORS_PER_PACKAGE]:
                    errors_node.add_leaf(f"[red]{escape(str(err))}[/]")
        self._set_details(_format_summary(outcome, self._include_tests))
        tree.focus()

    def _set_details(self, text: str) -> None:
        self.query_one("#details", Static).update(text)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        data = event.node.data
        if isinstance(data, LoadedPackage):
            self._set_details(_format_package(data))
        elif event.node is self.query_one("#pkg_tree", Tree).root and self._outcome is not None:
            self._set_details(_format_summary(self._outcome, self._include_tests))

    def action_refresh(self) -> None:
        self._start_load()

    def action_toggle_tests(self) -> None:
        if self._loading:
            return
        self._include_tests = not self._include_tests
        self.notify(
            f"Tests {'included' if self._include_tests else 'excluded'}",
            severity="information",
            timeout=2,
        )
        self._start_load()

    def action_expand_all(self) -> None:
        self.query_one("#pkg_tree", Tree).root.expand_all()

    def action_collapse_all(self) -> None:
        root = self.query_one("#pkg_tree", Tree).root
        root.collapse_all()
        root.expand()

    def action_search(self) -> None:
        count = len(self._outcome.packages) if self._outcome is not None else 0
        self.push_screen(SearchScreen(previous=self._query, package_count=count), self._on_search_done)

    def _on_search_done(self, query: str | None) -> None:
        if not query:
            return
        self._query = query
        tree = self.query_one("#pkg_tree", Tree)
        self._hits = []
        for node in tree.root.children:
            if isinstance(node.data, LoadedPackage):
                fields = _match_fields(node.data, query)
                if fields:
                    self._hits.append((node, fields))
        if not self._hits:
            self.notify(f"No package matches '{query}'", severity="warning", timeout=2)
            return
        self._hit_index = 0
        self._show_hit()

    def _show_hit(self) -> None:
        """Select the current hit's package node and explain why it matched."""
        node, fields = self._hits[self._hit_index]
        tree = self.query_one("#pkg_tree", Tree)
        node.expand()
        tree.select_node(node)
        tree.scroll_to_node(node)
        matched = ", ".join(escape(f) for f in fields)
        self._set_details(
            f"{_format_package(node.data)}\n\n"
            f"[{COLOR_HEADER}]Match {self._hit_index + 1}/{len(self._hits)}[/]\n  [{COLOR_STATS}]{matched}[/]"
        )

    def _step_hit(self, delta: int) -> None:
        if not self._hits:
            self.notify("No active search. Press / to search.", severity="information", timeout=2)
            return
        self._hit_index = (self._hit_index + delta) % len(self._hits)
        self._show_hit()

    def action_next_match(self) -> None:
        self._step_hit(1)

    def action_prev_match(self) -> None:
        self._step_hit(-1)

    def action_toggle_details(self) -> None:
        self._details_visible = not self._details_visible
        self.query_one("#details", Static).styles.display = "block" if self._details_visible else "none"

    def action_quit(self) -> None:
        self.exit()
