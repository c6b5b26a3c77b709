"""Parse Go source files with tree-sitter: package clause, imports, syntax errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

from tree_sitter_language_pack import get_parser

from codegraph.core.engine import ErrorKind, PackageError

# The go parser stops reporting after this many errors per file; so do we.
MAX_ERRORS_PER_FILE = 10
_MAX_TOKEN_LEN = 24


@dataclass
class ParsedFile:
    """Result of parsing one .go file."""

    path: Path
    tree: Any
    package_name: str = ""
    imports: list[str] = field(default_factory=list)
    errors: list[PackageError] = field(default_factory=list)


@lru_cache(maxsize=1)
def _go_parser() -> Any:
    return get_parser("go")


def _text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text is not None else ""


def _position(path: Path, node: Any) -> str:
    row, column = node.start_point[0], node.start_point[1]
    return f"{path}:{row + 1}:{column + 1}"


def _first_token(node: Any) -> str:
    """Text of the leftmost leaf under node, or EOF when there is none."""
    while node.child_count:
        node = node.children[0]
    token = _text(node).strip()
    if not token:
        return "EOF"
    if len(token) > _MAX_TOKEN_LEN:
        token = token[:_MAX_TOKEN_LEN] + "..."
    return token


def _package_name(root: Any) -> str:
    for child in root.named_children:
        if child.type != "package_clause":
            continue
        for ident in child.named_children:
            if ident.type == "package_identifier":
                return _text(ident)
    return ""


def _imports(root: Any) -> list[str]:
    found: list[str] = []
    for decl in root.named_children:
        if decl.type != "import_declaration":
            continue
        stack = list(decl.named_children)
        while stack:
            node = stack.pop()
            if node.type == "import_spec":
                path_node = node.child_by_field_name("path")
                if path_node is not None:
                    found.append(_text(path_node).strip("\"`"))
            else:
                stack.extend(node.named_children)
    return sorted(set(found))


def _syntax_errors(path: Path, root: Any) -> list[PackageError]:
    """Collect ERROR and MISSING nodes in document order."""
    errors: list[PackageError] = []
    if not root.has_error:
        return errors
    stack = [root]
    while stack and len(errors) < MAX_ERRORS_PER_FILE:
        node = stack.pop()
        if node.type == "ERROR":
            errors.append(
                PackageError(
                    _position(path, node),
                    f"syntax error: unexpected {_first_token(node)}",
                    ErrorKind.PARSE,
                )
            )
            continue
        if node.is_missing:
            errors.append(
                PackageError(_position(path, node), f"syntax error: missing {node.type}", ErrorKind.PARSE)
            )
            continue
        if node.has_error:
            stack.extend(reversed(node.children))
    if not errors:
        errors.append(PackageError(_position(path, root), "syntax error", ErrorKind.PARSE))
    return errors


def parse_go_source(path: Path, source: bytes) -> ParsedFile:
    """Parse Go source bytes that were read from path."""
    tree = _go_parser().parse(source)
    root = tree.root_node
    parsed = ParsedFile(
        path=path,
        tree=tree,
        package_name=_package_name(root),
        imports=_imports(root),
        errors=_syntax_errors(path, root),
    )
    if not parsed.package_name and not parsed.errors:
        first = next((c for c in root.children if c.type != "comment"), None)
        found = _first_token(first) if first is not None else "EOF"
        pos = _position(path, first) if first is not None else f"{path}:1:1"
        parsed.errors.append(PackageError(pos, f"expected 'package', found '{found}'", ErrorKind.PARSE))
    return parsed


def parse_go_file(path: Path) -> ParsedFile:
    """Read and parse a .go file. OSError propagates to the caller."""
    return parse_go_source(path, path.read_bytes())
