"""
Syntax tree cache for code-blackbox.

Parses source text with tree-sitter and memoizes the result per path. A
path keeps exactly one live entry; supplying different text for the same
path replaces it.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

from tree_sitter_language_pack import get_parser

from .config import Grammar, get_grammar
from .utils import split_lines

if TYPE_CHECKING:
    from tree_sitter import Node, Parser, Tree


@dataclass(frozen=True)
class Position:
    """A 1-based (line, column) location; columns count characters."""

    line: int
    column: int


@lru_cache(maxsize=None)
def _parser_for(grammar: Grammar) -> Parser:
    return get_parser(grammar.value)


class ParsedSource:
    """
    A parsed file: the source text, its tree-sitter tree and a position locator.

    Tree-sitter reports columns in bytes; `position` converts them to
    character columns so they can be used to slice the text lines directly.
    """

    def __init__(self, path: str, text: str, tree: Tree, grammar: Grammar):
        self.path = path
        self.text = text
        self.tree = tree
        self.grammar = grammar
        self.source = text.encode("utf-8")
        self.lines = split_lines(text)
        self._byte_lines: list[bytes] | None = None

    @property
    def root(self) -> Node:
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        return self.tree.root_node.has_error

    def node_text(self, node: Node | None) -> str:
        if node is None:
            return ""
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def position(self, point: tuple[int, int]) -> Position:
        """Map a tree-sitter (row, byte column) point to a 1-based Position."""
        row, byte_column = point[0], point[1]
        line = self.lines[row] if row < len(self.lines) else ""
        if len(line) == len(line.encode("utf-8")):
            return Position(row + 1, byte_column + 1)

        if self._byte_lines is None:
            self._byte_lines = self.source.split(b"\n")
        raw = self._byte_lines[row] if row < len(self._byte_lines) else b""
        column = len(raw[:byte_column].decode("utf-8", errors="replace"))
        return Position(row + 1, column + 1)

    def start(self, node: Node) -> Position:
        return self.position(node.start_point)

    def end(self, node: Node) -> Position:
        return self.position(node.end_point)


def parse_source(path: Path | str, text: str) -> ParsedSource:
    """Parse text with the grammar matching the path's extension."""
    grammar = get_grammar(path)
    tree = _parser_for(grammar).parse(text.encode("utf-8"))
    return ParsedSource(str(path), text, tree, grammar)


class TreeCache:
    """
    Per-path memo of the last parsed text.

    Two calls with the same (path, text) return the very same ParsedSource.
    Entries are only replaced, never evicted; a cache is meant to live as
    long as the session that owns it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ParsedSource] = {}
        self.hits = 0
        self.misses = 0

    def get(self, path: Path | str, text: str) -> ParsedSource:
        key = str(path)
        cached = self._entries.get(key)
        if cached is not None and cached.text == text:
            self.hits += 1
            return cached

        self.misses += 1
        parsed = parse_source(key, text)
        self._entries[key] = parsed
        return parsed

    def invalidate(self, path: Path | str) -> None:
        self._entries.pop(str(path), None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, path: object) -> bool:
        return str(path) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
