"""Dart directive extraction on top of the Tree-sitter Dart grammar.

Tree-sitter recovers from broken syntax and marks the damage with
``ERROR`` and missing nodes instead of failing, so a unit (or any
truncated prefix of one) always yields the directives it could recognize
plus the list of problems found. An empty error list means the text was
syntactically clean.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_parser

logger = logging.getLogger(__name__)

LANGUAGE = "dart"

NAMESPACE_KEYWORDS = ("import", "export")

# Tree-sitter node type -> directive keyword
DIRECTIVE_NODES = {
    "library_name": "library",
    "import_specification": "import",
    "library_export": "export",
    "part_directive": "part",
    "part_of_directive": "part of",
}

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v"}

_DEFERRED_RE = re.compile(r"\bdeferred\b")

_local = threading.local()


@dataclass(frozen=True)
class ParseError:
    message: str
    line: int

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


@dataclass(frozen=True)
class Configuration:
    """One ``if (name == 'value') 'uri'`` clause of a configurable URI."""

    name: str
    value: Optional[str]
    uri: Optional[str]
    uri_text: str


@dataclass(frozen=True)
class Directive:
    keyword: str
    uri: Optional[str]
    uri_text: str
    line: int
    # Byte offset just past the directive in the UTF-8 source.
    end_offset: int
    configurations: Tuple[Configuration, ...] = ()
    prefix: Optional[str] = None
    deferred: bool = False

    @property
    def is_namespace(self) -> bool:
        return self.keyword in NAMESPACE_KEYWORDS


@dataclass
class ParseResult:
    directives: List[Directive] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.errors

    @property
    def namespace_directives(self) -> List[Directive]:
        return [d for d in self.directives if d.is_namespace]


def get_dart_parser() -> Parser:
    """Return the Dart parser of the calling thread.

    Tree-sitter parsers keep per-parse state, so each thread gets its own.
    """
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = _local.parser = get_parser(LANGUAGE)
        logger.debug("Loaded tree-sitter parser for %s", LANGUAGE)
    return parser


def decode_string_literal(text: str) -> Optional[str]:
    """Value of one or more adjacent Dart string literals.

    Returns None when a literal interpolates (``$name`` or ``${...}``)
    or the text is not a well formed literal.
    """
    chunks: List[str] = []
    i, n = 0, len(text)
    seen = False
    while i < n:
        if text[i].isspace():
            i += 1
            continue
        raw = text[i] == "r"
        if raw:
            i += 1
        if i >= n or text[i] not in "'\"":
            return None
        quote = text[i] * 3 if text.startswith(text[i] * 3, i) else text[i]
        i += len(quote)
        while not text.startswith(quote, i):
            if i >= n:
                return None
            ch = text[i]
            if not raw and ch == "\\" and i + 1 < n:
                value, i = _decode_escape(text, i + 1)
                chunks.append(value)
                continue
            if not raw and ch == "$":
                return None
            chunks.append(ch)
            i += 1
        i += len(quote)
        seen = True
    return "".join(chunks) if seen else None


def _decode_escape(text: str, i: int) -> Tuple[str, int]:
    """Decode the escape whose letter is at *i*; return it and the next index."""
    letter = text[i]
    if letter == "x":
        digits = text[i + 1:i + 3]
        if len(digits) == 2 and _is_hex(digits):
            return chr(int(digits, 16)), i + 3
    elif letter == "u":
        if text.startswith("{", i + 1):
            close = text.find("}", i + 2)
            digits = text[i + 2:close] if close > 0 else ""
            if digits and _is_hex(digits):
                return chr(int(digits, 16)), close + 1
        else:
            digits = text[i + 1:i + 5]
            if len(digits) == 4 and _is_hex(digits):
                return chr(int(digits, 16)), i + 5
    return _ESCAPES.get(letter, letter), i + 1


def _is_hex(digits: str) -> bool:
    return all(c in "0123456789abcdefABCDEF" for c in digits)


# ===================================================================
# Tree walking
# ===================================================================

def _walk(root: Node) -> Iterator[Node]:
    """Pre-order traversal in source order, without recursion."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _child(node: Optional[Node], node_type: str) -> Optional[Node]:
    if node is None:
        return None
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _line(node: Node) -> int:
    return node.start_point[0] + 1


class _DirectiveCollector:
    """Turns the syntax tree of one unit into a :class:`ParseResult`."""

    def __init__(self, source: bytes):
        self.source = source
        self.result = ParseResult()

    def text(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def collect(self, root: Node) -> ParseResult:
        for node in _walk(root):
            if node.is_missing:
                self.error(f"Expected {node.type!r}", node)
            elif node.type == "ERROR":
                snippet = self.text(node).strip().splitlines()
                self.error(f"Unexpected {snippet[0][:40]!r}" if snippet else "Syntax error", node)
            else:
                keyword = DIRECTIVE_NODES.get(node.type)
                if keyword is not None:
                    self.result.directives.append(self.directive(node, keyword))

        if root.has_error and not self.result.errors:
            self.error("Syntax error", root)
        self.result.errors.sort(key=lambda e: e.line)
        return self.result

    def error(self, message: str, node: Node) -> None:
        self.result.errors.append(ParseError(message, _line(node)))

    def directive(self, node: Node, keyword: str) -> Directive:
        uri_parent = _child(node, "configurable_uri") or node
        uri_node = _child(uri_parent, "uri")
        uri, uri_text = self.uri(uri_node)

        configurations = tuple(
            self.configuration(child) for child in uri_parent.children if child.type == "configuration_uri"
        )

        prefix = None
        deferred = False
        if keyword == "import":
            prefix_node = _child(node, "identifier")
            prefix = self.text(prefix_node) if prefix_node is not None else None
            # ``deferred`` imports take a plain ``uri`` child, not a configurable one.
            clauses_start = uri_parent.end_byte if uri_parent is not node else (
                uri_node.end_byte if uri_node is not None else node.end_byte
            )
            clauses =self.source[clauses_start:node.end_byte].decode("utf-8", errors="replace")
            deferred = _DEFERRED_RE.search(clauses.split(" as ")[0]) is not None

        return Directive(
            keyword=keyword,
            uri=uri,
            uri_text=uri_text,
            line=_line(node),
            end_offset=node.end_byte,
            configurations=configurations,
            prefix=prefix,
            deferred=deferred,
        )

    def configuration(self, node: Node) -> Configuration:
        test = _child(node, "uri_test")
        name, value = "", None
        if test is not None:
            left, sep, right = self.text(test).partition("==")
            name = "".join(left.split())
            if sep:
                value = decode_string_literal(right.strip())
        uri, uri_text = self.uri(_child(node, "uri"))
        return Configuration(name, value, uri, uri_text)

    def uri(self, node: Optional[Node]) -> Tuple[Optional[str], str]:
        if node is None:
            return None, ""
        text = self.text(node)
        value = decode_string_literal(text)
        if value is None:
            self.error("URIs can't use string interpolation", node)
        return value, text


def parse_unit(content: str) -> ParseResult:
    """Parse *content* (a whole unit or any prefix of one)."""
    source = content.encode("utf-8")
    tree = get_dart_parser().parse(source)
    result = _DirectiveCollector(source).collect(tree.root_node)
    logger.debug(
        "Parsed %d chars: %d directives, %d errors",
        len(content), len(result.directives), len(result.errors),
    )
    return result
