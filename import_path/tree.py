"""Prefix tree over found import paths, with text and JSON renderings."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .models import ModuleUri


class TreeStyle(str, Enum):
    ELEGANT = "elegant"
    DOTS = "dots"
    JSON = "json"


_STYLE_ALIASES = {
    "elegant": TreeStyle.ELEGANT,
    "connector": TreeStyle.ELEGANT,
    "dots": TreeStyle.DOTS,
    "indent": TreeStyle.DOTS,
    "json": TreeStyle.JSON,
    "structured": TreeStyle.JSON,
}


def parse_style(name: Union[str, TreeStyle]) -> TreeStyle:
    if isinstance(name, TreeStyle):
        return name
    try:
        return _STYLE_ALIASES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown tree style {name!r}; expected one of: {', '.join(_STYLE_ALIASES)}"
        ) from None


def strip_label(text: str, prefix: Optional[str]) -> str:
    if prefix and text.startswith(prefix):
        return text[len(prefix):]
    return text


@dataclass(frozen=True)
class PathTreeNode:
    label: str
    children: Tuple["PathTreeNode", ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def leaf_count(self) -> int:
        if not self.children:
            return 1
        return sum(child.leaf_count for child in self.children)

    def to_dict(self) -> Dict[str, Any]:
        return {self.label: {"children": [child.to_dict() for child in self.children]}}


class _Builder:
    """Mutable trie used only while inserting paths."""

    __slots__ = ("label", "children")

    def __init__(self, label: str):
        self.label = label
        self.children: Dict[str, "_Builder"] = {}

    def child(self, label: str) -> "_Builder":
        node = self.children.get(label)
        if node is None:
            node = self.children[label] = _Builder(label)
        return node

    def freeze(self) -> PathTreeNode:
        return PathTreeNode(self.label, tuple(c.freeze() for c in self.children.values()))


class PathTree:
    """Paths sharing a prefix collapse into one branch up to where they diverge."""

    def __init__(self, roots: Sequence[PathTreeNode], style: TreeStyle = TreeStyle.ELEGANT):
        self.roots: Tuple[PathTreeNode, ...] = tuple(roots)
        self.style = parse_style(style)

    @classmethod
    def from_paths(
        cls,
        paths: Iterable[Sequence[Union[str, ModuleUri]]],
        strip_prefix: Optional[str] = None,
        style: TreeStyle = TreeStyle.ELEGANT,
    ) -> "PathTree":
        top = _Builder("")
        for path in paths:
            node = top
            for element in path:
                node = node.child(strip_label(str(element), strip_prefix))
        return cls([c.freeze() for c in top.children.values()], style=style)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], style: TreeStyle = TreeStyle.ELEGANT) -> "PathTree":
        """Rebuild a tree from :meth:`to_dict` output."""
        return cls([_node_from_item(label, body) for label, body in data.items()], style=style)

    @property
    def leaf_count(self) -> int:
        return sum(root.leaf_count for root in self.roots)

    def __bool__(self) -> bool:
        return bool(self.roots)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PathTree):
            return NotImplemented
        return self.roots == other.roots

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for root in self.roots:
            result.update(root.to_dict())
        return result

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def render(self, style: Union[str, TreeStyle, None] = None) -> str:
        style = parse_style(style) if style is not None else self.style
        if style is TreeStyle.JSON:
            return self.to_json()

        lines: List[str] = []
        for root in self.roots:
            lines.append(root.label)
            if style is TreeStyle.DOTS:
                _render_dots(root.children, 1, lines)
            else:
                _render_elegant(root.children, "  ", lines)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()


def _node_from_item(label: str, body: Any) -> PathTreeNode:
    if not isinstance(body, dict) or not isinstance(body.get("children", []), list):
        raise ValueError(f"Malformed tree node for {label!r}: {body!r}")
    children = []
    for item in body.get("children", []):
        if not isinstance(item, dict) or len(item) != 1:
            raise ValueError(f"Malformed child under {label!r}: {item!r}")
        child_label, child_body = next(iter(item.items()))
        children.append(_node_from_item(child_label, child_body))
    return PathTreeNode(label, tuple(children))


def _render_elegant(children: Sequence[PathTreeNode], indent: str, lines: List[str]) -> None:
    last_index = len(children) - 1
    for index, child in enumerate(children):
        last = index == last_index
        if child.children:
            glyph = "└─┬─ " if last else "├─┬─ "
        else:
            glyph = "└──> " if last else "├──> "
        lines.append(f"{indent}{glyph}{child.label}")
        if child.children:
            _render_elegant(child.children, indent + ("  " if last else "│ "), lines)


def _render_dots(children: Sequence[PathTreeNode], depth: int, lines: List[str]) -> None:
    for child in children:
        lines.append(f"{'..' * depth}{child.label}")
        _render_dots(child.children, depth + 1, lines)
