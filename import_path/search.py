"""Path search over a lazily expanded, possibly cyclic directed graph."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence, Set, Tuple

from . import config
from .models import ImportMatcher, ModuleUri

logger = logging.getLogger(__name__)

OutputsProvider = Callable[[ModuleUri], Sequence[ModuleUri]]
NodePath = List[ModuleUri]


class SearchMode(str, Enum):
    SHORTEST = "shortest"
    ALL = "all"


@dataclass
class SearchResult:
    paths: List[NodePath] = field(default_factory=list)
    # Seconds spent expanding the graph.
    expansion_time: float = 0.0
    # Seconds spent reducing/collecting the found paths.
    resolve_paths_time: float = 0.0
    expansions: int = 0
    # True when the expansion ceiling or a stop request ended the search early.
    exhausted: bool = False

    @property
    def total_time(self) -> float:
        return self.expansion_time + self.resolve_paths_time

    @property
    def found(self) -> bool:
        return bool(self.paths)

    def __len__(self) -> int:
        return len(self.paths)


def shortest_paths(paths: Sequence[NodePath]) -> List[NodePath]:
    """Keep every path of minimum length, in discovery order."""
    if not paths:
        return []
    minimum = min(len(p) for p in paths)
    return [list(p) for p in paths if len(p) == minimum]


@dataclass
class _Frame:
    neighbors: Iterator[ModuleUri]
    seen: Set[ModuleUri] = field(default_factory=set)


class GraphSearch:
    """Depth-first search for paths from an entry to matching nodes.

    The traversal keeps the nodes of the current branch in a set, so a
    module can appear in several paths but never twice in the same one.
    Frames live on an explicit stack, deep import chains don't hit the
    interpreter recursion limit.

    The entry itself is never reported as a match: a path has at least
    one edge.
    """

    def __init__(
        self,
        outputs_provider: OutputsProvider,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.outputs_provider = outputs_provider
        self.should_stop = should_stop

    def search(
        self,
        entry: ModuleUri,
        matcher: ImportMatcher,
        mode: SearchMode = SearchMode.SHORTEST,
        max_expansion: int = config.DEFAULT_MAX_EXPANSION,
    ) -> SearchResult:
        if max_expansion < 0:
            raise ValueError(f"max_expansion must be >= 0, got {max_expansion}")
        mode = SearchMode(mode)

        start = time.perf_counter()
        found, expansions, exhausted = self._expand(entry, matcher, max_expansion)
        expansion_time = time.perf_counter() - start

        start = time.perf_counter()
        paths = shortest_paths(found) if mode is SearchMode.SHORTEST else found
        resolve_paths_time = time.perf_counter() - start

        logger.debug(
            "Search from %s: %d expansions, %d paths found, %d kept (%s)",
            entry, expansions, len(found), len(paths), mode.value,
        )
        return SearchResult(
            paths=paths,
            expansion_time=expansion_time,
            resolve_paths_time=resolve_paths_time,
            expansions=expansions,
            exhausted=exhausted,
        )

    def _expand(
        self, entry: ModuleUri, matcher: ImportMatcher, max_expansion: int
    ) -> Tuple[List[NodePath], int, bool]:
        found: List[NodePath] = []
        if max_expansion == 0:
            return found, 0, True

        parents: NodePath = [entry]
        on_branch: Set[ModuleUri] = {entry}
        stack = [_Frame(iter(self.outputs_provider(entry)))]
        expansions = 1

        while stack:
            if self.should_stop is not None and self.should_stop():
                logger.debug("Search stopped on request after %d expansions", expansions)
                return found, expansions, True

            frame = stack[-1]
            neighbor = next(frame.neighbors, None)
            if neighbor is None:
                stack.pop()
                on_branch.discard(parents.pop())
                continue

            if neighbor in on_branch or neighbor in frame.seen:
                continue
            frame.seen.add(neighbor)

            if matcher.matches(neighbor):
                found.append(parents + [neighbor])
                continue

            if expansions >= max_expansion:
                logger.debug("Expansion ceiling (%d) reached", max_expansion)
                return found, expansions, True
            expansions += 1

            outputs = self.outputs_provider(neighbor)
            parents.append(neighbor)
            on_branch.add(neighbor)
            stack.append(_Frame(iter(outputs)))

        return found, expansions, False
