"""Import path scanner: wires the resolver, extractor and graph search together."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from . import config
from .extractor import ImportExtractor
from .models import ImportMatcher, ModuleUri
from .reporting import MessagePrinter, Reporter
from .resolver import FileSystemResolver, Resolver
from .search import GraphSearch, SearchMode, SearchResult

logger = logging.getLogger(__name__)


class ImportPathScanner(Reporter):
    """Searches import paths between a Dart module and a target."""

    def __init__(
        self,
        find_all: bool = False,
        quiet: bool = False,
        fast_parser: bool = False,
        include_conditional_imports: bool = True,
        max_expansion: int = config.DEFAULT_MAX_EXPANSION,
        message_printer: Optional[MessagePrinter] = None,
    ) -> None:
        super().__init__(quiet=quiet, message_printer=message_printer)
        if max_expansion < 0:
            raise ValueError(f"max_expansion must be >= 0, got {max_expansion}")
        self.find_all = find_all
        self.fast_parser = fast_parser
        self.include_conditional_imports = include_conditional_imports
        self.max_expansion = max_expansion

    @property
    def mode(self) -> SearchMode:
        return SearchMode.ALL if self.find_all else SearchMode.SHORTEST

    def create_extractor(self, resolver: Resolver) -> ImportExtractor:
        return ImportExtractor(
            resolver,
            include_conditional_imports=self.include_conditional_imports,
            fast_parser=self.fast_parser,
            quiet=self.quiet,
            message_printer=self.message_printer,
        )

    def search_paths(
        self,
        from_uri: ModuleUri,
        matcher: ImportMatcher,
        package_directory: Optional[Path] = None,
        resolver: Optional[Resolver] = None,
        extractor: Optional[ImportExtractor] = None,
        strip_search_root: Optional[str] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> SearchResult:
        """Run one search. A new extractor (and cache) is used unless one is given."""
        if extractor is None:
            if resolver is None:
                resolver = FileSystemResolver.from_directory(package_directory or Path.cwd())
            extractor = self.create_extractor(resolver)

        if not self.quiet:
            self._print_header(from_uri, matcher, strip_search_root)

        result = GraphSearch(extractor.imports_for, should_stop=should_stop).search(
            from_uri, matcher, mode=self.mode, max_expansion=self.max_expansion,
        )

        stats = extractor.stats
        logger.debug(
            "Parsed %d units (fast hits: %d, fallbacks: %d, missing: %d)",
            stats.parsed_units, stats.fast_hits, stats.fast_fallbacks, stats.missing_units,
        )

        if not self.quiet:
            if result.exhausted:
                self.warn(
                    f"Search stopped after {result.expansions} expansions "
                    f"(max expansion: {self.max_expansion}); results may be incomplete"
                )
            self.print_message(
                f"» Search finished [total time: {_ms(result.total_time)} ms, "
                f"resolve paths time: {_ms(result.resolve_paths_time)} ms]"
            )
        return result

    def _print_header(
        self, from_uri: ModuleUri, matcher: ImportMatcher, strip_search_root: Optional[str]
    ) -> None:
        self.print_message(f"» Search entry point: {from_uri}")
        if strip_search_root is not None:
            self.print_message(f"» Stripping search root from displayed imports: {strip_search_root}")

        searching = "Fast searching" if self.fast_parser else "Searching"
        if self.find_all:
            self.print_message(f"» {searching} for all import paths for `{matcher}`...")
        else:
            self.print_message(f"» {searching} for the shortest import path for `{matcher}`...")


def _ms(seconds: float) -> int:
    return int(round(seconds * 1000))
