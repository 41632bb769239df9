"""User facing import path search: search root handling and result printing."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from . import config
from .models import ModuleUri, build_matcher
from .reporting import MessagePrinter, Reporter
from .resolver import Resolver
from .scanner import ImportPathScanner
from .search import SearchResult
from .tree import PathTree, TreeStyle, parse_style


class ImportPath(Reporter):
    """An import path search from an entry point to an import to find.

    ``target`` may be a URI string, a :class:`ModuleUri`, a compiled
    pattern, a predicate or any :class:`ImportMatcher`; with
    ``regexp=True`` a string target is a regular expression.
    """

    def __init__(
        self,
        from_uri: Union[str, ModuleUri],
        target: Any,
        regexp: bool = False,
        find_all: bool = False,
        quiet: bool = False,
        strip: bool = False,
        fast_parser: bool = False,
        include_conditional_imports: bool = True,
        max_expansion: int = config.DEFAULT_MAX_EXPANSION,
        search_root: Optional[str] = None,
        package_directory: Optional[Path] = None,
        resolver: Optional[Resolver] = None,
        message_printer: Optional[MessagePrinter] = None,
    ) -> None:
        super().__init__(quiet=quiet, message_printer=message_printer)
        self.from_uri = ModuleUri.parse(from_uri)
        self.matcher = build_matcher(target, regexp=regexp)
        self.find_all = find_all
        self.strip = strip
        self.package_directory = package_directory
        self.resolver = resolver
        self.common_root_directories: Sequence[str] = config.COMMON_ROOT_DIRECTORIES
        self._search_root = search_root
        self.scanner = ImportPathScanner(
            find_all=find_all,
            quiet=quiet,
            fast_parser=fast_parser,
            include_conditional_imports=include_conditional_imports,
            max_expansion=max_expansion,
            message_printer=self.message_printer,
        )
        self.last_result: Optional[SearchResult] = None

    @classmethod
    def from_options(
        cls, from_uri: Union[str, ModuleUri], target: Any, options: config.SearchOptions, **kwargs: Any
    ) -> "ImportPath":
        return cls(
            from_uri,
            target,
            find_all=options.find_all,
            quiet=options.quiet,
            strip=options.strip,
            fast_parser=options.fast_parser,
            include_conditional_imports=options.include_conditional_imports,
            max_expansion=options.max_expansion,
            **kwargs,
        )

    @property
    def search_root(self) -> str:
        """The root stripped from displayed paths (see :meth:`resolve_search_root`)."""
        if self._search_root is None:
            self._search_root = self.resolve_search_root()
        return self._search_root

    @search_root.setter
    def search_root(self, value: str) -> None:
        self._search_root = value

    def resolve_search_root(self) -> str:
        """Use the entry's directory, or its parent for ``bin/``, ``web/`` and friends."""
        root_path = posixpath.dirname(self.from_uri.path)
        if posixpath.basename(root_path) in self.common_root_directories:
            parent = posixpath.dirname(root_path)
            if parent:
                root_path = parent
        root = str(self.from_uri.with_path(root_path))
        return root if root.endswith("/") else root + "/"

    @property
    def strip_search_root(self) -> Optional[str]:
        return self.search_root if self.strip else None

    def search(self, style: Union[str, TreeStyle] = TreeStyle.ELEGANT) -> Optional[PathTree]:
        """Run the search and return the tree of found paths, or None."""
        result = self.scanner.search_paths(
            self.from_uri,
            self.matcher,
            package_directory=self._package_directory(),
            resolver=self.resolver,
            strip_search_root=self.strip_search_root,
        )
        self.last_result = result
        if not result.found:
            return None
        return PathTree.from_paths(result.paths, strip_prefix=self.strip_search_root, style=parse_style(style))

    def execute(self, style: Union[str, TreeStyle] = TreeStyle.ELEGANT) -> Optional[PathTree]:
        """Search, then print the tree and a summary through the message printer."""
        tree = self.search(style=style)

        if tree is not None:
            self.print_message(tree.render())

        if not self.quiet:
            if tree is None:
                self.print_message(f"» Unable to find an import path from {self.from_uri} to {self.matcher}")
            elif tree.leaf_count > 1:
                self.print_message(
                    f"» Found {tree.leaf_count} import paths from {self.from_uri} to {self.matcher}"
                )
        return tree

    def _package_directory(self) -> Path:
        if self.package_directory is not None:
            return self.package_directory
        entry_file = self.from_uri.to_file_path()
        if entry_file is not None:
            return entry_file.parent
        return Path.cwd()
