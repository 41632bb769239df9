"""Find import paths between Dart modules."""

from .exceptions import ImportPathError, InvalidMatcherError, PackageConfigError
from .extractor import ImportExtractor, ImportsCache
from .finder import ImportPath
from .models import (
    ExactMatcher,
    ImportMatcher,
    ModuleUri,
    PatternMatcher,
    PredicateMatcher,
    build_matcher,
)
from .resolver import FileSystemResolver, InMemoryResolver, PackageConfig, Resolver, find_package_config
from .scanner import ImportPathScanner
from .search import GraphSearch, SearchMode, SearchResult, shortest_paths
from .tree import PathTree, PathTreeNode, TreeStyle, parse_style

__version__ = "1.2.0"

__all__ = [
    "ExactMatcher",
    "FileSystemResolver",
    "GraphSearch",
    "ImportExtractor",
    "ImportMatcher",
    "ImportPath",
    "ImportPathError",
    "ImportPathScanner",
    "ImportsCache",
    "InMemoryResolver",
    "InvalidMatcherError",
    "ModuleUri",
    "PackageConfig",
    "PackageConfigError",
    "PathTree",
    "PathTreeNode",
    "PatternMatcher",
    "PredicateMatcher",
    "Resolver",
    "SearchMode",
    "SearchResult",
    "TreeStyle",
    "build_matcher",
    "find_package_config",
    "parse_style",
    "shortest_paths",
]
