"""Core data models: module URIs and the matchers that select targets."""

from __future__ import annotations

import posixpath
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Optional, Pattern, Union
from urllib.parse import unquote

from .exceptions import InvalidMatcherError

BUILTIN_SCHEME = "dart"
PACKAGE_SCHEME = "package"
FILE_SCHEME = "file"

# Single-letter schemes are Windows drive letters, not URI schemes.
_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]+):")


def _remove_dot_segments(path: str) -> str:
    if not path:
        return path
    normalized = posixpath.normpath(path)
    if path.startswith("/"):
        normalized = "/" + normalized.lstrip("/")
    while normalized.startswith("../"):
        normalized = normalized[3:]
    if normalized in ("..", "."):
        return ""
    if path.endswith("/") and not normalized.endswith("/"):
        normalized += "/"
    return normalized


@dataclass(frozen=True, order=True)
class ModuleUri:
    """Identity of a source module: a scheme plus a path.

    ``package:foo/bar.dart`` has scheme ``package`` and path ``foo/bar.dart``;
    ``file:///src/a.dart`` has scheme ``file`` and path ``/src/a.dart``.
    Two modules are the same graph node iff their URIs are equal.
    """

    scheme: str
    path: str

    @classmethod
    def parse(cls, text: Union[str, "ModuleUri"], base: Optional[Path] = None) -> "ModuleUri":
        """Parse a URI string. Scheme-less text is a filesystem path."""
        if isinstance(text, ModuleUri):
            return text
        match = _SCHEME_RE.match(text)
        if match is None:
            return cls.from_path((base or Path.cwd()) / text)
        scheme = match.group(1).lower()
        rest = text[match.end():]
        if scheme == FILE_SCHEME and rest.startswith("//"):
            # Drop the (usually empty) authority.
            slash = rest.find("/", 2)
            rest = rest[slash:] if slash >= 0 else "/"
        return cls(scheme, unquote(rest))

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "ModuleUri":
        posix = Path(path).resolve().as_posix()
        if not posix.startswith("/"):
            posix = "/" + posix
        return cls(FILE_SCHEME, posix)

    @property
    def is_builtin(self) -> bool:
        return self.scheme == BUILTIN_SCHEME

    @property
    def segments(self) -> List[str]:
        return [s for s in self.path.split("/") if s]

    def resolve(self, reference: str) -> "ModuleUri":
        """Resolve *reference* relative to this module."""
        if _SCHEME_RE.match(reference):
            return ModuleUri.parse(reference)
        if reference.startswith("/"):
            return ModuleUri(self.scheme, _remove_dot_segments(reference))
        base_dir = posixpath.dirname(self.path)
        merged = posixpath.join(base_dir, reference) if base_dir else reference
        return ModuleUri(self.scheme, _remove_dot_segments(merged))

    def with_path(self, path: str) -> "ModuleUri":
        return ModuleUri(self.scheme, path)

    def to_file_path(self) -> Optional[Path]:
        if self.scheme != FILE_SCHEME:
            return None
        return Path(self.path)

    def __str__(self) -> str:
        if self.scheme == FILE_SCHEME:
            return f"file://{self.path}"
        return f"{self.scheme}:{self.path}"


# ===================================================================
# Matchers
# ===================================================================

class ImportMatcher(ABC):
    """Predicate selecting the module(s) a search is looking for."""

    @abstractmethod
    def matches(self, uri: ModuleUri) -> bool:
        ...

    def __call__(self, uri: ModuleUri) -> bool:
        return self.matches(uri)


class ExactMatcher(ImportMatcher):
    def __init__(self, uri: ModuleUri):
        self.uri = uri

    def matches(self, uri: ModuleUri) -> bool:
        return uri == self.uri

    def __str__(self) -> str:
        return str(self.uri)

    def __repr__(self) -> str:
        return f"ExactMatcher({str(self.uri)!r})"


class PatternMatcher(ImportMatcher):
    """Matches when the regular expression is found in the URI string."""

    def __init__(self, pattern: Union[str, Pattern[str]]):
        if isinstance(pattern, str):
            try:
                pattern = re.compile(pattern)
            except re.error as exc:
                raise InvalidMatcherError(pattern, str(exc)) from exc
        self.pattern = pattern

    def matches(self, uri: ModuleUri) -> bool:
        return self.pattern.search(str(uri)) is not None

    def __str__(self) -> str:
        return self.pattern.pattern

    def __repr__(self) -> str:
        return f"PatternMatcher({self.pattern.pattern!r})"


class PredicateMatcher(ImportMatcher):
    def __init__(self, predicate: Callable[[ModuleUri], bool], description: str = "<predicate>"):
        self.predicate = predicate
        self.description = description

    def matches(self, uri: ModuleUri) -> bool:
        return bool(self.predicate(uri))

    def __str__(self) -> str:
        return self.description


def build_matcher(target: Any, regexp: bool = False, base: Optional[Path] = None) -> ImportMatcher:
    """Turn a user supplied target into a matcher, failing fast on bad input."""
    if isinstance(target, ImportMatcher):
        return target
    if isinstance(target, ModuleUri):
        return ExactMatcher(target)
    if isinstance(target, re.Pattern):
        return PatternMatcher(target)
    if isinstance(target, str):
        if not target.strip():
            raise InvalidMatcherError(target, "empty target")
        if regexp:
            return PatternMatcher(target)
        return ExactMatcher(ModuleUri.parse(target, base=base))
    if callable(target):
        return PredicateMatcher(target, getattr(target, "__name__", "<predicate>"))
    raise InvalidMatcherError(target, "not a URI, pattern or predicate")
