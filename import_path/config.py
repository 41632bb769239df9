"""Configuration defaults for import-path."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Tuple

from .tree import parse_style

BASE_DIR = Path(os.environ.get("IMPORT_PATH_HOME", str(Path.home() / ".import_path"))).expanduser()
CONFIG_FILE = BASE_DIR / "config.toml"

# Soft cap on the number of modules expanded by a single search.
DEFAULT_MAX_EXPANSION = 100

PACKAGE_CONFIG_FILE = Path(".dart_tool") / "package_config.json"
LEGACY_PACKAGES_FILE = Path(".packages")
# Output directory of package:build, checked when a source file is missing.
GENERATED_DIR = Path(".dart_tool") / "build" / "generated"

# Entry point parents kept when resolving the search root to strip.
COMMON_ROOT_DIRECTORIES: Tuple[str, ...] = ("web", "bin", "src", "test", "example")


@dataclass
class SearchOptions:
    """Recognized search options, as stored in the ``[search]`` table."""

    find_all: bool = False
    quiet: bool = False
    strip: bool = False
    fast_parser: bool = False
    include_conditional_imports: bool = True
    max_expansion: int = DEFAULT_MAX_EXPANSION
    style: str = "elegant"

    def validate(self) -> "SearchOptions":
        if self.max_expansion < 0:
            raise ValueError(f"max_expansion must be >= 0, got {self.max_expansion}")
        # Accepts the aliases (connector, indent, structured); stores the canonical name.
        self.style = parse_style(self.style).value
        return self

    def merged(self, **overrides: Any) -> "SearchOptions":
        """Return a copy with every non-None override applied."""
        values = asdict(self)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return SearchOptions(**values).validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def field_types(cls) -> Dict[str, type]:
        return {f.name: type(getattr(cls(), f.name)) for f in fields(cls)}
