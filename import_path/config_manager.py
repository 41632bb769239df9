"""Load and save the ``[search]`` table of the TOML config file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import toml

from . import config
from .config import SearchOptions

logger = logging.getLogger(__name__)


def _config_file(path: Optional[Path]) -> Path:
    return path if path is not None else config.CONFIG_FILE


def load_full_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections)."""
    config_file = _config_file(path)
    if not config_file.exists():
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", config_file, exc)
        return {}


def coerce_value(key: str, value: Any) -> Any:
    """Convert *value* to the type of the ``SearchOptions`` field *key*.

    Raises ``KeyError`` for unknown keys and ``ValueError`` for values
    that cannot be converted.
    """
    expected = SearchOptions.field_types()[key]
    if isinstance(value, expected) and not (expected is int and isinstance(value, bool)):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if expected is bool:
            if text in ("1", "true", "yes", "on"):
                return True
            if text in ("0", "false", "no", "off"):
                return False
            raise ValueError(f"{key} expects a boolean, got {value!r}")
        if expected is int:
            return int(text)
        return value
    raise ValueError(f"{key} expects {expected.__name__}, got {value!r}")


def load_search_options(path: Optional[Path] = None) -> SearchOptions:
    """Build ``SearchOptions`` from the ``[search]`` table, falling back to defaults."""
    section = load_full_config(path).get("search", {})
    if not isinstance(section, dict):
        logger.warning("Ignoring [search] config: expected a table, got %r", section)
        return SearchOptions()

    values: Dict[str, Any] = {}
    for key, raw in section.items():
        try:
            values[key] = coerce_value(key, raw)
        except KeyError:
            logger.warning("Ignoring unknown search option %r", key)
        except ValueError as exc:
            logger.warning("Ignoring search option: %s", exc)

    try:
        return SearchOptions(**values).validate()
    except ValueError as exc:
        logger.warning("Invalid search options in config, using defaults: %s", exc)
        return SearchOptions()


def save_search_option(key: str, value: Any, path: Optional[Path] = None) -> SearchOptions:
    """Persist one search option, preserving the other sections of the file."""
    coerced = coerce_value(key, value)
    options = load_search_options(path).merged(**{key: coerced})

    full = load_full_config(path)
    section = full.get("search") if isinstance(full.get("search"), dict) else {}
    section[key] = getattr(options, key)
    full["search"] = section

    config_file = _config_file(path)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, "w", encoding="utf-8") as f:
        toml.dump(full, f)
    return options
