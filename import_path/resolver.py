"""Module content resolution through the Dart package registry.

``package:`` URIs are mapped to files with the registry written by
``dart pub get`` (``.dart_tool/package_config.json``, or the legacy
``.packages`` file). When a file is missing, the ``package:build``
output directory is checked before giving up.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Union
from urllib.parse import unquote, urlparse

from . import config
from .exceptions import PackageConfigError
from .models import FILE_SCHEME, PACKAGE_SCHEME, ModuleUri

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Package:
    name: str
    root: Path
    package_uri_root: Path
    language_version: Optional[str] = None

    def contains(self, path: Path) -> bool:
        try:
            path.relative_to(self.root)
        except ValueError:
            return False
        return True


def _uri_to_path(reference: str, base_dir: Path) -> Path:
    """Resolve a ``rootUri``/``packageUri`` value against *base_dir*."""
    parsed = urlparse(reference)
    if parsed.scheme == FILE_SCHEME:
        return Path(unquote(parsed.path))
    if parsed.scheme and len(parsed.scheme) > 1:
        raise ValueError(f"unsupported URI scheme in {reference!r}")
    return (base_dir / unquote(reference)).resolve()


class PackageConfig:
    """The package-name registry of a Dart package."""

    def __init__(self, packages: Iterable[Package], path: Optional[Path] = None):
        self.path = path
        self._packages: Dict[str, Package] = {p.name: p for p in packages}

    @classmethod
    def load(cls, path: Path) -> "PackageConfig":
        """Load a ``package_config.json`` file (version 2)."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PackageConfigError(path, str(exc)) from exc

        if not isinstance(data, dict) or not isinstance(data.get("packages"), list):
            raise PackageConfigError(path, "missing 'packages' list")
        version = data.get("configVersion")
        if version != 2:
            raise PackageConfigError(path, f"unsupported configVersion {version!r}")

        base_dir = path.parent.resolve()
        packages: List[Package] = []
        for entry in data["packages"]:
            try:
                name = entry["name"]
                root = _uri_to_path(entry["rootUri"], base_dir)
                # Directory URIs must end with '/' to resolve below them.
                package_uri = entry.get("packageUri", "")
                lib = _uri_to_path(package_uri, root) if package_uri else root
            except (KeyError, TypeError, ValueError) as exc:
                raise PackageConfigError(path, f"bad package entry {entry!r}: {exc}") from exc
            packages.append(Package(name, root, lib, entry.get("languageVersion")))
        logger.debug("Loaded %d packages from %s", len(packages), path)
        return cls(packages, path)

    @classmethod
    def load_legacy(cls, path: Path) -> "PackageConfig":
        """Load a legacy ``.packages`` file (``name:uri-of-lib-dir`` lines)."""
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise PackageConfigError(path, str(exc)) from exc

        base_dir = path.parent.resolve()
        packages: List[Package] = []
        for number, line in enumerate(lines, 1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            name, sep, location = line.partition(":")
            if not sep or not name:
                raise PackageConfigError(path, f"line {number}: expected 'name:uri'")
            try:
                lib = _uri_to_path(location, base_dir)
            except ValueError as exc:
                raise PackageConfigError(path, f"line {number}: {exc}") from exc
            root = lib.parent if lib.name == "lib" else lib
            packages.append(Package(name, root, lib))
        return cls(packages, path)

    @property
    def packages(self) -> List[Package]:
        return list(self._packages.values())

    def __getitem__(self, name: str) -> Optional[Package]:
        return self._packages.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    def resolve(self, uri: ModuleUri) -> Optional[Path]:
        """Map ``package:name/rest`` to a filesystem path, or None."""
        if uri.scheme != PACKAGE_SCHEME:
            return None
        segments = uri.segments
        if len(segments) < 2:
            return None
        package = self._packages.get(segments[0])
        if package is None:
            return None
        return package.package_uri_root.joinpath(*segments[1:])

    def package_of(self, path: Path) -> Optional[Package]:
        """Return the package whose root contains *path* (deepest root wins)."""
        candidates = [p for p in self._packages.values() if p.contains(path)]
        if not candidates:
            return None
        return max(candidates, key=lambda p: len(p.root.parts))


def find_package_config(directory: Path) -> Optional[PackageConfig]:
    """Find the registry of *directory* or its closest ancestor."""
    directory = directory.resolve()
    for candidate in (directory, *directory.parents):
        json_file = candidate / config.PACKAGE_CONFIG_FILE
        if json_file.is_file():
            return PackageConfig.load(json_file)
        legacy = candidate / config.LEGACY_PACKAGES_FILE
        if legacy.is_file():
            return PackageConfig.load_legacy(legacy)
    return None


# ===================================================================
# Resolvers
# ===================================================================

class Resolver(ABC):
    """Maps a module URI to its source text. ``None`` means absent."""

    @abstractmethod
    def resolve(self, uri: ModuleUri) -> Optional[str]:
        ...


class FileSystemResolver(Resolver):
    """Reads modules from disk, using the package registry for ``package:`` URIs."""

    def __init__(
        self,
        package_config: Optional[PackageConfig] = None,
        package_directory: Optional[Path] = None,
        generated_dir: Path = config.GENERATED_DIR,
    ) -> None:
        self.package_config = package_config
        if package_directory is None:
            package_directory = self._default_package_directory(package_config)
        self.package_directory = package_directory
        self.generated_dir = (
            generated_dir if generated_dir.is_absolute() else package_directory / generated_dir
        )

    @classmethod
    def from_directory(cls, directory: Path) -> "FileSystemResolver":
        package_config = find_package_config(directory)
        if package_config is None:
            logger.warning("No package config found from %s; package: URIs won't resolve", directory)
        return cls(package_config, cls._default_package_directory(package_config, directory))

    @staticmethod
    def _default_package_directory(
        package_config: Optional[PackageConfig], fallback: Optional[Path] = None
    ) -> Path:
        if package_config is not None and package_config.path is not None:
            config_path = package_config.path.resolve()
            if config_path.parent.name == ".dart_tool":
                return config_path.parent.parent
            return config_path.parent
        return (fallback or Path.cwd()).resolve()

    def locate(self, uri: ModuleUri) -> Optional[Path]:
        """Return the file backing *uri*, checking the generated overlay last."""
        if uri.scheme == FILE_SCHEME:
            primary = uri.to_file_path()
        elif uri.scheme == PACKAGE_SCHEME and self.package_config is not None:
            primary = self.package_config.resolve(uri)
        else:
            logger.debug("No location for %s", uri)
            return None

        if primary is not None and primary.is_file():
            return primary

        overlay = self._generated_location(uri, primary)
        if overlay is not None and overlay.is_file():
            logger.debug("Using generated overlay %s for %s", overlay, uri)
            return overlay
        return None

    def _generated_location(self, uri: ModuleUri, primary: Optional[Path]) -> Optional[Path]:
        if self.package_config is None:
            return None
        if uri.scheme == PACKAGE_SCHEME:
            package = self.package_config[uri.segments[0]] if uri.segments else None
        elif primary is not None:
            package = self.package_config.package_of(primary)
        else:
            package = None
        if package is None or primary is None or not package.contains(primary):
            return None
        return self.generated_dir / package.name / primary.relative_to(package.root)

    def resolve(self, uri: ModuleUri) -> Optional[str]:
        path = self.locate(uri)
        if path is None:
            return None
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Failed to read %s: %s", path, exc)
            return None


class InMemoryResolver(Resolver):
    """Serves module sources from a mapping of URI strings to text."""

    def __init__(self, sources: Mapping[Union[str, ModuleUri], str]):
        self.sources: Dict[ModuleUri, str] = {
            ModuleUri.parse(key): text for key, text in sources.items()
        }

    def resolve(self, uri: ModuleUri) -> Optional[str]:
        return self.sources.get(uri)
