"""Tests for the package registry and module resolvers."""

import json
from pathlib import Path

import pytest

from import_path.exceptions import PackageConfigError
from import_path.models import ModuleUri
from import_path.resolver import (
    FileSystemResolver,
    InMemoryResolver,
    PackageConfig,
    find_package_config,
)


def _write_config(root: Path, packages, version=2) -> Path:
    path = root / ".dart_tool" / "package_config.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"configVersion": version, "packages": packages}))
    return path


class TestPackageConfig:
    """Loading ``package_config.json`` and ``.packages``."""

    def test_load_sample_config(self, sample_app_path: Path):
        package_config = find_package_config(sample_app_path / "bin")

        assert package_config is not None
        assert len(package_config) == 2
        assert "shapes" in package_config
        shapes = package_config["shapes"]
        assert shapes.root == sample_app_path / "third_party" / "shapes"
        assert shapes.package_uri_root == sample_app_path / "third_party" / "shapes" / "lib"
        assert shapes.language_version == "3.0"
        assert package_config["missing"] is None

    def test_resolve_package_uri(self, sample_app_path: Path):
        package_config = find_package_config(sample_app_path)

        path = package_config.resolve(ModuleUri.parse("package:sample_app/src/model.dart"))
        assert path == sample_app_path / "lib" / "src" / "model.dart"
        assert package_config.resolve(ModuleUri.parse("package:unknown/a.dart")) is None
        assert package_config.resolve(ModuleUri.parse("dart:io")) is None

    def test_package_of_prefers_deepest_root(self, sample_app_path: Path):
        package_config = find_package_config(sample_app_path)

        circle = sample_app_path / "third_party" / "shapes" / "lib" / "src" / "circle.dart"
        assert package_config.package_of(circle).name == "shapes"
        assert package_config.package_of(sample_app_path / "bin" / "main.dart").name == "sample_app"
        assert package_config.package_of(Path("/nowhere/x.dart")) is None

    def test_absolute_file_root(self, temp_dir: Path):
        vendor = temp_dir / "vendor" / "dep"
        path = _write_config(temp_dir, [{"name": "dep", "rootUri": vendor.as_uri(), "packageUri": "lib/"}])

        package_config = PackageConfig.load(path)

        assert package_config["dep"].package_uri_root == vendor / "lib"

    def test_legacy_packages_file(self, temp_dir: Path):
        (temp_dir / ".packages").write_text("# Generated by pub\nfoo:../foo/lib/\nbar:file:///opt/bar/lib/\n")

        package_config = find_package_config(temp_dir)

        assert package_config is not None
        assert package_config.resolve(ModuleUri.parse("package:foo/foo.dart")) == (
            temp_dir.parent.resolve() / "foo" / "lib" / "foo.dart"
        )
        assert package_config["bar"].root == Path("/opt/bar")

    def test_json_config_wins_over_legacy(self, temp_dir: Path):
        (temp_dir / ".packages").write_text("legacy:lib/\n")
        _write_config(temp_dir, [{"name": "modern", "rootUri": "../"}])

        package_config = find_package_config(temp_dir)

        assert "modern" in package_config
        assert "legacy" not in package_config

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            json.dumps({"configVersion": 1, "packages": []}),
            json.dumps({"configVersion": 2}),
            json.dumps({"configVersion": 2, "packages": [{"rootUri": "../"}]}),
            json.dumps({"configVersion": 2, "packages": [{"name": "x", "rootUri": "http://host/x/"}]}),
        ],
    )
    def test_malformed_config_raises(self, temp_dir: Path, content: str):
        path = temp_dir / "package_config.json"
        path.write_text(content)

        with pytest.raises(PackageConfigError, match="Invalid package config"):
            PackageConfig.load(path)

    def test_malformed_legacy_line_raises(self, temp_dir: Path):
        path = temp_dir / ".packages"
        path.write_text("no separator here\n")

        with pytest.raises(PackageConfigError, match="line 1"):
            PackageConfig.load_legacy(path)


class TestFileSystemResolver:
    """Reading module sources from disk."""

    def test_resolves_package_and_file_uris(self, sample_app_path: Path, sample_main_uri: ModuleUri):
        resolver = FileSystemResolver.from_directory(sample_app_path / "bin")

        assert resolver.package_directory == sample_app_path
        assert "package:sample_app/app.dart" in resolver.resolve(sample_main_uri)
        assert "class Circle" in resolver.resolve(ModuleUri.parse("package:shapes/src/circle.dart"))

    def test_missing_and_builtin_modules(self, sample_app_path: Path):
        resolver = FileSystemResolver.from_directory(sample_app_path)

        assert resolver.resolve(ModuleUri.parse("dart:io")) is None
        assert resolver.resolve(ModuleUri.parse("package:sample_app/nope.dart")) is None
        assert resolver.resolve(ModuleUri.parse("package:nobody/a.dart")) is None

    def test_generated_overlay_for_package_uri(self, sample_app_path: Path):
        resolver = FileSystemResolver.from_directory(sample_app_path)
        uri = ModuleUri.parse("package:sample_app/src/generated_config.dart")

        assert resolver.locate(uri) == (
            sample_app_path / ".dart_tool" / "build" / "generated" / "sample_app" / "lib" / "src"
            / "generated_config.dart"
        )
        assert "import 'dart:convert';" in resolver.resolve(uri)

    def test_generated_overlay_for_file_uri(self, sample_app_path: Path):
        resolver = FileSystemResolver.from_directory(sample_app_path)
        uri = ModuleUri.from_path(sample_app_path / "lib" / "src" / "generated_config.dart")

        assert "configName" in resolver.resolve(uri)

    def test_without_package_config(self, temp_dir: Path):
        (temp_dir / "a.dart").write_text("import 'b.dart';\n")
        resolver = FileSystemResolver.from_directory(temp_dir)

        assert resolver.resolve(ModuleUri.from_path(temp_dir / "a.dart")) == "import 'b.dart';\n"

    def test_invalid_utf8_is_replaced(self, temp_dir: Path):
        (temp_dir / "bad.dart").write_bytes(b"import 'a.dart';\n// \xff\xfe\n")
        resolver = FileSystemResolver(package_directory=temp_dir)

        content = resolver.resolve(ModuleUri.from_path(temp_dir / "bad.dart"))
        assert content.startswith("import 'a.dart';")
        assert "�" in content


def test_in_memory_resolver():
    resolver = InMemoryResolver({"package:a/a.dart": "import 'b.dart';", ModuleUri.parse("dart:io"): ""})

    assert resolver.resolve(ModuleUri.parse("package:a/a.dart")) == "import 'b.dart';"
    assert resolver.resolve(ModuleUri.parse("dart:io")) == ""
    assert resolver.resolve(ModuleUri.parse("package:a/b.dart")) is None
