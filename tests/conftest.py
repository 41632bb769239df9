"""Pytest configuration and fixtures for import-path tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator, List

import pytest

from import_path.models import ModuleUri
from import_path.resolver import InMemoryResolver


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Point the user config file at an empty temporary location."""
    monkeypatch.setattr("import_path.config.CONFIG_FILE", tmp_path / "home" / "config.toml")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_app_path() -> Path:
    """Get path to the sample Dart package."""
    return (Path(__file__).parent / "fixtures" / "sample_app").resolve()


@pytest.fixture
def sample_main_uri(sample_app_path: Path) -> ModuleUri:
    return ModuleUri.from_path(sample_app_path / "bin" / "main.dart")


@pytest.fixture
def messages() -> List[str]:
    """Collects everything sent to a message printer."""
    return []


def graph_resolver(graph: Dict[str, List[str]]) -> InMemoryResolver:
    """Build an in-memory package from an adjacency list of ``package:g/`` names."""
    sources = {}
    for name, imports in graph.items():
        lines = [f"import '{target}.dart';" for target in imports]
        lines.append(f"class Module_{name} {{}}")
        sources[f"package:g/{name}.dart"] = "\n".join(lines) + "\n"
    return InMemoryResolver(sources)


@pytest.fixture
def make_graph():
    """Factory for in-memory graphs, see :func:`graph_resolver`."""
    return graph_resolver


@pytest.fixture
def sample_dart_code() -> str:
    """Sample Dart unit for parser tests."""
    return '''// Copyright header.
@TestOn('vm')
library sample;

import 'dart:async';
import 'package:foo/foo.dart' as foo show Bar, Baz;
import "package:foo/deferred.dart" deferred as lazy;
export 'src/api.dart' hide internal;
import 'src/stub.dart'
    if (dart.library.io) 'src/io.dart'
    if (dart.library.js_interop) 'src/web.dart';

part 'sample.g.dart';

/* block comment with import 'fake.dart'; */
class Sample {
  final String text = "import 'not_a_directive.dart';";
  String greet(String name) => 'Hello ${name.toUpperCase()}!';
}
'''
