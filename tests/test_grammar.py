"""Tests for the Dart directive grammar."""

import threading

import pytest

from import_path.grammar import decode_string_literal, get_dart_parser, parse_unit


def test_parse_sample_unit_is_clean(sample_dart_code: str):
    """A well formed unit parses without errors."""
    result = parse_unit(sample_dart_code)

    assert result.clean, result.errors
    assert [d.keyword for d in result.directives if not d.is_namespace] == ["library", "part"]


def test_namespace_directives_in_source_order(sample_dart_code: str):
    result = parse_unit(sample_dart_code)

    uris = [d.uri for d in result.namespace_directives]
    assert uris == [
        "dart:async",
        "package:foo/foo.dart",
        "package:foo/deferred.dart",
        "src/api.dart",
        "src/stub.dart",
    ]
    assert [d.keyword for d in result.namespace_directives] == ["import", "import", "import", "export", "import"]


def test_directive_clauses(sample_dart_code: str):
    directives = parse_unit(sample_dart_code).namespace_directives

    assert directives[1].prefix == "foo"
    assert not directives[1].deferred
    assert directives[2].deferred
    assert directives[2].prefix == "lazy"

    conditional = directives[4]
    assert [(c.name, c.uri) for c in conditional.configurations] == [
        ("dart.library.io", "src/io.dart"),
        ("dart.library.js_interop", "src/web.dart"),
    ]
    assert conditional.line == 9


def test_configuration_with_value():
    result = parse_unit("import 'a.dart' if (app.mode == 'debug') 'a_debug.dart';\n")

    assert result.clean, result.errors
    (config,) = result.directives[0].configurations
    assert config.name == "app.mode"
    assert config.value == "debug"
    assert config.uri == "a_debug.dart"


def test_imports_in_comments_and_strings_are_ignored(sample_dart_code: str):
    uris = [d.uri for d in parse_unit(sample_dart_code).directives]

    assert "fake.dart" not in uris
    assert "not_a_directive.dart" not in uris


def test_interpolated_uri_has_no_literal_value():
    result = parse_unit("import 'package:$name/a.dart';\nimport 'b.dart';\n")

    assert [d.uri for d in result.directives] == [None, "b.dart"]
    assert result.directives[0].uri_text == "'package:$name/a.dart'"
    assert any("interpolation" in e.message for e in result.errors)


def test_empty_uri_is_kept_as_empty_string():
    result = parse_unit("import '';\nimport 'b.dart';\n")

    assert [d.uri for d in result.directives] == ["", "b.dart"]


def test_part_of_directive():
    result = parse_unit("part of 'library.dart';\n")

    assert result.directives[0].keyword == "part of"
    assert result.namespace_directives == []


@pytest.mark.parametrize(
    "source",
    [
        "import 'a.dart';\nvar s = 'unterminated;\n",
        "import 'a.dart';\nclass A {\n",
        "import 'a.dart';\nvoid f() => ;\n",
        "import 'a.dart';\n)\n",
    ],
)
def test_errors_are_reported_not_raised(source: str):
    result = parse_unit(source)

    assert not result.clean
    assert all(e.line >= 1 for e in result.errors)
    assert result.namespace_directives[0].uri == "a.dart"


def test_truncated_prefix_is_reported_unclean():
    source = "import 'a.dart';\nvar s = '''\nimport 'b.dart';\n''';\n"
    truncated = source[: source.index("b.dart") + len("b.dart';")]

    assert parse_unit(source).clean
    assert not parse_unit(truncated).clean


def test_parser_per_thread():
    parsers = []
    thread = threading.Thread(target=lambda: parsers.append(get_dart_parser()))
    thread.start()
    thread.join()

    assert get_dart_parser() is get_dart_parser()
    assert parsers[0] is not get_dart_parser()


class TestDecodeStringLiteral:
    """Literal values of URI strings."""

    @pytest.mark.parametrize(
        "text, value",
        [
            ("'dart:io'", "dart:io"),
            ('"package:a/b.dart"', "package:a/b.dart"),
            ("'package:foo/' \"bar.dart\"", "package:foo/bar.dart"),
            ("'''triple.dart'''", "triple.dart"),
            ("r'a\\b.dart'", "a\\b.dart"),
            ("'it\\'s.dart'", "it's.dart"),
            ("'caf\\u00e9.dart'", "café.dart"),
            ("'\\u{1F600}.dart'", "\U0001F600.dart"),
            ("'\\x41.dart'", "A.dart"),
            ("r'$raw.dart'", "$raw.dart"),
            ("''", ""),
        ],
    )
    def test_values(self, text, value):
        assert decode_string_literal(text) == value

    @pytest.mark.parametrize("text", ["'$name.dart'", "'${x}.dart'", "'open", "name", ""])
    def test_no_value(self, text):
        assert decode_string_literal(text) is None
