"""
test_parser.py - Testes do parser padrão (tree-sitter, gramática Ruby)

Propósito:
    Validar que nós ERROR/MISSING viram ParsedIssue com offsets em bytes
    e que código válido não gera problemas.
"""

from __future__ import annotations

import pytest

pytest.importorskip("tree_sitter")
pytest.importorskip("tree_sitter_ruby")

from yarp_lsp.converters import compute_diagnostics  # noqa: E402
from yarp_lsp.parser import (  # noqa: E402
    ParserConfigurationError,
    ParseResult,
    TreeSitterParser,
    load_language,
)


@pytest.fixture(scope="module")
def parser():
    return TreeSitterParser()


def test_clean_source(parser):
    result = parser.parse("x = 1\nputs x\n")
    assert result == ParseResult()


def test_syntax_error_is_reported(parser):
    source = "def foo(\n  1 +\nend\n"
    result = parser.parse(source)

    assert result.errors
    assert result.warnings == []
    size = len(source.encode("utf-8"))
    for issue in result.errors:
        assert 0 <= issue.start_offset <= issue.end_offset <= size
        assert issue.message


def test_offsets_within_utf8_bounds(parser):
    source = "s = \"ççç\"\nx = (\n"
    result = parser.parse(source)

    assert result.errors
    size = len(source.encode("utf-8"))
    assert max(issue.end_offset for issue in result.errors) <= size


def test_end_to_end_with_translator(parser):
    report = compute_diagnostics("x = 1\ny = (\n", parser)
    assert report.kind == "full"
    assert report.items
    assert all(item.severity == 1 for item in report.items)
    assert all(item.range.start.line >= 1 for item in report.items)


def test_missing_grammar():
    with pytest.raises(ParserConfigurationError):
        load_language("tree_sitter_linguagem_inexistente")
