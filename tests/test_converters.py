"""
test_converters.py - Testes para conversão ParsedIssue → LSP

Propósito:
    Validar tradução de offsets em bytes para Position (linha 1-based,
    caractere 0-based em caracteres), severidades, ordem erros → avisos
    e o payload JSON do relatório.

Componentes testados:
    - PositionTranslator
    - convert_severity
    - build_diagnostic / build_diagnostics
    - compute_diagnostics
    - report_to_json
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from lsprotocol.types import DiagnosticSeverity, Position, Range

from yarp_lsp.converters import (
    PositionTranslator,
    build_diagnostic,
    build_diagnostics,
    compute_diagnostics,
    convert_severity,
    report_to_json,
)
from yarp_lsp.parser import ParsedIssue, ParseResult


class TestPositionTranslator:
    @pytest.mark.parametrize(
        "offset, line, character",
        [
            (0, 1, 0),
            (3, 1, 3),  # o próprio '\n'
            (4, 2, 0),
            (6, 2, 2),
        ],
    )
    def test_abc_def(self, offset, line, character):
        translator = PositionTranslator("abc\ndef")
        assert translator.position_at(offset) == Position(line=line, character=character)

    def test_offset_zero_with_leading_newline(self):
        assert PositionTranslator("\nabc").position_at(0) == Position(line=1, character=0)

    def test_counts_characters_not_bytes(self):
        source = "é = 1\nçã = 2"
        translator = PositionTranslator(source)
        # 'é' ocupa 2 bytes; offset 2 é o espaço logo depois
        assert translator.position_at(2) == Position(line=1, character=1)
        # "çã" ocupa 4 bytes
        second_line = len("é = 1\n".encode("utf-8"))
        assert translator.position_at(second_line + 4) == Position(line=2, character=2)

    def test_offset_past_end(self):
        translator = PositionTranslator("ab")
        assert translator.position_at(10) == Position(line=1, character=2)

    def test_memoized_per_offset(self):
        translator = PositionTranslator("abc\ndef")
        first = translator.position_at(5)
        assert translator.position_at(5) is first
        translator.position_at(0)
        assert len(translator) == 2

    def test_range_for(self):
        translator = PositionTranslator("abc\ndef")
        assert translator.range_for(1, 5) == Range(
            start=Position(line=1, character=1),
            end=Position(line=2, character=1),
        )


def test_convert_severity():
    assert convert_severity(True) == DiagnosticSeverity.Error == 1
    assert convert_severity(False) == DiagnosticSeverity.Warning == 2


def test_build_diagnostic():
    translator = PositionTranslator("x = (\n")
    diagnostic = build_diagnostic(
        ParsedIssue(4, 5, "unexpected end"), DiagnosticSeverity.Error, translator
    )
    assert diagnostic.message == "unexpected end"
    assert diagnostic.severity == DiagnosticSeverity.Error
    assert diagnostic.range.start == Position(line=1, character=4)
    assert diagnostic.range.end == Position(line=1, character=5)


class TestBuildDiagnostics:
    def test_clean_source(self):
        report = build_diagnostics("x = 1", ParseResult())
        assert report.kind == "full"
        assert report.items == []

    def test_errors_precede_warnings(self):
        source = "a = 1\nb = (\n"
        result = ParseResult(
            errors=[ParsedIssue(10, 11, "erro")],
            warnings=[ParsedIssue(2, 3, "aviso")],
        )
        report = build_diagnostics(source, result)

        assert [d.message for d in report.items] == ["erro", "aviso"]
        assert [d.severity for d in report.items] == [
            DiagnosticSeverity.Error,
            DiagnosticSeverity.Warning,
        ]

    def test_original_order_within_groups(self):
        result = ParseResult(
            errors=[ParsedIssue(5, 6, "e2"), ParsedIssue(0, 1, "e1")],
            warnings=[ParsedIssue(3, 3, "w2"), ParsedIssue(1, 1, "w1")],
        )
        report = build_diagnostics("abcdefgh", result)
        assert [d.message for d in report.items] == ["e2", "e1", "w2", "w1"]


def test_compute_diagnostics_calls_parser_once():
    parser = MagicMock()
    parser.parse.return_value = ParseResult(errors=[ParsedIssue(0, 1, "x")])

    report = compute_diagnostics("abc", parser)

    parser.parse.assert_called_once_with("abc")
    assert len(report.items) == 1


def test_report_to_json():
    result = ParseResult(
        errors=[ParsedIssue(4, 6, "erro")],
        warnings=[ParsedIssue(0, 0, "aviso")],
    )
    payload = report_to_json(build_diagnostics("abc\ndef", result))

    assert payload == {
        "kind": "full",
        "items": [
            {
                "range": {
                    "start": {"line": 2, "character": 0},
                    "end": {"line": 2, "character": 2},
                },
                "message": "erro",
                "severity": 1,
            },
            {
                "range": {
                    "start": {"line": 1, "character": 0},
                    "end": {"line": 1, "character": 0},
                },
                "message": "aviso",
                "severity": 2,
            },
        ],
    }


def test_report_to_json_empty():
    assert report_to_json(build_diagnostics("", ParseResult())) == {
        "kind": "full",
        "items": [],
    }
