"""
converters.py - Conversão entre saída do parser e tipos LSP

Propósito:
    Converter ParsedIssue (offsets em bytes) para Diagnostic do LSP e
    montar o relatório "full" de textDocument/diagnostic.

Componentes principais:
    - PositionTranslator: offset em bytes → Position (memoizado)
    - convert_severity: tipo do problema → DiagnosticSeverity
    - build_diagnostic: ParsedIssue → Diagnostic
    - build_diagnostics: ParseResult → FullDocumentDiagnosticReport
    - compute_diagnostics: texto + parser → relatório
    - report_to_json: relatório → payload JSON de textDocument/diagnostic

Dependências críticas:
    - lsprotocol.types: Tipos do protocolo LSP

Notas de implementação:
    - Linha é 1-based (contagem de '\\n' no prefixo + 1)
    - Caractere é 0-based, contado em caracteres decodificados, não bytes
    - Memoização vale só para um snapshot do texto: um
      PositionTranslator por cálculo de diagnósticos, descartado depois
    - Erros sempre antes dos avisos, cada grupo na ordem do parser
"""

from __future__ import annotations

import logging
from typing import Dict, List

from lsprotocol.converters import get_converter
from lsprotocol.types import (
    Diagnostic,
    DiagnosticSeverity,
    FullDocumentDiagnosticReport,
    Position,
    Range,
)

from yarp_lsp.parser import ParsedIssue, ParseResult, SourceParser

logger = logging.getLogger(__name__)

SOURCE_ENCODING = "utf-8"

_converter = get_converter()


class PositionTranslator:
    """Traduz offsets em bytes de um texto fixo para Position."""

    def __init__(self, source: str):
        self._data = source.encode(SOURCE_ENCODING)
        self._positions: Dict[int, Position] = {}

    def position_at(self, offset: int) -> Position:
        """
        Converte um offset em bytes para Position.

        Args:
            offset: Offset na sequência UTF-8 do texto (0 = início)

        Returns:
            Position com line 1-based e character 0-based

        Notas:
            - "abc\\ndef": 0 → (1, 0), 3 → (1, 3), 4 → (2, 0)
            - Offset no meio de um caractere multibyte conta o
              fragmento como um caractere de substituição
        """
        cached = self._positions.get(offset)
        if cached is not None:
            return cached

        prefix = self._data[: max(0, offset)].decode(SOURCE_ENCODING, errors="replace")
        line = prefix.count("\n") + 1
        character = len(prefix) - prefix.rfind("\n") - 1

        position = Position(line=line, character=character)
        self._positions[offset] = position
        return position

    def range_for(self, start_offset: int, end_offset: int) -> Range:
        return Range(
            start=self.position_at(start_offset),
            end=self.position_at(end_offset),
        )

    def __len__(self) -> int:
        return len(self._positions)


def convert_severity(is_error: bool) -> DiagnosticSeverity:
    """Erro → DiagnosticSeverity.Error (1), aviso → Warning (2)."""
    return DiagnosticSeverity.Error if is_error else DiagnosticSeverity.Warning


def build_diagnostic(
    issue: ParsedIssue,
    severity: DiagnosticSeverity,
    translator: PositionTranslator,
) -> Diagnostic:
    return Diagnostic(
        range=translator.range_for(issue.start_offset, issue.end_offset),
        message=issue.message,
        severity=severity,
    )


def build_diagnostics(source: str, result: ParseResult) -> FullDocumentDiagnosticReport:
    """
    Converte todos os erros/avisos de um ParseResult.

    Args:
        source: Texto exatamente como foi entregue ao parser
        result: Saída do parser

    Returns:
        Relatório "full" com erros primeiro, depois avisos

    Nota:
        - A ordem independe da posição no texto
        - Offsets repetidos são traduzidos uma única vez
    """
    translator = PositionTranslator(source)
    items: List[Diagnostic] = []

    for error in result.errors:
        items.append(build_diagnostic(error, convert_severity(True), translator))
    for warning in result.warnings:
        items.append(build_diagnostic(warning, convert_severity(False), translator))

    logger.debug(
        f"{len(result.errors)} erros, {len(result.warnings)} avisos "
        f"({len(translator)} offsets distintos)"
    )
    return FullDocumentDiagnosticReport(items=items)


def compute_diagnostics(source: str, parser: SourceParser) -> FullDocumentDiagnosticReport:
    """Executa o parser uma vez sobre o texto e monta o relatório."""
    return build_diagnostics(source, parser.parse(source))


def report_to_json(report: FullDocumentDiagnosticReport) -> dict:
    """Serializa o relatório no formato {kind, items} (chaves camelCase)."""
    return {
        "kind": report.kind,
        "items": [_converter.unstructure(item) for item in report.items],
    }
