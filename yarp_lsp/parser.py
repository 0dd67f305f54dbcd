"""
parser.py - Fronteira com o parser externo

Propósito:
    Definir o contrato do parser usado pelos diagnósticos e fornecer
    a implementação padrão baseada em tree-sitter (gramática Ruby).

Componentes principais:
    - ParsedIssue: Erro/aviso com offsets em bytes e mensagem
    - ParseResult: Erros e avisos, cada um em ordem de origem
    - SourceParser: Protocolo parse(source) → ParseResult
    - TreeSitterParser: Implementação padrão (nós ERROR/MISSING)

Notas de implementação:
    - Offsets sempre referem-se à sequência UTF-8 do texto original
    - O parser não retém nem modifica o texto recebido
    - tree-sitter não emite avisos; warnings fica vazio
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from importlib import import_module
from typing import List, Protocol

from tree_sitter import Language, Parser

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE_PACKAGE = "tree_sitter_ruby"


@dataclass(frozen=True)
class ParsedIssue:
    """Problema reportado pelo parser (offsets em bytes, end >= start)."""

    start_offset: int
    end_offset: int
    message: str


@dataclass
class ParseResult:
    """Saída do parser: erros e avisos em ordem de origem."""

    errors: List[ParsedIssue] = field(default_factory=list)
    warnings: List[ParsedIssue] = field(default_factory=list)


class SourceParser(Protocol):
    def parse(self, source: str) -> ParseResult:
        ...


class ParserConfigurationError(Exception):
    """Gramática tree-sitter ausente ou inválida."""


def load_language(package: str) -> Language:
    """
    Carrega uma gramática tree-sitter a partir do pacote Python.

    Args:
        package: Nome importável que expõe language() (ex: tree_sitter_ruby)

    Raises:
        ParserConfigurationError: Pacote ausente ou sem language()
    """
    try:
        module = import_module(package)
    except ModuleNotFoundError as e:
        raise ParserConfigurationError(
            f"Gramática tree-sitter '{package}' não instalada. "
            f"Instale com: pip install {package.replace('_', '-')}"
        ) from e

    factory = getattr(module, "language", None)
    if not callable(factory):
        raise ParserConfigurationError(
            f"Pacote '{package}' não expõe language()"
        )
    return Language(factory())


class TreeSitterParser:
    """Parser padrão: reporta nós ERROR e MISSING da árvore sintática."""

    def __init__(self, language_package: str = DEFAULT_LANGUAGE_PACKAGE):
        self.language_package = language_package
        self._parser = Parser(load_language(language_package))

    def parse(self, source: str) -> ParseResult:
        tree = self._parser.parse(source.encode("utf-8"))
        result = ParseResult()

        root = tree.root_node
        if not root.has_error:
            return result

        stack = [root]
        while stack:
            node = stack.pop()
            if node.is_missing:
                result.errors.append(
                    ParsedIssue(node.start_byte, node.end_byte, f"missing {node.type}")
                )
            elif node.type == "ERROR":
                result.errors.append(
                    ParsedIssue(node.start_byte, node.end_byte, _error_message(node))
                )
            elif node.has_error:
                # Ordem de origem: filhos empilhados do último para o primeiro
                stack.extend(reversed(node.children))

        logger.debug(f"tree-sitter: {len(result.errors)} erros de sintaxe")
        return result


def _error_message(node) -> str:
    if node.child_count == 0:
        return "syntax error"
    return f"syntax error, unexpected {node.children[0].type}"
