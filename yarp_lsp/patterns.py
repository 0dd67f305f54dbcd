"""
patterns.py - Casamento estrutural de valores JSON aninhados

Propósito:
    Validar a forma de mapas/sequências aninhados (mensagens JSON-RPC
    decodificadas) contra padrões literais, sem desestruturar à mão.

Componentes principais:
    - ANY: Curinga — a chave/posição deve existir, valor livre
    - ShapePattern: Padrão de mapa (chave → padrão)
    - TuplePattern: Padrão de sequência (prefixo posicional)
    - LiteralPattern: Escalar, tipo ou regex
    - pattern: Constrói padrões a partir de dict/list/escalares

Exemplo de uso:
    from yarp_lsp.patterns import ANY, pattern

    did_open = pattern({"params": {"textDocument": {"uri": str, "text": str}}})
    did_open.matches(message)  # True / False

Notas de implementação:
    - ShapePattern ignora chaves extras no valor
    - Chave ausente nunca casa, nem com LiteralPattern(None): o valor
      precisa trazer a chave, mesmo que com null
    - TuplePattern casa só o prefixo; itens excedentes são ignorados
    - Literal com tipo usa isinstance; com regex compilada usa search
    - Curto-circuito no primeiro descasamento
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Tuple


class _AnyValue:
    """Marcador curinga: exige presença, não restringe o valor."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ANY"


ANY = _AnyValue()


class Pattern(ABC):
    """Predicado estrutural sobre um valor JSON decodificado."""

    @abstractmethod
    def matches(self, value: Any) -> bool:
        ...

    def __call__(self, value: Any) -> bool:
        return self.matches(value)


@dataclass(frozen=True)
class LiteralPattern(Pattern):
    expected: Any

    def matches(self, value: Any) -> bool:
        expected = self.expected
        if isinstance(expected, type):
            return isinstance(value, expected)
        if isinstance(expected, re.Pattern):
            return isinstance(value, str) and expected.search(value) is not None
        return expected == value


@dataclass(frozen=True)
class ShapePattern(Pattern):
    fields: Tuple[Tuple[str, Any], ...]

    def matches(self, value: Any) -> bool:
        if not isinstance(value, Mapping):
            return False
        for key, expected in self.fields:
            if key not in value:
                return False
            if expected is ANY:
                continue
            if not expected.matches(value[key]):
                return False
        return True


@dataclass(frozen=True)
class TuplePattern(Pattern):
    items: Tuple[Any, ...]

    def matches(self, value: Any) -> bool:
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            return False
        if len(value) < len(self.items):
            return False
        for index, expected in enumerate(self.items):
            if expected is ANY:
                continue
            if not expected.matches(value[index]):
                return False
        return True


def pattern(value: Any) -> Any:
    """
    Converte um valor literal aninhado em Pattern.

    Args:
        value: dict → ShapePattern, list/tuple → TuplePattern,
               ANY → ANY, Pattern → ele mesmo, demais → LiteralPattern

    Returns:
        Pattern (ou ANY no nível raiz)
    """
    if value is ANY or isinstance(value, Pattern):
        return value
    if isinstance(value, dict):
        return ShapePattern(
            tuple((key, pattern(child)) for key, child in value.items())
        )
    if isinstance(value, (list, tuple)):
        return TuplePattern(tuple(pattern(child) for child in value))
    return LiteralPattern(value)


def matches(expected: Any, value: Any) -> bool:
    """Atalho: constrói o padrão (se necessário) e testa o valor."""
    built = pattern(expected)
    if built is ANY:
        return True
    return built.matches(value)
