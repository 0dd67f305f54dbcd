"""
messages.py - Decodificação de mensagens JSON-RPC em variantes tipadas

Propósito:
    Transformar cada corpo JSON recebido em exatamente uma variante
    tipada, validando a forma dos parâmetros no momento da decodificação.
    O dispatcher trabalha só com as variantes, nunca com o dict cru.

Componentes principais:
    - decode: dict cru → variante
    - Initialize, Initialized, Shutdown, Exit
    - DidOpen, DidChange, DidClose, DiagnosticRequest
    - Extension: métodos "$/..." (ignorados)
    - UnknownMethod: método fora do conjunto conhecido
    - MalformedRequest: corpo sem a forma exigida pelo método

Notas de implementação:
    - Formas validadas com yarp_lsp.patterns (ANY = chave obrigatória)
    - didChange honra só a primeira entrada de contentChanges
    - shutdown tolera id ausente
    - Variantes são descartadas após o processamento do frame
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from lsprotocol.types import (
    EXIT,
    INITIALIZE,
    INITIALIZED,
    SHUTDOWN,
    TEXT_DOCUMENT_DIAGNOSTIC,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
    ErrorCodes,
)

from yarp_lsp.patterns import ANY, pattern

EXTENSION_PREFIX = "$/"

RequestId = Union[int, str, None]


@dataclass(frozen=True)
class Initialize:
    id: RequestId
    initialization_options: Any = None


@dataclass(frozen=True)
class Initialized:
    pass


@dataclass(frozen=True)
class Shutdown:
    id: RequestId = None


@dataclass(frozen=True)
class Exit:
    pass


@dataclass(frozen=True)
class DidOpen:
    uri: str
    text: str


@dataclass(frozen=True)
class DidChange:
    uri: str
    text: str


@dataclass(frozen=True)
class DidClose:
    uri: str


@dataclass(frozen=True)
class DiagnosticRequest:
    id: RequestId
    uri: str


@dataclass(frozen=True)
class Extension:
    method: str


@dataclass(frozen=True)
class UnknownMethod:
    method: str
    id: RequestId = None
    is_request: bool = False


@dataclass(frozen=True)
class MalformedRequest:
    reason: str
    code: int
    id: RequestId = None
    is_request: bool = False
    method: Optional[str] = None


Message = Union[
    Initialize,
    Initialized,
    Shutdown,
    Exit,
    DidOpen,
    DidChange,
    DidClose,
    DiagnosticRequest,
    Extension,
    UnknownMethod,
    MalformedRequest,
]

_ENVELOPE = pattern({"method": str})
_REQUEST = pattern({"id": ANY})
_TEXT_DOCUMENT = {"textDocument": {"uri": str}}

_SHAPES = {
    INITIALIZE: pattern({"id": ANY}),
    TEXT_DOCUMENT_DID_OPEN: pattern(
        {"params": {"textDocument": {"uri": str, "text": str}}}
    ),
    TEXT_DOCUMENT_DID_CHANGE: pattern(
        {"params": {**_TEXT_DOCUMENT, "contentChanges": [{"text": str}]}}
    ),
    TEXT_DOCUMENT_DID_CLOSE: pattern({"params": _TEXT_DOCUMENT}),
    TEXT_DOCUMENT_DIAGNOSTIC: pattern({"id": ANY, "params": _TEXT_DOCUMENT}),
}


def is_extension_method(method: str) -> bool:
    return method.startswith(EXTENSION_PREFIX) and len(method) > len(EXTENSION_PREFIX)


def decode(raw: Any) -> Message:
    """
    Decodifica um corpo JSON-RPC em variante tipada.

    Args:
        raw: Valor JSON já decodificado pelo transporte

    Returns:
        Variante correspondente; formas inválidas viram MalformedRequest
        e métodos desconhecidos viram UnknownMethod (nunca levanta)
    """
    is_request = _REQUEST.matches(raw)
    request_id = raw.get("id") if is_request else None

    if not _ENVELOPE.matches(raw):
        # Invalid Request sempre recebe resposta (id null se ausente)
        return MalformedRequest(
            reason="Mensagem deve ser um objeto com 'method' string",
            code=ErrorCodes.InvalidRequest,
            id=request_id,
            is_request=True,
        )

    method = raw["method"]
    shape = _SHAPES.get(method)
    if shape is not None and not shape.matches(raw):
        return MalformedRequest(
            reason=f"Parâmetros inválidos para {method}",
            code=ErrorCodes.InvalidParams,
            id=request_id,
            is_request=is_request,
            method=method,
        )

    if method == INITIALIZE:
        params = raw.get("params")
        options = params.get("initializationOptions") if isinstance(params, dict) else None
        return Initialize(id=request_id, initialization_options=options)
    if method == INITIALIZED:
        return Initialized()
    if method == SHUTDOWN:
        return Shutdown(id=request_id)
    if method == EXIT:
        return Exit()

    if method == TEXT_DOCUMENT_DID_OPEN:
        document = raw["params"]["textDocument"]
        return DidOpen(uri=document["uri"], text=document["text"])
    if method == TEXT_DOCUMENT_DID_CHANGE:
        params = raw["params"]
        return DidChange(
            uri=params["textDocument"]["uri"],
            text=params["contentChanges"][0]["text"],
        )
    if method == TEXT_DOCUMENT_DID_CLOSE:
        return DidClose(uri=raw["params"]["textDocument"]["uri"])
    if method == TEXT_DOCUMENT_DIAGNOSTIC:
        return DiagnosticRequest(id=request_id, uri=raw["params"]["textDocument"]["uri"])

    if is_extension_method(method):
        return Extension(method=method)

    return UnknownMethod(method=method, id=request_id, is_request=is_request)
