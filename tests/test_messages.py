"""
test_messages.py - Testes da decodificação de mensagens

Propósito:
    Validar que cada corpo JSON vira a variante tipada correta e que
    formas inválidas/métodos desconhecidos viram variantes explícitas.
"""

from __future__ import annotations

import pytest
from lsprotocol.types import ErrorCodes

from yarp_lsp.messages import (
    DiagnosticRequest,
    DidChange,
    DidClose,
    DidOpen,
    Exit,
    Extension,
    Initialize,
    Initialized,
    MalformedRequest,
    Shutdown,
    UnknownMethod,
    decode,
    is_extension_method,
)

URI = "file:///a.rb"


def test_initialize():
    message = decode({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}})
    assert message == Initialize(id=1)


def test_initialize_options():
    message = decode(
        {
            "id": 1,
            "method": "initialize",
            "params": {"initializationOptions": {"validation": {"enabled": False}}},
        }
    )
    assert message.initialization_options == {"validation": {"enabled": False}}


def test_initialize_without_id_is_malformed():
    message = decode({"method": "initialize"})
    assert isinstance(message, MalformedRequest)
    assert message.is_request is False


def test_initialized():
    assert decode({"method": "initialized", "params": {}}) == Initialized()


def test_shutdown_with_and_without_id():
    assert decode({"id": 7, "method": "shutdown"}) == Shutdown(id=7)
    assert decode({"method": "shutdown"}) == Shutdown(id=None)


def test_exit():
    assert decode({"method": "exit"}) == Exit()


def test_did_open():
    message = decode(
        {
            "method": "textDocument/didOpen",
            "params": {
                "textDocument": {"uri": URI, "languageId": "ruby", "version": 1, "text": "x = 1"}
            },
        }
    )
    assert message == DidOpen(uri=URI, text="x = 1")


def test_did_change_uses_first_change_only():
    message = decode(
        {
            "method": "textDocument/didChange",
            "params": {
                "textDocument": {"uri": URI, "version": 2},
                "contentChanges": [{"text": "new"}, {"text": "ignored"}],
            },
        }
    )
    assert message == DidChange(uri=URI, text="new")


def test_did_change_without_changes_is_malformed():
    message = decode(
        {
            "method": "textDocument/didChange",
            "params": {"textDocument": {"uri": URI}, "contentChanges": []},
        }
    )
    assert isinstance(message, MalformedRequest)
    assert message.code == ErrorCodes.InvalidParams
    assert message.method == "textDocument/didChange"


def test_did_close():
    message = decode({"method": "textDocument/didClose", "params": {"textDocument": {"uri": URI}}})
    assert message == DidClose(uri=URI)


def test_diagnostic_request():
    message = decode(
        {"id": "r1", "method": "textDocument/diagnostic", "params": {"textDocument": {"uri": URI}}}
    )
    assert message == DiagnosticRequest(id="r1", uri=URI)


def test_diagnostic_without_uri_is_invalid_params():
    message = decode({"id": 3, "method": "textDocument/diagnostic", "params": {}})
    assert isinstance(message, MalformedRequest)
    assert message.code == ErrorCodes.InvalidParams
    assert message.id == 3
    assert message.is_request is True


@pytest.mark.parametrize("method", ["$/cancelRequest", "$/setTrace", "$/progress"])
def test_extension(method):
    assert decode({"method": method, "params": {}}) == Extension(method=method)


def test_bare_extension_prefix_is_unknown():
    assert not is_extension_method("$/")
    assert isinstance(decode({"method": "$/"}), UnknownMethod)


def test_unknown_request():
    message = decode({"id": 9, "method": "textDocument/hover", "params": {}})
    assert message == UnknownMethod(method="textDocument/hover", id=9, is_request=True)


def test_unknown_notification():
    message = decode({"method": "workspace/didChangeConfiguration", "params": {}})
    assert message == UnknownMethod(method="workspace/didChangeConfiguration")


@pytest.mark.parametrize("raw", [[], [{"method": "initialize"}], "x", 1, None, {"id": 1}])
def test_invalid_envelope(raw):
    message = decode(raw)
    assert isinstance(message, MalformedRequest)
    assert message.code == ErrorCodes.InvalidRequest


def test_invalid_envelope_keeps_id():
    message = decode({"id": 4, "method": 12})
    assert message.id == 4
    assert message.is_request is True


def test_invalid_envelope_always_answered():
    message = decode([])
    assert message.id is None
    assert message.is_request is True
