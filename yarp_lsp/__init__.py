"""
yarp_lsp - Language Server Protocol para diagnósticos YARP

Propósito:
    Servidor LSP mínimo que expõe erros e avisos de sintaxe do parser
    para editores compatíveis, via diagnósticos pull (textDocument/diagnostic).

Componentes principais:
    - server: Loop principal e máquina de estados do protocolo
    - transport: Framing Content-Length sobre STDIO
    - documents: Cache de texto por URI
    - converters: Offset em bytes → Position, ParsedIssue → Diagnostic
    - messages: Decodificação de mensagens em variantes tipadas
    - patterns: Casamento estrutural de mapas/sequências aninhados

Dependências críticas:
    - lsprotocol: Tipos do protocolo LSP
    - pygls: Conversão URI → caminho no filesystem
    - tree-sitter: Parser padrão (gramática Ruby)

Exemplo de uso:
    python -m yarp_lsp
"""
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from pathlib import Path


def _version_from_pyproject() -> str:
    """Versão declarada no pyproject.toml (checkout sem instalação)."""
    try:
        lines = (Path(__file__).parent.parent / "pyproject.toml").read_text(
            encoding="utf-8"
        ).splitlines()
    except OSError:
        return "0.0.0"
    for line in lines:
        key, sep, value = line.partition("=")
        if sep and key.strip() == "version":
            return value.strip().strip('"')
    return "0.0.0"


try:
    __version__ = _pkg_version("yarp-lsp")
except PackageNotFoundError:
    __version__ = _version_from_pyproject()

__all__ = ["server", "transport", "documents", "converters", "messages", "patterns"]
