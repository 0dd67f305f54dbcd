"""
transport.py - Framing Content-Length do protocolo base LSP

Propósito:
    Ler e escrever mensagens JSON-RPC delimitadas por cabeçalho
    sobre dois streams binários (tipicamente STDIN/STDOUT).

Componentes principais:
    - Transport: read_message / write_message sobre streams binários
    - TransportError: Framing corrompido (conexão deve ser fechada)
    - MessageParseError: Corpo não é UTF-8/JSON (framing continua íntegro)

Formato:
    Content-Length: <bytes>\\r\\n
    [Outros-Cabecalhos: ...]\\r\\n
    \\r\\n
    <corpo JSON em UTF-8>

Notas de implementação:
    - Fim de stream antes de qualquer cabeçalho = término normal (None)
    - Content-Length é o tamanho em BYTES do corpo, nunca em caracteres
    - Nome do cabeçalho é case-insensitive
    - Toda escrita recebe "jsonrpc": "2.0" e é descarregada imediatamente
    - Strings com surrogates isolados saem com escape \\uXXXX
"""

from __future__ import annotations

import json
import logging
from typing import Any, BinaryIO, Optional

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
CONTENT_LENGTH = "content-length"
HEADER_ENCODING = "ascii"
CONTENT_ENCODING = "utf-8"
CRLF = b"\r\n"
DEFAULT_MAX_CONTENT_LENGTH = 16 * 1024 * 1024


class TransportError(Exception):
    """Framing inválido: Content-Length ausente/ilegível ou stream truncado."""


class MessageParseError(Exception):
    """Corpo da mensagem lido por inteiro, mas não é JSON UTF-8 válido."""


def parse_content_length(header_block: bytes) -> int:
    """
    Extrai Content-Length de um bloco de cabeçalhos.

    Args:
        header_block: Bytes dos cabeçalhos, sem a linha em branco final

    Returns:
        Tamanho do corpo em bytes

    Raises:
        TransportError: Cabeçalho ausente, não numérico ou negativo
    """
    try:
        text = header_block.decode(HEADER_ENCODING)
    except UnicodeDecodeError as e:
        raise TransportError(f"Cabeçalho com bytes não-ASCII: {e}") from e

    for line in text.split("\r\n"):
        name, sep, value = line.partition(":")
        if not sep or name.strip().lower() != CONTENT_LENGTH:
            continue
        value = value.strip()
        if not value.isdigit():
            raise TransportError(f"Content-Length inválido: {value!r}")
        return int(value)

    raise TransportError("Cabeçalho Content-Length ausente")


class Transport:
    """Leitura/escrita de frames Content-Length sobre streams binários."""

    def __init__(
        self,
        input: BinaryIO,
        output: BinaryIO,
        max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH,
    ):
        self.input = input
        self.output = output
        self.max_content_length = max_content_length

    def _read_header_block(self) -> Optional[bytes]:
        lines = []
        while True:
            line = self.input.readline()
            if not line:
                if not lines:
                    return None
                raise TransportError("Fim de stream no meio dos cabeçalhos")
            if line == CRLF:
                if not lines:
                    # Linha em branco isolada antes do cabeçalho
                    continue
                return b"".join(lines).rstrip(b"\r\n")
            lines.append(line)

    def read_message(self) -> Optional[Any]:
        """
        Lê um frame completo e decodifica o corpo JSON.

        Returns:
            Valor JSON decodificado, ou None em fim de stream (término normal)

        Raises:
            TransportError: Framing corrompido; a conexão não é recuperável
            MessageParseError: Corpo inválido; o próximo frame ainda é legível
        """
        header_block = self._read_header_block()
        if header_block is None:
            return None

        length = parse_content_length(header_block)
        if length > self.max_content_length:
            raise TransportError(
                f"Mensagem de {length} bytes excede o limite de {self.max_content_length}"
            )

        body = self.input.read(length)
        if len(body) != length:
            raise TransportError(
                f"Corpo incompleto: esperados {length} bytes, lidos {len(body)}"
            )

        try:
            return json.loads(body.decode(CONTENT_ENCODING))
        except UnicodeDecodeError as e:
            raise MessageParseError(f"Corpo não é UTF-8 válido: {e}") from e
        except json.JSONDecodeError as e:
            raise MessageParseError(f"Corpo não é JSON válido: {e}") from e

    def write_message(self, payload: dict) -> None:
        """
        Serializa e envia uma mensagem com framing Content-Length.

        Args:
            payload: Mapeamento JSON-serializável (id/result/error/method...)
        """
        message = dict(payload)
        message["jsonrpc"] = JSONRPC_VERSION
        try:
            body = json.dumps(message, ensure_ascii=False).encode(CONTENT_ENCODING)
        except UnicodeEncodeError:
            # Surrogate isolado (ex: "\ud800" vindo do cliente) não tem UTF-8;
            # o escape \uXXXX do JSON preserva o valor
            body = json.dumps(message).encode(CONTENT_ENCODING)
        header = f"Content-Length: {len(body)}\r\n\r\n".encode(HEADER_ENCODING)
        self.output.write(header + body)
        self.output.flush()
        logger.debug(f"Mensagem enviada ({len(body)} bytes)")
