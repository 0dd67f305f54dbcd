"""
server.py - Servidor LSP principal (loop e máquina de estados)

Propósito:
    Ler frames do cliente, decodificar cada mensagem, atualizar o cache
    de documentos e responder textDocument/diagnostic com os erros e
    avisos do parser.

Componentes principais:
    - YarpLanguageServer: Estado do protocolo, dispatch e respostas
    - ServerState: UNINITIALIZED → ACTIVE → SHUTDOWN
    - build_capabilities: Descritor enviado em initialize
    - main: Ponto de entrada STDIO

Dependências críticas:
    - lsprotocol: Tipos e conversor (attrs → JSON camelCase)
    - yarp_lsp.transport: Framing Content-Length
    - yarp_lsp.converters: Diagnósticos

Exemplo de uso:
    python -m yarp_lsp

Notas de implementação:
    - Síncrono e single-thread: cada frame é processado por inteiro
      (inclusive o parser e a escrita) antes da próxima leitura
    - Fim do stream de entrada encerra o loop normalmente
    - shutdown responde {} (mesmo sem id) e encerra o loop
    - Framing corrompido levanta TransportError e fecha a conexão
    - JSON inválido, método desconhecido e parâmetros inválidos viram
      respostas de erro; o loop continua
"""

from __future__ import annotations

import logging
import sys
from enum import Enum
from typing import Any, BinaryIO, Optional

from lsprotocol.converters import get_converter
from lsprotocol.types import (
    WINDOW_LOG_MESSAGE,
    DiagnosticOptions,
    ErrorCodes,
    FullDocumentDiagnosticReport,
    InitializeResult,
    LogMessageParams,
    MessageType,
    ServerCapabilities,
    ServerInfo,
    TextDocumentSyncKind,
    TextDocumentSyncOptions,
)

from yarp_lsp import __version__
from yarp_lsp.config import ServerSettings
from yarp_lsp.converters import compute_diagnostics, report_to_json
from yarp_lsp.documents import DocumentStore
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
    Message,
    RequestId,
    Shutdown,
    UnknownMethod,
    decode,
)
from yarp_lsp.parser import SourceParser, TreeSitterParser
from yarp_lsp.transport import MessageParseError, Transport, TransportError

# Configuração de logging (stderr; stdout é o transporte)
logging.basicConfig(
    level=ServerSettings.from_env().log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SERVER_NAME = "yarp-lsp"

_converter = get_converter()


class ServerState(Enum):
    UNINITIALIZED = "uninitialized"
    ACTIVE = "active"
    SHUTDOWN = "shutdown"


def build_capabilities() -> ServerCapabilities:
    """Diagnósticos pull por documento e sincronização de texto completo."""
    return ServerCapabilities(
        text_document_sync=TextDocumentSyncOptions(
            open_close=True,
            change=TextDocumentSyncKind.Full,
        ),
        diagnostic_provider=DiagnosticOptions(
            inter_file_dependencies=False,
            workspace_diagnostics=False,
        ),
    )


class YarpLanguageServer:
    """
    Servidor LSP de diagnósticos YARP.

    Attributes:
        transport: Framing sobre os streams de entrada/saída
        documents: Único estado mutável compartilhado (texto por URI)
        parser: Colaborador externo; chamado uma vez por diagnóstico
        settings: Opções de processo e da sessão
        state: Estado do protocolo
    """

    def __init__(
        self,
        input: BinaryIO,
        output: BinaryIO,
        parser: Optional[SourceParser] = None,
        settings: Optional[ServerSettings] = None,
    ):
        self.settings = settings or ServerSettings()
        self.transport = Transport(
            input, output, max_content_length=self.settings.max_content_length
        )
        self.documents = DocumentStore()
        self._parser = parser
        self.state = ServerState.UNINITIALIZED
        self.shutdown_requested = False

    @property
    def parser(self) -> SourceParser:
        # Gramática carregada só no primeiro diagnóstico
        if self._parser is None:
            self._parser = TreeSitterParser()
        return self._parser

    # ------------------------------------------------------------------
    # Loop principal
    # ------------------------------------------------------------------

    def run(self) -> None:
        """
        Processa frames até shutdown/exit ou fim do stream de entrada.

        Raises:
            TransportError: Framing corrompido; a conexão deve ser fechada
        """
        logger.info("Aguardando mensagens do cliente...")
        while self.state is not ServerState.SHUTDOWN:
            try:
                raw = self.transport.read_message()
            except MessageParseError as e:
                logger.warning(f"Mensagem descartada: {e}")
                self.write_error(None, ErrorCodes.ParseError, str(e))
                continue

            if raw is None:
                logger.info("Fim do stream de entrada; encerrando")
                break

            self.handle(decode(raw))

    def handle(self, message: Message) -> None:
        """Despacha uma mensagem decodificada para o handler da variante."""
        if self.state is ServerState.UNINITIALIZED and not isinstance(
            message, (Initialize, Exit, Extension)
        ):
            logger.debug(f"Mensagem antes de initialize: {type(message).__name__}")

        handler = self._handlers[type(message)]
        handler(self, message)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _on_initialize(self, message: Initialize) -> None:
        self.documents.reset()
        self.settings.validation_enabled = True
        self.settings.apply_initialization_options(message.initialization_options)
        self.state = ServerState.ACTIVE
        logger.info("Sessão inicializada")

        result = InitializeResult(
            capabilities=build_capabilities(),
            server_info=ServerInfo(name=SERVER_NAME, version=__version__),
        )
        self.write_result(message.id, _converter.unstructure(result))

    def _on_initialized(self, message: Initialized) -> None:
        logger.debug("Cliente confirmou initialized")

    def _on_shutdown(self, message: Shutdown) -> None:
        self.documents.reset()
        self.write_result(message.id, {})
        self.shutdown_requested = True
        self.state = ServerState.SHUTDOWN
        logger.info("Shutdown recebido; encerrando loop")

    def _on_exit(self, message: Exit) -> None:
        logger.info("Exit recebido; encerrando loop")
        self.state = ServerState.SHUTDOWN

    def _on_did_open(self, message: DidOpen) -> None:
        self.documents.set(message.uri, message.text)
        logger.debug(f"Documento aberto: {message.uri}")

    def _on_did_change(self, message: DidChange) -> None:
        self.documents.set(message.uri, message.text)

    def _on_did_close(self, message: DidClose) -> None:
        self.documents.remove(message.uri)
        logger.debug(f"Documento fechado: {message.uri}")

    def _on_diagnostic(self, message: DiagnosticRequest) -> None:
        source = self.documents.get(message.uri)
        if source is None:
            logger.debug(f"Documento desconhecido: {message.uri}")
            self.write_result(message.id, None)
            return

        if not self.settings.validation_enabled:
            empty = FullDocumentDiagnosticReport(items=[])
            self.write_result(message.id, report_to_json(empty))
            return

        try:
            report = compute_diagnostics(source, self.parser)
        except Exception as e:
            logger.error(f"Erro ao calcular diagnósticos de {message.uri}: {e}", exc_info=True)
            self.write_error(message.id, ErrorCodes.InternalError, str(e))
            return

        self.write_result(message.id, report_to_json(report))

    def _on_extension(self, message: Extension) -> None:
        logger.debug(f"Método de extensão ignorado: {message.method}")

    def _on_unknown(self, message: UnknownMethod) -> None:
        logger.warning(f"Método não suportado: {message.method}")
        if message.is_request:
            self.write_error(
                message.id,
                ErrorCodes.MethodNotFound,
                f"Método não suportado: {message.method}",
            )
        else:
            self.log_message(f"Notificação ignorada: {message.method}")

    def _on_malformed(self, message: MalformedRequest) -> None:
        logger.warning(f"Mensagem inválida: {message.reason}")
        if message.is_request:
            self.write_error(message.id, message.code, message.reason)

    _handlers = {
        Initialize: _on_initialize,
        Initialized: _on_initialized,
        Shutdown: _on_shutdown,
        Exit: _on_exit,
        DidOpen: _on_did_open,
        DidChange: _on_did_change,
        DidClose: _on_did_close,
        DiagnosticRequest: _on_diagnostic,
        Extension: _on_extension,
        UnknownMethod: _on_unknown,
        MalformedRequest: _on_malformed,
    }

    # ------------------------------------------------------------------
    # Escrita
    # ------------------------------------------------------------------

    def write_result(self, request_id: RequestId, result: Any) -> None:
        self.transport.write_message({"id": request_id, "result": result})

    def write_error(self, request_id: RequestId, code: int, message: str) -> None:
        self.transport.write_message(
            {"id": request_id, "error": {"code": int(code), "message": message}}
        )

    def log_message(self, message: str, message_type: MessageType = MessageType.Log) -> None:
        """Envia window/logMessage ao cliente."""
        params = LogMessageParams(type=message_type, message=message)
        self.transport.write_message(
            {"method": WINDOW_LOG_MESSAGE, "params": _converter.unstructure(params)}
        )


def main() -> int:
    """
    Ponto de entrada principal do servidor.

    Inicia o servidor em modo STDIO. Retorna 0 após shutdown ou fim
    do stream, 1 em exit sem shutdown ou framing corrompido.
    """
    settings = ServerSettings.from_env()
    logger.info(f"Iniciando YARP Language Server {__version__}...")
    logger.info("Python executable: %s", sys.executable)

    ls = YarpLanguageServer(sys.stdin.buffer, sys.stdout.buffer, settings=settings)
    try:
        ls.run()
    except TransportError as e:
        logger.error(f"Conexão encerrada: {e}")
        return 1

    if ls.state is ServerState.SHUTDOWN and not ls.shutdown_requested:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
