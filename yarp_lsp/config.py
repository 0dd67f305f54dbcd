"""
config.py - Configuração do servidor

Propósito:
    Centralizar as opções do servidor: nível de log e limite de frame
    (variáveis de ambiente) e habilitação da validação
    (initializationOptions do cliente).

Variáveis de ambiente:
    - YARP_LSP_LOG_LEVEL: DEBUG, INFO (padrão), WARNING, ERROR
    - YARP_LSP_MAX_CONTENT_LENGTH: tamanho máximo do corpo em bytes

initializationOptions:
    {"validation": {"enabled": false}}
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from yarp_lsp.transport import DEFAULT_MAX_CONTENT_LENGTH

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "YARP_LSP_LOG_LEVEL"
MAX_CONTENT_LENGTH_ENV = "YARP_LSP_MAX_CONTENT_LENGTH"


@dataclass
class ServerSettings:
    log_level: str = "INFO"
    max_content_length: int = DEFAULT_MAX_CONTENT_LENGTH
    validation_enabled: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        """Lê as opções de processo; valores inválidos caem no padrão."""
        environ = os.environ if environ is None else environ
        settings = cls()

        level = environ.get(LOG_LEVEL_ENV, "").strip().upper()
        if level:
            if isinstance(logging.getLevelName(level), int):
                settings.log_level = level
            else:
                logger.warning(f"{LOG_LEVEL_ENV} inválido: {level!r}")

        raw_limit = environ.get(MAX_CONTENT_LENGTH_ENV, "").strip()
        if raw_limit:
            if raw_limit.isdigit() and int(raw_limit) > 0:
                settings.max_content_length = int(raw_limit)
            else:
                logger.warning(f"{MAX_CONTENT_LENGTH_ENV} inválido: {raw_limit!r}")

        return settings

    def apply_initialization_options(self, options: Any) -> None:
        """Aplica initializationOptions enviadas em initialize."""
        if not isinstance(options, dict):
            return
        validation = options.get("validation")
        if isinstance(validation, dict) and isinstance(validation.get("enabled"), bool):
            self.validation_enabled = validation["enabled"]
            logger.info(
                f"Validação {'habilitada' if self.validation_enabled else 'desabilitada'}"
            )
