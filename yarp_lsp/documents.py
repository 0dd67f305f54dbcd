"""
documents.py - Cache de texto-fonte por URI de documento

Propósito:
    Manter o texto atual de cada documento conhecido pelo servidor.
    Documentos entram via didOpen/didChange ou por leitura preguiçosa
    do disco na primeira referência.

Componentes principais:
    - DocumentStore: get (get-or-load), set, remove, reset

Notas de implementação:
    - No máximo um texto por URI; ausência significa "desconhecido"
      (None), nunca string vazia
    - didChange substitui o texto inteiro (full sync), nunca mescla
    - reset() é chamado em initialize e shutdown: a vida dos documentos
      fica limitada a uma sessão do protocolo
    - URI → caminho via pygls.uris.to_fs_path (percent-decode, sem scheme)
    - Qualquer OSError ao consultar ou ler o disco vira "desconhecido"
    - Arquivo com UTF-8 inválido é decodificado com U+FFFD e registrado
      em log; offsets passam a referir-se ao texto substituído
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pygls.uris import to_fs_path

logger = logging.getLogger(__name__)


class DocumentStore:
    """Texto-fonte em cache por URI."""

    def __init__(self):
        self._documents: dict[str, str] = {}

    def get(self, uri: str) -> Optional[str]:
        """Retorna o texto em cache, carregando do disco se necessário, ou None."""
        text = self._documents.get(uri)
        if text is not None:
            return text

        text = self.load(uri)
        if text is not None:
            self._documents[uri] = text
        return text

    def load(self, uri: str) -> Optional[str]:
        """
        Lê o conteúdo do arquivo referenciado pela URI, sem tocar no cache.

        Returns:
            Texto do arquivo, ou None se o caminho não existe ou é ilegível
        """
        path_str = to_fs_path(uri)
        if not path_str:
            return None

        path = Path(path_str)
        try:
            if not path.is_file():
                logger.debug(f"Documento não encontrado no disco: {uri}")
                return None
            data = path.read_bytes()
        except OSError as e:
            # ENAMETOOLONG, EACCES etc.: documento indisponível, não erro
            logger.warning(f"Falha ao ler {path}: {e}")
            return None

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning(
                f"{path} não é UTF-8 válido ({e.reason} no byte {e.start}); "
                "bytes inválidos substituídos por U+FFFD"
            )
            text = data.decode("utf-8", errors="replace")

        logger.info(f"Documento carregado do disco: {uri}")
        return text

    def set(self, uri: str, text: str) -> None:
        """Armazena (ou sobrescreve) o texto do documento."""
        self._documents[uri] = text

    def remove(self, uri: str) -> None:
        """Remove o documento do cache; URI desconhecida é ignorada."""
        if self._documents.pop(uri, None) is not None:
            logger.debug(f"Documento removido do cache: {uri}")

    def reset(self) -> None:
        """Esvazia o cache."""
        if self._documents:
            logger.info(f"Cache de documentos limpo ({len(self._documents)} entradas)")
        self._documents.clear()

    def has(self, uri: str) -> bool:
        """Verifica se há texto em cache, sem carregar do disco."""
        return uri in self._documents

    def __len__(self) -> int:
        return len(self._documents)
