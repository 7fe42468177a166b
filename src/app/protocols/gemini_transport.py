"""Protocolo de transporte para as operações remotas do Gemini.

Duas implementações: acesso direto (credencial no cliente) e via Proxy
Gateway (credencial no servidor). A transferência de bytes sempre vai
direto para a URL de sessão, fora deste contrato.
"""

from __future__ import annotations

from typing import Any, Protocol


class UpstreamHttpError(Exception):
    """Resposta não-2xx do serviço remoto (ou do gateway).

    Attributes:
        status_code: Status HTTP recebido
        body: Corpo textual (truncado, sem credenciais)
        retry_after_seconds: Valor do header Retry-After, quando numérico
    """

    def __init__(
        self,
        status_code: int,
        body: str = "",
        retry_after_seconds: float | None = None,
    ) -> None:
        super().__init__(f"upstream_http_{status_code}")
        self.status_code = status_code
        self.body = body
        self.retry_after_seconds = retry_after_seconds


class GeminiTransportProtocol(Protocol):
    """Contrato das três operações de rede: init, poll e generate.

    Respostas não-2xx levantam UpstreamHttpError; falhas de conexão e
    timeout propagam como httpx.TransportError.
    """

    async def start_upload_session(
        self,
        *,
        credential: str,
        display_name: str,
        mime_type: str,
        size_bytes: int,
        timeout: float,
    ) -> str:
        """Inicia sessão resumable e retorna a URL da sessão."""
        ...

    async def get_file(self, *, credential: str, file_name: str) -> dict[str, Any]:
        """Retorna o recurso de mídia (inclui `state`)."""
        ...

    async def generate_content(
        self,
        *,
        credential: str,
        model: str,
        payload: dict[str, Any],
        timeout: float,
    ) -> dict[str, Any]:
        """Executa uma geração e retorna o JSON de resposta."""
        ...
