"""Transporte via Proxy Gateway (credenciais ficam no servidor).

Init, poll e generate são POSTs JSON para os endpoints do gateway; o
argumento `credential` é ignorado. O gateway repassa status e corpo
upstream, então a classificação de erros é a mesma do modo direto.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.infra.gemini.transport import _json_object, raise_for_upstream_status
from app.protocols.gemini_transport import UpstreamHttpError

logger = logging.getLogger(__name__)

INIT_PATH = "/api/gemini-upload-init"
POLL_PATH = "/api/gemini-poll"
GENERATE_PATH = "/api/gemini"


class GeminiGatewayTransport:
    """Cliente HTTP para os três endpoints do Proxy Gateway."""

    __slots__ = ("_gateway_url", "_http_client")

    def __init__(self, http_client: httpx.AsyncClient, gateway_url: str) -> None:
        self._http_client = http_client
        self._gateway_url = gateway_url.rstrip("/")

    async def _post(
        self,
        path: str,
        body: dict[str, Any],
        timeout: float | None = None,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"json": body}
        if timeout is not None:
            kwargs["timeout"] = timeout
        response = await self._http_client.post(f"{self._gateway_url}{path}", **kwargs)
        raise_for_upstream_status(response)
        return _json_object(response)

    async def start_upload_session(
        self,
        *,
        credential: str,
        display_name: str,
        mime_type: str,
        size_bytes: int,
        timeout: float,
    ) -> str:
        data = await self._post(
            INIT_PATH,
            {"displayName": display_name, "mimeType": mime_type, "size": size_bytes},
            timeout,
        )
        upload_url = data.get("uploadUrl")
        if not isinstance(upload_url, str) or not upload_url:
            logger.warning("gateway_upload_url_missing")
            raise UpstreamHttpError(500, body="missing upload session url")
        return upload_url

    async def get_file(self, *, credential: str, file_name: str) -> dict[str, Any]:
        return await self._post(POLL_PATH, {"fileName": file_name})

    async def generate_content(
        self,
        *,
        credential: str,
        model: str,
        payload: dict[str, Any],
        timeout: float,
    ) -> dict[str, Any]:
        return await self._post(GENERATE_PATH, {"model": model, "payload": payload}, timeout)
