"""Transporte HTTP direto para a API do Gemini.

Implementação concreta de IO; credencial enviada pelo header
`x-goog-api-key`. Os métodos `send_*` retornam a resposta crua (usados
pelo gateway para repassar status/corpo); os demais validam o status.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.protocols.gemini_transport import UpstreamHttpError

logger = logging.getLogger(__name__)

API_VERSION = "v1beta"
UPLOAD_URL_HEADER = "x-goog-upload-url"
_MAX_ERROR_BODY_CHARS = 2000


def _retry_after(response: httpx.Response) -> float | None:
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def raise_for_upstream_status(response: httpx.Response) -> None:
    """Levanta UpstreamHttpError para respostas não-2xx."""
    if response.is_success:
        return
    raise UpstreamHttpError(
        response.status_code,
        body=response.text[:_MAX_ERROR_BODY_CHARS],
        retry_after_seconds=_retry_after(response),
    )


def build_session_headers(*, mime_type: str, size_bytes: int) -> dict[str, str]:
    """Headers do início de sessão resumable (metadados, sem bytes)."""
    return {
        "X-Goog-Upload-Protocol": "resumable",
        "X-Goog-Upload-Command": "start",
        "X-Goog-Upload-Header-Content-Length": str(size_bytes),
        "X-Goog-Upload-Header-Content-Type": mime_type,
        "Content-Type": "application/json",
    }


def build_session_body(*, display_name: str, mime_type: str) -> dict[str, Any]:
    return {"file": {"display_name": display_name, "mime_type": mime_type}}


class GeminiDirectTransport:
    """Cliente HTTP para init/poll/generate direto na API do Gemini."""

    __slots__ = ("_base_url", "_http_client")

    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        self._http_client = http_client
        self._base_url = base_url.rstrip("/")

    def _auth_headers(self, credential: str) -> dict[str, str]:
        return {"x-goog-api-key": credential}

    async def send_start_upload(
        self,
        *,
        credential: str,
        display_name: str,
        mime_type: str,
        size_bytes: int,
        timeout: float,
    ) -> httpx.Response:
        headers = {
            **self._auth_headers(credential),
            **build_session_headers(mime_type=mime_type, size_bytes=size_bytes),
        }
        return await self._http_client.post(
            f"{self._base_url}/upload/{API_VERSION}/files",
            headers=headers,
            json=build_session_body(display_name=display_name, mime_type=mime_type),
            timeout=timeout,
        )

    async def send_get_file(self, *, credential: str, file_name: str) -> httpx.Response:
        return await self._http_client.get(
            f"{self._base_url}/{API_VERSION}/{file_name.lstrip('/')}",
            headers=self._auth_headers(credential),
        )

    async def send_generate(
        self,
        *,
        credential: str,
        model: str,
        payload: dict[str, Any],
        timeout: float,
    ) -> httpx.Response:
        return await self._http_client.post(
            f"{self._base_url}/{API_VERSION}/models/{model}:generateContent",
            headers={**self._auth_headers(credential), "Content-Type": "application/json"},
            json=payload,
            timeout=timeout,
        )

    async def start_upload_session(
        self,
        *,
        credential: str,
        display_name: str,
        mime_type: str,
        size_bytes: int,
        timeout: float,
    ) -> str:
        response = await self.send_start_upload(
            credential=credential,
            display_name=display_name,
            mime_type=mime_type,
            size_bytes=size_bytes,
            timeout=timeout,
        )
        raise_for_upstream_status(response)
        session_url = response.headers.get(UPLOAD_URL_HEADER)
        if not session_url:
            logger.warning("gemini_upload_url_missing", extra={"status_code": response.status_code})
            raise UpstreamHttpError(response.status_code, body="missing upload session url")
        return session_url

    async def get_file(self, *, credential: str, file_name: str) -> dict[str, Any]:
        response = await self.send_get_file(credential=credential, file_name=file_name)
        raise_for_upstream_status(response)
        return _json_object(response)

    async def generate_content(
        self,
        *,
        credential: str,
        model: str,
        payload: dict[str, Any],
        timeout: float,
    ) -> dict[str, Any]:
        response = await self.send_generate(
            credential=credential,
            model=model,
            payload=payload,
            timeout=timeout,
        )
        raise_for_upstream_status(response)
        return _json_object(response)


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError as exc:
        raise UpstreamHttpError(response.status_code, body="invalid json body") from exc
    if not isinstance(data, dict):
        raise UpstreamHttpError(response.status_code, body="unexpected json body")
    return data
