"""Endpoints do Proxy Gateway do Gemini.

Endpoints (POST; OPTIONS responde 200; demais métodos 405):
- /api/gemini-upload-init: inicia sessão resumable, devolve {uploadUrl}
- /api/gemini-poll: status do arquivo enviado (repasse do upstream)
- /api/gemini: geração (repasse do upstream)

Ordem de checagem: método → corpo (400) → rate limit por IP (429) →
credencial do servidor (500) → upstream. Uma falha upstream 429/5xx é
repetida uma vez com a credencial secundária.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from api.routes.gemini.schemas import GenerateBody, PollBody, UploadInitBody, parse_body
from app.infra.gemini.transport import UPLOAD_URL_HEADER, GeminiDirectTransport
from config.logging import log_fallback
from config.settings import get_gemini_settings

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from app.protocols.rate_limiter import RateLimiterProtocol
    from config.settings import GeminiSettings

logger = logging.getLogger(__name__)

router = APIRouter()

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
NO_STORE_HEADERS = {"Cache-Control": "no-store"}
_MAX_ERROR_CHARS = 2000


def get_client_ip(request: Request) -> str:
    """Primeiro IP de X-Forwarded-For; senão o endereço do peer."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=NO_STORE_HEADERS)


def _settings(request: Request) -> GeminiSettings:
    return getattr(request.app.state, "gemini_settings", None) or get_gemini_settings()


def _transport(request: Request, settings: GeminiSettings) -> GeminiDirectTransport:
    return GeminiDirectTransport(request.app.state.http_client, settings.api_base_url)


def _limiter(request: Request, endpoint: str) -> RateLimiterProtocol:
    return request.app.state.rate_limiters[endpoint]


def _precheck(request: Request) -> Response | None:
    """OPTIONS responde 200; métodos que não são POST, 405."""
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=NO_STORE_HEADERS)
    if request.method != "POST":
        return _error(405, "Method not allowed")
    return None


def _admit(request: Request, endpoint: str) -> JSONResponse | None:
    client_ip = get_client_ip(request)
    if not _limiter(request, endpoint).allow(client_ip):
        logger.warning("gateway_rate_limited", extra={"endpoint": endpoint})
        return _error(429, "Rate limit exceeded.")
    return None


async def _with_fallback(
    settings: GeminiSettings,
    endpoint: str,
    call: Callable[[str], Awaitable[httpx.Response]],
) -> httpx.Response:
    response = await call(settings.api_key)
    status = response.status_code
    if not response.is_success and settings.api_key_fallback and (status == 429 or status >= 500):
        log_fallback(logger, f"gateway_{endpoint}", f"upstream_{status}")
        response = await call(settings.api_key_fallback)
    logger.info(
        "gateway_upstream_response",
        extra={"endpoint": endpoint, "status_code": response.status_code},
    )
    return response


def _passthrough(response: httpx.Response) -> Response:
    return Response(
        content=response.content,
        status_code=response.status_code,
        media_type=response.headers.get("content-type", "application/json"),
        headers=NO_STORE_HEADERS,
    )


@router.api_route("/api/gemini-upload-init", methods=ALL_METHODS)
async def upload_init(request: Request) -> Response:
    """Inicia sessão de upload resumable com a credencial do servidor."""
    early = _precheck(request)
    if early is not None:
        return early

    body = parse_body(await request.body(), UploadInitBody)
    if body is None:
        return _error(400, "Missing mimeType or size.")

    rejected = _admit(request, "init")
    if rejected is not None:
        return rejected

    settings = _settings(request)
    if not settings.api_key:
        return _error(500, "Missing GEMINI_API_KEY server secret.")

    transport = _transport(request, settings)
    try:
        response = await _with_fallback(
            settings,
            "init",
            lambda key: transport.send_start_upload(
                credential=key,
                display_name=body.display_name or "uploaded_media",
                mime_type=body.mime_type or "",
                size_bytes=int(body.size or 0),
                timeout=settings.init_timeout_seconds,
            ),
        )
    except httpx.HTTPError as exc:
        logger.warning(
            "gateway_upstream_failed",
            extra={"endpoint": "init", "error_type": type(exc).__name__},
        )
        return _error(500, "Upload session init failed.")

    if not response.is_success:
        return _error(response.status_code, response.text[:_MAX_ERROR_CHARS])

    upload_url = response.headers.get(UPLOAD_URL_HEADER)
    if not upload_url:
        return _error(500, "Missing upload session URL.")
    return JSONResponse({"uploadUrl": upload_url}, headers=NO_STORE_HEADERS)


@router.api_route("/api/gemini-poll", methods=ALL_METHODS)
async def poll_file(request: Request) -> Response:
    """Consulta o estado de processamento de um arquivo enviado."""
    early = _precheck(request)
    if early is not None:
        return early

    body = parse_body(await request.body(), PollBody)
    if body is None:
        return _error(400, "Missing fileName.")

    rejected = _admit(request, "poll")
    if rejected is not None:
        return rejected

    settings = _settings(request)
    if not settings.api_key:
        return _error(500, "Missing GEMINI_API_KEY server secret.")

    transport = _transport(request, settings)
    try:
        response = await _with_fallback(
            settings,
            "poll",
            lambda key: transport.send_get_file(credential=key, file_name=body.file_name or ""),
        )
    except httpx.HTTPError as exc:
        logger.warning(
            "gateway_upstream_failed",
            extra={"endpoint": "poll", "error_type": type(exc).__name__},
        )
        return _error(500, "Polling failed.")
    return _passthrough(response)


@router.api_route("/api/gemini", methods=ALL_METHODS)
async def generate(request: Request) -> Response:
    """Executa uma geração com a credencial do servidor."""
    early = _precheck(request)
    if early is not None:
        return early

    body = parse_body(await request.body(), GenerateBody)
    if body is None:
        return _error(400, "Missing model or payload.")

    rejected = _admit(request, "generate")
    if rejected is not None:
        return rejected

    settings = _settings(request)
    if not settings.api_key:
        return _error(500, "Missing GEMINI_API_KEY server secret.")

    transport = _transport(request, settings)
    try:
        response = await _with_fallback(
            settings,
            "generate",
            lambda key: transport.send_generate(
                credential=key,
                model=body.model or "",
                payload=body.payload or {},
                timeout=settings.reference_generation_timeout_seconds,
            ),
        )
    except httpx.HTTPError as exc:
        logger.warning(
            "gateway_upstream_failed",
            extra={"endpoint": "generate", "error_type": type(exc).__name__},
        )
        return _error(500, "Proxy request failed.")
    return _passthrough(response)
