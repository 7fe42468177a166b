"""Factory do cliente HTTP compartilhado (httpx)."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
DEFAULT_TIMEOUT_SECONDS = 60.0
MAX_CONNECTIONS = 20


def create_http_client(
    *,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Cria o httpx.AsyncClient usado por todos os transportes.

    O chamador é dono do ciclo de vida (`aclose()` no shutdown).
    `transport` permite injetar httpx.MockTransport em testes.
    """
    client = httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_seconds, connect=DEFAULT_CONNECT_TIMEOUT_SECONDS),
        limits=httpx.Limits(max_connections=MAX_CONNECTIONS),
        transport=transport,
    )
    logger.info("http_client_created", extra={"timeout_seconds": timeout_seconds})
    return client
