"""Entrypoint ASGI do Proxy Gateway do Scribe Relay.

Uso (produção):
    uvicorn app.app:app --host 0.0.0.0 --port 8080

Uso (desenvolvimento):
    uvicorn app.app:app --reload --host 0.0.0.0 --port 8080
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.routes import create_api_router
from app.bootstrap import (
    create_gateway_rate_limiters,
    create_http_client,
    initialize_app,
    validate_runtime_settings,
)
from app.observability import get_correlation_id, reset_correlation_id, set_correlation_id
from config.logging import get_logger
from config.settings import get_gateway_settings, get_gemini_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.responses import Response

# Inicializar logging ANTES de qualquer import que use logger
initialize_app()

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Gerencia ciclo de vida da aplicação.

    Startup: valida settings, abre o cliente HTTP compartilhado e cria
    os rate limiters por endpoint.
    Shutdown: fecha o cliente HTTP.
    """
    logger.info("app_starting", extra={"service": "scribe-relay"})
    validate_runtime_settings()
    app.state.gemini_settings = get_gemini_settings()
    app.state.http_client = create_http_client()
    app.state.rate_limiters = create_gateway_rate_limiters()

    yield

    logger.info("app_shutting_down", extra={"service": "scribe-relay"})
    await app.state.http_client.aclose()


async def correlation_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Propaga X-Correlation-Id (ou gera um) nos logs e no header da resposta."""
    token = set_correlation_id(request.headers.get(CORRELATION_HEADER))
    try:
        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = get_correlation_id()
    finally:
        reset_correlation_id(token)
    return response


def create_app() -> FastAPI:
    """Cria e configura a aplicação FastAPI.

    Returns:
        Aplicação FastAPI configurada.
    """
    fastapi_app = FastAPI(
        title="Scribe Relay",
        description="Proxy Gateway do cliente de transcrição Gemini",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    fastapi_app.middleware("http")(correlation_middleware)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=list(get_gateway_settings().allowed_origins),
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type", CORRELATION_HEADER],
    )

    fastapi_app.include_router(create_api_router())

    logger.info("app_configured", extra={"service": "scribe-relay"})

    return fastapi_app


# Aplicação ASGI exposta para uvicorn
app = create_app()


def main() -> None:
    """Entrypoint para execução direta (desenvolvimento)."""
    import uvicorn

    logger.info("Starting Scribe Relay gateway in development mode")
    uvicorn.run(
        "app.app:app",
        host="0.0.0.0",
        port=8080,
        reload=True,
    )


if __name__ == "__main__":
    main()
