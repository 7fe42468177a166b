"""Endpoints de health check (liveness e readiness)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from config.settings import get_gemini_settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Resposta do health check."""

    status: str
    service: str
    timestamp: str
    version: str = "1.0.0"


@dataclass(frozen=True, slots=True)
class DependencyCheck:
    """Resultado de checagem de dependência."""

    status: Literal["ok", "failed"]
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {"status": self.status, "error": self.error}


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe: verifica se o serviço está rodando."""
    return HealthResponse(
        status="healthy",
        service="scribe-relay",
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready")
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness: credencial primária configurada e cliente HTTP aberto."""
    settings = getattr(request.app.state, "gemini_settings", None) or get_gemini_settings()
    credential_check = (
        DependencyCheck(status="ok")
        if settings.api_key
        else DependencyCheck(status="failed", error="not_configured")
    )
    http_client = getattr(request.app.state, "http_client", None)
    client_check = (
        DependencyCheck(status="ok")
        if http_client is not None and not http_client.is_closed
        else DependencyCheck(status="failed", error="not_initialized")
    )
    ready = credential_check.status == "ok" and client_check.status == "ok"

    payload = {
        "status": "ready" if ready else "not_ready",
        "checks": {
            "gemini_credential": credential_check.as_dict(),
            "http_client": client_check.as_dict(),
        },
        "timestamp": datetime.now(UTC).isoformat(),
    }
    return JSONResponse(content=payload, status_code=200 if ready else 503)
