"""Factories de dependências: transporte, clientes Gemini, use case e limiters.

Conecta implementações concretas aos protocolos a partir das settings.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.domain.attempts import CredentialTier, ModelTier
from app.infra.gemini.gateway_transport import GeminiGatewayTransport
from app.infra.gemini.generation_client import GenerationClient
from app.infra.gemini.transport import GeminiDirectTransport
from app.infra.gemini.upload_client import ResumableUploadClient
from app.infra.stores.memory_rate_limiter import FixedWindowRateLimiter
from app.services.retry_orchestrator import RetryOrchestrator
from app.use_cases.transcription import TranscribeMediaUseCase
from config.settings import (
    get_fallback_settings,
    get_gateway_settings,
    get_gemini_settings,
    get_upload_poll_settings,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    import httpx

    from app.protocols.gemini_transport import GeminiTransportProtocol
    from app.protocols.rate_limiter import RateLimiterProtocol
    from config.settings import (
        FallbackSettings,
        GatewaySettings,
        GeminiSettings,
        UploadPollSettings,
    )

logger = logging.getLogger(__name__)

GATEWAY_ENDPOINTS = ("init", "poll", "generate")


def create_credential_selector(settings: GeminiSettings) -> Callable[[CredentialTier], str]:
    """Seletor tier -> credencial.

    No modo gateway as credenciais ficam no servidor: sempre string vazia.
    """
    if settings.transport == "gateway":
        return lambda tier: ""

    credentials = {
        CredentialTier.PRIMARY: settings.api_key,
        CredentialTier.SECONDARY: settings.api_key_fallback,
    }
    return credentials.__getitem__


def create_gemini_transport(
    http_client: httpx.AsyncClient,
    settings: GeminiSettings,
) -> GeminiTransportProtocol:
    """Transporte direto ou via gateway conforme GEMINI_TRANSPORT."""
    if settings.transport == "gateway":
        logger.info("gemini_transport_selected", extra={"transport": "gateway"})
        return GeminiGatewayTransport(http_client, settings.gateway_url)
    logger.info("gemini_transport_selected", extra={"transport": "direct"})
    return GeminiDirectTransport(http_client, settings.api_base_url)


def create_transcription_use_case(
    http_client: httpx.AsyncClient,
    *,
    gemini_settings: GeminiSettings | None = None,
    fallback_settings: FallbackSettings | None = None,
    poll_settings: UploadPollSettings | None = None,
) -> TranscribeMediaUseCase:
    """Monta o pipeline completo de transcrição.

    Settings explícitas têm precedência sobre as do ambiente (testes).
    """
    gemini_settings = gemini_settings or get_gemini_settings()
    fallback_settings = fallback_settings or get_fallback_settings()
    poll_settings = poll_settings or get_upload_poll_settings()

    transport = create_gemini_transport(http_client, gemini_settings)
    credentials = create_credential_selector(gemini_settings)
    upload_client = ResumableUploadClient(
        transport,
        http_client,
        poll_settings=poll_settings,
        init_timeout_seconds=gemini_settings.init_timeout_seconds,
        transfer_deadline_seconds=gemini_settings.submission_deadline_seconds,
    )
    orchestrator = RetryOrchestrator(
        GenerationClient(transport),
        fallback_settings,
        models={
            ModelTier.PRIMARY: gemini_settings.primary_model,
            ModelTier.FAST: gemini_settings.fast_model,
        },
        credentials=credentials,
        has_secondary_credential=(
            gemini_settings.transport == "direct" and gemini_settings.has_fallback_key
        ),
    )
    return TranscribeMediaUseCase(
        settings=gemini_settings,
        upload_client=upload_client,
        orchestrator=orchestrator,
        credentials=credentials,
    )


def create_gateway_rate_limiters(
    settings: GatewaySettings | None = None,
) -> dict[str, RateLimiterProtocol]:
    """Um limiter em memória por endpoint do gateway (limites distintos)."""
    settings = settings or get_gateway_settings()
    limits = {
        "init": settings.init_limit,
        "poll": settings.poll_limit,
        "generate": settings.generate_limit,
    }
    return {
        endpoint: FixedWindowRateLimiter(limits[endpoint], settings.window_seconds)
        for endpoint in GATEWAY_ENDPOINTS
    }
