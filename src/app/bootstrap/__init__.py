"""Bootstrap da aplicação: inicialização e wiring.

Composition root: configura logging, valida settings e expõe as
factories que conectam implementações concretas aos protocolos.

Uso:
    from app.bootstrap import initialize_app, create_transcription_use_case

    initialize_app()
    async with create_http_client() as http_client:
        use_case = create_transcription_use_case(http_client)
"""

from __future__ import annotations

import logging
import os

from app.bootstrap.clients import create_http_client
from app.bootstrap.dependencies import (
    create_credential_selector,
    create_gateway_rate_limiters,
    create_gemini_transport,
    create_transcription_use_case,
)
from app.observability import get_correlation_id
from config.logging import configure_logging
from config.settings import (
    get_base_settings,
    get_fallback_settings,
    get_gateway_settings,
    get_gemini_settings,
    get_upload_poll_settings,
)

SERVICE_NAME = "scribe_relay"

DEFAULT_LOG_LEVEL = "INFO"
STRICT_VALIDATION_ENVS = {"staging", "production"}

logger = logging.getLogger(__name__)

__all__ = [
    "SERVICE_NAME",
    "create_credential_selector",
    "create_gateway_rate_limiters",
    "create_gemini_transport",
    "create_http_client",
    "create_transcription_use_case",
    "initialize_app",
    "validate_runtime_settings",
]


def initialize_app() -> None:
    """Configura logging estruturado JSON com correlation_id.

    Deve ser chamada uma vez no início do processo (gateway ou CLI).
    """
    log_level = os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()

    configure_logging(
        level=log_level,
        service_name=SERVICE_NAME,
        correlation_id_getter=get_correlation_id,
    )


def validate_runtime_settings() -> None:
    """Valida settings obrigatórias no startup.

    Em `staging`/`production` falha rápido para impedir boot inválido.
    Em `development`/`test` mantém alerta sem bloquear execução local.
    """
    environment = get_base_settings().environment
    strict_mode = environment in STRICT_VALIDATION_ENVS
    errors: list[str] = []

    sources = (
        ("base", get_base_settings()),
        ("gemini", get_gemini_settings()),
        ("upload_poll", get_upload_poll_settings()),
        ("fallback", get_fallback_settings()),
        ("gateway", get_gateway_settings()),
    )
    for name, settings in sources:
        errors.extend(f"{name}: {error}" for error in settings.validate())

    if not errors:
        logger.info(
            "settings_validated",
            extra={"component": "bootstrap", "result": "ok", "environment": environment},
        )
        return

    logger.warning(
        "settings_validation_failed",
        extra={
            "component": "bootstrap",
            "result": "failed",
            "environment": environment,
            "error_count": len(errors),
            "errors": errors,
        },
    )
    if strict_mode:
        details = "\n".join(f"- {error}" for error in errors)
        raise RuntimeError(f"Configuração inválida para {environment}:\n{details}")
