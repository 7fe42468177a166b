"""Settings do serviço de inferência Gemini.

Credenciais, identificadores de modelo, roteamento de mídia e timeouts.
Tudo lido uma vez do ambiente e tratado como string opaca pelo core.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

TransportMode = Literal["direct", "gateway"]

GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_PRIMARY_MODEL = "gemini-2.5-pro"
DEFAULT_FAST_MODEL = "gemini-2.5-flash"
DEFAULT_INLINE_THRESHOLD_BYTES = 18 * 1024 * 1024


@dataclass(frozen=True)
class GeminiSettings:
    """Configurações do Gemini.

    Attributes:
        api_key: Credencial primária
        api_key_fallback: Credencial secundária (opcional)
        primary_model: Modelo de alta qualidade
        fast_model: Modelo rápido/alta disponibilidade
        api_base_url: Base da API (sem barra final)
        transport: "direct" (chave no cliente) ou "gateway" (chave no servidor)
        gateway_url: Base do Proxy Gateway quando transport=gateway
        inline_threshold_bytes: Abaixo disso a mídia vai inline (base64)
        max_media_size_mb: Tamanho máximo aceito
        init_timeout_seconds: Timeout do início de sessão de upload
        inline_generation_timeout_seconds: Timeout de geração com mídia inline
        reference_generation_timeout_seconds: Timeout de geração com mídia enviada
        submission_deadline_seconds: Teto geral aplicado à transferência de bytes
    """

    api_key: str = ""
    api_key_fallback: str = ""
    primary_model: str = DEFAULT_PRIMARY_MODEL
    fast_model: str = DEFAULT_FAST_MODEL
    api_base_url: str = GEMINI_API_BASE_URL
    transport: TransportMode = "direct"
    gateway_url: str = ""
    inline_threshold_bytes: int = DEFAULT_INLINE_THRESHOLD_BYTES
    max_media_size_mb: int = 500
    init_timeout_seconds: float = 30.0
    inline_generation_timeout_seconds: float = 300.0
    reference_generation_timeout_seconds: float = 600.0
    submission_deadline_seconds: float = 3600.0

    @property
    def has_fallback_key(self) -> bool:
        """Retorna True se há credencial secundária configurada."""
        return bool(self.api_key_fallback)

    def validate(self) -> list[str]:
        """Valida configurações do Gemini.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.transport == "direct" and not self.api_key:
            errors.append("GEMINI_API_KEY não configurado com GEMINI_TRANSPORT=direct")

        if self.transport == "gateway" and not self.gateway_url:
            errors.append("GEMINI_GATEWAY_URL obrigatório com GEMINI_TRANSPORT=gateway")

        if not self.primary_model or not self.fast_model:
            errors.append("AI_MODEL_PRIMARY e AI_MODEL_FAST não podem ser vazios")

        if self.inline_threshold_bytes < 0:
            errors.append("GEMINI_INLINE_THRESHOLD_BYTES deve ser >= 0")

        if self.max_media_size_mb <= 0:
            errors.append("MEDIA_MAX_SIZE_MB deve ser > 0")

        timeouts = (
            self.init_timeout_seconds,
            self.inline_generation_timeout_seconds,
            self.reference_generation_timeout_seconds,
            self.submission_deadline_seconds,
        )
        if any(value <= 0 for value in timeouts):
            errors.append("Timeouts do Gemini devem ser > 0")

        return errors


def _parse_transport(value: str) -> TransportMode:
    return "gateway" if value.strip().lower() == "gateway" else "direct"


def _load_gemini_from_env() -> GeminiSettings:
    """Carrega GeminiSettings de variáveis de ambiente."""
    return GeminiSettings(
        api_key=os.getenv("GEMINI_API_KEY", ""),
        api_key_fallback=os.getenv("GEMINI_API_KEY_FALLBACK", ""),
        primary_model=os.getenv("AI_MODEL_PRIMARY", DEFAULT_PRIMARY_MODEL),
        fast_model=os.getenv("AI_MODEL_FAST", DEFAULT_FAST_MODEL),
        api_base_url=os.getenv("GEMINI_API_BASE_URL", GEMINI_API_BASE_URL).rstrip("/"),
        transport=_parse_transport(os.getenv("GEMINI_TRANSPORT", "direct")),
        gateway_url=os.getenv("GEMINI_GATEWAY_URL", "").rstrip("/"),
        inline_threshold_bytes=int(
            os.getenv("GEMINI_INLINE_THRESHOLD_BYTES", str(DEFAULT_INLINE_THRESHOLD_BYTES))
        ),
        max_media_size_mb=int(os.getenv("MEDIA_MAX_SIZE_MB", "500")),
        init_timeout_seconds=float(os.getenv("GEMINI_INIT_TIMEOUT_SECONDS", "30")),
        inline_generation_timeout_seconds=float(
            os.getenv("GEMINI_INLINE_GENERATION_TIMEOUT_SECONDS", "300")
        ),
        reference_generation_timeout_seconds=float(
            os.getenv("GEMINI_REFERENCE_GENERATION_TIMEOUT_SECONDS", "600")
        ),
        submission_deadline_seconds=float(os.getenv("SUBMISSION_DEADLINE_SECONDS", "3600")),
    )


@lru_cache(maxsize=1)
def get_gemini_settings() -> GeminiSettings:
    """Retorna instância cacheada de GeminiSettings."""
    return _load_gemini_from_env()
