"""Settings da política de retry/fallback entre tentativas de geração."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class FallbackSettings:
    """Configurações do orquestrador de retry/fallback.

    Attributes:
        max_attempts: Teto rígido de tentativas de geração por submissão
        retry_delay_seconds: Atraso base; espera = tentativa * atraso base
        credential_switch_attempt: A partir desta tentativa usa a credencial secundária
        infra_failures_before_demote: Falhas de infra consecutivas que rebaixam o modelo
    """

    max_attempts: int = 3
    retry_delay_seconds: float = 3.0
    credential_switch_attempt: int = 2
    infra_failures_before_demote: int = 2

    def validate(self) -> list[str]:
        """Valida configurações de fallback.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.max_attempts < 1:
            errors.append("FALLBACK_MAX_ATTEMPTS deve ser >= 1")

        if self.retry_delay_seconds < 0:
            errors.append("FALLBACK_RETRY_DELAY_SECONDS deve ser >= 0")

        if self.credential_switch_attempt < 1:
            errors.append("FALLBACK_CREDENTIAL_SWITCH_ATTEMPT deve ser >= 1")

        if self.infra_failures_before_demote < 1:
            errors.append("FALLBACK_INFRA_FAILURES_BEFORE_DEMOTE deve ser >= 1")

        return errors


def _load_fallback_from_env() -> FallbackSettings:
    """Carrega FallbackSettings de variáveis de ambiente."""
    return FallbackSettings(
        max_attempts=int(os.getenv("FALLBACK_MAX_ATTEMPTS", "3")),
        retry_delay_seconds=float(os.getenv("FALLBACK_RETRY_DELAY_SECONDS", "3")),
        credential_switch_attempt=int(os.getenv("FALLBACK_CREDENTIAL_SWITCH_ATTEMPT", "2")),
        infra_failures_before_demote=int(os.getenv("FALLBACK_INFRA_FAILURES_BEFORE_DEMOTE", "2")),
    )


@lru_cache(maxsize=1)
def get_fallback_settings() -> FallbackSettings:
    """Retorna instância cacheada de FallbackSettings."""
    return _load_fallback_from_env()
