"""Settings do loop de polling de processamento após o upload."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class UploadPollSettings:
    """Cadência e teto do polling de processamento.

    Attributes:
        fast_interval_seconds: Intervalo dos primeiros polls
        fast_count: Quantidade de polls rápidos
        slow_interval_seconds: Intervalo depois dos polls rápidos
        max_wait_seconds: Tempo total aproximado antes de desistir
    """

    fast_interval_seconds: float = 2.0
    fast_count: int = 10
    slow_interval_seconds: float = 10.0
    max_wait_seconds: float = 900.0

    @property
    def max_polls(self) -> int:
        """Teto de polls derivado da cadência e do tempo máximo."""
        fast_budget = self.fast_interval_seconds * self.fast_count
        if self.max_wait_seconds <= fast_budget:
            if self.fast_interval_seconds <= 0:
                return self.fast_count
            return max(1, math.ceil(self.max_wait_seconds / self.fast_interval_seconds))
        if self.slow_interval_seconds <= 0:
            return self.fast_count
        remaining = self.max_wait_seconds - fast_budget
        return self.fast_count + math.ceil(remaining / self.slow_interval_seconds)

    def interval_for(self, poll_number: int) -> float:
        """Intervalo antes do poll de número `poll_number` (1-based)."""
        if poll_number <= self.fast_count:
            return self.fast_interval_seconds
        return self.slow_interval_seconds

    def validate(self) -> list[str]:
        """Valida configurações de polling."""
        errors: list[str] = []

        if self.fast_interval_seconds < 0 or self.slow_interval_seconds < 0:
            errors.append("Intervalos de polling devem ser >= 0")

        if self.fast_count < 0:
            errors.append("UPLOAD_POLL_FAST_COUNT deve ser >= 0")

        if self.max_wait_seconds <= 0:
            errors.append("UPLOAD_POLL_MAX_WAIT_SECONDS deve ser > 0")

        if not errors and self.max_polls < 1:
            errors.append("Configuração de polling resulta em zero polls")

        return errors


def _load_upload_poll_from_env() -> UploadPollSettings:
    """Carrega UploadPollSettings de variáveis de ambiente."""
    return UploadPollSettings(
        fast_interval_seconds=float(os.getenv("UPLOAD_POLL_FAST_INTERVAL_SECONDS", "2")),
        fast_count=int(os.getenv("UPLOAD_POLL_FAST_COUNT", "10")),
        slow_interval_seconds=float(os.getenv("UPLOAD_POLL_SLOW_INTERVAL_SECONDS", "10")),
        max_wait_seconds=float(os.getenv("UPLOAD_POLL_MAX_WAIT_SECONDS", "900")),
    )


@lru_cache(maxsize=1)
def get_upload_poll_settings() -> UploadPollSettings:
    """Retorna instância cacheada de UploadPollSettings."""
    return _load_upload_poll_from_env()
