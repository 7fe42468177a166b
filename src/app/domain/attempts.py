"""Estado de tentativas de geração (AttemptContext) e tiers."""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from enum import StrEnum


class ModelTier(StrEnum):
    """Classe de qualidade/velocidade do modelo remoto."""

    PRIMARY = "primary"
    FAST = "fast"


class CredentialTier(StrEnum):
    """Credencial primária ou secundária."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True, slots=True)
class AttemptContext:
    """Contexto de uma tentativa de geração.

    Pertence a uma única submissão. O orquestrador produz um novo valor a
    cada tentativa; nenhuma instância é mutada ou compartilhada.
    """

    attempt_number: int = 1
    model_tier: ModelTier = ModelTier.PRIMARY
    credential_tier: CredentialTier = CredentialTier.PRIMARY
    consecutive_infra_failures: int = 0
    started_at: float = field(default_factory=time.monotonic)

    def next_attempt(self, **changes: object) -> AttemptContext:
        """Retorna o contexto da próxima tentativa com as mudanças aplicadas."""
        return replace(
            self,
            attempt_number=self.attempt_number + 1,
            started_at=time.monotonic(),
            **changes,
        )
