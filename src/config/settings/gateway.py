"""Settings do Proxy Gateway.

Limites de requisição por IP de cliente (janela fixa) por endpoint.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


@dataclass(frozen=True)
class GatewaySettings:
    """Configurações do gateway.

    Attributes:
        window_seconds: Duração da janela fixa de contagem
        init_limit: Máximo de inícios de upload por janela
        poll_limit: Máximo de polls por janela
        generate_limit: Máximo de gerações por janela
        allowed_origins: Origens CORS permitidas
    """

    window_seconds: int = 60
    init_limit: int = 30
    poll_limit: int = 60
    generate_limit: int = 30
    allowed_origins: tuple[str, ...] = ("*",)

    def validate(self) -> list[str]:
        """Valida configurações do gateway.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.window_seconds < 1:
            errors.append("GATEWAY_RATE_LIMIT_WINDOW_SECONDS deve ser >= 1")

        if min(self.init_limit, self.poll_limit, self.generate_limit) < 1:
            errors.append("Limites do gateway devem ser >= 1")

        return errors


def _parse_origins(raw: str) -> tuple[str, ...]:
    origins = tuple(item.strip() for item in raw.split(",") if item.strip())
    return origins or ("*",)


def _load_gateway_from_env() -> GatewaySettings:
    """Carrega GatewaySettings de variáveis de ambiente."""
    return GatewaySettings(
        window_seconds=int(os.getenv("GATEWAY_RATE_LIMIT_WINDOW_SECONDS", "60")),
        init_limit=int(os.getenv("GATEWAY_INIT_RATE_LIMIT", "30")),
        poll_limit=int(os.getenv("GATEWAY_POLL_RATE_LIMIT", "60")),
        generate_limit=int(os.getenv("GATEWAY_GENERATE_RATE_LIMIT", "30")),
        allowed_origins=_parse_origins(os.getenv("GATEWAY_ALLOWED_ORIGINS", "*")),
    )


@lru_cache(maxsize=1)
def get_gateway_settings() -> GatewaySettings:
    """Retorna instância cacheada de GatewaySettings."""
    return _load_gateway_from_env()
