"""Rate limiter em memória (janela fixa por cliente).

ATENÇÃO: estado volátil por processo. Sem eviction além da expiração
preguiçosa no próximo acesso; não vale entre instâncias nem após
cold start.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from app.protocols.rate_limiter import RateLimiterProtocol


@dataclass(slots=True)
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter(RateLimiterProtocol):
    """Contador por cliente com timestamp de reset (não é token bucket).

    A primeira requisição abre a janela; a partir daí cada requisição
    incrementa o contador e é recusada quando ele passa de `limit`.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def allow(self, client_id: str) -> bool:
        now = self._clock()
        window = self._windows.get(client_id)
        if window is None or now > window.reset_at:
            self._windows[client_id] = _Window(count=1, reset_at=now + self._window_seconds)
            return True
        window.count += 1
        return window.count <= self._limit

    def reset(self) -> None:
        """Esquece todas as janelas (testes)."""
        self._windows.clear()
