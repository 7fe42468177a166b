"""Stores: implementações concretas de estado.

Módulos disponíveis:
    - memory_rate_limiter: janela fixa por cliente, em memória
"""

from __future__ import annotations

from app.infra.stores.memory_rate_limiter import FixedWindowRateLimiter

__all__ = ["FixedWindowRateLimiter"]
