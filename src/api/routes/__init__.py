"""Rotas HTTP do Proxy Gateway.

Estrutura:
- routes/gemini/: init/poll/generate com credencial no servidor
- routes/health/: health checks e readiness

Agregação:
- router.py: registra todos os routers no app principal
"""

from __future__ import annotations

from api.routes.router import create_api_router

__all__ = ["create_api_router"]
