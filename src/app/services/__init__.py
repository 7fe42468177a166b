"""Serviços de aplicação.

Unidades reutilizáveis de orquestração (sem IO direto).
Implementações concretas de IO ficam em app/infra/.
"""

from app.services.cancellation import CancellationToken
from app.services.retry_orchestrator import GenerationRun, RetryOrchestrator

__all__ = [
    "CancellationToken",
    "GenerationRun",
    "RetryOrchestrator",
]
