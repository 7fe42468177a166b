"""Métricas via structured logging.

Cada métrica é uma linha de log estruturada (`metric_*`) agregável
depois (BigQuery, CloudWatch Insights etc.). Nenhum backend dedicado.

Uso:
    start = time.perf_counter()
    # ... geração ...
    record_latency("generation", "generate", (time.perf_counter() - start) * 1000)
    record_attempt("generation", 2, "fast", "secondary", "rate_limited")
    record_tier_switch("model_tier", "primary", "fast", "rate_limit_demotion")
"""

from __future__ import annotations

import logging

from app.observability.correlation import get_correlation_id

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "upload", "generation")
        operation: Nome da operação (ex: "upload", "generate")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação (default: o do contexto)
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id or get_correlation_id(),
        },
    )


def record_attempt(
    component: str,
    attempt_number: int,
    model_tier: str,
    credential_tier: str,
    outcome: str,
    correlation_id: str | None = None,
) -> None:
    """Registra o resultado de uma tentativa de geração.

    `outcome` é "success" ou a classificação do erro.
    """
    logger.info(
        "metric_attempt",
        extra={
            "metric_type": "attempt",
            "component": component,
            "attempt_number": attempt_number,
            "model_tier": model_tier,
            "credential_tier": credential_tier,
            "outcome": outcome,
            "correlation_id": correlation_id or get_correlation_id(),
        },
    )


def record_tier_switch(
    component: str,
    from_tier: str,
    to_tier: str,
    reason: str,
    correlation_id: str | None = None,
) -> None:
    """Registra rebaixamento de modelo ou troca de credencial."""
    logger.info(
        "metric_tier_switch",
        extra={
            "metric_type": "tier_switch",
            "component": component,
            "from_tier": from_tier,
            "to_tier": to_tier,
            "reason": reason,
            "correlation_id": correlation_id or get_correlation_id(),
        },
    )
