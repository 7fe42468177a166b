"""Observabilidade: correlation_id e métricas em logs estruturados.

Uso:
    from app.observability import get_correlation_id, set_correlation_id
    from app.observability import record_attempt, record_latency, record_tier_switch
"""

from app.observability.correlation import (
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from app.observability.metrics import (
    record_attempt,
    record_latency,
    record_tier_switch,
)

__all__ = [
    "generate_correlation_id",
    "get_correlation_id",
    "record_attempt",
    "record_latency",
    "record_tier_switch",
    "reset_correlation_id",
    "set_correlation_id",
]
