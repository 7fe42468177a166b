"""Relato de progresso monotônico para o Status Reporter externo."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.protocols.status_reporter import StatusReporterProtocol

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Envolve o reporter opcional garantindo progresso 0-100 não decrescente.

    Sem reporter, vira no-op. Falhas do reporter (UI) são registradas e
    ignoradas; nunca interrompem a submissão.
    """

    __slots__ = ("_current", "_reporter")

    def __init__(self, reporter: StatusReporterProtocol | None = None) -> None:
        self._reporter = reporter
        self._current = 0.0

    @property
    def current(self) -> float:
        return self._current

    def report(self, message: str, progress: float | None = None) -> None:
        value = None
        if progress is not None:
            value = min(100.0, max(self._current, float(progress)))
            self._current = value
        if self._reporter is None:
            return
        try:
            self._reporter.report(message, value)
        except Exception as exc:
            logger.warning(
                "status_reporter_failed",
                extra={"error_type": type(exc).__name__},
            )

    def span(self, start: float, end: float, fraction: float) -> float:
        """Mapeia `fraction` (0-1) para a faixa [start, end]."""
        bounded = min(1.0, max(0.0, fraction))
        return start + (end - start) * bounded


class CallbackStatusReporter:
    """Adapta uma função `(message, progress)` ao protocolo de reporter."""

    __slots__ = ("_callback",)

    def __init__(self, callback: Callable[[str, float | None], None]) -> None:
        self._callback = callback

    def report(self, message: str, progress: float | None = None) -> None:
        self._callback(message, progress)
