"""Protocolo do sink de status/progresso consumido pela UI."""

from __future__ import annotations

from typing import Protocol


class StatusReporterProtocol(Protocol):
    """Sink unidirecional de mensagens legíveis e percentual 0-100.

    O core nunca lê estado de volta e tolera ausência do reporter.
    """

    def report(self, message: str, progress: float | None = None) -> None:
        """Recebe uma mensagem de status e, opcionalmente, o progresso."""
        ...
