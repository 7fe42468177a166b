"""Sinal de cancelamento propagado por todas as fases da submissão."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

from app.domain.errors import TranscriptionCancelledError

if TYPE_CHECKING:
    from collections.abc import Awaitable

T = TypeVar("T")


class CancellationToken:
    """Token cooperativo baseado em asyncio.Event.

    `run()` disputa a operação contra o sinal e `sleep()` acorda cedo,
    de modo que um poll de 15 min ou uma geração de 10 min terminam
    assim que o chamador aborta.
    """

    __slots__ = ("_event", "_reason")

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled_by_caller") -> None:
        self._reason = reason
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TranscriptionCancelledError(self._reason or "cancelled")

    async def sleep(self, seconds: float) -> None:
        """Dorme `seconds` ou até o cancelamento (o que vier antes)."""
        self.raise_if_cancelled()
        if seconds <= 0:
            await asyncio.sleep(0)
        else:
            try:
                await asyncio.wait_for(self._event.wait(), timeout=seconds)
            except TimeoutError:
                return
        self.raise_if_cancelled()

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Executa `awaitable`, abortando-o se o token for cancelado."""
        if self._event.is_set() and asyncio.iscoroutine(awaitable):
            awaitable.close()
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()
        if task.done():
            return task.result()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        raise TranscriptionCancelledError(self._reason or "cancelled")
