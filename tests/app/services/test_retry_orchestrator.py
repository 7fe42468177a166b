"""Testes do RetryOrchestrator (loop de tentativas de geração)."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from app.domain.attempts import CredentialTier, ModelTier
from app.domain.errors import (
    FatalError,
    NetworkUnreachableError,
    QuotaExceededError,
    RateLimitedError,
    ServerUnavailableError,
    TranscriptionCancelledError,
)
from app.services.cancellation import CancellationToken
from app.services.progress import ProgressTracker
from app.services.retry_orchestrator import RetryOrchestrator
from config.settings import FallbackSettings

MODELS = {ModelTier.PRIMARY: "pro-model", ModelTier.FAST: "flash-model"}
CREDENTIALS = {CredentialTier.PRIMARY: "key-a", CredentialTier.SECONDARY: "key-b"}


class ScriptedClient:
    """GenerationClient falso: cada chamada consome o próximo resultado."""

    def __init__(self, *results: str | Exception) -> None:
        self._results = list(results)
        self.calls: list[tuple[str, str]] = []

    async def generate(
        self,
        model: str,
        credential: str,
        payload: dict[str, Any],
        timeout: float,
        cancel: CancellationToken | None = None,
    ) -> str:
        self.calls.append((model, credential))
        result = self._results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class _Recorder:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def report(self, message: str, progress: float | None = None) -> None:
        self.messages.append(message)


def _orchestrator(
    client: ScriptedClient,
    *,
    has_secondary: bool = False,
    settings: FallbackSettings | None = None,
) -> RetryOrchestrator:
    return RetryOrchestrator(
        client,  # type: ignore[arg-type]
        settings or FallbackSettings(retry_delay_seconds=0),
        models=MODELS,
        credentials=CREDENTIALS.__getitem__,
        has_secondary_credential=has_secondary,
    )


class TestSuccess:
    @pytest.mark.asyncio
    async def test_first_attempt_success(self) -> None:
        client = ScriptedClient("texto")

        run = await _orchestrator(client).run({}, model_tier=ModelTier.PRIMARY, timeout=5)

        assert run.text == "texto"
        assert run.attempts == 1
        assert client.calls == [("pro-model", "key-a")]

    @pytest.mark.asyncio
    async def test_rate_limit_demotes_to_fast_model(self) -> None:
        client = ScriptedClient(RateLimitedError(status_code=429), "texto")
        recorder = _Recorder()

        run = await _orchestrator(client).run(
            {},
            model_tier=ModelTier.PRIMARY,
            timeout=5,
            progress=ProgressTracker(recorder),
        )

        assert run.attempts == 2
        assert run.model_tier is ModelTier.FAST
        assert [model for model, _ in client.calls] == ["pro-model", "flash-model"]
        assert (
            "Switching to High-Capacity engine (flash-model) due to rate limit..."
            in recorder.messages
        )

    @pytest.mark.asyncio
    async def test_daily_quota_on_primary_demotes_to_fast_model(self) -> None:
        client = ScriptedClient(QuotaExceededError(status_code=429), "texto")

        run = await _orchestrator(client).run({}, model_tier=ModelTier.PRIMARY, timeout=5)

        assert run.text == "texto"
        assert run.model_tier is ModelTier.FAST
        assert [model for model, _ in client.calls] == ["pro-model", "flash-model"]

    @pytest.mark.asyncio
    async def test_credential_rotation_on_second_attempt(self) -> None:
        client = ScriptedClient(ServerUnavailableError(status_code=503), "texto")
        recorder = _Recorder()

        run = await _orchestrator(client, has_secondary=True).run(
            {}, model_tier=ModelTier.PRIMARY, timeout=5, progress=ProgressTracker(recorder)
        )

        assert run.credential_tier is CredentialTier.SECONDARY
        assert client.calls == [("pro-model", "key-a"), ("pro-model", "key-b")]
        assert "Switching to secondary credential..." in recorder.messages

    @pytest.mark.asyncio
    async def test_starts_on_upload_credential(self) -> None:
        client = ScriptedClient("texto")

        await _orchestrator(client, has_secondary=True).run(
            {},
            model_tier=ModelTier.PRIMARY,
            timeout=5,
            credential_tier=CredentialTier.SECONDARY,
        )

        assert client.calls == [("pro-model", "key-b")]

    @pytest.mark.asyncio
    async def test_circuit_breaker_after_two_infra_failures(self) -> None:
        client = ScriptedClient(
            NetworkUnreachableError("timeout"),
            ServerUnavailableError(status_code=503),
            "texto",
        )
        recorder = _Recorder()

        run = await _orchestrator(client).run(
            {}, model_tier=ModelTier.PRIMARY, timeout=5, progress=ProgressTracker(recorder)
        )

        assert [model for model, _ in client.calls] == ["pro-model", "pro-model", "flash-model"]
        assert run.attempts == 3
        assert any("due to repeated server errors" in m for m in recorder.messages)

    @pytest.mark.asyncio
    async def test_backoff_delay_is_reported(self) -> None:
        client = ScriptedClient(ServerUnavailableError(status_code=503), "texto")
        recorder = _Recorder()
        settings = FallbackSettings(retry_delay_seconds=0.001)

        await _orchestrator(client, settings=settings).run(
            {}, model_tier=ModelTier.PRIMARY, timeout=5, progress=ProgressTracker(recorder)
        )

        assert "AI busy. Retrying in 0.001s..." in recorder.messages


class TestAbort:
    @pytest.mark.asyncio
    async def test_fatal_error_aborts_immediately(self) -> None:
        client = ScriptedClient(FatalError("INVALID_ARGUMENT", status_code=400))

        with pytest.raises(FatalError) as exc_info:
            await _orchestrator(client).run({}, model_tier=ModelTier.PRIMARY, timeout=5)

        assert exc_info.value.attempts == 1
        assert exc_info.value.model_tier == "primary"
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_quota_exceeded_on_fast_model_is_not_retried(self) -> None:
        client = ScriptedClient(QuotaExceededError(status_code=429))

        with pytest.raises(QuotaExceededError):
            await _orchestrator(client).run({}, model_tier=ModelTier.FAST, timeout=5)

        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_quota_exceeded_after_demotion_is_terminal(self) -> None:
        client = ScriptedClient(
            QuotaExceededError(status_code=429),
            QuotaExceededError(status_code=429),
            "texto",
        )

        with pytest.raises(QuotaExceededError) as exc_info:
            await _orchestrator(client).run({}, model_tier=ModelTier.PRIMARY, timeout=5)

        assert [model for model, _ in client.calls] == ["pro-model", "flash-model"]
        assert exc_info.value.attempts == 2

    @pytest.mark.asyncio
    async def test_never_exceeds_max_attempts(self) -> None:
        client = ScriptedClient(*(RateLimitedError(status_code=429) for _ in range(10)))

        with pytest.raises(RateLimitedError) as exc_info:
            await _orchestrator(client).run({}, model_tier=ModelTier.PRIMARY, timeout=5)

        assert len(client.calls) == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.model_tier == "fast"

    @pytest.mark.asyncio
    async def test_cancellation_during_backoff(self) -> None:
        cancel = CancellationToken()
        client = ScriptedClient(ServerUnavailableError(status_code=503), "texto")

        class CancelOnStatus:
            def report(self, message: str, progress: float | None = None) -> None:
                if message.startswith("AI busy"):
                    cancel.cancel("user_abort")

        with pytest.raises(TranscriptionCancelledError):
            await _orchestrator(client, settings=FallbackSettings(retry_delay_seconds=30)).run(
                {},
                model_tier=ModelTier.PRIMARY,
                timeout=5,
                progress=ProgressTracker(CancelOnStatus()),
                cancel=cancel,
            )

        assert len(client.calls) == 1


@pytest.mark.asyncio
async def test_fallback_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    client = ScriptedClient(RateLimitedError(status_code=429), "texto")

    with caplog.at_level(logging.INFO, logger="app.services.retry_orchestrator"):
        await _orchestrator(client).run({}, model_tier=ModelTier.PRIMARY, timeout=5)

    fallback = [r for r in caplog.records if r.getMessage() == "Fallback applied for model_tier"]
    assert len(fallback) == 1
    assert fallback[0].reason == "rate_limit_demotion"
