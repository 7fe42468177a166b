"""Orquestrador de retry/fallback das tentativas de geração.

Loop explícito sobre AttemptContext; a decisão de cada falha vem de
`retry_policy.decide_next_attempt`. A mídia já enviada é reutilizada
em todas as tentativas: o orquestrador nunca chama o upload.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from app.domain.attempts import AttemptContext, CredentialTier, ModelTier
from app.domain.errors import (
    ErrorClassification,
    QuotaExceededError,
    TranscriptionCancelledError,
    TranscriptionError,
)
from app.observability.metrics import record_attempt, record_latency, record_tier_switch
from app.services.cancellation import CancellationToken
from app.services.progress import ProgressTracker
from app.services.retry_policy import DecisionReason, decide_next_attempt, initial_context
from config.logging import log_fallback

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from app.infra.gemini.generation_client import GenerationClient
    from app.services.retry_policy import RetryDecision
    from config.settings.ai.fallback import FallbackSettings

logger = logging.getLogger(__name__)

GENERATION_PROGRESS = 60.0

_SWITCH_CAUSES = {
    DecisionReason.RATE_LIMIT_DEMOTION.value: "rate limit",
    DecisionReason.CIRCUIT_BREAKER_DEMOTION.value: "repeated server errors",
}


def _effective_classification(
    error: TranscriptionError, context: AttemptContext
) -> ErrorClassification:
    """Cota diária é por modelo: no tier primário ainda dá para rebaixar."""
    if isinstance(error, QuotaExceededError) and context.model_tier is ModelTier.PRIMARY:
        return ErrorClassification.RATE_LIMITED
    return error.classification


@dataclass(frozen=True, slots=True)
class GenerationRun:
    """Texto final e o contexto da tentativa que o produziu."""

    text: str
    attempts: int
    model_tier: ModelTier
    credential_tier: CredentialTier


class RetryOrchestrator:
    """Envolve o GenerationClient aplicando a política de fallback.

    Sem estado por submissão: cada `run()` cria seu próprio
    AttemptContext, então uma instância atende submissões concorrentes.
    """

    __slots__ = ("_client", "_credentials", "_has_secondary", "_models", "_settings")

    def __init__(
        self,
        client: GenerationClient,
        settings: FallbackSettings,
        *,
        models: Mapping[ModelTier, str],
        credentials: Callable[[CredentialTier], str],
        has_secondary_credential: bool,
    ) -> None:
        self._client = client
        self._settings = settings
        self._models = dict(models)
        self._credentials = credentials
        self._has_secondary = has_secondary_credential

    async def run(
        self,
        payload: dict[str, Any],
        *,
        model_tier: ModelTier,
        timeout: float,
        credential_tier: CredentialTier = CredentialTier.PRIMARY,
        progress: ProgressTracker | None = None,
        cancel: CancellationToken | None = None,
    ) -> GenerationRun:
        """Executa tentativas até sucesso, erro não-retryable ou teto.

        Raises:
            TranscriptionError: Último erro classificado, com `attempts`
                e `model_tier` preenchidos.
        """
        progress = progress or ProgressTracker()
        cancel = cancel or CancellationToken()
        context = initial_context(
            model_tier,
            self._settings,
            has_secondary_credential=self._has_secondary,
            credential_tier=credential_tier,
        )

        while True:
            model = self._models[context.model_tier]
            progress.report(
                f"Generating transcription with {model} (attempt {context.attempt_number})...",
                GENERATION_PROGRESS,
            )
            started = time.perf_counter()
            try:
                text = await self._client.generate(
                    model,
                    self._credentials(context.credential_tier),
                    payload,
                    timeout,
                    cancel,
                )
            except TranscriptionCancelledError as exc:
                self._stamp(exc, context)
                raise
            except TranscriptionError as exc:
                classification = _effective_classification(exc, context)
                record_attempt(
                    "generation",
                    context.attempt_number,
                    context.model_tier.value,
                    context.credential_tier.value,
                    classification.value,
                )
                decision = decide_next_attempt(
                    classification,
                    context,
                    self._settings,
                    has_secondary_credential=self._has_secondary,
                )
                if not decision.should_retry or decision.next_context is None:
                    self._stamp(exc, context)
                    logger.warning(
                        "generation_aborted",
                        extra={
                            "attempt_number": context.attempt_number,
                            "model_tier": context.model_tier.value,
                            "credential_tier": context.credential_tier.value,
                                "classification": classification.value,
                            "error_code": exc.code,
                            "status_code": exc.status_code,
                            "reasons": [reason.value for reason in decision.reasons],
                        },
                    )
                    raise

                logger.info(
                    "generation_retry_scheduled",
                    extra={
                        "attempt_number": context.attempt_number,
                        "classification": classification.value,
                        "status_code": exc.status_code,
                        "delay_seconds": decision.delay_seconds,
                        "reasons": [reason.value for reason in decision.reasons],
                    },
                )
                self._announce(decision, context, decision.next_context, progress)
                if decision.delay_seconds > 0:
                    progress.report(f"AI busy. Retrying in {decision.delay_seconds:g}s...")
                    await cancel.sleep(decision.delay_seconds)
                context = decision.next_context
                continue

            latency_ms = (time.perf_counter() - started) * 1000
            record_latency("generation", "generate", latency_ms)
            record_attempt(
                "generation",
                context.attempt_number,
                context.model_tier.value,
                context.credential_tier.value,
                "success",
            )
            return GenerationRun(
                text=text,
                attempts=context.attempt_number,
                model_tier=context.model_tier,
                credential_tier=context.credential_tier,
            )

    def _announce(
        self,
        decision: RetryDecision,
        current: AttemptContext,
        following: AttemptContext,
        progress: ProgressTracker,
    ) -> None:
        """Status + log_fallback + métrica para cada troca de tier."""
        if decision.demoted_model:
            reason = (
                DecisionReason.RATE_LIMIT_DEMOTION
                if DecisionReason.RATE_LIMIT_DEMOTION in decision.reasons
                else DecisionReason.CIRCUIT_BREAKER_DEMOTION
            ).value
            progress.report(
                f"Switching to High-Capacity engine ({self._models[following.model_tier]}) "
                f"due to {_SWITCH_CAUSES[reason]}..."
            )
            log_fallback(logger, "model_tier", reason)
            record_tier_switch(
                "model_tier", current.model_tier.value, following.model_tier.value, reason
            )
        if decision.rotated_credential:
            progress.report("Switching to secondary credential...")
            log_fallback(logger, "credential_tier", "credential_rotation")
            record_tier_switch(
                "credential_tier",
                current.credential_tier.value,
                following.credential_tier.value,
                "credential_rotation",
            )

    @staticmethod
    def _stamp(error: TranscriptionError, context: AttemptContext) -> None:
        error.attempts = context.attempt_number
        error.model_tier = context.model_tier.value
