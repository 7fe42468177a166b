"""Política de retry/fallback como função pura.

(classificação, AttemptContext) -> decisão. Nenhum IO, nenhum sleep:
quem executa a espera e a próxima tentativa é o orquestrador.

Ordem de avaliação a cada falha:
1. Classificação não-retryable (Fatal) → aborta.
2. Tentativa atual >= teto → aborta.
3. RateLimited no tier primário → rebaixa para o tier rápido, sem espera.
4. NetworkUnreachable/ServerUnavailable → mesmo modelo com backoff
   (tentativa * atraso base); após N falhas de infra consecutivas,
   rebaixa o modelo (circuit breaker).
5. Próxima tentativa >= limiar de troca → credencial secundária, se houver.
6. Demais casos (RateLimited já no tier rápido) → mesmo modelo com backoff.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from app.domain.attempts import AttemptContext, CredentialTier, ModelTier
from app.domain.errors import ErrorClassification

if TYPE_CHECKING:
    from config.settings.ai.fallback import FallbackSettings

_INFRA_CLASSIFICATIONS = frozenset(
    {ErrorClassification.NETWORK_UNREACHABLE, ErrorClassification.SERVER_UNAVAILABLE}
)


class RetryAction(StrEnum):
    RETRY = "retry"
    ABORT = "abort"


class DecisionReason(StrEnum):
    FATAL = "fatal"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    RATE_LIMIT_DEMOTION = "rate_limit_demotion"
    INFRA_BACKOFF = "infra_backoff"
    CIRCUIT_BREAKER_DEMOTION = "circuit_breaker_demotion"
    CREDENTIAL_ROTATION = "credential_rotation"
    DEFAULT_RETRY = "default_retry"


@dataclass(frozen=True, slots=True)
class RetryDecision:
    """Ação escolhida para a próxima iteração do loop."""

    action: RetryAction
    next_context: AttemptContext | None = None
    delay_seconds: float = 0.0
    reasons: tuple[DecisionReason, ...] = ()

    @property
    def should_retry(self) -> bool:
        return self.action is RetryAction.RETRY

    @property
    def demoted_model(self) -> bool:
        return any(
            reason in (DecisionReason.RATE_LIMIT_DEMOTION, DecisionReason.CIRCUIT_BREAKER_DEMOTION)
            for reason in self.reasons
        )

    @property
    def rotated_credential(self) -> bool:
        return DecisionReason.CREDENTIAL_ROTATION in self.reasons


def _abort(reason: DecisionReason) -> RetryDecision:
    return RetryDecision(action=RetryAction.ABORT, reasons=(reason,))


def credential_for_attempt(
    attempt_number: int,
    current: CredentialTier,
    settings: FallbackSettings,
    *,
    has_secondary_credential: bool,
) -> CredentialTier:
    """Tier de credencial para a tentativa `attempt_number`.

    Sem credencial secundária configurada, permanece na primária.
    """
    if (
        has_secondary_credential
        and current is CredentialTier.PRIMARY
        and attempt_number >= settings.credential_switch_attempt
    ):
        return CredentialTier.SECONDARY
    return current


def initial_context(
    model_tier: ModelTier,
    settings: FallbackSettings,
    *,
    has_secondary_credential: bool,
    credential_tier: CredentialTier = CredentialTier.PRIMARY,
) -> AttemptContext:
    """Contexto da primeira tentativa de uma submissão.

    `credential_tier` permite começar na credencial que já foi usada no
    upload (a mídia enviada pertence a ela).
    """
    return AttemptContext(
        attempt_number=1,
        model_tier=model_tier,
        credential_tier=credential_for_attempt(
            1,
            credential_tier,
            settings,
            has_secondary_credential=has_secondary_credential,
        ),
    )


def decide_next_attempt(
    classification: ErrorClassification,
    context: AttemptContext,
    settings: FallbackSettings,
    *,
    has_secondary_credential: bool,
) -> RetryDecision:
    """Decide a ação após uma falha de geração."""
    if not classification.is_retryable:
        return _abort(DecisionReason.FATAL)

    if context.attempt_number >= settings.max_attempts:
        return _abort(DecisionReason.ATTEMPTS_EXHAUSTED)

    model_tier = context.model_tier
    infra_failures = context.consecutive_infra_failures
    backoff = context.attempt_number * settings.retry_delay_seconds
    reasons: list[DecisionReason] = []

    if classification is ErrorClassification.RATE_LIMITED and model_tier is ModelTier.PRIMARY:
        model_tier = ModelTier.FAST
        infra_failures = 0
        delay = 0.0
        reasons.append(DecisionReason.RATE_LIMIT_DEMOTION)
    elif classification in _INFRA_CLASSIFICATIONS:
        infra_failures += 1
        delay = backoff
        reasons.append(DecisionReason.INFRA_BACKOFF)
        if (
            infra_failures >= settings.infra_failures_before_demote
            and model_tier is ModelTier.PRIMARY
        ):
            model_tier = ModelTier.FAST
            infra_failures = 0
            reasons.append(DecisionReason.CIRCUIT_BREAKER_DEMOTION)
    else:
        # RateLimited já no tier rápido: não há para onde rebaixar
        delay = backoff
        reasons.append(DecisionReason.DEFAULT_RETRY)

    credential_tier = credential_for_attempt(
        context.attempt_number + 1,
        context.credential_tier,
        settings,
        has_secondary_credential=has_secondary_credential,
    )
    if credential_tier is not context.credential_tier:
        reasons.append(DecisionReason.CREDENTIAL_ROTATION)

    return RetryDecision(
        action=RetryAction.RETRY,
        next_context=context.next_attempt(
            model_tier=model_tier,
            credential_tier=credential_tier,
            consecutive_infra_failures=infra_failures,
        ),
        delay_seconds=delay,
        reasons=tuple(reasons),
    )
