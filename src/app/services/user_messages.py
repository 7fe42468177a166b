"""Tradução do erro terminal em uma frase para o usuário final.

A classificação e o número de tentativas ficam nos logs; aqui só o
texto exibido.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

from app.domain.attempts import ModelTier
from app.domain.errors import (
    EmptyResponseError,
    FatalError,
    MissingCredentialError,
    NetworkUnreachableError,
    ProcessingFailedError,
    ProcessingTimeoutError,
    QuotaExceededError,
    RateLimitedError,
    SafetyBlockedError,
    ServerUnavailableError,
    TranscriptionCancelledError,
    TranscriptionError,
    UnsupportedMediaError,
    UploadInitError,
    UploadTransferError,
)

# Cotas diárias do Gemini reiniciam à meia-noite do Pacífico.
QUOTA_RESET_TZ = ZoneInfo("America/Los_Angeles")

GENERIC_MESSAGE = "An unexpected error occurred during transcription."
INVALID_KEY_MESSAGE = "Invalid API Key. Please check your API key in the environment settings."
PERMISSION_DENIED_MESSAGE = "Permission denied. Your API key may not have access to this model."


def estimate_quota_reset(
    retry_after_seconds: float | None,
    now: datetime | None = None,
) -> datetime:
    """Horário estimado de reset da cota (UTC).

    Usa a dica do upstream quando existe; senão a próxima meia-noite
    no horário do Pacífico.
    """
    current = now or datetime.now(UTC)
    if retry_after_seconds is not None and retry_after_seconds > 0:
        return current + timedelta(seconds=retry_after_seconds)
    local = current.astimezone(QUOTA_RESET_TZ)
    next_midnight = datetime.combine(
        local.date() + timedelta(days=1),
        datetime.min.time(),
        tzinfo=QUOTA_RESET_TZ,
    )
    return next_midnight.astimezone(UTC)


def _rate_limit_message(model_tier: ModelTier) -> str:
    if model_tier is ModelTier.PRIMARY:
        return (
            "Primary model rate limit hit. Please wait 60 seconds or disable "
            "'Deep Thinking' to use the higher-capacity fast engine."
        )
    return "Fast model rate limit hit. Please wait a minute for the quota to reset."


def _fatal_message(error: TranscriptionError) -> str:
    text = (error.upstream_message or "").lower()
    if "api key not valid" in text or error.status_code == 401:
        return INVALID_KEY_MESSAGE
    if "permission" in text or error.status_code == 403:
        return PERMISSION_DENIED_MESSAGE
    if error.status_code == 400 and "invalid_argument" in str(error).lower():
        return INVALID_KEY_MESSAGE
    if error.upstream_message:
        return error.upstream_message
    return GENERIC_MESSAGE


def to_user_message(
    error: TranscriptionError,
    model_tier: ModelTier = ModelTier.PRIMARY,
    now: datetime | None = None,
) -> str:
    """Frase curta para o erro terminal.

    Args:
        error: Erro terminal da submissão
        model_tier: Tier em uso quando a submissão terminou
        now: Relógio injetável (testes)
    """
    if isinstance(error, MissingCredentialError):
        return "API Key is missing. Please check your environment configuration."
    if isinstance(error, UnsupportedMediaError):
        return str(error)
    if isinstance(error, QuotaExceededError):
        reset_at = estimate_quota_reset(error.retry_after_seconds, now)
        return (
            "Daily quota exceeded. Estimated reset at "
            f"{reset_at.strftime('%Y-%m-%d %H:%M')} UTC."
        )
    if isinstance(error, RateLimitedError):
        return _rate_limit_message(model_tier)
    if isinstance(error, SafetyBlockedError):
        return "The content was blocked by the AI content policy and cannot be transcribed."
    if isinstance(error, EmptyResponseError):
        return "No transcription generated. Please try again."
    if isinstance(error, NetworkUnreachableError):
        if error.upstream_message == "timeout":
            return "Request timed out. The audio file may be too large or the server is busy."
        return "Network error. Please check your internet connection and try again."
    if isinstance(error, ServerUnavailableError):
        return "The AI service is temporarily unavailable. Please try again in a few minutes."
    if isinstance(error, UploadInitError) and error.status_code == 429:
        return "Upload capacity is busy. Please wait a minute and try again."
    if isinstance(error, UploadInitError | UploadTransferError):
        return "Media upload failed. Please check your connection and try again."
    if isinstance(error, ProcessingFailedError):
        return "The AI service could not process this media file."
    if isinstance(error, ProcessingTimeoutError):
        return "Media processing took too long. Please try a shorter file."
    if isinstance(error, TranscriptionCancelledError):
        return "Transcription cancelled."
    if isinstance(error, FatalError):
        return _fatal_message(error)
    return GENERIC_MESSAGE
