"""Taxonomia de erros do cliente de transcrição.

Cada erro carrega um `code` estável e uma `ErrorClassification`. A
classificação vem apenas de status/mensagem upstream e nunca carrega
estado de retry; quem decide a ação é o orquestrador.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorClassification(StrEnum):
    """Classe de erro usada pela política de retry."""

    RATE_LIMITED = "rate_limited"
    SERVER_UNAVAILABLE = "server_unavailable"
    NETWORK_UNREACHABLE = "network_unreachable"
    FATAL = "fatal"

    @property
    def is_retryable(self) -> bool:
        return self is not ErrorClassification.FATAL


class TranscriptionError(Exception):
    """Erro base sem dados sensíveis.

    Attributes:
        code: Identificador estável do tipo de erro
        classification: Classe para a política de retry
        status_code: Status HTTP upstream (quando houver)
        upstream_message: Mensagem upstream (já sem credenciais)
        retry_after_seconds: Dica de espera informada pelo upstream
        attempts: Tentativas consumidas (preenchido pelo orquestrador)
        model_tier: Tier de modelo da última tentativa (idem)
    """

    code = "transcription_error"
    classification = ErrorClassification.FATAL

    def __init__(
        self,
        message: str = "",
        *,
        status_code: int | None = None,
        upstream_message: str | None = None,
        retry_after_seconds: float | None = None,
    ) -> None:
        super().__init__(message or self.code)
        self.status_code = status_code
        self.upstream_message = upstream_message
        self.retry_after_seconds = retry_after_seconds
        self.attempts = 0
        self.model_tier: str | None = None

    @property
    def is_retryable(self) -> bool:
        return self.classification.is_retryable


class MissingCredentialError(TranscriptionError):
    code = "missing_credential"


class UnsupportedMediaError(TranscriptionError):
    code = "unsupported_media"


class UploadInitError(TranscriptionError):
    code = "upload_init_failed"


class UploadTransferError(TranscriptionError):
    code = "upload_transfer_failed"


class ProcessingFailedError(TranscriptionError):
    code = "processing_failed"


class ProcessingTimeoutError(TranscriptionError):
    code = "processing_timeout"


class RateLimitedError(TranscriptionError):
    code = "rate_limited"
    classification = ErrorClassification.RATE_LIMITED


class ServerUnavailableError(TranscriptionError):
    code = "server_unavailable"
    classification = ErrorClassification.SERVER_UNAVAILABLE


class NetworkUnreachableError(TranscriptionError):
    code = "network_unreachable"
    classification = ErrorClassification.NETWORK_UNREACHABLE


class EmptyResponseError(TranscriptionError):
    code = "empty_response"


class SafetyBlockedError(TranscriptionError):
    code = "safety_blocked"


class QuotaExceededError(TranscriptionError):
    code = "quota_exceeded"


class FatalError(TranscriptionError):
    """Catch-all para 4xx não reconhecidos, credencial inválida etc."""

    code = "fatal"


class TranscriptionCancelledError(TranscriptionError):
    code = "cancelled"

