"""Classificação de falhas upstream na taxonomia de erros.

Derivada apenas de status HTTP e texto da mensagem; sem estado de retry.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.domain.errors import (
    ErrorClassification,
    FatalError,
    NetworkUnreachableError,
    QuotaExceededError,
    RateLimitedError,
    ServerUnavailableError,
    TranscriptionError,
)
from app.protocols.gemini_transport import UpstreamHttpError

_SERVER_UNAVAILABLE_STATUSES = frozenset({500, 502, 503, 504})
_FATAL_STATUSES = frozenset({400, 401, 403})
_RATE_LIMIT_MARKERS = ("resource_exhausted", "rate limit", "quota", "too many requests")
_UNAVAILABLE_MARKERS = ("unavailable", "overloaded", "internal error")
_DAILY_QUOTA_MARKERS = ("perday", "per day", "daily")
_RETRY_DELAY_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)s\s*$")
_MAX_MESSAGE_CHARS = 500


@dataclass(frozen=True, slots=True)
class UpstreamErrorInfo:
    """Campos úteis do corpo de erro padrão do Google."""

    status: str = ""
    message: str = ""
    details: list[dict[str, Any]] = field(default_factory=list)

    @property
    def retry_delay_seconds(self) -> float | None:
        for detail in self.details:
            match = _RETRY_DELAY_RE.match(str(detail.get("retryDelay", "")))
            if match:
                return float(match.group(1))
        return None

    @property
    def is_daily_quota(self) -> bool:
        haystack = [self.message.lower()]
        for detail in self.details:
            for violation in detail.get("violations") or []:
                if isinstance(violation, dict):
                    haystack.append(str(violation.get("quotaId", "")).lower())
        return any(marker in text for text in haystack for marker in _DAILY_QUOTA_MARKERS)


def parse_upstream_error(body: str) -> UpstreamErrorInfo:
    """Extrai status/mensagem/details de `{"error": {...}}`; tolera texto livre."""
    try:
        data = json.loads(body) if body else None
    except ValueError:
        return UpstreamErrorInfo(message=body[:_MAX_MESSAGE_CHARS])

    if not isinstance(data, dict):
        return UpstreamErrorInfo(message=(body or "")[:_MAX_MESSAGE_CHARS])

    error = data.get("error", data)
    if isinstance(error, str):
        return UpstreamErrorInfo(message=error[:_MAX_MESSAGE_CHARS])
    if not isinstance(error, dict):
        return UpstreamErrorInfo()

    details = error.get("details")
    return UpstreamErrorInfo(
        status=str(error.get("status") or ""),
        message=str(error.get("message") or "")[:_MAX_MESSAGE_CHARS],
        details=[d for d in details if isinstance(d, dict)] if isinstance(details, list) else [],
    )


def classify_status(status_code: int | None, message: str = "") -> ErrorClassification:
    """Classifica um status HTTP + texto de mensagem."""
    if status_code == 429:
        return ErrorClassification.RATE_LIMITED
    if status_code in _SERVER_UNAVAILABLE_STATUSES:
        return ErrorClassification.SERVER_UNAVAILABLE
    if status_code in _FATAL_STATUSES:
        return ErrorClassification.FATAL

    text = message.lower()
    if any(marker in text for marker in _RATE_LIMIT_MARKERS):
        return ErrorClassification.RATE_LIMITED
    if any(marker in text for marker in _UNAVAILABLE_MARKERS):
        return ErrorClassification.SERVER_UNAVAILABLE
    return ErrorClassification.FATAL


def classify_upstream_error(exc: UpstreamHttpError) -> TranscriptionError:
    """Converte UpstreamHttpError no erro tipado correspondente."""
    info = parse_upstream_error(exc.body)
    message_text = f"{info.status} {info.message}".strip()
    classification = classify_status(exc.status_code, message_text)
    retry_after = info.retry_delay_seconds or exc.retry_after_seconds
    kwargs: dict[str, Any] = {
        "status_code": exc.status_code,
        "upstream_message": info.message or None,
        "retry_after_seconds": retry_after,
    }

    if classification is ErrorClassification.RATE_LIMITED:
        if info.is_daily_quota:
            return QuotaExceededError("daily quota exhausted", **kwargs)
        return RateLimitedError("rate limited", **kwargs)
    if classification is ErrorClassification.SERVER_UNAVAILABLE:
        return ServerUnavailableError("server unavailable", **kwargs)
    return FatalError(info.status or f"http_{exc.status_code}", **kwargs)


def classify_exception(exc: BaseException) -> TranscriptionError:
    """Normaliza qualquer falha de geração para a taxonomia.

    Timeouts e erros de conexão viram NetworkUnreachable; erros já
    tipados passam intactos.
    """
    if isinstance(exc, TranscriptionError):
        return exc
    if isinstance(exc, UpstreamHttpError):
        return classify_upstream_error(exc)
    if isinstance(exc, httpx.TimeoutException):
        return NetworkUnreachableError("timeout", upstream_message="timeout")
    if isinstance(exc, httpx.TransportError):
        return NetworkUnreachableError(type(exc).__name__)
    return FatalError(type(exc).__name__)
