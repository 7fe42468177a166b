"""Testes da classificação de erros upstream."""

from __future__ import annotations

import json

import httpx
import pytest

from app.domain.errors import (
    ErrorClassification,
    FatalError,
    NetworkUnreachableError,
    QuotaExceededError,
    RateLimitedError,
    SafetyBlockedError,
    ServerUnavailableError,
)
from app.protocols.gemini_transport import UpstreamHttpError
from app.services.error_classifier import (
    classify_exception,
    classify_status,
    classify_upstream_error,
    parse_upstream_error,
)


def _google_error(code: int, status: str, message: str, details: list | None = None) -> str:
    error: dict = {"code": code, "status": status, "message": message}
    if details is not None:
        error["details"] = details
    return json.dumps({"error": error})


class TestParseUpstreamError:
    def test_google_error_body(self) -> None:
        info = parse_upstream_error(
            _google_error(
                429,
                "RESOURCE_EXHAUSTED",
                "Quota exceeded",
                [{"@type": "type.googleapis.com/google.rpc.RetryInfo", "retryDelay": "37s"}],
            )
        )

        assert info.status == "RESOURCE_EXHAUSTED"
        assert info.message == "Quota exceeded"
        assert info.retry_delay_seconds == 37.0

    def test_plain_text_body(self) -> None:
        info = parse_upstream_error("upstream exploded")

        assert info.message == "upstream exploded"
        assert info.status == ""

    def test_gateway_error_string(self) -> None:
        assert parse_upstream_error('{"error": "Rate limit exceeded."}').message == (
            "Rate limit exceeded."
        )

    def test_empty_body(self) -> None:
        info = parse_upstream_error("")

        assert info.message == ""
        assert info.retry_delay_seconds is None


class TestClassifyStatus:
    @pytest.mark.parametrize(
        ("status", "message", "expected"),
        [
            (429, "", ErrorClassification.RATE_LIMITED),
            (None, "RESOURCE_EXHAUSTED quota", ErrorClassification.RATE_LIMITED),
            (404, "Too many requests", ErrorClassification.RATE_LIMITED),
            (400, "RESOURCE_EXHAUSTED quota", ErrorClassification.FATAL),
            (403, "service unavailable for this key", ErrorClassification.FATAL),
            (500, "", ErrorClassification.SERVER_UNAVAILABLE),
            (503, "", ErrorClassification.SERVER_UNAVAILABLE),
            (None, "The model is overloaded", ErrorClassification.SERVER_UNAVAILABLE),
            (400, "INVALID_ARGUMENT", ErrorClassification.FATAL),
            (404, "", ErrorClassification.FATAL),
        ],
    )
    def test_classification(
        self, status: int | None, message: str, expected: ErrorClassification
    ) -> None:
        assert classify_status(status, message) is expected


class TestClassifyUpstreamError:
    def test_rate_limited_keeps_retry_hint(self) -> None:
        exc = UpstreamHttpError(
            429,
            _google_error(429, "RESOURCE_EXHAUSTED", "Resource has been exhausted"),
            retry_after_seconds=12,
        )

        error = classify_upstream_error(exc)

        assert isinstance(error, RateLimitedError)
        assert error.status_code == 429
        assert error.retry_after_seconds == 12
        assert error.is_retryable is True

    def test_daily_quota_is_quota_exceeded(self) -> None:
        details = [
            {
                "@type": "type.googleapis.com/google.rpc.QuotaFailure",
                "violations": [{"quotaId": "GenerateRequestsPerDayPerProjectPerModel-FreeTier"}],
            }
        ]
        exc = UpstreamHttpError(429, _google_error(429, "RESOURCE_EXHAUSTED", "Quota", details))

        error = classify_upstream_error(exc)

        assert isinstance(error, QuotaExceededError)
        assert error.is_retryable is False

    def test_server_error(self) -> None:
        error = classify_upstream_error(UpstreamHttpError(502, "Bad Gateway"))

        assert isinstance(error, ServerUnavailableError)
        assert error.classification is ErrorClassification.SERVER_UNAVAILABLE

    def test_invalid_key_is_fatal(self) -> None:
        exc = UpstreamHttpError(
            400,
            _google_error(400, "INVALID_ARGUMENT", "API key not valid. Please pass a valid API key."),
        )

        error = classify_upstream_error(exc)

        assert isinstance(error, FatalError)
        assert str(error) == "INVALID_ARGUMENT"
        assert error.upstream_message == "API key not valid. Please pass a valid API key."


class TestClassifyException:
    def test_timeout_is_network_unreachable(self) -> None:
        error = classify_exception(httpx.ReadTimeout("slow"))

        assert isinstance(error, NetworkUnreachableError)
        assert error.upstream_message == "timeout"

    def test_connection_error_is_network_unreachable(self) -> None:
        error = classify_exception(httpx.ConnectError("refused"))

        assert isinstance(error, NetworkUnreachableError)
        assert str(error) == "ConnectError"

    def test_typed_error_passes_through(self) -> None:
        original = SafetyBlockedError("blocked")

        assert classify_exception(original) is original

    def test_unknown_exception_is_fatal(self) -> None:
        error = classify_exception(KeyError("x"))

        assert isinstance(error, FatalError)
        assert error.is_retryable is False
