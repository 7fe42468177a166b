"""Protocolos e contratos do core da aplicação."""

from .gemini_transport import GeminiTransportProtocol, UpstreamHttpError
from .rate_limiter import RateLimiterProtocol
from .status_reporter import StatusReporterProtocol

__all__ = [
    "GeminiTransportProtocol",
    "RateLimiterProtocol",
    "StatusReporterProtocol",
    "UpstreamHttpError",
]
