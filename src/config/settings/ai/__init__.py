"""Agregador de settings do serviço de inferência.

Re-exporta settings de credenciais/modelos, upload e fallback.
"""

from __future__ import annotations

from config.settings.ai.fallback import FallbackSettings, get_fallback_settings
from config.settings.ai.gemini import (
    GEMINI_API_BASE_URL,
    GeminiSettings,
    TransportMode,
    get_gemini_settings,
)
from config.settings.ai.upload import UploadPollSettings, get_upload_poll_settings

__all__ = [
    "GEMINI_API_BASE_URL",
    "FallbackSettings",
    "GeminiSettings",
    "TransportMode",
    "UploadPollSettings",
    "get_fallback_settings",
    "get_gemini_settings",
    "get_upload_poll_settings",
]
