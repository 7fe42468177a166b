"""Agregador de settings do Scribe Relay.

Re-exporta todas as settings e funções de cada módulo.
"""

from __future__ import annotations

from config.settings.ai import (
    GEMINI_API_BASE_URL,
    FallbackSettings,
    GeminiSettings,
    TransportMode,
    UploadPollSettings,
    get_fallback_settings,
    get_gemini_settings,
    get_upload_poll_settings,
)
from config.settings.base import BaseSettings, Environment, get_base_settings
from config.settings.gateway import GatewaySettings, get_gateway_settings

__all__ = [
    "GEMINI_API_BASE_URL",
    "BaseSettings",
    "Environment",
    "FallbackSettings",
    "GatewaySettings",
    "GeminiSettings",
    "TransportMode",
    "UploadPollSettings",
    "get_base_settings",
    "get_fallback_settings",
    "get_gateway_settings",
    "get_gemini_settings",
    "get_upload_poll_settings",
]
