"""Escolha do tier de modelo inicial de uma submissão."""

from __future__ import annotations

from app.domain.attempts import ModelTier
from app.domain.transcription import TranscriptionPreference

BOOST_SIZE_BYTES = 15 * 1024 * 1024


def select_model_tier(
    preference: TranscriptionPreference,
    mime_type: str,
    size_bytes: int,
) -> tuple[ModelTier, bool]:
    """Retorna (tier inicial, se houve boost).

    Vídeo ou mídia acima de 15 MB sobe para o tier primário mesmo quando
    o usuário pediu o rápido.
    """
    if preference.use_smart_model:
        return ModelTier.PRIMARY, False
    if mime_type.startswith("video/") or size_bytes > BOOST_SIZE_BYTES:
        return ModelTier.PRIMARY, True
    return ModelTier.FAST, False
