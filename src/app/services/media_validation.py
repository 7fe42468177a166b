"""Validação de mídia antes de qualquer fase de rede."""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.domain.errors import UnsupportedMediaError
from app.services.mime_resolver import (
    GENERIC_BINARY_MIME,
    SUPPORTED_MIME_PREFIXES,
    SUPPORTED_MIME_TYPES,
    mime_from_filename,
)

if TYPE_CHECKING:
    from app.domain.media import MediaDescriptor


def validate_media(descriptor: MediaDescriptor, *, max_size_mb: int) -> None:
    """Valida tamanho e tipo da mídia.

    Raises:
        UnsupportedMediaError: Arquivo vazio, acima do limite, de tipo
            declarado não suportado ou blob sem tipo detectável.
    """
    if descriptor.size_bytes == 0:
        raise UnsupportedMediaError("Media file is empty.")

    if descriptor.size_mb > max_size_mb:
        raise UnsupportedMediaError(f"File size exceeds {max_size_mb}MB limit.")

    declared = descriptor.declared_mime_type.strip()
    if declared.lower() == GENERIC_BINARY_MIME:
        declared = ""
    normalized = declared or mime_from_filename(descriptor.display_name)

    if normalized is None:
        # Arquivo nomeado segue com o MIME padrão do resolver; blob anônimo não.
        if "." not in descriptor.display_name:
            raise UnsupportedMediaError("Unable to detect file type. Please try a supported format.")
        return

    is_known = normalized in SUPPORTED_MIME_TYPES
    is_audio_or_video = normalized.startswith(SUPPORTED_MIME_PREFIXES)
    if not is_known and not is_audio_or_video:
        raise UnsupportedMediaError(
            "Unsupported file type. Please upload a supported audio or video format."
        )
