"""Resolução do MIME efetivo e da rota (inline vs upload) da mídia.

Nunca falha: um MIME plausível é preferível a bloquear o pipeline.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.media import MediaDescriptor

GENERIC_BINARY_MIME = "application/octet-stream"
DEFAULT_AUDIO_MIME = "audio/mp3"

# Mapeamento explícito para compatibilidade com a API
MIME_TYPE_MAP: dict[str, str] = {
    "mp3": "audio/mp3",
    "wav": "audio/wav",
    "aiff": "audio/aiff",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
    "flac": "audio/flac",
    "m4a": "audio/mp4",
    "webm": "audio/webm",
    "mp4": "video/mp4",
    "mov": "video/mov",
    "avi": "video/avi",
    "wmv": "video/wmv",
    "mpeg": "video/mpeg",
    "mpg": "video/mpeg",
    "3gp": "video/3gpp",
    "flv": "video/x-flv",
    "mkv": "video/x-matroska",
}

SUPPORTED_MIME_TYPES = frozenset(MIME_TYPE_MAP.values())
SUPPORTED_MIME_PREFIXES = ("audio/", "video/")

# Container sem extensão conhecida: usa o tipo principal declarado
_CONTAINER_FALLBACKS = {
    "video": "video/mp4",
    "audio": DEFAULT_AUDIO_MIME,
}


def mime_from_filename(filename: str | None) -> str | None:
    """Retorna o MIME pela extensão do arquivo, ou None."""
    if not filename or "." not in filename:
        return None
    extension = filename.rsplit(".", 1)[-1].lower()
    return MIME_TYPE_MAP.get(extension)


def _container_fallback(declared: str) -> str | None:
    major = declared.split("/", 1)[0].strip().lower()
    return _CONTAINER_FALLBACKS.get(major)


def _is_explicit(declared: str) -> bool:
    """MIME completo: não vazio, não genérico e com subtipo concreto."""
    if not declared or declared.lower() == GENERIC_BINARY_MIME:
        return False
    _, _, subtype = declared.partition("/")
    return subtype.strip() not in ("", "*")


def resolve_mime_type(filename: str | None, declared_mime_type: str | None) -> str:
    """Resolve o MIME efetivo.

    Precedência: MIME declarado completo → tabela de extensões →
    fallback pelo container declarado (`video/*`, `audio/`) → audio padrão.
    """
    declared = (declared_mime_type or "").strip()
    if _is_explicit(declared):
        return declared

    detected = mime_from_filename(filename)
    if detected:
        return detected

    if declared:
        container = _container_fallback(declared)
        if container:
            return container

    return DEFAULT_AUDIO_MIME


def resolve_descriptor_mime(descriptor: MediaDescriptor) -> str:
    return resolve_mime_type(descriptor.display_name, descriptor.declared_mime_type)


def should_upload(size_bytes: int, inline_threshold_bytes: int) -> bool:
    """Mídia no limiar ou acima vai por upload; abaixo, inline."""
    return size_bytes >= inline_threshold_bytes
