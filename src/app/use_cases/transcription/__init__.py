"""Use cases de transcrição de mídia."""

from .transcribe_media import TranscribeMediaUseCase

__all__ = ["TranscribeMediaUseCase"]
