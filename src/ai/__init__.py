"""Módulo AI do Scribe Relay.

Contém apenas os prompts de transcrição enviados ao Gemini.
"""

from ai.prompts import build_transcription_prompt

__all__ = ["build_transcription_prompt"]
