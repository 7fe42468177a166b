"""Prompts de transcrição (verbatim e polish)."""

from ai.prompts.transcription_prompt import build_transcription_prompt

__all__ = ["build_transcription_prompt"]
