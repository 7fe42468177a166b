"""Instrução de transcrição enviada junto com a mídia.

Dois modos: "verbatim" (literal, com hesitações) e "polish"
(intelligent verbatim). Locutores, timestamps e dialetos seguem as
mesmas regras nos dois.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.transcription import TranscriptionPreference

SPEAKER_LABELS_RULE = (
    "**Speaker Diarization**: Identify distinct speakers. Listen for names "
    '(e.g., "Hi John") and use them. If unknown, use "Speaker 1:", "Speaker 2:", etc.'
)

NO_SPEAKER_LABELS_RULE = (
    '**No Speaker Labels**: Do not use speaker labels (e.g., "Speaker 1"). Format the '
    "text as a continuous transcript with paragraph breaks."
)

DIALECT_RULE = """**Accents & Dialects**: The audio may contain West African accents, Pidgin English, or mixed languages.
   - Transcribe Pidgin/dialect exactly as spoken. Do not translate to standard English.
   - Use *italics* for non-English words or heavy Pidgin phrases."""

TIMESTAMP_RULE = "**Timestamps**: Insert [MM:SS] timestamps at the start of every speaker turn."

VERBATIM_TEMPLATE = """Task: Generate a STRICT, 100% VERBATIM transcription.
Guidelines:
{common}
4. **Strict Verbatim**: Capture every utterance, stutter, false start and filler word (um, uh, like, you know). Do not edit or clean up anything.
5. **Accuracy**: If a sentence is grammatically incorrect, transcribe it exactly as spoken.
6. **Formatting**: Start every speaker turn on a new line with its label and timestamp."""

POLISH_TEMPLATE = """Task: Generate an "Intelligent Verbatim" transcription.
Guidelines:
{common}
4. **Cleanup**: Lightly edit stuttering and excessive fillers (um, uh) to improve readability, but preserve the speaker's voice and phrasing.
5. **Formatting**: Highlight key terms in **bold**."""


def build_transcription_prompt(preference: TranscriptionPreference) -> str:
    """Monta a instrução textual para a preferência dada."""
    speaker_rule = SPEAKER_LABELS_RULE if preference.detect_speakers else NO_SPEAKER_LABELS_RULE
    common = "\n".join(
        f"{index}. {rule}"
        for index, rule in enumerate((speaker_rule, DIALECT_RULE, TIMESTAMP_RULE), start=1)
    )
    template = POLISH_TEMPLATE if preference.mode == "polish" else VERBATIM_TEMPLATE
    return template.format(common=common)
