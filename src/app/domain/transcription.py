"""Preferências e resultado de uma submissão de transcrição."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from app.domain.errors import ErrorClassification

TranscriptionMode = Literal["verbatim", "polish"]


@dataclass(frozen=True, slots=True)
class TranscriptionPreference:
    """Preferência de qualidade e formato.

    Attributes:
        mode: "verbatim" (literal) ou "polish" (intelligent verbatim)
        detect_speakers: Rotular locutores
        use_smart_model: Iniciar no tier primário (alta qualidade)
    """

    mode: TranscriptionMode = "verbatim"
    detect_speakers: bool = True
    use_smart_model: bool = True


@dataclass(frozen=True, slots=True)
class TranscriptionOutcome:
    """Resultado terminal e imutável entregue ao chamador."""

    text: str | None
    error_code: str | None = None
    classification: ErrorClassification | None = None
    user_message: str | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.text is not None
