"""Modelos de mídia submetida ao serviço de inferência.

MediaDescriptor é imutável e consumido uma única vez por submissão:
ou pelo encoder inline ou pelo cliente de upload resumable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from app.domain.attempts import CredentialTier


@dataclass(frozen=True, slots=True)
class MediaDescriptor:
    """Mídia a transcrever.

    Attributes:
        content: Bytes brutos do arquivo
        declared_mime_type: MIME informado pelo chamador (pode ser vazio)
        display_name: Nome do arquivo (usado na lookup por extensão)
    """

    content: bytes = field(repr=False)
    declared_mime_type: str = ""
    display_name: str = "uploaded_media"

    @property
    def size_bytes(self) -> int:
        return len(self.content)

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)

    @classmethod
    def from_path(cls, path: str | Path, declared_mime_type: str = "") -> MediaDescriptor:
        """Carrega a mídia de um arquivo local."""
        file_path = Path(path)
        return cls(
            content=file_path.read_bytes(),
            declared_mime_type=declared_mime_type,
            display_name=file_path.name,
        )


class UploadState(StrEnum):
    """Estados de uma sessão de upload resumable."""

    INITIATED = "INITIATED"
    TRANSFERRING = "TRANSFERRING"
    PROCESSING = "PROCESSING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (UploadState.ACTIVE, UploadState.FAILED)


@dataclass(slots=True)
class UploadSession:
    """Sessão de upload em andamento.

    Criada pelo início de sessão; estado avança pela transferência e
    pelas respostas do polling. ACTIVE e FAILED são terminais.
    """

    session_url: str
    media_reference_id: str | None = None
    state: UploadState = UploadState.INITIATED

    def advance(self, state: UploadState) -> None:
        if self.state.is_terminal:
            raise ValueError(f"Sessão já terminal: {self.state}")
        self.state = state


@dataclass(frozen=True, slots=True)
class MediaReference:
    """Referência opaca de mídia processada, pronta para geração.

    `credential_tier` registra a credencial dona do arquivo remoto; a
    geração começa por ela.
    """

    name: str
    uri: str
    mime_type: str
    credential_tier: CredentialTier = CredentialTier.PRIMARY
