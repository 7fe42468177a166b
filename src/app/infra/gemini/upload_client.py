"""Cliente de upload resumable (init → transferência → polling).

Os bytes da mídia trafegam uma única vez: a transferência nunca é
repetida. O único retry interno é o do início de sessão quando o
upstream responde 429 (nenhum byte saiu ainda).
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any

import httpx

from app.domain.attempts import CredentialTier
from app.domain.errors import (
    ProcessingFailedError,
    ProcessingTimeoutError,
    TranscriptionCancelledError,
    UploadInitError,
    UploadTransferError,
)
from app.domain.media import MediaReference, UploadSession, UploadState
from app.infra.gemini.transport import raise_for_upstream_status
from app.protocols.gemini_transport import UpstreamHttpError
from app.services.cancellation import CancellationToken
from app.services.error_classifier import classify_exception
from app.services.progress import ProgressTracker

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from app.domain.media import MediaDescriptor
    from app.protocols.gemini_transport import GeminiTransportProtocol
    from config.settings.ai.upload import UploadPollSettings

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024
TRANSFER_PROGRESS_START = 10.0
TRANSFER_PROGRESS_END = 50.0
PROCESSING_PROGRESS_END = 58.0


def _file_resource(data: dict[str, Any]) -> dict[str, Any]:
    """Aceita tanto `{"file": {...}}` (transferência) quanto o recurso puro (poll)."""
    inner = data.get("file")
    return inner if isinstance(inner, dict) else data


def _parse_state(raw: object) -> UploadState:
    value = str(raw or "").upper()
    if value == UploadState.ACTIVE:
        return UploadState.ACTIVE
    if value == UploadState.FAILED:
        return UploadState.FAILED
    return UploadState.PROCESSING


class ResumableUploadClient:
    """Executa o protocolo resumable e devolve uma MediaReference.

    As fases de init e polling passam pelo transporte (direto ou gateway);
    a transferência vai sempre direto para a URL de sessão.
    """

    __slots__ = (
        "_chunk_size",
        "_http_client",
        "_init_timeout_seconds",
        "_poll_settings",
        "_transfer_deadline_seconds",
        "_transport",
    )

    def __init__(
        self,
        transport: GeminiTransportProtocol,
        http_client: httpx.AsyncClient,
        *,
        poll_settings: UploadPollSettings,
        init_timeout_seconds: float = 30.0,
        transfer_deadline_seconds: float = 3600.0,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._transport = transport
        self._http_client = http_client
        self._poll_settings = poll_settings
        self._init_timeout_seconds = init_timeout_seconds
        self._transfer_deadline_seconds = transfer_deadline_seconds
        self._chunk_size = max(1, chunk_size)

    async def upload(
        self,
        descriptor: MediaDescriptor,
        mime_type: str,
        *,
        credentials: Callable[[CredentialTier], str],
        credential_tier: CredentialTier = CredentialTier.PRIMARY,
        progress: ProgressTracker | None = None,
        cancel: CancellationToken | None = None,
    ) -> MediaReference:
        """Envia a mídia e aguarda o processamento remoto.

        Args:
            descriptor: Mídia a enviar
            mime_type: MIME efetivo (já resolvido)
            credentials: Seletor de credencial por tier
            credential_tier: Tier inicial
            progress: Relato de progresso (opcional)
            cancel: Sinal de cancelamento (opcional)

        Raises:
            UploadInitError, UploadTransferError, ProcessingFailedError,
            ProcessingTimeoutError, TranscriptionCancelledError
        """
        progress = progress or ProgressTracker()
        cancel = cancel or CancellationToken()

        size_mb = round(descriptor.size_mb)
        progress.report(f"Initializing resumable upload for {size_mb}MB file...", 5)
        session, credential_tier = await self._start_session(
            descriptor, mime_type, credentials, credential_tier, progress, cancel
        )

        progress.report("Capturing upload slot (Protocol: Resumable)...", TRANSFER_PROGRESS_START)
        file_data = await self._transfer(session, descriptor, progress, cancel)

        session.media_reference_id = str(file_data.get("name") or "")
        if not session.media_reference_id:
            session.advance(UploadState.FAILED)
            raise UploadTransferError("transfer response without file name")

        state = _parse_state(file_data.get("state"))
        if state is UploadState.FAILED:
            session.advance(UploadState.FAILED)
            raise ProcessingFailedError("remote processing failed")
        if state is UploadState.ACTIVE:
            session.advance(UploadState.ACTIVE)
        else:
            session.advance(UploadState.PROCESSING)
            file_data = await self._poll_until_active(
                session, credentials(credential_tier), progress, cancel
            ) or file_data

        progress.report("Media ready for inference.", PROCESSING_PROGRESS_END)
        logger.info(
            "gemini_upload_active",
            extra={
                "size_bytes": descriptor.size_bytes,
                "mime_type": mime_type,
                "credential_tier": credential_tier.value,
            },
        )
        return MediaReference(
            name=session.media_reference_id,
            uri=str(file_data.get("uri") or ""),
            mime_type=str(file_data.get("mimeType") or mime_type),
            credential_tier=credential_tier,
        )

    async def _start_session(
        self,
        descriptor: MediaDescriptor,
        mime_type: str,
        credentials: Callable[[CredentialTier], str],
        credential_tier: CredentialTier,
        progress: ProgressTracker,
        cancel: CancellationToken,
    ) -> tuple[UploadSession, CredentialTier]:
        switched = False
        while True:
            try:
                session_url = await cancel.run(
                    self._transport.start_upload_session(
                        credential=credentials(credential_tier),
                        display_name=descriptor.display_name,
                        mime_type=mime_type,
                        size_bytes=descriptor.size_bytes,
                        timeout=self._init_timeout_seconds,
                    )
                )
            except UpstreamHttpError as exc:
                secondary = credentials(CredentialTier.SECONDARY)
                if (
                    exc.status_code == 429
                    and not switched
                    and credential_tier is CredentialTier.PRIMARY
                    and secondary
                ):
                    switched = True
                    credential_tier = CredentialTier.SECONDARY
                    logger.warning(
                        "gemini_upload_init_rate_limited",
                        extra={"status_code": exc.status_code, "action": "switch_credential"},
                    )
                    progress.report("Upload slot busy. Switching to secondary credential...")
                    continue
                classified = classify_exception(exc)
                raise UploadInitError(
                    "upload session init failed",
                    status_code=exc.status_code,
                    upstream_message=classified.upstream_message,
                    retry_after_seconds=classified.retry_after_seconds,
                ) from exc
            except httpx.HTTPError as exc:
                logger.warning(
                    "gemini_upload_init_failed",
                    extra={"error_type": type(exc).__name__},
                )
                raise UploadInitError(type(exc).__name__) from exc
            return UploadSession(session_url=session_url), credential_tier

    async def _body(
        self,
        content: bytes,
        progress: ProgressTracker,
        cancel: CancellationToken,
    ) -> AsyncIterator[bytes]:
        total = len(content)
        for offset in range(0, total, self._chunk_size):
            cancel.raise_if_cancelled()
            chunk = content[offset : offset + self._chunk_size]
            yield chunk
            sent = offset + len(chunk)
            progress.report(
                f"Uploading media ({round(sent * 100 / total)}%)...",
                progress.span(TRANSFER_PROGRESS_START, TRANSFER_PROGRESS_END, sent / total),
            )

    async def _transfer(
        self,
        session: UploadSession,
        descriptor: MediaDescriptor,
        progress: ProgressTracker,
        cancel: CancellationToken,
    ) -> dict[str, Any]:
        session.advance(UploadState.TRANSFERRING)
        headers = {
            "Content-Length": str(descriptor.size_bytes),
            "X-Goog-Upload-Offset": "0",
            "X-Goog-Upload-Command": "upload, finalize",
        }
        try:
            async with asyncio.timeout(self._transfer_deadline_seconds):
                response = await cancel.run(
                    self._http_client.post(
                        session.session_url,
                        headers=headers,
                        content=self._body(descriptor.content, progress, cancel),
                        timeout=httpx.Timeout(self._init_timeout_seconds, write=None, read=None),
                    )
                )
            raise_for_upstream_status(response)
            data = response.json()
        except TranscriptionCancelledError:
            raise
        except TimeoutError as exc:
            session.advance(UploadState.FAILED)
            raise UploadTransferError("transfer deadline exceeded") from exc
        except UpstreamHttpError as exc:
            session.advance(UploadState.FAILED)
            logger.warning("gemini_upload_transfer_failed", extra={"status_code": exc.status_code})
            raise UploadTransferError(
                "transfer rejected",
                status_code=exc.status_code,
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            session.advance(UploadState.FAILED)
            logger.warning(
                "gemini_upload_transfer_failed",
                extra={"error_type": type(exc).__name__},
            )
            raise UploadTransferError(type(exc).__name__) from exc

        if not isinstance(data, dict):
            session.advance(UploadState.FAILED)
            raise UploadTransferError("unexpected transfer response")
        return _file_resource(data)

    async def _poll_until_active(
        self,
        session: UploadSession,
        credential: str,
        progress: ProgressTracker,
        cancel: CancellationToken,
    ) -> dict[str, Any]:
        """Aguarda ACTIVE; falhas transitórias não contam no teto de polls."""
        settings = self._poll_settings
        max_polls = settings.max_polls
        deadline = time.monotonic() + settings.max_wait_seconds
        polls = 0
        file_name = session.media_reference_id or ""

        progress.report("Server-side processing...", TRANSFER_PROGRESS_END)
        while polls < max_polls:
            await cancel.sleep(settings.interval_for(polls + 1))
            try:
                data = await cancel.run(
                    self._transport.get_file(credential=credential, file_name=file_name)
                )
            except (UpstreamHttpError, httpx.HTTPError) as exc:
                classified = classify_exception(exc)
                if not classified.is_retryable:
                    session.advance(UploadState.FAILED)
                    raise ProcessingFailedError(
                        "processing status unavailable",
                        status_code=classified.status_code,
                        upstream_message=classified.upstream_message,
                    ) from exc
                logger.info(
                    "gemini_upload_poll_transient_error",
                    extra={"classification": classified.classification.value, "polls": polls},
                )
                if time.monotonic() > deadline:
                    break
                continue

            polls += 1
            resource = _file_resource(data)
            state = _parse_state(resource.get("state"))
            if state is UploadState.ACTIVE:
                session.advance(UploadState.ACTIVE)
                logger.info("gemini_upload_poll_done", extra={"polls": polls})
                return resource
            if state is UploadState.FAILED:
                session.advance(UploadState.FAILED)
                logger.warning("gemini_upload_processing_failed", extra={"polls": polls})
                raise ProcessingFailedError("remote processing failed")

            progress.report(
                f"Analyzing media ({polls}/{max_polls})...",
                progress.span(TRANSFER_PROGRESS_END, PROCESSING_PROGRESS_END, polls / max_polls),
            )
            if time.monotonic() > deadline:
                break

        session.advance(UploadState.FAILED)
        logger.warning("gemini_upload_processing_timeout", extra={"polls": polls})
        raise ProcessingTimeoutError(f"media still processing after {polls} polls")
