"""Use case de transcrição de uma mídia.

Pipeline sequencial: validar → resolver MIME → (upload) → gerar com
retry. O upload acontece no máximo uma vez por submissão; o
orquestrador reutiliza a referência em todas as tentativas.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from ai.prompts.transcription_prompt import build_transcription_prompt
from app.domain.attempts import CredentialTier, ModelTier
from app.domain.errors import MissingCredentialError, TranscriptionError
from app.domain.transcription import TranscriptionOutcome, TranscriptionPreference
from app.infra.gemini.generation_client import build_inline_payload, build_reference_payload
from app.observability.correlation import reset_correlation_id, set_correlation_id
from app.observability.metrics import record_latency
from app.services.cancellation import CancellationToken
from app.services.media_validation import validate_media
from app.services.mime_resolver import resolve_descriptor_mime, should_upload
from app.services.model_selection import select_model_tier
from app.services.progress import ProgressTracker
from app.services.user_messages import to_user_message

if TYPE_CHECKING:
    from collections.abc import Callable

    from app.domain.media import MediaDescriptor
    from app.infra.gemini.upload_client import ResumableUploadClient
    from app.protocols.status_reporter import StatusReporterProtocol
    from app.services.retry_orchestrator import RetryOrchestrator
    from config.settings.ai.gemini import GeminiSettings

logger = logging.getLogger(__name__)


class TranscribeMediaUseCase:
    """Transcreve uma mídia e devolve um TranscriptionOutcome.

    Nunca levanta TranscriptionError: o erro terminal vira um outcome
    com código, classificação e mensagem para o usuário.
    """

    def __init__(
        self,
        *,
        settings: GeminiSettings,
        upload_client: ResumableUploadClient,
        orchestrator: RetryOrchestrator,
        credentials: Callable[[CredentialTier], str],
    ) -> None:
        self._settings = settings
        self._upload_client = upload_client
        self._orchestrator = orchestrator
        self._credentials = credentials

    async def execute(
        self,
        descriptor: MediaDescriptor,
        preference: TranscriptionPreference | None = None,
        reporter: StatusReporterProtocol | None = None,
        cancel: CancellationToken | None = None,
    ) -> TranscriptionOutcome:
        preference = preference or TranscriptionPreference()
        cancel = cancel or CancellationToken()
        progress = ProgressTracker(reporter)
        token = set_correlation_id()
        started = time.perf_counter()
        model_tier = ModelTier.PRIMARY if preference.use_smart_model else ModelTier.FAST

        try:
            progress.report("Preparing Media for AI Engine...", 2)
            if self._settings.transport == "direct" and not self._credentials(
                CredentialTier.PRIMARY
            ):
                raise MissingCredentialError("primary credential not configured")

            validate_media(descriptor, max_size_mb=self._settings.max_media_size_mb)
            mime_type = resolve_descriptor_mime(descriptor)
            model_tier, boosted = select_model_tier(preference, mime_type, descriptor.size_bytes)
            if boosted:
                progress.report("High-complexity detected. Boosting to Deep Inference...")
            instruction = build_transcription_prompt(preference)
            uploaded = should_upload(descriptor.size_bytes, self._settings.inline_threshold_bytes)

            logger.info(
                "transcription_started",
                extra={
                    "size_bytes": descriptor.size_bytes,
                    "mime_type": mime_type,
                    "model_tier": model_tier.value,
                    "route": "upload" if uploaded else "inline",
                    "mode": preference.mode,
                },
            )

            credential_tier = CredentialTier.PRIMARY
            if uploaded:
                reference = await self._upload_client.upload(
                    descriptor,
                    mime_type,
                    credentials=self._credentials,
                    progress=progress,
                    cancel=cancel,
                )
                credential_tier = reference.credential_tier
                payload = build_reference_payload(reference, instruction)
                timeout = self._settings.reference_generation_timeout_seconds
            else:
                progress.report("Buffering audio for inline execution...", 12)
                payload = build_inline_payload(descriptor.content, mime_type, instruction)
                timeout = self._settings.inline_generation_timeout_seconds

            run = await self._orchestrator.run(
                payload,
                model_tier=model_tier,
                timeout=timeout,
                credential_tier=credential_tier,
                progress=progress,
                cancel=cancel,
            )
            progress.report("Transcription complete.", 100)
            logger.info(
                "transcription_completed",
                extra={"attempts": run.attempts, "model_tier": run.model_tier.value},
            )
            return TranscriptionOutcome(text=run.text, attempts=run.attempts)
        except TranscriptionError as exc:
            final_tier = ModelTier(exc.model_tier) if exc.model_tier else model_tier
            logger.warning(
                "transcription_failed",
                extra={
                    "error_code": exc.code,
                    "classification": exc.classification.value,
                    "status_code": exc.status_code,
                    "attempts": exc.attempts,
                    "model_tier": final_tier.value,
                },
            )
            return TranscriptionOutcome(
                text=None,
                error_code=exc.code,
                classification=exc.classification,
                user_message=to_user_message(exc, final_tier),
                attempts=exc.attempts,
            )
        finally:
            record_latency("transcription", "execute", (time.perf_counter() - started) * 1000)
            reset_correlation_id(token)
