"""Testes do ResumableUploadClient (init → transferência → polling)."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import SimpleNamespace

import httpx
import pytest

from app.domain.attempts import CredentialTier
from app.domain.errors import (
    ProcessingFailedError,
    ProcessingTimeoutError,
    TranscriptionCancelledError,
    UploadInitError,
    UploadTransferError,
)
from app.domain.media import MediaDescriptor
from app.infra.gemini.transport import GeminiDirectTransport
from app.infra.gemini.upload_client import ResumableUploadClient
from app.services.cancellation import CancellationToken
from app.services.progress import ProgressTracker
from config.settings import UploadPollSettings

SESSION_URL = "https://upload.test/session/1"
CREDENTIALS = {CredentialTier.PRIMARY: "key-primary", CredentialTier.SECONDARY: "key-secondary"}
NO_SECONDARY = {CredentialTier.PRIMARY: "key-primary", CredentialTier.SECONDARY: ""}


@dataclass
class FakeGemini:
    """Upstream scriptado: respostas de init e poll consumidas em ordem."""

    init_responses: list[httpx.Response] = field(default_factory=list)
    transfer_response: httpx.Response | None = None
    poll_responses: list[httpx.Response] = field(default_factory=list)
    init_requests: list[httpx.Request] = field(default_factory=list)
    transfer_requests: list[httpx.Request] = field(default_factory=list)
    poll_requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/upload/v1beta/files":
            self.init_requests.append(request)
            if self.init_responses:
                return self.init_responses.pop(0)
            return httpx.Response(200, headers={"x-goog-upload-url": SESSION_URL})
        if str(request.url) == SESSION_URL:
            self.transfer_requests.append(request)
            return self.transfer_response or _file_response("PROCESSING")
        if request.url.path.startswith("/v1beta/files/"):
            self.poll_requests.append(request)
            if self.poll_responses:
                return self.poll_responses.pop(0)
            return httpx.Response(200, json={"name": "files/abc", "state": "PROCESSING"})
        raise AssertionError(f"rota inesperada: {request.method} {request.url}")


def _file_response(state: str, *, wrapped: bool = True) -> httpx.Response:
    resource = {
        "name": "files/abc",
        "uri": "https://upstream.test/v1beta/files/abc",
        "mimeType": "audio/wav",
        "state": state,
    }
    return httpx.Response(200, json={"file": resource} if wrapped else resource)


def _poll(state: str) -> httpx.Response:
    return _file_response(state, wrapped=False)


class _Recorder:
    def __init__(self) -> None:
        self.events: list[tuple[str, float | None]] = []

    def report(self, message: str, progress: float | None = None) -> None:
        self.events.append((message, progress))


def _client(fake: FakeGemini, *, max_polls: int = 5, chunk_size: int = 4) -> ResumableUploadClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(fake))
    poll_settings = UploadPollSettings(
        fast_interval_seconds=0,
        fast_count=max_polls,
        slow_interval_seconds=0,
        max_wait_seconds=10,
    )
    return ResumableUploadClient(
        GeminiDirectTransport(http_client, "https://upstream.test"),
        http_client,
        poll_settings=poll_settings,
        chunk_size=chunk_size,
    )


MEDIA = MediaDescriptor(content=b"0123456789", display_name="talk.wav")


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_polls_until_active(self) -> None:
        fake = FakeGemini(poll_responses=[_poll("PROCESSING"), _poll("PROCESSING"), _poll("ACTIVE")])
        recorder = _Recorder()

        reference = await _client(fake).upload(
            MEDIA,
            "audio/wav",
            credentials=CREDENTIALS.__getitem__,
            progress=ProgressTracker(recorder),
        )

        assert reference.name == "files/abc"
        assert reference.uri == "https://upstream.test/v1beta/files/abc"
        assert reference.mime_type == "audio/wav"
        assert reference.credential_tier is CredentialTier.PRIMARY
        assert len(fake.init_requests) == 1
        assert len(fake.transfer_requests) == 1
        assert len(fake.poll_requests) == 3
        values = [value for _, value in recorder.events if value is not None]
        assert values == sorted(values)
        assert recorder.events[-1] == ("Media ready for inference.", 58.0)

    @pytest.mark.asyncio
    async def test_transfer_sends_all_bytes_once_with_finalize(self) -> None:
        fake = FakeGemini(transfer_response=_file_response("ACTIVE"))

        await _client(fake).upload(MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__)

        request = fake.transfer_requests[0]
        assert request.content == MEDIA.content
        assert request.headers["x-goog-upload-offset"] == "0"
        assert request.headers["x-goog-upload-command"] == "upload, finalize"
        assert request.headers["content-length"] == "10"

    @pytest.mark.asyncio
    async def test_active_after_transfer_skips_polling(self) -> None:
        fake = FakeGemini(transfer_response=_file_response("ACTIVE"))

        reference = await _client(fake).upload(
            MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__
        )

        assert reference.name == "files/abc"
        assert fake.poll_requests == []

    @pytest.mark.asyncio
    async def test_transfer_progress_spans_10_to_50(self) -> None:
        fake = FakeGemini(transfer_response=_file_response("ACTIVE"))
        recorder = _Recorder()

        await _client(fake, chunk_size=5).upload(
            MEDIA,
            "audio/wav",
            credentials=CREDENTIALS.__getitem__,
            progress=ProgressTracker(recorder),
        )

        uploading = [value for message, value in recorder.events if message.startswith("Uploading")]
        assert uploading == [30.0, 50.0]


class TestSessionInit:
    @pytest.mark.asyncio
    async def test_rate_limited_init_switches_to_secondary_once(self) -> None:
        fake = FakeGemini(
            init_responses=[httpx.Response(429, text="busy")],
            transfer_response=_file_response("PROCESSING"),
            poll_responses=[_poll("ACTIVE")],
        )
        recorder = _Recorder()

        reference = await _client(fake).upload(
            MEDIA,
            "audio/wav",
            credentials=CREDENTIALS.__getitem__,
            progress=ProgressTracker(recorder),
        )

        assert [r.headers["x-goog-api-key"] for r in fake.init_requests] == [
            "key-primary",
            "key-secondary",
        ]
        assert fake.poll_requests[0].headers["x-goog-api-key"] == "key-secondary"
        assert reference.credential_tier is CredentialTier.SECONDARY
        assert ("Upload slot busy. Switching to secondary credential...", None) in recorder.events

    @pytest.mark.asyncio
    async def test_second_rate_limit_fails(self) -> None:
        fake = FakeGemini(init_responses=[httpx.Response(429), httpx.Response(429)])

        with pytest.raises(UploadInitError) as exc_info:
            await _client(fake).upload(MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__)

        assert exc_info.value.status_code == 429
        assert len(fake.init_requests) == 2
        assert fake.transfer_requests == []

    @pytest.mark.asyncio
    async def test_rate_limit_without_secondary_fails_immediately(self) -> None:
        fake = FakeGemini(init_responses=[httpx.Response(429)])

        with pytest.raises(UploadInitError):
            await _client(fake).upload(MEDIA, "audio/wav", credentials=NO_SECONDARY.__getitem__)

        assert len(fake.init_requests) == 1

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self) -> None:
        fake = FakeGemini(init_responses=[httpx.Response(503, text="unavailable")])

        with pytest.raises(UploadInitError) as exc_info:
            await _client(fake).upload(MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__)

        assert exc_info.value.status_code == 503
        assert len(fake.init_requests) == 1

    @pytest.mark.asyncio
    async def test_missing_session_url_fails(self) -> None:
        fake = FakeGemini(init_responses=[httpx.Response(200)])

        with pytest.raises(UploadInitError):
            await _client(fake).upload(MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__)


class TestTransfer:
    @pytest.mark.asyncio
    async def test_failed_transfer_is_never_retried(self) -> None:
        fake = FakeGemini(transfer_response=httpx.Response(500, text="reset"))

        with pytest.raises(UploadTransferError) as exc_info:
            await _client(fake).upload(MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__)

        assert exc_info.value.status_code == 500
        assert len(fake.transfer_requests) == 1
        assert fake.poll_requests == []

    @pytest.mark.asyncio
    async def test_transfer_without_file_name_fails(self) -> None:
        fake = FakeGemini(transfer_response=httpx.Response(200, json={"file": {"state": "ACTIVE"}}))

        with pytest.raises(UploadTransferError):
            await _client(fake).upload(MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__)

    @pytest.mark.asyncio
    async def test_failed_state_after_transfer(self) -> None:
        fake = FakeGemini(transfer_response=_file_response("FAILED"))

        with pytest.raises(ProcessingFailedError):
            await _client(fake).upload(MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__)


class TestPolling:
    @pytest.mark.asyncio
    async def test_failed_state_stops_polling(self) -> None:
        fake = FakeGemini(poll_responses=[_poll("PROCESSING"), _poll("FAILED")])

        with pytest.raises(ProcessingFailedError):
            await _client(fake).upload(MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__)

        assert len(fake.poll_requests) == 2

    @pytest.mark.asyncio
    async def test_ceiling_raises_processing_timeout(self) -> None:
        fake = FakeGemini()

        with pytest.raises(ProcessingTimeoutError):
            await _client(fake, max_polls=3).upload(
                MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__
            )

        assert len(fake.poll_requests) == 3

    @pytest.mark.asyncio
    async def test_wall_clock_deadline_applies_to_successful_polls(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        ticks = iter(range(0, 100_000, 400))
        monkeypatch.setattr(
            "app.infra.gemini.upload_client.time",
            SimpleNamespace(monotonic=lambda: next(ticks)),
        )
        fake = FakeGemini()
        client = _client(fake, max_polls=50)

        with pytest.raises(ProcessingTimeoutError):
            await client.upload(MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__)

        assert len(fake.poll_requests) < 50

    @pytest.mark.asyncio
    async def test_transient_errors_do_not_count(self) -> None:
        fake = FakeGemini(
            poll_responses=[
                _poll("PROCESSING"),
                httpx.Response(503, text="unavailable"),
                httpx.Response(429, text="busy"),
                _poll("ACTIVE"),
            ]
        )

        reference = await _client(fake, max_polls=2).upload(
            MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__
        )

        assert reference.name == "files/abc"
        assert len(fake.poll_requests) == 4

    @pytest.mark.asyncio
    async def test_fatal_poll_error_fails(self) -> None:
        fake = FakeGemini(poll_responses=[httpx.Response(404, text="not found")])

        with pytest.raises(ProcessingFailedError) as exc_info:
            await _client(fake).upload(MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__)

        assert exc_info.value.status_code == 404


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancelled_before_start(self) -> None:
        fake = FakeGemini()
        cancel = CancellationToken()
        cancel.cancel("user_abort")

        with pytest.raises(TranscriptionCancelledError):
            await _client(fake).upload(
                MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__, cancel=cancel
            )

        assert fake.init_requests == []

    @pytest.mark.asyncio
    async def test_cancel_during_polling(self) -> None:
        cancel = CancellationToken()
        fake = FakeGemini()
        original = fake.__call__

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/v1beta/files/"):
                cancel.cancel("user_abort")
            return original(request)

        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = ResumableUploadClient(
            GeminiDirectTransport(http_client, "https://upstream.test"),
            http_client,
            poll_settings=UploadPollSettings(
                fast_interval_seconds=0, fast_count=50, slow_interval_seconds=0
            ),
        )

        with pytest.raises(TranscriptionCancelledError):
            await client.upload(
                MEDIA, "audio/wav", credentials=CREDENTIALS.__getitem__, cancel=cancel
            )

        assert len(fake.poll_requests) == 1

    @pytest.mark.asyncio
    async def test_cancel_during_transfer(self) -> None:
        cancel = CancellationToken()
        fake = FakeGemini()

        class CancelMidTransfer:
            def report(self, message: str, progress: float | None = None) -> None:
                if message.startswith("Uploading media"):
                    cancel.cancel("user_abort")

        with pytest.raises(TranscriptionCancelledError) as exc_info:
            await _client(fake, chunk_size=2).upload(
                MEDIA,
                "audio/wav",
                credentials=CREDENTIALS.__getitem__,
                progress=ProgressTracker(CancelMidTransfer()),
                cancel=cancel,
            )

        assert exc_info.value.code == "cancelled"
        assert fake.poll_requests == []
