"""Cliente de geração: uma chamada, um texto (ou erro classificado)."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import TYPE_CHECKING, Any

from app.domain.errors import EmptyResponseError, NetworkUnreachableError, SafetyBlockedError
from app.services.cancellation import CancellationToken
from app.services.error_classifier import classify_exception

if TYPE_CHECKING:
    from app.domain.media import MediaReference
    from app.protocols.gemini_transport import GeminiTransportProtocol

logger = logging.getLogger(__name__)

SAFETY_FINISH_REASONS = frozenset({"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII"})


def build_inline_payload(content: bytes, mime_type: str, instruction: str) -> dict[str, Any]:
    """Payload com a mídia embutida em base64."""
    return {
        "contents": [
            {
                "parts": [
                    {
                        "inline_data": {
                            "mime_type": mime_type,
                            "data": base64.b64encode(content).decode("ascii"),
                        }
                    },
                    {"text": instruction},
                ]
            }
        ]
    }


def build_reference_payload(reference: MediaReference, instruction: str) -> dict[str, Any]:
    """Payload que cita a mídia já enviada pela URI."""
    return {
        "contents": [
            {
                "parts": [
                    {"file_data": {"mime_type": reference.mime_type, "file_uri": reference.uri}},
                    {"text": instruction},
                ]
            }
        ]
    }


def extract_text(response: dict[str, Any]) -> str:
    """Concatena o texto de candidates[0].content.parts.

    Raises:
        SafetyBlockedError: Prompt ou candidato bloqueado por política
        EmptyResponseError: Sucesso sem texto utilizável
    """
    if not isinstance(response, dict):
        raise EmptyResponseError("malformed response")

    feedback = response.get("promptFeedback") or {}
    block_reason = feedback.get("blockReason") if isinstance(feedback, dict) else None
    if block_reason:
        raise SafetyBlockedError(f"prompt blocked: {block_reason}")

    candidates = response.get("candidates") or []
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        raise EmptyResponseError("no candidates")

    candidate = candidates[0]
    finish_reason = str(candidate.get("finishReason") or "")
    if finish_reason in SAFETY_FINISH_REASONS:
        raise SafetyBlockedError(f"candidate blocked: {finish_reason}")

    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise EmptyResponseError("malformed content")
    text = "".join(
        part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
    )
    if not text.strip():
        raise EmptyResponseError("empty text")
    return text


class GenerationClient:
    """Executa exatamente uma chamada de geração por invocação."""

    __slots__ = ("_transport",)

    def __init__(self, transport: GeminiTransportProtocol) -> None:
        self._transport = transport

    async def generate(
        self,
        model: str,
        credential: str,
        payload: dict[str, Any],
        timeout: float,
        cancel: CancellationToken | None = None,
    ) -> str:
        """Gera o texto.

        O timeout é imposto aqui (além do timeout HTTP) e vira
        NetworkUnreachable. Qualquer outra falha sai já classificada.
        """
        cancel = cancel or CancellationToken()
        try:
            async with asyncio.timeout(timeout):
                response = await cancel.run(
                    self._transport.generate_content(
                        credential=credential,
                        model=model,
                        payload=payload,
                        timeout=timeout,
                    )
                )
        except TimeoutError as exc:
            logger.warning("gemini_generate_timeout", extra={"model": model, "timeout": timeout})
            raise NetworkUnreachableError("timeout", upstream_message="timeout") from exc
        except Exception as exc:
            classified = classify_exception(exc)
            if classified is exc:
                raise
            raise classified from exc
        return extract_text(response)
