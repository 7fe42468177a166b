#!/usr/bin/env python3
"""Transcreve um arquivo de mídia local e imprime o texto.

Uso:
    python scripts/transcribe_file.py entrevista.mp3 --mode polish --no-speakers

Status e progresso vão para stderr; o texto para stdout. Sai com código
1 quando a transcrição falha (mensagem do usuário em stderr).
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys

from app.bootstrap import create_http_client, create_transcription_use_case, initialize_app
from app.domain.media import MediaDescriptor
from app.domain.transcription import TranscriptionOutcome, TranscriptionPreference
from app.services.cancellation import CancellationToken
from app.services.progress import CallbackStatusReporter


def render_status(message: str, progress: float | None) -> None:
    prefix = f"[{progress:5.1f}%] " if progress is not None else " " * 9
    print(f"{prefix}{message}", file=sys.stderr)


async def transcribe(args: argparse.Namespace) -> TranscriptionOutcome:
    descriptor = MediaDescriptor.from_path(args.path, declared_mime_type=args.mime_type)
    preference = TranscriptionPreference(
        mode=args.mode,
        detect_speakers=not args.no_speakers,
        use_smart_model=not args.fast,
    )
    cancel = CancellationToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.cancel, "interrupted")
    except NotImplementedError:
        pass

    async with create_http_client() as http_client:
        use_case = create_transcription_use_case(http_client)
        return await use_case.execute(
            descriptor,
            preference,
            reporter=CallbackStatusReporter(render_status),
            cancel=cancel,
        )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("path", help="Arquivo de áudio ou vídeo")
    parser.add_argument(
        "--mode",
        choices=("verbatim", "polish"),
        default="verbatim",
        help="verbatim (literal) ou polish (intelligent verbatim)",
    )
    parser.add_argument(
        "--no-speakers",
        action="store_true",
        help="Não rotular locutores",
    )
    parser.add_argument(
        "--fast",
        action="store_true",
        help="Começar no modelo rápido (vídeo ou >15MB sobe para o primário)",
    )
    parser.add_argument(
        "--mime-type",
        default="",
        help="MIME declarado (default: detectado pela extensão)",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    initialize_app()
    outcome = asyncio.run(transcribe(args))
    if not outcome.ok:
        print(outcome.user_message, file=sys.stderr)
        sys.exit(1)
    print(outcome.text)


if __name__ == "__main__":
    main()
