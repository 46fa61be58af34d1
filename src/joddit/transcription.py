"""Deepgram speech-to-text client.

Posts raw audio to Deepgram's pre-recorded ``/v1/listen`` endpoint with
diarization enabled and turns the returned utterances into speaker-tagged
:class:`~joddit.note.Segment` objects.

Environment variables (optional; direct kwargs take precedence):
    JODDIT_DEEPGRAM_API_KEY   – Deepgram API key
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import httpx

from joddit.exceptions import TranscriptionError
from joddit.note import Segment

logger = logging.getLogger(__name__)

_LISTEN_PARAMS = {
    "model": "nova-2",
    "smart_format": "true",
    "diarize": "true",
    "punctuate": "true",
    "utterances": "true",
}


@dataclass
class Transcript:
    transcript: str
    segments: list[Segment] = field(default_factory=list)


class DeepgramTranscriber:
    """HTTP client for Deepgram transcription."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str = "https://api.deepgram.com",
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or os.getenv("JODDIT_DEEPGRAM_API_KEY", "")
        if not self._api_key:
            logger.warning("Deepgram API key is not configured")
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Token {self._api_key}"},
            timeout=timeout,
            transport=transport,
        )

    def transcribe(self, audio: bytes, content_type: str = "audio/wav") -> Transcript:
        if not self._api_key:
            raise TranscriptionError("Deepgram API key not configured")
        try:
            r = self._client.post(
                "/v1/listen",
                params=_LISTEN_PARAMS,
                content=audio,
                headers={"Content-Type": content_type},
            )
        except httpx.HTTPError as e:
            raise TranscriptionError("Deepgram request failed", str(e)) from e
        if r.is_error:
            raise TranscriptionError(f"Deepgram API error: {r.status_code}", r.text)
        try:
            return parse_response(r.json())
        except (ValueError, KeyError, TypeError) as e:
            raise TranscriptionError("Unexpected Deepgram response", str(e)) from e

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DeepgramTranscriber":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def parse_response(payload: dict[str, Any]) -> Transcript:
    """Extract the transcript and diarized utterances from a listen response."""
    results = payload.get("results") or {}
    channels = results.get("channels") or [{}]
    alternatives = channels[0].get("alternatives") or [{}]
    transcript = alternatives[0].get("transcript") or ""

    segments = [
        Segment(
            speaker_id=f"speaker-{u.get('speaker', 0)}",
            text=u.get("transcript", ""),
            timestamp=float(u.get("start") or 0.0),
        )
        for u in results.get("utterances") or []
    ]
    return Transcript(transcript=transcript, segments=segments)


def format_transcript_with_speakers(segments: list[Segment]) -> str:
    """Render ``Speaker N: text`` blocks separated by blank lines."""
    blocks = []
    for seg in segments:
        number = seg.speaker_id.removeprefix("speaker-")
        label = f"Speaker {int(number) + 1}" if number.isdigit() else seg.speaker_id
        blocks.append(f"{label}: {seg.text}")
    return "\n\n".join(blocks)
