"""Unit tests for joddit.transcription."""

import httpx
import pytest

from joddit.exceptions import TranscriptionError
from joddit.note import Segment
from joddit.transcription import (
    DeepgramTranscriber,
    format_transcript_with_speakers,
    parse_response,
)


# ---------------------------------------------------------------------------
# DeepgramTranscriber
# ---------------------------------------------------------------------------


class TestDeepgramTranscriber:
    def test_request_shape(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"results": {}})

        DeepgramTranscriber("secret", transport=httpx.MockTransport(handler)).transcribe(b"abc")
        request = seen["request"]
        assert request.url.path == "/v1/listen"
        assert request.url.params["model"] == "nova-2"
        assert request.url.params["diarize"] == "true"
        assert request.headers["authorization"] == "Token secret"
        assert request.headers["content-type"] == "audio/wav"
        assert request.content == b"abc"

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("JODDIT_DEEPGRAM_API_KEY", raising=False)
        with pytest.raises(TranscriptionError):
            DeepgramTranscriber().transcribe(b"abc")

    def test_http_error(self):
        client = DeepgramTranscriber(
            "k", transport=httpx.MockTransport(lambda r: httpx.Response(402, text="no credit"))
        )
        with pytest.raises(TranscriptionError) as exc:
            client.transcribe(b"abc")
        assert "402" in exc.value.message
        assert exc.value.detail == "no credit"

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(TranscriptionError):
            DeepgramTranscriber("k", transport=httpx.MockTransport(handler)).transcribe(b"abc")

    def test_non_json_body(self):
        client = DeepgramTranscriber(
            "k", transport=httpx.MockTransport(lambda r: httpx.Response(200, text="<html>"))
        )
        with pytest.raises(TranscriptionError):
            client.transcribe(b"abc")


# ---------------------------------------------------------------------------
# parse_response()
# ---------------------------------------------------------------------------


class TestParseResponse:
    def test_transcript_and_segments(self):
        result = parse_response(
            {
                "results": {
                    "channels": [{"alternatives": [{"transcript": "hi all"}]}],
                    "utterances": [{"speaker": 2, "transcript": "hi all", "start": 3.25}],
                }
            }
        )
        assert result.transcript == "hi all"
        assert result.segments == [Segment("speaker-2", "hi all", 3.25)]

    def test_empty_results(self):
        result = parse_response({})
        assert result.transcript == ""
        assert result.segments == []


# ---------------------------------------------------------------------------
# format_transcript_with_speakers()
# ---------------------------------------------------------------------------


class TestFormatTranscript:
    def test_no_segments(self):
        assert format_transcript_with_speakers([]) == ""

    def test_speakers_are_one_based(self):
        text = format_transcript_with_speakers(
            [Segment("speaker-0", "first"), Segment("speaker-1", "second")]
        )
        assert text == "Speaker 1: first\n\nSpeaker 2: second"

    def test_unknown_speaker_label_passes_through(self):
        assert format_transcript_with_speakers([Segment("host", "hey")]) == "host: hey"
