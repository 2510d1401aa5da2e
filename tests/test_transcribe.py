"""Tests for the speech-to-text facade."""

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from mediagate.domain import ExtractedAudio, LocalMediaFile
from mediagate.services.errors import (
    ConfigurationError,
    LocalProcessingError,
    UpstreamProviderError,
)
from mediagate.services.transcribe import (
    TranscriptionService,
    build_openai_client,
    describe_provider_failure,
    extract_transcript_text,
)


class FakeTranscriptions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def create(self, *, model, file):
        self.calls.append({"model": model, "name": str(file.name), "data": file.read()})
        if self.error is not None:
            raise self.error
        return self.response


def _client(transcriptions: FakeTranscriptions):
    return SimpleNamespace(audio=SimpleNamespace(transcriptions=transcriptions))


@pytest.fixture
def audio(tmp_path) -> ExtractedAudio:
    path = tmp_path / "clip_audio.mp3"
    path.write_bytes(b"ID3 audio")
    return ExtractedAudio(path=path, source=LocalMediaFile(path=tmp_path / "clip.mp4"))


def test_extract_text_from_attribute():
    assert extract_transcript_text(SimpleNamespace(text="hello")) == "hello"


def test_extract_text_from_mapping_shapes():
    assert extract_transcript_text({"text": "top level"}) == "top level"
    assert extract_transcript_text({"data": {"text": "nested"}}) == "nested"


def test_extract_empty_text_is_valid():
    assert extract_transcript_text(SimpleNamespace(text="")) == ""


def test_extract_text_rejects_unknown_shape():
    with pytest.raises(LocalProcessingError) as excinfo:
        extract_transcript_text({"segments": []})

    assert "unrecognized response shape" in excinfo.value.message


def _status_error(body) -> openai.APIStatusError:
    request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
    response = httpx.Response(400, request=request, json=body)
    return openai.APIStatusError("Error code: 400", response=response, body=body)


def test_describe_provider_failure_prefers_nested_error_message():
    error = _status_error({"error": {"message": "Invalid file format.", "type": "invalid_request_error"}})

    message, payload = describe_provider_failure(error)

    assert message == "Invalid file format."
    assert payload == {"error": {"message": "Invalid file format.", "type": "invalid_request_error"}}


def test_describe_provider_failure_falls_back_to_text():
    message, payload = describe_provider_failure(RuntimeError("socket closed"))

    assert message == "socket closed"
    assert payload is None


@pytest.mark.anyio
async def test_transcribe_sends_audio_file(audio):
    transcriptions = FakeTranscriptions(response=SimpleNamespace(text="Good morning."))
    service = TranscriptionService(_client(transcriptions), model="whisper-1")

    text = await service.transcribe(audio)

    assert text == "Good morning."
    assert transcriptions.calls == [
        {"model": "whisper-1", "name": str(audio.path), "data": b"ID3 audio"}
    ]


@pytest.mark.anyio
async def test_transcribe_without_client_is_configuration_error(audio):
    service = TranscriptionService(None)

    assert service.configured is False
    with pytest.raises(ConfigurationError) as excinfo:
        await service.transcribe(audio)

    assert excinfo.value.message == "OpenAI API key is not configured. Cannot transcribe."


@pytest.mark.anyio
async def test_transcribe_missing_audio_is_local_error(tmp_path):
    transcriptions = FakeTranscriptions(response=SimpleNamespace(text="unused"))
    service = TranscriptionService(_client(transcriptions))
    missing = ExtractedAudio(path=tmp_path / "nope.mp3", source=LocalMediaFile(path=tmp_path / "x.mp4"))

    with pytest.raises(LocalProcessingError):
        await service.transcribe(missing)

    assert transcriptions.calls == []


@pytest.mark.anyio
async def test_provider_failure_becomes_upstream_error(audio):
    body = {"error": {"message": "Invalid file format.", "type": "invalid_request_error"}}
    service = TranscriptionService(_client(FakeTranscriptions(error=_status_error(body))))

    with pytest.raises(UpstreamProviderError) as excinfo:
        await service.transcribe(audio)

    assert excinfo.value.message == "Whisper API transcription failed: Invalid file format."
    assert excinfo.value.details == body


def test_build_openai_client_requires_key():
    assert build_openai_client(None, timeout_seconds=30) is None
    assert build_openai_client("", timeout_seconds=30) is None

    client = build_openai_client("sk-test", timeout_seconds=30)
    assert client is not None
    assert client.max_retries == 0
