"""OpenAI Whisper integration for the transcription pipeline."""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping

from fastapi.concurrency import run_in_threadpool
from openai import AsyncOpenAI, OpenAIError

from mediagate.domain import ExtractedAudio
from mediagate.services.errors import (
    ConfigurationError,
    LocalProcessingError,
    UpstreamProviderError,
)

logger = logging.getLogger(__name__)


def _as_mapping(response: Any) -> Mapping[str, Any]:
    if isinstance(response, Mapping):
        return response
    if hasattr(response, "model_dump"):
        dumped = response.model_dump()
        if isinstance(dumped, Mapping):
            return dumped
    return {}


def extract_transcript_text(response: Any) -> str:
    """Return the transcript text from a provider response of any known shape."""

    text = getattr(response, "text", None)
    if isinstance(text, str):
        return text

    logger.warning("Unexpected transcription response format: %r", response)
    payload = _as_mapping(response)
    if isinstance(payload.get("text"), str):
        return payload["text"]

    data = payload.get("data")
    if isinstance(data, Mapping) and isinstance(data.get("text"), str):
        return data["text"]

    raise LocalProcessingError(
        "Could not extract text from transcription response: unrecognized response shape."
    )


def describe_provider_failure(exc: BaseException) -> tuple[str, Any]:
    """Pick the most specific message an SDK exception carries, plus its payload."""

    payload = getattr(exc, "body", None)
    if payload is None:
        payload = getattr(getattr(exc, "response", None), "data", None)

    message = None
    if isinstance(payload, Mapping):
        nested = payload.get("error")
        source = nested if isinstance(nested, Mapping) else payload
        if isinstance(source.get("message"), str):
            message = source["message"]

    if not message:
        error = getattr(exc, "error", None)
        if isinstance(error, Mapping) and isinstance(error.get("message"), str):
            message = error["message"]
        elif isinstance(error, str):
            message = error

    return message or str(exc) or exc.__class__.__name__, payload


def _ensure_readable(path) -> None:
    if not os.path.isfile(path) or not os.access(path, os.R_OK):
        raise LocalProcessingError(f"Audio file is missing or unreadable: {path}")


class TranscriptionService:
    """Facade over the speech-to-text provider."""

    def __init__(self, client: AsyncOpenAI | None, *, model: str = "whisper-1") -> None:
        self._client = client
        self._model = model

    @property
    def configured(self) -> bool:
        return self._client is not None

    async def transcribe(self, audio: ExtractedAudio) -> str:
        """Send ``audio`` to the provider and return plain transcript text."""

        if self._client is None:
            raise ConfigurationError("OpenAI API key is not configured. Cannot transcribe.")

        await run_in_threadpool(_ensure_readable, audio.path)
        logger.info("Transcribing audio with %s: %s", self._model, audio.path)

        try:
            with open(audio.path, "rb") as audio_file:
                response = await self._client.audio.transcriptions.create(
                    model=self._model,
                    file=audio_file,
                )
        except OpenAIError as exc:
            message, payload = describe_provider_failure(exc)
            logger.error("Transcription provider error: %s", payload or message)
            raise UpstreamProviderError(
                f"Whisper API transcription failed: {message}",
                details=payload,
            ) from exc
        except OSError as exc:
            raise LocalProcessingError(f"Failed to read audio file: {exc}") from exc

        text = extract_transcript_text(response)
        logger.info("Transcription complete. Length: %d", len(text))
        return text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()


def build_openai_client(
    api_key: str | None,
    *,
    timeout_seconds: float,
) -> AsyncOpenAI | None:
    """Create the provider client, or ``None`` when no key is configured."""

    if not api_key:
        logger.warning("OPENAI_API_KEY is not set; transcription requests will fail.")
        return None
    return AsyncOpenAI(api_key=api_key, timeout=timeout_seconds, max_retries=0)


__all__ = [
    "TranscriptionService",
    "build_openai_client",
    "describe_provider_failure",
    "extract_transcript_text",
]
