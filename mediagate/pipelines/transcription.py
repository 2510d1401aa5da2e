"""Transcription pipeline: source -> workspace file -> mp3 -> transcript."""

from __future__ import annotations

import logging
import time
from typing import Union

from mediagate.domain import RemoteReference, TranscriptResult, UploadedBlob
from mediagate.services.acquisition import RemoteMediaFetcher, materialize_upload
from mediagate.services.audio_extractor import AudioExtractor
from mediagate.services.transcribe import TranscriptionService
from mediagate.services.workspace import WorkspaceManager
from mediagate.telemetry import observe_pipeline

logger = logging.getLogger(__name__)
transcript_logger = logging.getLogger("mediagate.logs.transcript")

SourceMedia = Union[UploadedBlob, RemoteReference]


class TranscriptionPipeline:
    """Single-attempt transcription of an upload or a remote video."""

    name = "transcription"

    def __init__(
        self,
        *,
        workspaces: WorkspaceManager,
        fetcher: RemoteMediaFetcher,
        extractor: AudioExtractor,
        transcriber: TranscriptionService,
    ) -> None:
        self._workspaces = workspaces
        self._fetcher = fetcher
        self._extractor = extractor
        self._transcriber = transcriber

    async def run(self, source: SourceMedia) -> TranscriptResult:
        started = time.perf_counter()
        outcome = "success"
        try:
            result = await self._run(source)
        except Exception as exc:
            outcome = type(exc).__name__
            raise
        finally:
            observe_pipeline(self.name, outcome, time.perf_counter() - started)

        transcript_logger.info(
            "source=%s | title=%s | chars=%d | text=%s",
            result.original_file_name,
            result.video_title,
            len(result.text),
            result.text,
        )
        return result

    async def _run(self, source: SourceMedia) -> TranscriptResult:
        async with self._workspaces.scope() as workspace:
            video_title = None
            if isinstance(source, UploadedBlob):
                media = await materialize_upload(workspace, source)
                original_name = source.name
            else:
                remote = await self._fetcher.fetch(source, workspace)
                media = remote.file
                video_title = original_name = remote.title

            audio = await self._extractor.extract(media, workspace.path)
            logger.info("Audio data ready for transcription at: %s", audio.path)
            text = await self._transcriber.transcribe(audio)

        return TranscriptResult(
            text=text,
            video_title=video_title,
            original_file_name=original_name,
        )


__all__ = ["SourceMedia", "TranscriptionPipeline"]
