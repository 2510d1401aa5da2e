"""Construct provider clients and pipelines from settings."""

from __future__ import annotations

from dataclasses import dataclass

from mediagate.pipelines import ConversionPipeline, TranscriptionPipeline
from mediagate.services import (
    AudioExtractor,
    CloudConvertClient,
    DocumentConverter,
    RemoteMediaFetcher,
    TranscriptionService,
    WorkspaceManager,
    build_openai_client,
)

from .settings import Settings


@dataclass
class Providers:
    """Provider handles shared by every request; none holds per-request state."""

    transcription: TranscriptionPipeline
    conversion: ConversionPipeline
    transcriber: TranscriptionService
    converter: DocumentConverter

    async def aclose(self) -> None:
        await self.transcriber.aclose()
        await self.converter.aclose()


def build_providers(config: Settings) -> Providers:
    """Wire pipelines with explicitly constructed collaborators."""

    workspaces = WorkspaceManager(config.workspace.root, prefix=config.workspace.prefix)

    openai_key = config.openai.api_key.get_secret_value() if config.openai.api_key else None
    transcriber = TranscriptionService(
        build_openai_client(openai_key, timeout_seconds=config.openai.timeout_seconds),
        model=config.openai.transcription_model,
    )

    cloudconvert = config.cloudconvert
    client = None
    if cloudconvert.api_key:
        client = CloudConvertClient(
            cloudconvert.api_key.get_secret_value(),
            base_url=cloudconvert.api_url,
            timeout_seconds=cloudconvert.request_timeout_seconds,
        )
    converter = DocumentConverter(
        client,
        poll_interval=cloudconvert.poll_interval_seconds,
        wait_timeout=cloudconvert.wait_timeout_seconds,
    )

    transcription = TranscriptionPipeline(
        workspaces=workspaces,
        fetcher=RemoteMediaFetcher(
            proxy=config.remote_fetch.proxy,
            chunk_size=config.remote_fetch.chunk_size,
            title_max_length=config.remote_fetch.title_max_length,
            timeout_seconds=config.remote_fetch.timeout_seconds,
        ),
        extractor=AudioExtractor(
            ffmpeg_binary=config.ffmpeg.binary,
            bitrate=config.ffmpeg.audio_bitrate,
            timeout_seconds=config.ffmpeg.timeout_seconds,
        ),
        transcriber=transcriber,
    )
    conversion = ConversionPipeline(workspaces=workspaces, converter=converter)

    return Providers(
        transcription=transcription,
        conversion=conversion,
        transcriber=transcriber,
        converter=converter,
    )


__all__ = ["Providers", "build_providers"]
