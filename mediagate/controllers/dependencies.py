"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from mediagate.config.dependencies import Providers
from mediagate.pipelines import ConversionPipeline, TranscriptionPipeline


def get_providers(request: Request) -> Providers:
    """Return the provider bundle built at application start-up."""

    return request.app.state.providers


def get_transcription_pipeline(request: Request) -> TranscriptionPipeline:
    return get_providers(request).transcription


def get_conversion_pipeline(request: Request) -> ConversionPipeline:
    return get_providers(request).conversion


TranscriptionPipelineDep = Annotated[
    TranscriptionPipeline, Depends(get_transcription_pipeline)
]
ConversionPipelineDep = Annotated[ConversionPipeline, Depends(get_conversion_pipeline)]


__all__ = [
    "ConversionPipelineDep",
    "TranscriptionPipelineDep",
    "get_conversion_pipeline",
    "get_providers",
    "get_transcription_pipeline",
]
