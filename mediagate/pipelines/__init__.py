"""Request pipelines.

Each pipeline owns one workspace for the duration of a request:

1. `transcription` – acquire the source, extract mp3 audio, transcribe it.
2. `conversion` – stage the document and drive the remote conversion job.

Controllers import from here and receive pipeline instances through FastAPI
dependencies, so tests can swap any collaborator.
"""

from .conversion import ConversionPipeline
from .transcription import SourceMedia, TranscriptionPipeline

__all__ = ["ConversionPipeline", "SourceMedia", "TranscriptionPipeline"]
