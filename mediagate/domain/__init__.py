"""Domain value objects for the gateway."""

from .models import (
    MAX_FILENAME_BYTES,
    TERMINAL_JOB_STATUSES,
    ConversionJob,
    ConversionResult,
    ConversionTask,
    ExtractedAudio,
    LocalMediaFile,
    RemoteMedia,
    RemoteReference,
    TranscriptResult,
    UploadedBlob,
    Workspace,
    fit_filename,
    safe_filename,
)

__all__ = [
    "MAX_FILENAME_BYTES",
    "TERMINAL_JOB_STATUSES",
    "ConversionJob",
    "ConversionResult",
    "ConversionTask",
    "ExtractedAudio",
    "LocalMediaFile",
    "RemoteMedia",
    "RemoteReference",
    "TranscriptResult",
    "UploadedBlob",
    "Workspace",
    "fit_filename",
    "safe_filename",
]
