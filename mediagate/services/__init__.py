"""Service layer helpers for external integrations."""

from .acquisition import RemoteMediaFetcher, materialize_upload, validate_media_url
from .audio_extractor import AudioExtractor
from .cloudconvert import CloudConvertClient
from .document_conversion import (
    SUPPORTED_OUTPUT_FORMATS,
    DocumentConverter,
    mime_type_for,
    normalize_target_format,
)
from .errors import (
    ConfigurationError,
    GatewayError,
    LocalProcessingError,
    NormalizedError,
    UnknownError,
    UpstreamProviderError,
    ValidationError,
    normalize_error,
    to_gateway_error,
)
from .transcribe import TranscriptionService, build_openai_client
from .workspace import WorkspaceManager

__all__ = [
    "AudioExtractor",
    "CloudConvertClient",
    "ConfigurationError",
    "DocumentConverter",
    "GatewayError",
    "LocalProcessingError",
    "NormalizedError",
    "RemoteMediaFetcher",
    "SUPPORTED_OUTPUT_FORMATS",
    "TranscriptionService",
    "UnknownError",
    "UpstreamProviderError",
    "ValidationError",
    "WorkspaceManager",
    "build_openai_client",
    "materialize_upload",
    "mime_type_for",
    "normalize_error",
    "normalize_target_format",
    "to_gateway_error",
    "validate_media_url",
]
