"""Document conversion pipeline."""

from __future__ import annotations

import logging
import time

from mediagate.domain import ConversionResult, UploadedBlob
from mediagate.services.acquisition import materialize_upload
from mediagate.services.document_conversion import (
    DocumentConverter,
    normalize_target_format,
)
from mediagate.services.workspace import WorkspaceManager
from mediagate.telemetry import observe_pipeline

logger = logging.getLogger(__name__)


class ConversionPipeline:
    """Stage an uploaded document and convert it remotely."""

    name = "conversion"

    def __init__(self, *, workspaces: WorkspaceManager, converter: DocumentConverter) -> None:
        self._workspaces = workspaces
        self._converter = converter

    async def run(self, document: UploadedBlob, target_format: str) -> ConversionResult:
        # Both checks run before a workspace exists or the provider is contacted.
        target_format = normalize_target_format(target_format)
        self._converter.ensure_configured()

        started = time.perf_counter()
        outcome = "success"
        try:
            async with self._workspaces.scope() as workspace:
                staged = await materialize_upload(workspace, document)
                result = await self._converter.convert(staged.path, document.name, target_format)
        except Exception as exc:
            outcome = type(exc).__name__
            raise
        finally:
            observe_pipeline(self.name, outcome, time.perf_counter() - started)

        logger.info(
            "Converted %s to %s (%d bytes)", document.name, result.filename, len(result.data)
        )
        return result


__all__ = ["ConversionPipeline"]
