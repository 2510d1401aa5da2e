"""Document conversion through a three-task CloudConvert job.

The job graph is ``import-file`` (upload) -> ``convert-file`` ->
``export-file`` (temporary URL). Tasks reference each other by name, so the
orchestrator looks them up by name on every job snapshot it receives.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePath
from typing import Any, Final, Optional

from mediagate.domain import ConversionJob, ConversionResult
from mediagate.services.cloudconvert import CloudConvertClient
from mediagate.services.errors import (
    ConfigurationError,
    GatewayError,
    LocalProcessingError,
    UpstreamProviderError,
    ValidationError,
    normalize_error,
)

logger = logging.getLogger(__name__)

IMPORT_TASK: Final = "import-file"
CONVERT_TASK: Final = "convert-file"
EXPORT_TASK: Final = "export-file"

EXT_TO_MIMETYPE: Final[dict[str, str]] = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "txt": "text/plain",
    "html": "text/html",
    "odt": "application/vnd.oasis.opendocument.text",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "jpg": "image/jpeg",
    "png": "image/png",
}
SUPPORTED_OUTPUT_FORMATS: Final = tuple(EXT_TO_MIMETYPE)
DEFAULT_MIMETYPE: Final = "application/octet-stream"


def normalize_target_format(target_format: Optional[str]) -> str:
    """Lower-case ``target_format`` and reject anything outside the supported set."""

    candidate = (target_format or "").strip().lower()
    if candidate not in SUPPORTED_OUTPUT_FORMATS:
        raise ValidationError(f"Unsupported target format: {target_format}")
    return candidate


def mime_type_for(target_format: str) -> str:
    return EXT_TO_MIMETYPE.get(target_format.lower(), DEFAULT_MIMETYPE)


def build_job_tasks(target_format: str) -> dict[str, dict[str, Any]]:
    return {
        IMPORT_TASK: {"operation": "import/upload"},
        CONVERT_TASK: {
            "operation": "convert",
            "input": IMPORT_TASK,
            "output_format": target_format.lower(),
        },
        EXPORT_TASK: {"operation": "export/url", "input": CONVERT_TASK, "inline": False},
    }


def _attach_job_id(details: Any, job_id: Optional[str]) -> Any:
    if not job_id:
        return details
    if details is None:
        return {"job_id": job_id}
    if isinstance(details, dict):
        return {"job_id": job_id, **details}
    return {"job_id": job_id, "cause": details}


class DocumentConverter:
    """Drive a conversion job from creation to downloaded bytes."""

    def __init__(
        self,
        client: CloudConvertClient | None,
        *,
        poll_interval: float = 2.0,
        wait_timeout: float = 300.0,
    ) -> None:
        self._client = client
        self._poll_interval = poll_interval
        self._wait_timeout = wait_timeout

    @property
    def configured(self) -> bool:
        return self._client is not None

    def ensure_configured(self) -> CloudConvertClient:
        if self._client is None:
            raise ConfigurationError("Server configuration error for conversion service.")
        return self._client

    async def convert(
        self,
        source_path: Path,
        original_filename: str,
        target_format: str,
    ) -> ConversionResult:
        client = self.ensure_configured()
        target_format = normalize_target_format(target_format)
        logger.info(
            "[CloudConvert] Starting conversion for %s to %s", original_filename, target_format
        )

        job_id: Optional[str] = None
        try:
            job = await client.create_job(build_job_tasks(target_format))
            if not job.id:
                raise UpstreamProviderError(
                    "CloudConvert job creation failed or job has no ID."
                )
            job_id = job.id

            upload_task = job.task_named(IMPORT_TASK)
            if upload_task is None or not upload_task.id:
                raise UpstreamProviderError(
                    "CloudConvert upload task not found in job or task has no ID."
                )

            logger.info("[CloudConvert] Uploading %s for job %s", source_path, job_id)
            await client.upload(upload_task, source_path, original_filename)

            logger.info("[CloudConvert] Waiting for job %s to complete...", job_id)
            completed = await client.wait_for_job(
                job_id,
                poll_interval=self._poll_interval,
                timeout=self._wait_timeout,
            )

            if completed.status == "error":
                raise self._job_failure(completed)

            return await self._collect_export(client, completed, original_filename, target_format)
        except Exception as exc:
            normalized = normalize_error(exc)
            logger.error(
                "[CloudConvert] Error during conversion process job_id=%s: %s details=%s",
                job_id or "<unknown>",
                normalized.message,
                normalized.details,
            )
            if isinstance(exc, GatewayError):
                exc.details = _attach_job_id(exc.details, job_id)
                raise
            raise UpstreamProviderError(
                f"Document conversion failed: {normalized.message}",
                details=_attach_job_id(normalized.details, job_id),
            ) from exc

    @staticmethod
    def _job_failure(job: ConversionJob) -> UpstreamProviderError:
        failed_task = job.first_task_with_status("error")
        message = (
            (failed_task.message if failed_task else None)
            or job.message
            or "Unknown error from CloudConvert"
        )
        return UpstreamProviderError(
            f"CloudConvert job failed: {message}",
            details={
                "task": failed_task.name if failed_task else None,
                "code": failed_task.code if failed_task else None,
                "message": message,
            },
        )

    async def _collect_export(
        self,
        client: CloudConvertClient,
        job: ConversionJob,
        original_filename: str,
        target_format: str,
    ) -> ConversionResult:
        export_task = job.task_named(EXPORT_TASK)
        files = export_task.result.get("files") if export_task else None
        if (
            export_task is None
            or export_task.status != "finished"
            or not isinstance(files, list)
            or not files
        ):
            raise LocalProcessingError(
                "CloudConvert export task failed or did not produce a file."
            )

        result_file = files[0] if isinstance(files[0], dict) else {}
        filename = result_file.get("filename") or (
            f"{PurePath(original_filename).stem}.{target_format}"
        )
        url = result_file.get("url")
        if not url:
            raise LocalProcessingError(
                "CloudConvert export task result did not contain a URL."
            )

        logger.info("[CloudConvert] Downloading converted file: %s", filename)
        data = await client.download(url)
        return ConversionResult(data=data, filename=filename, mime_type=mime_type_for(target_format))

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()


__all__ = [
    "CONVERT_TASK",
    "DEFAULT_MIMETYPE",
    "EXPORT_TASK",
    "EXT_TO_MIMETYPE",
    "IMPORT_TASK",
    "SUPPORTED_OUTPUT_FORMATS",
    "DocumentConverter",
    "build_job_tasks",
    "mime_type_for",
    "normalize_target_format",
]
