"""Minimal async client for the CloudConvert v2 job API."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Mapping, Optional

import httpx

from mediagate.domain import ConversionJob, ConversionTask
from mediagate.services.errors import UpstreamProviderError

logger = logging.getLogger(__name__)


def _error_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class CloudConvertClient:
    """Create jobs, upload into import tasks, poll jobs and fetch exports."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.cloudconvert.com/v2",
        timeout_seconds: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {api_key}"},
            timeout=timeout_seconds,
            transport=transport,
        )
        # Upload forms and export URLs are pre-signed and must not carry the API key.
        self._files = httpx.AsyncClient(
            timeout=timeout_seconds,
            follow_redirects=True,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Mapping[str, Any]:
        try:
            response = await self._api.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            payload = _error_payload(exc.response)
            message = payload.get("message") if isinstance(payload, Mapping) else None
            raise UpstreamProviderError(
                message or f"CloudConvert returned HTTP {exc.response.status_code}",
                details=payload,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamProviderError(f"CloudConvert request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamProviderError(
                "CloudConvert returned a non-JSON response.",
                details=response.text,
            ) from exc
        data = body.get("data") if isinstance(body, Mapping) else None
        if not isinstance(data, Mapping):
            raise UpstreamProviderError(
                "CloudConvert response did not contain a data object.", details=body
            )
        return data

    async def create_job(self, tasks: Mapping[str, Any]) -> ConversionJob:
        data = await self._request("POST", "/jobs", json={"tasks": dict(tasks)})
        return ConversionJob.from_payload(data)

    async def get_job(self, job_id: str) -> ConversionJob:
        data = await self._request("GET", f"/jobs/{job_id}")
        return ConversionJob.from_payload(data)

    async def upload(self, task: ConversionTask, path: Path, filename: str) -> None:
        """Post a file to an ``import/upload`` task's pre-signed form."""

        form = task.result.get("form") if task.result else None
        if not isinstance(form, Mapping) or not form.get("url"):
            raise UpstreamProviderError(
                "CloudConvert upload task did not provide an upload form.",
                details={"task_id": task.id},
            )

        parameters = {
            key: str(value) for key, value in (form.get("parameters") or {}).items()
        }
        try:
            with open(path, "rb") as handle:
                response = await self._files.post(
                    form["url"],
                    data=parameters,
                    files={"file": (filename, handle)},
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamProviderError(
                f"CloudConvert upload failed with HTTP {exc.response.status_code}",
                details=_error_payload(exc.response),
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamProviderError(f"CloudConvert upload failed: {exc}") from exc

    async def wait_for_job(
        self,
        job_id: str,
        *,
        poll_interval: float = 2.0,
        timeout: float = 300.0,
    ) -> ConversionJob:
        """Poll until the job reaches ``finished`` or ``error``, bounded by ``timeout``."""

        deadline = time.monotonic() + timeout
        while True:
            job = await self.get_job(job_id)
            if job.is_terminal:
                return job

            if time.monotonic() + poll_interval > deadline:
                raise UpstreamProviderError(
                    f"Timed out after {timeout:g}s waiting for CloudConvert job to finish.",
                    details={"job_id": job_id, "status": job.status},
                )
            logger.debug("Job %s status=%s, polling again", job_id, job.status)
            await asyncio.sleep(poll_interval)

    async def download(self, url: str) -> bytes:
        try:
            response = await self._files.get(url)
        except httpx.HTTPError as exc:
            raise UpstreamProviderError(
                f"Failed to download converted file from CloudConvert: {exc}"
            ) from exc

        if not response.is_success:
            raise UpstreamProviderError(
                "Failed to download converted file from CloudConvert: "
                f"{response.reason_phrase or response.status_code}",
                details={"status_code": response.status_code},
            )
        if not response.content:
            raise UpstreamProviderError(
                "Failed to download converted file from CloudConvert: empty body"
            )
        return response.content

    async def aclose(self) -> None:
        await self._api.aclose()
        await self._files.aclose()


__all__ = ["CloudConvertClient"]
