"""Request ingestion helpers shared by the controllers."""

from __future__ import annotations

from fastapi import UploadFile

from mediagate.domain import UploadedBlob
from mediagate.services.errors import ValidationError


async def read_upload(
    upload: UploadFile,
    *,
    name: str | None = None,
    empty_message: str = "Uploaded file is empty.",
) -> UploadedBlob:
    """Load the upload fully into memory, rejecting empty payloads."""

    data = await upload.read()
    await upload.close()

    if not data:
        raise ValidationError(empty_message)
    return UploadedBlob(name=name or upload.filename or "upload", data=data)


__all__ = ["read_upload"]
