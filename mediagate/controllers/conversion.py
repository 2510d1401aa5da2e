"""Document conversion endpoint backed by CloudConvert."""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import Response

from mediagate.controllers.dependencies import ConversionPipelineDep
from mediagate.pipelines.ingestion import read_upload
from mediagate.services.errors import ValidationError, to_gateway_error
from mediagate.views import ErrorResponse

router = APIRouter(prefix="/api", tags=["conversion"])

logger = logging.getLogger(__name__)

_DOCUMENT_UPLOAD = File(None)
_TARGET_FORMAT_FORM = Form(None, alias="targetFormat")
_INPUT_FILE_NAME_FORM = Form(None, alias="inputFileName")


def content_disposition(filename: str) -> str:
    """Build an attachment header, adding RFC 5987 ``filename*`` for non-ASCII names."""

    cleaned = filename.replace('"', "").replace("\r", "").replace("\n", "")
    fallback = cleaned.encode("ascii", "ignore").decode("ascii") or "converted"
    header = f'attachment; filename="{fallback}"'
    if fallback != cleaned:
        header += f"; filename*=UTF-8''{quote(cleaned)}"
    return header


@router.post(
    "/convert-document",
    response_class=Response,
    responses={
        200: {"content": {"application/octet-stream": {}}},
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def convert_document(
    pipeline: ConversionPipelineDep,
    document: Optional[UploadFile] = _DOCUMENT_UPLOAD,
    target_format: Optional[str] = _TARGET_FORMAT_FORM,
    input_file_name: Optional[str] = _INPUT_FILE_NAME_FORM,
) -> Response:
    """Convert the uploaded document and return the converted bytes."""

    if document is None or not input_file_name:
        raise ValidationError("No document file provided.")

    blob = await read_upload(document, name=input_file_name, empty_message="Uploaded document is empty.")
    logger.info(
        "Received document: %s, Size: %d, Target Format: %s",
        blob.name,
        len(blob.data),
        target_format,
    )

    try:
        result = await pipeline.run(blob, target_format or "")
    except Exception as exc:
        error = to_gateway_error(exc)
        if error.status_code >= 500:
            logger.error("Document conversion failed: %s", error.message, exc_info=exc)
        else:
            logger.info("Document conversion rejected: %s", error.message)
        if error is exc:
            raise
        raise error from exc

    return Response(
        content=result.data,
        media_type=result.mime_type,
        headers={"Content-Disposition": content_disposition(result.filename)},
    )
