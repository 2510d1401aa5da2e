"""Video transcription endpoint.

`POST /api/transcribe-video` accepts either an uploaded video
(`operationType=file`) or a remote video URL (`operationType=url`) and runs
`TranscriptionPipeline`:

1. Allocate a workspace for the request.
2. Store the upload, or resolve and stream the remote video into it.
3. Extract a 128 kbps mp3 with ffmpeg.
4. Send the mp3 to the speech-to-text provider.
5. Remove the workspace, whatever happened.
"""

import logging
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile

from mediagate.controllers.dependencies import TranscriptionPipelineDep
from mediagate.domain import RemoteReference
from mediagate.pipelines.ingestion import read_upload
from mediagate.services.errors import ValidationError, to_gateway_error
from mediagate.views import ErrorResponse, TranscriptionResponse

router = APIRouter(prefix="/api", tags=["transcription"])

logger = logging.getLogger(__name__)

_OPERATION_TYPE_FORM = Form(None, alias="operationType")
_VIDEO_URL_FORM = Form(None, alias="videoUrl")
_VIDEO_UPLOAD = File(None)


@router.post(
    "/transcribe-video",
    response_model=TranscriptionResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def transcribe_video(
    pipeline: TranscriptionPipelineDep,
    operation_type: Optional[str] = _OPERATION_TYPE_FORM,
    video: Optional[UploadFile] = _VIDEO_UPLOAD,
    video_url: Optional[str] = _VIDEO_URL_FORM,
) -> TranscriptionResponse:
    """Transcribe an uploaded video or the audio of a remote video."""

    logger.info("Received operationType: %s", operation_type)

    if operation_type == "file":
        if video is None:
            raise ValidationError("No video file provided for upload.")
        source = await read_upload(video, empty_message="Uploaded video file is empty.")
        logger.info("File Upload: %s, Size: %d", source.name, len(source.data))
    elif operation_type == "url":
        if not video_url or not video_url.strip():
            raise ValidationError("No video URL provided.")
        source = RemoteReference(url=video_url.strip())
        logger.info("URL Submission: %s", source.url)
    else:
        raise ValidationError(
            'Invalid operation type. Ensure "operationType" is sent correctly from the client.'
        )

    try:
        result = await pipeline.run(source)
    except Exception as exc:
        error = to_gateway_error(exc)
        if error.status_code >= 500:
            logger.error("Transcription failed: %s", error.message, exc_info=exc)
        else:
            logger.info("Transcription rejected: %s", error.message)
        if error is exc:
            raise
        raise error from exc

    return TranscriptionResponse(
        transcription=result.text,
        video_title=result.video_title,
        original_file_name=result.original_file_name,
    )
