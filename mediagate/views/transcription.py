"""Schema for transcription responses."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TranscriptionResponse(BaseModel):
    transcription: str
    video_title: Optional[str] = Field(default=None, alias="videoTitle")
    original_file_name: Optional[str] = Field(default=None, alias="originalFileName")

    model_config = ConfigDict(populate_by_name=True)
