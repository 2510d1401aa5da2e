"""FastAPI routers acting as controllers in the MVC architecture."""

from . import conversion, transcription

__all__ = ["conversion", "transcription"]
