"""Video transcription and document conversion gateway."""
