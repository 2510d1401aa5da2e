"""ffmpeg based audio extraction (video stripped, mp3, metadata removed)."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Sequence

from fastapi.concurrency import run_in_threadpool

from mediagate.domain import ExtractedAudio, LocalMediaFile, fit_filename
from mediagate.services.acquisition import unique_suffix
from mediagate.services.errors import LocalProcessingError

logger = logging.getLogger(__name__)

_NO_AUDIO_MARKERS = (
    "does not contain any stream",
    "matches no streams",
)
_STDERR_TAIL = 2000


class AudioExtractor:
    """Run ffmpeg to derive a normalized mp3 from any local media container."""

    def __init__(
        self,
        *,
        ffmpeg_binary: str = "ffmpeg",
        bitrate: str = "128k",
        timeout_seconds: float | None = None,
    ) -> None:
        self._ffmpeg = ffmpeg_binary
        self._bitrate = bitrate
        self._timeout = timeout_seconds

    def output_path_for(self, source: LocalMediaFile, output_dir: Path) -> Path:
        return Path(output_dir) / fit_filename(
            source.path.stem, f"_{unique_suffix()}_audio.mp3"
        )

    def build_command(self, source: Path, target: Path) -> list[str]:
        return [
            self._ffmpeg,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i", str(source),
            "-vn",
            "-acodec", "libmp3lame",
            "-b:a", self._bitrate,
            "-map_metadata", "-1",
            str(target),
        ]

    def build_silence_command(self, target: Path, duration_seconds: float = 1.0) -> list[str]:
        return [
            self._ffmpeg,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-f", "lavfi",
            "-i", "anullsrc=channel_layout=mono:sample_rate=44100",
            "-t", str(duration_seconds),
            "-acodec", "libmp3lame",
            "-b:a", self._bitrate,
            "-map_metadata", "-1",
            str(target),
        ]

    async def extract(self, source: LocalMediaFile, output_dir: Path) -> ExtractedAudio:
        """Extract the audio track of ``source`` into ``output_dir``."""

        return await run_in_threadpool(self._extract_sync, source, Path(output_dir))

    def _extract_sync(self, source: LocalMediaFile, output_dir: Path) -> ExtractedAudio:
        if not source.path.is_file():
            raise LocalProcessingError(f"Media file not found: {source.path.name}")

        target = self.output_path_for(source, output_dir)
        logger.info("Extracting audio from %s to %s", source.path, target)

        try:
            self._run(self.build_command(source.path, target))
        except subprocess.CalledProcessError as exc:
            stderr = _decode(exc.stderr)
            if not any(marker in stderr for marker in _NO_AUDIO_MARKERS):
                logger.error("ffmpeg failed rc=%s stderr: %s", exc.returncode, stderr)
                raise LocalProcessingError(
                    f"Failed to extract audio: {_last_line(stderr)}",
                    details={"returncode": exc.returncode, "stderr": stderr},
                ) from exc

            logger.warning("Input %s has no audio stream; rendering silence", source.path)
            self._render_silence(target)

        if not target.is_file() or os.path.getsize(target) == 0:
            raise LocalProcessingError("Audio extraction produced no output.")

        logger.info("Audio extraction finished: %s", target)
        return ExtractedAudio(path=target, source=source, bitrate=self._bitrate)

    def _render_silence(self, target: Path) -> None:
        try:
            self._run(self.build_silence_command(target))
        except subprocess.CalledProcessError as exc:
            stderr = _decode(exc.stderr)
            raise LocalProcessingError(
                f"Failed to extract audio: {_last_line(stderr)}",
                details={"returncode": exc.returncode, "stderr": stderr},
            ) from exc

    def _run(self, command: Sequence[str]) -> None:
        try:
            subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as exc:
            raise LocalProcessingError(
                f"ffmpeg executable not found: {self._ffmpeg}"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise LocalProcessingError(
                f"Audio extraction timed out after {self._timeout} seconds"
            ) from exc


def _decode(stderr: bytes | str | None) -> str:
    if not stderr:
        return ""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    return stderr.strip()[-_STDERR_TAIL:]


def _last_line(stderr: str) -> str:
    lines = [line for line in stderr.splitlines() if line.strip()]
    return lines[-1] if lines else "ffmpeg exited with an error"


__all__ = ["AudioExtractor"]
