"""Source acquisition: materialize uploads and stream remote media to disk.

Remote media is resolved with yt-dlp (metadata + format list only) and the
chosen format is streamed with httpx, so the bytes land directly inside the
request workspace.
"""

from __future__ import annotations

import logging
import re
import secrets
import time
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import urlsplit

import httpx
import yt_dlp
from fastapi.concurrency import run_in_threadpool
from yt_dlp.utils import DownloadError

from mediagate.domain import (
    LocalMediaFile,
    RemoteMedia,
    RemoteReference,
    UploadedBlob,
    Workspace,
    fit_filename,
)
from mediagate.services.errors import (
    LocalProcessingError,
    UpstreamProviderError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = {"http", "https"}
_STREAMABLE_PROTOCOLS = {"http", "https"}
_UNSAFE_TITLE_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]+')


def unique_suffix() -> str:
    """Millisecond timestamp plus a short random token."""

    return f"{int(time.time() * 1000)}_{secrets.token_hex(3)}"


def _write_bytes(path, data: bytes) -> None:
    with open(path, "wb") as handle:
        handle.write(data)


async def materialize_upload(workspace: Workspace, blob: UploadedBlob) -> LocalMediaFile:
    """Write uploaded bytes verbatim into the workspace."""

    try:
        target = workspace.file_path(blob.name)
        await run_in_threadpool(_write_bytes, target, blob.data)
    except (OSError, ValueError) as exc:
        raise LocalProcessingError(f"Failed to store uploaded file: {exc}") from exc

    logger.info("Upload stored name=%s size=%d path=%s", blob.name, len(blob.data), target)
    container = target.suffix.lstrip(".").lower() or None
    return LocalMediaFile(path=target, container=container)


def validate_media_url(url: Optional[str]) -> str:
    """Reject anything that is not an absolute http(s) URL."""

    candidate = (url or "").strip()
    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        raise ValidationError(f"Invalid video URL: {candidate}") from exc

    if parts.scheme.lower() not in _ALLOWED_SCHEMES or not parts.hostname:
        raise ValidationError(f"Invalid video URL: {candidate}")
    return candidate


def sanitize_title(title: Optional[str], max_length: int = 100) -> str:
    """Strip filesystem-unsafe characters and cap the length."""

    cleaned = _UNSAFE_TITLE_CHARS.sub("", title or "")
    cleaned = " ".join(cleaned.split())[:max_length].strip()
    return cleaned or "untitled"


def _has_audio(fmt: Mapping[str, Any]) -> bool:
    # yt-dlp uses "none" for a missing track; None only means the codec is unknown.
    return fmt.get("acodec") != "none"


def _has_video(fmt: Mapping[str, Any]) -> bool:
    return fmt.get("vcodec") != "none"


def _audio_codec_known(fmt: Mapping[str, Any]) -> bool:
    return fmt.get("acodec") is not None


def _is_streamable(fmt: Mapping[str, Any]) -> bool:
    if not fmt.get("url"):
        return False
    protocol = fmt.get("protocol") or urlsplit(fmt["url"]).scheme
    return protocol in _STREAMABLE_PROTOCOLS


def select_audio_format(formats: Iterable[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Pick the best audio-only format, else the best format with an audio track."""

    candidates = [fmt for fmt in formats if _is_streamable(fmt) and _has_audio(fmt)]

    audio_only = [fmt for fmt in candidates if not _has_video(fmt)]
    if audio_only:
        return max(
            audio_only,
            key=lambda f: (_audio_codec_known(f), f.get("abr") or 0, f.get("tbr") or 0),
        )

    if candidates:
        logger.warning(
            "No audio-only format available, falling back to best format with audio"
        )
        return max(
            candidates,
            key=lambda f: (_audio_codec_known(f), f.get("height") or 0, f.get("tbr") or 0),
        )

    raise LocalProcessingError(
        "Could not find a suitable video/audio format to download."
    )


class RemoteMediaFetcher:
    """Resolve a media page URL and stream its best audio-bearing format."""

    def __init__(
        self,
        *,
        proxy: Optional[str] = None,
        chunk_size: int = 64 * 1024,
        title_max_length: int = 100,
        timeout_seconds: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._proxy = proxy
        self._chunk_size = chunk_size
        self._title_max_length = title_max_length
        self._timeout = timeout_seconds
        self._transport = transport

    async def fetch(self, reference: RemoteReference, workspace: Workspace) -> RemoteMedia:
        url = validate_media_url(reference.url)
        info = await run_in_threadpool(self._extract_info, url)

        title = sanitize_title(info.get("title"), self._title_max_length)
        fmt = select_audio_format(info.get("formats") or [info])
        extension = fmt.get("ext") or "mp4"
        target = workspace.path / fit_filename(
            f"remote_{title.replace(' ', '_')}",
            f"_{unique_suffix()}.{extension}",
        )

        logger.info(
            "Downloading remote content title=%s format=%s path=%s",
            title,
            fmt.get("format_id"),
            target,
        )
        await self._stream_to_file(fmt, target)
        return RemoteMedia(file=LocalMediaFile(path=target, container=extension), title=title)

    def _ydl_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
            "skip_download": True,
        }
        if self._proxy:
            options["proxy"] = self._proxy
        return options

    def _extract_info(self, url: str) -> Mapping[str, Any]:
        try:
            with yt_dlp.YoutubeDL(self._ydl_options()) as ydl:
                info = ydl.extract_info(url, download=False)
        except DownloadError as exc:
            raise UpstreamProviderError(
                f"Failed to resolve remote media: {exc}",
                details={"url": url},
            ) from exc

        if not info:
            raise UpstreamProviderError(
                "Remote media resolver returned no metadata.", details={"url": url}
            )
        if info.get("_type") == "playlist" or "entries" in info:
            raise ValidationError("Playlists are not supported; submit a single video URL.")
        return info

    async def _stream_to_file(self, fmt: Mapping[str, Any], target) -> None:
        headers = dict(fmt.get("http_headers") or {})
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                proxy=self._proxy,
                transport=self._transport,
            ) as client:
                async with client.stream("GET", fmt["url"], headers=headers) as response:
                    response.raise_for_status()
                    with open(target, "wb") as handle:
                        async for chunk in response.aiter_bytes(self._chunk_size):
                            handle.write(chunk)
        except httpx.HTTPStatusError as exc:
            raise UpstreamProviderError(
                f"Failed to download remote content: HTTP {exc.response.status_code}",
                details={"status_code": exc.response.status_code},
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamProviderError(
                f"Failed to download remote content: {exc}"
            ) from exc
        except OSError as exc:
            raise LocalProcessingError(
                f"Failed to write remote content to disk: {exc}"
            ) from exc

        logger.info("Finished downloading remote content path=%s", target)


__all__ = [
    "RemoteMediaFetcher",
    "materialize_upload",
    "sanitize_title",
    "select_audio_format",
    "unique_suffix",
    "validate_media_url",
]
