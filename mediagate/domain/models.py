"""Value objects passed between the gateway pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any, Mapping, Optional

TERMINAL_JOB_STATUSES = frozenset({"finished", "error"})


@dataclass(frozen=True)
class Workspace:
    """Ephemeral directory exclusively owned by one request."""

    path: Path

    def file_path(self, name: str) -> Path:
        """Return a path for ``name`` that cannot escape the workspace."""

        candidate = self.path / safe_filename(name)
        if candidate.resolve().parent != self.path.resolve():
            raise ValueError(f"Refusing to write outside workspace: {name!r}")
        return candidate


@dataclass(frozen=True)
class UploadedBlob:
    """Named bytes received in a multipart form."""

    name: str
    data: bytes


@dataclass(frozen=True)
class RemoteReference:
    """A media page URL to be resolved by the remote fetcher."""

    url: str


@dataclass(frozen=True)
class LocalMediaFile:
    path: Path
    container: Optional[str] = None


@dataclass(frozen=True)
class RemoteMedia:
    """Remote media streamed into a workspace together with its cleaned title."""

    file: LocalMediaFile
    title: str


@dataclass(frozen=True)
class ExtractedAudio:
    """Audio-only mp3 derived from exactly one :class:`LocalMediaFile`."""

    path: Path
    source: LocalMediaFile
    codec: str = "mp3"
    bitrate: str = "128k"


@dataclass(frozen=True)
class TranscriptResult:
    text: str
    video_title: Optional[str] = None
    original_file_name: Optional[str] = None


@dataclass(frozen=True)
class ConversionTask:
    """One node of the import -> convert -> export task graph."""

    id: Optional[str]
    name: Optional[str]
    operation: Optional[str] = None
    status: Optional[str] = None
    message: Optional[str] = None
    code: Optional[str] = None
    result: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ConversionTask":
        result = payload.get("result")
        return cls(
            id=payload.get("id"),
            name=payload.get("name"),
            operation=payload.get("operation"),
            status=payload.get("status"),
            message=payload.get("message"),
            code=payload.get("code"),
            result=result if isinstance(result, Mapping) else {},
        )


@dataclass(frozen=True)
class ConversionJob:
    """Remote conversion job as reported by the provider."""

    id: Optional[str]
    status: Optional[str]
    tasks: tuple[ConversionTask, ...] = ()
    message: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ConversionJob":
        raw_tasks = payload.get("tasks") or []
        tasks = tuple(
            ConversionTask.from_payload(task)
            for task in raw_tasks
            if isinstance(task, Mapping)
        )
        message = payload.get("message")
        return cls(
            id=payload.get("id"),
            status=payload.get("status"),
            tasks=tasks,
            message=message if isinstance(message, str) else None,
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATUSES

    def task_named(self, name: str) -> Optional[ConversionTask]:
        """Look a task up by its logical name."""

        return next((task for task in self.tasks if task.name == name), None)

    def first_task_with_status(self, status: str) -> Optional[ConversionTask]:
        return next((task for task in self.tasks if task.status == status), None)


@dataclass(frozen=True)
class ConversionResult:
    data: bytes
    filename: str
    mime_type: str


_UNSAFE_FILENAME_CHARS = '<>:"|?*'
MAX_FILENAME_BYTES = 255
_MAX_SUFFIX_BYTES = 32


def fit_filename(stem: str, tail: str, max_bytes: int = MAX_FILENAME_BYTES) -> str:
    """Join ``stem`` and ``tail``, trimming the stem so the UTF-8 name fits ``max_bytes``."""

    budget = max(max_bytes - len(tail.encode("utf-8")), 0)
    trimmed = stem.encode("utf-8")[:budget].decode("utf-8", errors="ignore")
    return trimmed + tail


def safe_filename(name: str, default: str = "upload") -> str:
    """Reduce a client supplied name to a bare, filesystem safe file name."""

    base = (name or "").replace("\\", "/").split("/")[-1]
    cleaned = "".join(
        ch for ch in base if ch not in _UNSAFE_FILENAME_CHARS and ord(ch) >= 32
    ).strip()
    if not cleaned.strip("."):
        return default
    if len(cleaned.encode("utf-8")) <= MAX_FILENAME_BYTES:
        return cleaned

    suffix = PurePosixPath(cleaned).suffix
    if len(suffix.encode("utf-8")) > _MAX_SUFFIX_BYTES:
        suffix = ""
    return fit_filename(cleaned[: len(cleaned) - len(suffix)], suffix)


__all__ = [
    "MAX_FILENAME_BYTES",
    "TERMINAL_JOB_STATUSES",
    "ConversionJob",
    "ConversionResult",
    "ConversionTask",
    "ExtractedAudio",
    "LocalMediaFile",
    "RemoteMedia",
    "RemoteReference",
    "TranscriptResult",
    "UploadedBlob",
    "Workspace",
    "fit_filename",
    "safe_filename",
]
