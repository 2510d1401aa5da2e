"""Shared fixtures and in-process fakes for the gateway test suite."""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Any, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from mediagate.domain import (  # noqa: E402
    ConversionJob,
    ExtractedAudio,
    LocalMediaFile,
    RemoteMedia,
)
from mediagate.services.acquisition import validate_media_url  # noqa: E402
from mediagate.services.workspace import WorkspaceManager  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    return tmp_path / "workspaces"


@pytest.fixture
def workspaces(workspace_root: Path) -> WorkspaceManager:
    return WorkspaceManager(workspace_root)


def leftover_workspaces(root: Path) -> list[Path]:
    """Return any workspace directories still present under ``root``."""

    if not root.exists():
        return []
    return sorted(root.iterdir())


class FakeExtractor:
    """Writes a tiny placeholder mp3 next to the source instead of running ffmpeg."""

    def __init__(self) -> None:
        self.sources: list[LocalMediaFile] = []

    async def extract(self, source: LocalMediaFile, output_dir: Path) -> ExtractedAudio:
        self.sources.append(source)
        target = Path(output_dir) / f"{source.path.stem}_audio.mp3"
        target.write_bytes(b"ID3-fake-audio")
        return ExtractedAudio(path=target, source=source)


class FakeTranscriber:
    """Records the audio it was given and returns canned text."""

    def __init__(self, text: str = "hello from the fake transcriber", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.audio_paths: list[Path] = []

    @property
    def configured(self) -> bool:
        return True

    async def transcribe(self, audio: ExtractedAudio) -> str:
        assert audio.path.is_file()
        self.audio_paths.append(audio.path)
        if self.error is not None:
            raise self.error
        return self.text

    async def aclose(self) -> None:
        return None


class FakeFetcher:
    """Validates the URL like the real fetcher and writes a fake video file."""

    def __init__(self, title: str = "Sample Clip") -> None:
        self.title = title
        self.urls: list[str] = []

    async def fetch(self, reference, workspace) -> RemoteMedia:
        url = validate_media_url(reference.url)
        self.urls.append(url)
        target = workspace.path / "remote_Sample_Clip_1.mp4"
        target.write_bytes(b"fake-remote-video")
        return RemoteMedia(file=LocalMediaFile(path=target, container="mp4"), title=self.title)


def job_payload(
    status: str,
    *,
    job_id: str = "job-123",
    export_files: Optional[list[dict[str, Any]]] = None,
    failed_message: Optional[str] = None,
) -> dict[str, Any]:
    """Build a job snapshot shaped like the provider's ``data`` object."""

    import_task = {
        "id": "task-import",
        "name": "import-file",
        "operation": "import/upload",
        "status": "finished" if status != "waiting" else "waiting",
        "result": {
            "form": {
                "url": "https://upload.example.test/form",
                "parameters": {"expires": 1700000000, "signature": "abc"},
            }
        },
    }
    convert_task = {
        "id": "task-convert",
        "name": "convert-file",
        "operation": "convert",
        "status": "error" if failed_message else ("finished" if status == "finished" else "processing"),
        "message": failed_message,
        "code": "INVALID_CONVERSION_TYPE" if failed_message else None,
    }
    export_task = {
        "id": "task-export",
        "name": "export-file",
        "operation": "export/url",
        "status": "finished" if status == "finished" else "waiting",
        "result": {"files": export_files} if export_files is not None else None,
    }
    return {
        "id": job_id,
        "status": status,
        "tasks": [import_task, convert_task, export_task],
    }


class FakeCloudConvert:
    """Stands in for the job API client and records every call made to it."""

    def __init__(
        self,
        *,
        final: Optional[dict[str, Any]] = None,
        content: bytes = b"%PDF-1.4 converted",
    ) -> None:
        self.final = final or job_payload(
            "finished",
            export_files=[{"filename": "report.pdf", "url": "https://storage.example.test/report.pdf"}],
        )
        self.content = content
        self.calls: list[str] = []
        self.uploaded: list[tuple[Path, str, bytes]] = []

    async def create_job(self, tasks):
        self.calls.append("create_job")
        self.tasks = tasks
        return ConversionJob.from_payload(job_payload("waiting"))

    async def upload(self, task, path: Path, filename: str) -> None:
        self.calls.append("upload")
        self.uploaded.append((path, filename, Path(path).read_bytes()))

    async def wait_for_job(self, job_id: str, *, poll_interval: float, timeout: float):
        self.calls.append("wait_for_job")
        return ConversionJob.from_payload(self.final)

    async def download(self, url: str) -> bytes:
        self.calls.append("download")
        return self.content

    async def aclose(self) -> None:
        return None
