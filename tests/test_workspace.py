"""Tests for per-request workspace allocation and cleanup."""

from __future__ import annotations

import shutil

import pytest

from conftest import leftover_workspaces
from mediagate.domain import Workspace, fit_filename, safe_filename
from mediagate.services.workspace import WorkspaceManager


def test_create_returns_unique_directories(workspaces, workspace_root):
    first = workspaces.create()
    second = workspaces.create()

    assert first.path != second.path
    assert first.path.is_dir() and second.path.is_dir()
    assert first.path.parent == workspace_root
    assert first.path.name.startswith("transcribe-session-")


def test_destroy_removes_tree_and_tolerates_missing(workspaces):
    workspace = workspaces.create()
    (workspace.path / "nested").mkdir()
    (workspace.path / "nested" / "clip.mp4").write_bytes(b"data")

    workspaces.destroy(workspace)
    assert not workspace.path.exists()

    # A second removal is a no-op.
    workspaces.destroy(workspace)


def test_destroy_logs_and_swallows_os_errors(workspaces, monkeypatch, caplog):
    workspace = workspaces.create()

    def failing_rmtree(path):
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr("mediagate.services.workspace.shutil.rmtree", failing_rmtree)

    with caplog.at_level("ERROR"):
        workspaces.destroy(workspace)

    assert "Error cleaning up workspace" in caplog.text
    assert workspace.path.exists()
    monkeypatch.undo()
    shutil.rmtree(workspace.path)


@pytest.mark.anyio
async def test_scope_removes_workspace_on_success(workspaces, workspace_root):
    async with workspaces.scope() as workspace:
        (workspace.path / "audio.mp3").write_bytes(b"mp3")
        assert workspace.path.is_dir()

    assert leftover_workspaces(workspace_root) == []


@pytest.mark.anyio
async def test_scope_removes_workspace_on_failure(workspaces, workspace_root):
    with pytest.raises(RuntimeError):
        async with workspaces.scope() as workspace:
            (workspace.path / "partial.mp4").write_bytes(b"x")
            raise RuntimeError("pipeline failed")

    assert leftover_workspaces(workspace_root) == []


def test_default_root_uses_system_temp_dir():
    manager = WorkspaceManager(prefix="mediagate-test-")
    workspace = manager.create()
    try:
        assert workspace.path.name.startswith("mediagate-test-")
    finally:
        manager.destroy(workspace)
    assert not workspace.path.exists()


@pytest.mark.parametrize(
    "name, expected",
    [
        ("clip.mp4", "clip.mp4"),
        ("../../etc/passwd", "passwd"),
        ("C:\\Users\\me\\video.mov", "video.mov"),
        ('bad<>:"|?*name.mp4', "badname.mp4"),
        ("..", "upload"),
        ("", "upload"),
    ],
)
def test_safe_filename(name, expected):
    assert safe_filename(name) == expected


def test_safe_filename_caps_utf8_length_and_keeps_extension():
    name = safe_filename("文" * 100 + ".docx")

    assert len(name.encode("utf-8")) <= 255
    assert name.endswith(".docx")
    assert name.startswith("文文")


def test_fit_filename_never_splits_a_character():
    assert fit_filename("日本", "x", max_bytes=5) == "日x"
    assert fit_filename("short", "_tail.mp3") == "short_tail.mp3"


def test_file_path_stays_inside_workspace(tmp_path):
    workspace = Workspace(path=tmp_path)

    assert workspace.file_path("../escape.txt") == tmp_path / "escape.txt"
