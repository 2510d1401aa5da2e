"""Per-request scratch directories with guaranteed removal."""

from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi.concurrency import run_in_threadpool

from mediagate.domain import Workspace
from mediagate.services.errors import LocalProcessingError
from mediagate.telemetry import increment_cleanup_failure

logger = logging.getLogger(__name__)


class WorkspaceManager:
    """Allocate and remove one uniquely named directory per request."""

    def __init__(
        self,
        root: Optional[str | Path] = None,
        *,
        prefix: str = "transcribe-session-",
    ) -> None:
        self._root = Path(root) if root else None
        self._prefix = prefix

    def create(self) -> Workspace:
        try:
            if self._root is not None:
                self._root.mkdir(parents=True, exist_ok=True)
            path = tempfile.mkdtemp(
                prefix=self._prefix,
                dir=str(self._root) if self._root is not None else None,
            )
        except OSError as exc:
            raise LocalProcessingError(
                f"Failed to create temporary workspace: {exc}"
            ) from exc

        logger.debug("Workspace created path=%s", path)
        return Workspace(path=Path(path))

    def destroy(self, workspace: Workspace) -> None:
        """Remove the workspace tree; errors are logged and never raised."""

        try:
            shutil.rmtree(workspace.path)
        except FileNotFoundError:
            logger.debug("Workspace already removed path=%s", workspace.path)
        except OSError:
            increment_cleanup_failure()
            logger.exception("Error cleaning up workspace path=%s", workspace.path)
        else:
            logger.debug("Workspace removed path=%s", workspace.path)

    @asynccontextmanager
    async def scope(self) -> AsyncIterator[Workspace]:
        """Yield a fresh workspace and destroy it exactly once on exit."""

        workspace = await run_in_threadpool(self.create)
        try:
            yield workspace
        finally:
            await run_in_threadpool(self.destroy, workspace)


__all__ = ["WorkspaceManager"]
