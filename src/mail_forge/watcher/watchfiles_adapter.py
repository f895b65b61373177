from __future__ import annotations

import asyncio
import contextlib
import logging
import re
from collections.abc import Callable, Coroutine, Iterable
from pathlib import Path
from typing import Any

from watchfiles import Change, awatch

logger = logging.getLogger(__name__)

# Editor/OS noise that would otherwise trigger rebuild loops.
_SWAP_FILE_RE = re.compile(r"\.sw[a-p]$", re.IGNORECASE)
_DEBOUNCE_MS = 120


def _is_relevant_file(path: Path) -> bool:
    name = path.name
    if name.startswith("."):
        return False
    if name.endswith("~"):
        return False
    if _SWAP_FILE_RE.search(name):
        return False
    return not name.lower().endswith(".tmp")


def _watch_filter(_change: Change, path: str) -> bool:
    return _is_relevant_file(Path(path))


class WatchfilesWatcher:
    """Watch mail sources (templates, styles, translations) and trigger a callback.

    Implements the ``FileWatcherPort`` protocol. Directories that do not exist
    are skipped; bursts of events are debounced by watchfiles into one batch.
    """

    def __init__(
        self,
        directories: Iterable[str | Path],
        on_change: Callable[[set[Path]], Coroutine[Any, Any, None]],
    ) -> None:
        self._directories = [Path(d) for d in directories]
        self._on_change = on_change
        self._task: asyncio.Task[None] | None = None

    @property
    def directories(self) -> list[Path]:
        return [d for d in self._directories if d.exists()]

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watcher started for %s", ", ".join(str(d) for d in self.directories))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Watcher stopped")

    async def _watch(self) -> None:
        directories = self.directories
        if not directories:
            logger.warning("Nothing to watch: none of the source directories exist")
            return
        async for changes in awatch(*directories, watch_filter=_watch_filter, debounce=_DEBOUNCE_MS):
            paths = {Path(p) for _, p in changes if _is_relevant_file(Path(p))}
            if paths:
                logger.info("Detected changes in %d file(s)", len(paths))
                try:
                    await self._on_change(paths)
                except Exception:
                    logger.exception("Error in watcher callback")
