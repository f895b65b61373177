"""Development loop: preview server + initial build + watch-and-rebuild."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx

from mail_forge.core.ports.watcher import FileWatcherPort

logger = logging.getLogger(__name__)


class BuildProcessError(RuntimeError):
    pass


class RebuildScheduler:
    """At most one rebuild in flight; requests during a rebuild collapse into one follow-up."""

    def __init__(self, rebuild: Callable[[], Awaitable[None]]) -> None:
        self._rebuild = rebuild
        self._task: asyncio.Task[None] | None = None
        self._pending = False

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def request(self) -> None:
        if self.busy:
            self._pending = True
            return
        self._task = asyncio.create_task(self._run())

    async def wait_idle(self) -> None:
        if self._task is not None:
            await self._task

    async def _run(self) -> None:
        while True:
            try:
                logger.info("Rebuilding...")
                await self._rebuild()
                logger.info("Done.")
            except Exception:
                logger.exception("Build failed")
            if not self._pending:
                return
            self._pending = False


def build_command(category: str, mail: str, *, minify_css: bool = True) -> list[str]:
    # Locales are not passed: the child build compiles every available locale.
    args = [sys.executable, "-m", "mail_forge", "build", "--category", category, "--mail", mail]
    if not minify_css:
        args.append("--no-minify-css")
    return args


async def run_child_build(args: list[str], cwd: Path) -> None:
    process = await asyncio.create_subprocess_exec(*args, cwd=str(cwd))
    code = await process.wait()
    if code != 0:
        raise BuildProcessError(f"{args[0]} exited with code {code}")


async def trigger_reload(host: str, port: int) -> None:
    """Best effort: a preview server that is down or slow must not fail the rebuild."""
    url = f"http://{host}:{port}/__livereload/trigger"
    try:
        async with httpx.AsyncClient(timeout=2.0) as client:
            await client.post(url)
    except httpx.HTTPError as exc:
        logger.debug("Live-reload trigger failed: %s", exc)


async def watch_and_rebuild(
    watcher_factory: Callable[[Callable[[set[Path]], Awaitable[None]]], FileWatcherPort],
    scheduler: RebuildScheduler,
    stop: asyncio.Event,
) -> None:
    async def _on_change(_paths: set[Path]) -> None:
        scheduler.request()

    watcher = watcher_factory(_on_change)
    await watcher.start()
    try:
        await stop.wait()
    finally:
        await watcher.stop()
        await scheduler.wait_idle()
