"""Tests for the watchfiles watcher adapter."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from mail_forge.watcher.watchfiles_adapter import (
    WatchfilesWatcher,
    _is_relevant_file,
)


class TestIsRelevantFile:
    def test_template(self) -> None:
        assert _is_relevant_file(Path("index.j2")) is True

    def test_stylesheet(self) -> None:
        assert _is_relevant_file(Path("inline.scss")) is True

    def test_translation(self) -> None:
        assert _is_relevant_file(Path("nav.json")) is True

    def test_dotfile(self) -> None:
        assert _is_relevant_file(Path(".DS_Store")) is False

    def test_backup_file(self) -> None:
        assert _is_relevant_file(Path("index.j2~")) is False

    def test_vim_swap_file(self) -> None:
        assert _is_relevant_file(Path("inline.scss.swp")) is False

    def test_tmp_file(self) -> None:
        assert _is_relevant_file(Path("nav.json.TMP")) is False


class TestWatchfilesWatcher:
    def test_implements_protocol(self, tmp_path: Path) -> None:
        from mail_forge.core.ports.watcher import FileWatcherPort

        callback = AsyncMock()
        watcher: FileWatcherPort = WatchfilesWatcher([tmp_path], callback)
        assert hasattr(watcher, "start")
        assert hasattr(watcher, "stop")

    def test_missing_directories_are_skipped(self, tmp_path: Path) -> None:
        watcher = WatchfilesWatcher([tmp_path, tmp_path / "missing"], AsyncMock())
        assert watcher.directories == [tmp_path]

    @pytest.mark.asyncio
    async def test_start_creates_task(self, tmp_path: Path) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher([tmp_path], callback)

        with patch("mail_forge.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            assert watcher._task is not None
            await watcher.stop()
            assert watcher._task is None

    @pytest.mark.asyncio
    async def test_stop_without_start_is_noop(self, tmp_path: Path) -> None:
        watcher = WatchfilesWatcher([tmp_path], AsyncMock())
        await watcher.stop()

    @pytest.mark.asyncio
    async def test_double_start_is_noop(self, tmp_path: Path) -> None:
        watcher = WatchfilesWatcher([tmp_path], AsyncMock())

        with patch("mail_forge.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _empty_async_iter()
            await watcher.start()
            task1 = watcher._task
            await watcher.start()
            assert watcher._task is task1
            await watcher.stop()

    @pytest.mark.asyncio
    async def test_callback_receives_relevant_files(self, tmp_path: Path) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher([tmp_path], callback)

        changes = {(1, "/src/inline.scss"), (2, "/src/.inline.scss.swp"), (1, "/src/nav.json")}

        with patch("mail_forge.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_called_once()
        paths = callback.call_args[0][0]
        assert paths == {Path("/src/inline.scss"), Path("/src/nav.json")}

    @pytest.mark.asyncio
    async def test_callback_not_called_for_noise_only(self, tmp_path: Path) -> None:
        callback = AsyncMock()
        watcher = WatchfilesWatcher([tmp_path], callback)

        changes = {(1, "/src/index.j2~"), (2, "/src/build.tmp")}

        with patch("mail_forge.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter(changes)
            await watcher.start()
            await asyncio.sleep(0.05)
            await watcher.stop()

        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_callback_error_keeps_watching(self, tmp_path: Path) -> None:
        callback = AsyncMock(side_effect=RuntimeError("boom"))
        watcher = WatchfilesWatcher([tmp_path], callback)

        with patch("mail_forge.watcher.watchfiles_adapter.awatch") as mock_awatch:
            mock_awatch.return_value = _single_change_iter({(1, "/src/index.j2")})
            await watcher.start()
            await asyncio.sleep(0.05)
            assert watcher._task is not None
            assert not watcher._task.done()
            await watcher.stop()

        callback.assert_called_once()


async def _empty_async_iter() -> AsyncIterator[Any]:
    """Async iterator that never yields, just blocks until cancelled."""
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
    yield  # pragma: no cover


async def _single_change_iter(changes: set[tuple[int, str]]) -> AsyncIterator[set[tuple[int, str]]]:
    """Async iterator that yields one set of changes then blocks."""
    yield changes
    try:
        await asyncio.sleep(3600)
    except asyncio.CancelledError:
        return
