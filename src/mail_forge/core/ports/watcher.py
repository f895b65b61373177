from typing import Protocol


class FileWatcherPort(Protocol):
    """Anything that can watch source files and be started/stopped from the dev loop."""

    async def start(self) -> None: ...

    async def stop(self) -> None: ...
