"""Fire-and-forget reload notifications for connected preview pages."""

from __future__ import annotations

import asyncio
import logging

logger = logging.getLogger(__name__)

RELOAD = "reload"

SNIPPET = """<script>
(() => {
  try {
    const es = new EventSource('/__livereload');
    es.onmessage = (e) => {
      if (e && e.data === 'reload') location.reload();
    };
  } catch (e) {}
})();
</script>"""


class LiveReloadHub:
    """Broadcast channel: every subscriber gets its own unbounded queue."""

    def __init__(self) -> None:
        self._subscribers: set[asyncio.Queue[str]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue[str]:
        queue: asyncio.Queue[str] = asyncio.Queue()
        self._subscribers.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue[str]) -> None:
        self._subscribers.discard(queue)

    def broadcast(self, message: str = RELOAD) -> int:
        """Queue ``message`` for every current subscriber; returns how many were notified."""
        for queue in list(self._subscribers):
            queue.put_nowait(message)
        logger.debug("Broadcast %r to %d subscriber(s)", message, len(self._subscribers))
        return len(self._subscribers)


def inject_livereload(html: str) -> str:
    if "</body>" in html:
        return html.replace("</body>", f"{SNIPPET}\n</body>", 1)
    return f"{html}\n{SNIPPET}\n"
