from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import AsyncIterator
from pathlib import Path
from urllib.parse import unquote

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import HTMLResponse, PlainTextResponse, StreamingResponse

from mail_forge.core.layout import COMPACT_HTML, PRETTY_HTML
from mail_forge.models import PreviewSettings
from mail_forge.preview.livereload import LiveReloadHub, inject_livereload

_NO_STORE = {"Cache-Control": "no-store, max-age=0"}
_KEEPALIVE_SECONDS = 15.0


def resolve_path(dist_root: Path, request_path: str, *, prefer_pretty: bool = True) -> Path | None:
    """Map a URL path onto a file under ``dist_root``; None when missing or outside it."""
    root = dist_root.resolve()
    relative = unquote(request_path or "/").lstrip("/")
    candidate = (root / relative).resolve()
    if candidate != root and root not in candidate.parents:
        return None
    if candidate.is_dir():
        names = (PRETTY_HTML, COMPACT_HTML) if prefer_pretty else (COMPACT_HTML,)
        for name in names:
            index = candidate / name
            if index.is_file():
                return index
        return None
    return candidate if candidate.is_file() else None


def _content_type(path: Path) -> str:
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"


def create_app(settings: PreviewSettings) -> FastAPI:
    app = FastAPI(
        title="mail-forge preview",
        description="Serve built mails from the dist directory with live reload.",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    hub = LiveReloadHub()
    app.state.hub = hub
    app.state.settings = settings

    if settings.livereload:

        @app.get("/__livereload")
        async def livereload_stream(request: Request) -> StreamingResponse:
            """Server-Sent Events: one ``data: reload`` message per rebuild."""

            async def _events() -> AsyncIterator[str]:
                queue = hub.subscribe()
                try:
                    yield ": connected\n\n"
                    while True:
                        try:
                            message = await asyncio.wait_for(queue.get(), timeout=_KEEPALIVE_SECONDS)
                        except asyncio.TimeoutError:
                            if await request.is_disconnected():
                                return
                            yield ": keep-alive\n\n"
                            continue
                        yield f"data: {message}\n\n"
                finally:
                    hub.unsubscribe(queue)

            return StreamingResponse(
                _events(),
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache", "Access-Control-Allow-Origin": "*"},
            )

        @app.post("/__livereload/trigger", status_code=status.HTTP_204_NO_CONTENT)
        async def livereload_trigger() -> Response:
            hub.broadcast()
            return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.get("/{path:path}")
    async def serve_file(path: str) -> Response:
        resolved = resolve_path(settings.dist_root, path, prefer_pretty=settings.prefer_pretty)
        if resolved is None:
            return PlainTextResponse("Not found", status_code=status.HTTP_404_NOT_FOUND)

        content_type = _content_type(resolved)
        if content_type == "text/html":
            html = resolved.read_text(encoding="utf-8")
            if settings.livereload:
                html = inject_livereload(html)
            return HTMLResponse(html, headers=_NO_STORE)
        return Response(resolved.read_bytes(), media_type=content_type, headers=_NO_STORE)

    return app
