import asyncio
import threading
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from mail_forge.core.layout import MailLayout, resolve_layout
from mail_forge.core.localize import list_locales
from mail_forge.dev.loop import (
    RebuildScheduler,
    build_command,
    run_child_build,
    trigger_reload,
    watch_and_rebuild,
)
from mail_forge.errors import ConfigurationError
from mail_forge.models import BuildConfig, PreviewSettings

console = Console()
err_console = Console(stderr=True)


def _start_preview_server(settings: PreviewSettings, host: str, port: int) -> threading.Thread:
    import uvicorn

    from mail_forge.preview.app import create_app

    thread = threading.Thread(
        target=uvicorn.run,
        kwargs={"app": create_app(settings), "host": host, "port": port, "log_level": "warning"},
        daemon=True,
    )
    thread.start()
    return thread


async def _run_dev(
    layout: MailLayout,
    command: list[str],
    *,
    host: str,
    port: int,
    livereload: bool,
    url: str | None,
) -> None:
    from mail_forge.watcher.watchfiles_adapter import WatchfilesWatcher

    async def _rebuild() -> None:
        await run_child_build(command, layout.project_root)
        if livereload:
            await trigger_reload(host, port)

    scheduler = RebuildScheduler(_rebuild)
    scheduler.request()
    await scheduler.wait_idle()
    if url:
        typer.launch(url)

    await watch_and_rebuild(
        lambda on_change: WatchfilesWatcher(layout.watch_paths(), on_change),
        scheduler,
        asyncio.Event(),
    )


def dev(
    category: Annotated[str | None, typer.Option("--category", "-c", help="Mail category.")] = None,
    mail: Annotated[str | None, typer.Option("--mail", "-m", help="Mail name.")] = None,
    host: str = "127.0.0.1",
    port: int = 3001,
    open_browser: Annotated[bool, typer.Option("--open/--no-open", help="Open the first locale in a browser.")] = True,
    livereload: Annotated[bool, typer.Option("--livereload/--no-livereload", help="Enable live reload.")] = True,
    minify_css: Annotated[bool, typer.Option("--minify-css/--no-minify-css", help="Minify head CSS.")] = True,
    root: Annotated[Path | None, typer.Option(help="Project root (default: current directory).")] = None,
) -> None:
    """Serve dist/, build the mail, and rebuild on every source change."""
    project_root = (root or Path.cwd()).resolve()
    try:
        layout = resolve_layout(BuildConfig(project_root=project_root, category=category or "", mail=mail or ""))
    except ConfigurationError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from None

    settings = PreviewSettings(dist_root=project_root / "dist", prefer_pretty=True, livereload=livereload)
    _start_preview_server(settings, host, port)

    locales = list_locales(layout.lang_dir)
    first_locale = locales[0] if locales else "en"
    url = f"http://{host}:{port}/{category}/mail-{mail}/{first_locale}/"
    console.print(f"Opening: {url}")

    try:
        asyncio.run(
            _run_dev(
                layout,
                build_command(category or "", mail or "", minify_css=minify_css),
                host=host,
                port=port,
                livereload=livereload,
                url=url if open_browser else None,
            )
        )
    except KeyboardInterrupt:
        console.print("Stopped.")
