from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from mail_forge.models import PreviewSettings

console = Console()


def serve(
    dist: Annotated[Path, typer.Option(envvar="MAIL_FORGE_DIST", help="Directory to serve.")] = Path("dist"),
    host: str = "127.0.0.1",
    port: int = 3001,
    prefer_pretty: Annotated[
        bool, typer.Option("--prefer-pretty/--prefer-compact", help="Serve index.pretty.html for directories.")
    ] = True,
    livereload: Annotated[bool, typer.Option("--livereload/--no-livereload", help="Enable live reload.")] = True,
) -> None:
    """Serve built mails with live reload."""
    import uvicorn

    from mail_forge.preview.app import create_app

    settings = PreviewSettings(dist_root=dist.resolve(), prefer_pretty=prefer_pretty, livereload=livereload)
    app = create_app(settings)
    console.print(f"[green]Serving {settings.dist_root} on http://{host}:{port}/[/green]")
    console.print(f"  prefer pretty: {prefer_pretty}, live reload: {livereload}")
    uvicorn.run(app, host=host, port=port, log_level="warning")
