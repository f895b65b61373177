import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler

from mail_forge.cli.build import build
from mail_forge.cli.dev import dev
from mail_forge.cli.serve import serve

app = typer.Typer(
    name="mail-forge",
    help="mail-forge CLI: build and preview localized HTML emails.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
err_console = Console(stderr=True)


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
) -> None:
    """Install rich logging once for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


app.command("build")(build)
app.command("serve")(serve)
app.command("dev")(dev)


def main() -> None:
    app()
