from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from mail_forge.core.build import run_build
from mail_forge.core.localize import parse_locales
from mail_forge.errors import MailForgeError
from mail_forge.models import BuildConfig

console = Console()
err_console = Console(stderr=True)


def build(
    category: Annotated[str | None, typer.Option("--category", "-c", help="Mail category, e.g. X_IQ.")] = None,
    mail: Annotated[str | None, typer.Option("--mail", "-m", help="Mail name, e.g. roll-300126.")] = None,
    locales: Annotated[
        str | None, typer.Option("--locales", "-l", help="Comma-separated locales (default: all discovered).")
    ] = None,
    dist: Annotated[Path, typer.Option(envvar="MAIL_FORGE_DIST", help="Output directory.")] = Path("dist"),
    lang_dir: Annotated[
        Path, typer.Option("--lang-dir", envvar="MAIL_FORGE_LANG_DIR", help="Translations directory.")
    ] = Path("vendor") / "data",
    minify_css: Annotated[bool, typer.Option("--minify-css/--no-minify-css", help="Minify head CSS.")] = True,
    minify_html: Annotated[bool, typer.Option("--minify-html", help="Collapse whitespace between tags.")] = False,
    minify_all: Annotated[bool, typer.Option("--minify-all", help="Minify head CSS, inline CSS and HTML.")] = False,
    trim_css: Annotated[bool, typer.Option("--trim-css/--no-trim-css", help="Drop rules for unused classes/ids.")] = True,
    pretty: Annotated[bool, typer.Option("--pretty", help="Also write index.pretty.html for review.")] = False,
    fail_on_missing: Annotated[
        bool, typer.Option("--fail-on-missing", help="Fail a locale on any missing translation.")
    ] = False,
    base: Annotated[bool, typer.Option("--base/--no-base", help="Write the non-localized output.")] = True,
    jobs: Annotated[int, typer.Option(min=1, help="Locales localized in parallel.")] = 4,
    root: Annotated[Path | None, typer.Option(help="Project root (default: current directory).")] = None,
) -> None:
    """Build one mail for every requested locale."""
    try:
        config = BuildConfig(
            project_root=(root or Path.cwd()).resolve(),
            category=category or "",
            mail=mail or "",
            locales=parse_locales(locales),
            dist=dist,
            lang_dir=lang_dir,
            minify_css=minify_css,
            minify_html=minify_html,
            minify_all=minify_all,
            trim_css=trim_css,
            pretty=pretty,
            fail_on_missing=fail_on_missing,
            base=base,
            jobs=jobs,
        )
        report = run_build(config)
    except MailForgeError as exc:
        err_console.print(f"[red]Build failed:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from None

    if not report.ok:
        for locale, message in sorted(report.locales_failed.items()):
            err_console.print(f"[red]Locale {escape(locale)} failed:[/red] {escape(message)}")
        raise typer.Exit(1)

    console.print(f"[green]OK[/green] {escape(config.mail_id)}")
    console.print(f"Dist: {escape(str(report.dist_root))}")
