import logging
from pathlib import Path

import sass

from mail_forge.core.recover import try_recoverable
from mail_forge.errors import CompileError
from mail_forge.models import StyleSource

logger = logging.getLogger(__name__)


def _with_auto_imports(source_text: str, auto_imports: tuple[Path, ...]) -> str:
    imports = [f'@import "{p.as_posix()}";' for p in auto_imports if p.is_file()]
    if not imports:
        return source_text
    return "\n".join([*imports, source_text])


def compile_stylesheet(source: StyleSource) -> str:
    """Compile an SCSS entry (plus auto-imports) into a single CSS string."""
    try:
        source_text = source.entry.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise CompileError(f"Stylesheet not found: {source.entry}") from None

    try:
        return sass.compile(
            string=_with_auto_imports(source_text, source.auto_imports),
            include_paths=[str(p) for p in (source.entry.parent, *source.include_paths)],
            output_style="expanded",
        )
    except sass.CompileError as exc:
        raise CompileError(f"Stylesheet compile failed for {source.entry.name}: {exc}") from exc


def compile_optional_chunks(sources: list[StyleSource]) -> str:
    """Compile optional stylesheets, skipping (with a warning) any that fail."""
    chunks: list[str] = []
    for source in sources:
        chunk = try_recoverable(
            lambda source=source: compile_stylesheet(source),
            "",
            what=f"Stylesheet {source.entry.name}",
        )
        if chunk.strip():
            chunks.append(chunk)
    return "\n".join(chunks)
