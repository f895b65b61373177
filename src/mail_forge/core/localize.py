"""Resolve ``${{ <file-key>.<dotted.key.path> }}$`` placeholders per locale.

A translation index maps a file key (``nav`` for ``<lang_dir>/<locale>/nav.json``)
to its parsed JSON document. Substitution is one textual pass: a substituted
value is never scanned again, so translations cannot expand other tokens.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

from mail_forge.errors import ConfigurationError, LocalizationError

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\$\{\{\s*([A-Za-z0-9_-]+)\.([A-Za-z0-9_.-]+)\s*\}\}\$")

TranslationIndex = dict[str, Any]

_MISSING = object()

# A locale is one directory name under the translations and output roots.
_LOCALE_RE = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.@-]*")


def validate_locale(locale: str) -> str:
    if not _LOCALE_RE.fullmatch(locale):
        raise ConfigurationError(f"Invalid locale name: {locale!r}")
    return locale


def parse_locales(value: str | None) -> tuple[str, ...] | None:
    """Split a comma-separated locale list; empty or absent means "all discovered"."""
    if not value:
        return None
    locales = tuple(validate_locale(part.strip()) for part in value.split(",") if part.strip())
    return locales or None


def list_locales(lang_dir: Path) -> list[str]:
    if not lang_dir.is_dir():
        return []
    return sorted(p.name for p in lang_dir.iterdir() if p.is_dir() and not p.name.startswith("."))


def build_translation_index(lang_dir: Path, locale: str) -> TranslationIndex:
    base = lang_dir / locale
    index: TranslationIndex = {}
    if not base.is_dir():
        return index
    for path in sorted(base.glob("*.json")):
        try:
            index[path.stem] = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Skipping unreadable translation file %s: %s", path, exc)
    return index


def resolve_key(document: Any, key_path: str) -> Any:
    """Descend ``a.b.0.c`` through dicts (and lists for numeric parts); _MISSING when absent."""
    current = document
    for part in (p for p in key_path.split(".") if p):
        if isinstance(current, dict):
            current = current.get(part, _MISSING)
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return _MISSING
        if current is _MISSING or current is None:
            return _MISSING
    return current


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def localize_html(html: str, index: TranslationIndex, *, fail_on_missing: bool = False) -> str:
    def _substitute(match: re.Match[str]) -> str:
        file_key, key_path = match.group(1), match.group(2)
        if file_key not in index:
            if fail_on_missing:
                raise LocalizationError(f"Missing translation file: {file_key}.json")
            logger.warning("Missing translation file %s.json; leaving %s", file_key, match.group(0))
            return match.group(0)

        value = resolve_key(index[file_key], key_path)
        if value is _MISSING:
            if fail_on_missing:
                raise LocalizationError(f"Missing translation key: {file_key}.{key_path}")
            logger.warning("Missing translation key %s.%s", file_key, key_path)
            return match.group(0)
        return _to_text(value)

    return PLACEHOLDER_RE.sub(_substitute, html)
