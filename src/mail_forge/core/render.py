import logging
from pathlib import Path

import minify_html
from bs4 import BeautifulSoup
from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from jinja2.ext import Extension

from mail_forge.core.localize import PLACEHOLDER_RE
from mail_forge.core.recover import try_recoverable
from mail_forge.errors import RenderError

logger = logging.getLogger(__name__)


class PlaceholderExtension(Extension):
    """Let templates carry ``${{ file.key }}$`` tokens verbatim.

    The tokens are resolved per locale after rendering, so Jinja must not try
    to evaluate the ``{{ ... }}`` inside them.
    """

    def preprocess(self, source: str, name: str | None, filename: str | None = None) -> str:
        return PLACEHOLDER_RE.sub(lambda m: "{% raw %}" + m.group(0) + "{% endraw %}", source)


class TemplateRenderer:
    """Render one mail template with the head CSS and page metadata as locals.

    Includes resolve against the template's own directory first, then the
    project root (``{% include "vendor/helpers/head.j2" %}``).
    """

    def __init__(self, template: Path, project_root: Path) -> None:
        self._template = template
        self._env = Environment(
            loader=FileSystemLoader([str(template.parent), str(project_root)]),
            autoescape=select_autoescape(["html", "j2", "jinja"]),
            extensions=[PlaceholderExtension],
            keep_trailing_newline=True,
        )

    @property
    def template(self) -> Path:
        return self._template

    def render(self, head_css: str, head_comment: str, *, pretty: bool = False) -> str:
        try:
            template = self._env.get_template(self._template.name)
            return template.render(head_css=head_css, head_comment=head_comment, pretty=pretty)
        except TemplateError as exc:
            raise RenderError(f"Template render failed ({self._template.name}): {exc}") from exc
        except Exception as exc:
            # Runtime errors raised by template expressions, e.g. {{ 1 / 0 }}.
            raise RenderError(f"Template render failed ({self._template.name}): {type(exc).__name__}: {exc}") from exc


def minify_html_text(html: str) -> str:
    """Collapse whitespace between tags; comments (e.g. MSO conditionals) are kept.

    Attribute quotes are dropped where the current value allows it, so this
    only runs on final (localized) HTML.
    """
    if not html:
        return html
    return try_recoverable(
        lambda: minify_html.minify(
            html,
            keep_comments=True,
            keep_closing_tags=True,
            keep_html_and_head_opening_tags=True,
        ).strip(),
        html,
        what="HTML minification",
    )


def beautify_html(html: str) -> str:
    """Readable output for development and review, never for sending."""
    if not html:
        return html
    return try_recoverable(
        lambda: BeautifulSoup(html, "html.parser").prettify(formatter="html"),
        html,
        what="HTML beautification",
    )
