"""Build one mail: compile -> split -> render -> trim -> inline -> localize -> write."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from mail_forge.core.inline import inline_html
from mail_forge.core.layout import (
    COMPACT_HTML,
    HEAD_EXTRA_STYLESHEET,
    HEAD_ONLY_STYLESHEET,
    PRETTY_HTML,
    MailLayout,
    optional_stylesheets,
    resolve_layout,
    resolve_style_source,
    resolve_template,
    style_source_for,
)
from mail_forge.core.localize import build_translation_index, list_locales, localize_html, validate_locale
from mail_forge.core.partition import minify_css, split_css
from mail_forge.core.prune import prune_css, pruned_bytes, strip_empty_at_rules
from mail_forge.core.render import TemplateRenderer, beautify_html, minify_html_text
from mail_forge.core.styles import compile_optional_chunks, compile_stylesheet
from mail_forge.core.usage import collect_used_selectors
from mail_forge.errors import LocalizationError
from mail_forge.models import (
    BuildConfig,
    BuildReport,
    BuildVariant,
    CompiledStyles,
    StyleSource,
    UsageSet,
    VariantOutput,
)

logger = logging.getLogger(__name__)


def _join(parts: list[str], sep: str) -> str:
    return sep.join(p for p in parts if p)


def _kb(text: str) -> float:
    return len(text.encode("utf-8")) / 1024


def compile_styles(layout: MailLayout, source: StyleSource) -> CompiledStyles:
    head, inline = split_css(compile_stylesheet(source))

    def _chunks(name: str) -> str:
        return compile_optional_chunks([style_source_for(layout, p) for p in optional_stylesheets(layout, name)])

    return CompiledStyles(
        head=head,
        inline=inline,
        head_only=_chunks(HEAD_ONLY_STYLESHEET),
        head_extra=_chunks(HEAD_EXTRA_STYLESHEET),
    )


def _trim(css: str, used: UsageSet, *, aggressive: bool, label: str) -> str:
    trimmed = prune_css(css, used, aggressive=aggressive)
    delta, percent = pruned_bytes(css, trimmed)
    if delta > 0:
        logger.info("CSS trim (%s): -%.1f KB (%d%%)", label, delta / 1024, percent)
    return trimmed


def build_variant(
    renderer: TemplateRenderer,
    styles: CompiledStyles,
    variant: BuildVariant,
    *,
    head_comment: str,
    trim_css: bool,
) -> VariantOutput:
    """Produce the inlined HTML for one variant.

    Head CSS is ``head-only + head + head-extra``; inline CSS is
    ``inline + head-extra`` (head-extra deliberately lands in both places).

    With trimming enabled this is a two-stage render: ``draft_html`` is rendered
    only to discover which classes/ids the markup uses, the CSS is pruned
    against that usage, and ``final_html`` is rendered again with the pruned
    head CSS. The second render is required so the shipped ``<head>`` matches
    what was pruned.
    """

    def _minify(css: str, enabled: bool) -> str:
        return minify_css(css) if enabled else css

    head_only = _minify(styles.head_only, variant.minify_head)
    head = _minify(styles.head, variant.minify_head)
    head_extra = _minify(styles.head_extra, variant.minify_head)

    head_css = _join([head_only, head, head_extra], "\n\n")
    inline_css = _minify(_join([styles.inline, head_extra], "\n"), variant.minify_inline)

    if trim_css:
        draft_html = renderer.render(head_css, head_comment, pretty=variant.pretty)
        used = collect_used_selectors(draft_html)
        inline_css = _minify(_trim(inline_css, used, aggressive=False, label="inline"), variant.minify_inline)
        # head-only CSS is exempt from pruning.
        trimmed_head = _trim(_join([head, head_extra], "\n\n"), used, aggressive=True, label="head")
        head_css = _join([head_only, trimmed_head], "\n\n")

    head_css = _minify(strip_empty_at_rules(head_css), variant.minify_head)
    final_html = renderer.render(head_css, head_comment, pretty=variant.pretty)

    # HTML minification waits for localization: it unquotes attribute values that
    # still hold a placeholder token.
    html = inline_html(final_html, inline_css)
    return VariantOutput(html=html, head_css=head_css, inline_css=inline_css)


def finish_html(html: str, variant: BuildVariant) -> str:
    return minify_html_text(html) if variant.minify_html else html


def write_html_pair(directory: Path, compact: str, pretty: str | None = None) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / COMPACT_HTML).write_text(compact, encoding="utf-8")
    if pretty is not None:
        (directory / PRETTY_HTML).write_text(beautify_html(pretty), encoding="utf-8")


def localize_locale(
    locale: str,
    lang_dir: Path,
    dist_root: Path,
    base_compact: str,
    base_pretty: str | None,
    *,
    fail_on_missing: bool,
    variant: BuildVariant,
) -> None:
    """Localize the shared base HTML for one locale and write its output directory.

    In strict mode a missing file/key raises before anything is written, so a
    failed locale leaves no partial output behind.
    """
    index = build_translation_index(lang_dir, locale)
    if not index:
        logger.warning("Locale '%s': no JSON found; emitting HTML with placeholders", locale)

    compact = finish_html(localize_html(base_compact, index, fail_on_missing=fail_on_missing), variant)
    pretty = None
    if base_pretty is not None:
        pretty = localize_html(base_pretty, index, fail_on_missing=fail_on_missing)
    write_html_pair(dist_root / locale, compact, pretty)


def localize_all(
    locales: list[str],
    layout: MailLayout,
    base_compact: str,
    base_pretty: str | None,
    *,
    fail_on_missing: bool,
    variant: BuildVariant,
    jobs: int,
) -> tuple[list[str], dict[str, str]]:
    """Localize every locale independently; returns (written, failed)."""
    written: list[str] = []
    failed: dict[str, str] = {}
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        futures: dict[str, Future[None]] = {
            locale: pool.submit(
                localize_locale,
                locale,
                layout.lang_dir,
                layout.dist_root,
                base_compact,
                base_pretty,
                fail_on_missing=fail_on_missing,
                variant=variant,
            )
            for locale in locales
        }
        for locale, future in futures.items():
            try:
                future.result()
            except LocalizationError as exc:
                logger.error("Localization failed for locale '%s': %s", locale, exc)
                failed[locale] = str(exc)
            else:
                written.append(locale)
    return written, failed


def run_build(config: BuildConfig) -> BuildReport:
    layout = resolve_layout(config)
    template = resolve_template(layout)
    style_source = resolve_style_source(layout)
    if config.locales is not None:
        locales = [validate_locale(locale) for locale in config.locales]
    else:
        locales = list_locales(layout.lang_dir)

    logger.info("Template: %s", template.relative_to(layout.project_root))
    logger.info("Locales: %s", ", ".join(locales) or "(none)")

    styles = compile_styles(layout, style_source)
    renderer = TemplateRenderer(template, layout.project_root)

    compact_variant = config.compact_variant()
    compact = build_variant(
        renderer, styles, compact_variant, head_comment=config.mail_id, trim_css=config.trim_css
    )
    pretty = None
    if config.pretty:
        pretty = build_variant(
            renderer, styles, config.pretty_variant(), head_comment=config.mail_id, trim_css=config.trim_css
        )
    logger.info("CSS split: head=%.1f KB, inline=%.1f KB", _kb(compact.head_css), _kb(compact.inline_css))

    if config.base:
        write_html_pair(layout.dist_root, finish_html(compact.html, compact_variant), pretty.html if pretty else None)

    written: list[str] = []
    failed: dict[str, str] = {}
    if locales:
        written, failed = localize_all(
            locales,
            layout,
            compact.html,
            pretty.html if pretty else None,
            fail_on_missing=config.fail_on_missing,
            variant=compact_variant,
            jobs=config.jobs,
        )
    else:
        logger.warning("No locales found in %s; no localized output written", layout.lang_dir)

    return BuildReport(
        dist_root=layout.dist_root,
        locales_written=written,
        locales_failed=failed,
        head_bytes=len(compact.head_css.encode("utf-8")),
        inline_bytes=len(compact.inline_css.encode("utf-8")),
    )
