import css_inline

from mail_forge.errors import InlineError


def inline_html(html: str, inline_css: str) -> str:
    """Push ``inline_css`` into ``style`` attributes.

    Existing ``<style>``/``<link>`` tags are neither applied nor removed, so the
    head CSS (media queries and friends) reaches the client untouched.
    """
    inliner = css_inline.CSSInliner(
        inline_style_tags=False,
        keep_style_tags=True,
        keep_link_tags=True,
        load_remote_stylesheets=False,
        extra_css=inline_css or None,
    )
    try:
        return inliner.inline(html)
    except ValueError as exc:
        raise InlineError(f"Inline CSS failed: {exc}") from exc
