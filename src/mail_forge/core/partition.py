"""Split compiled CSS into head-bound at-rules and inlineable rules.

CSS is first cut into top-level statements on its own source text. Plain
statements go through cssutils; at-rules whose block holds further rules
(``@media``, ``@supports`` and friends) and at-rules cssutils cannot model are
carried as their exact source slice, so nothing nested inside them is
re-serialized.
"""

import logging
import re
from collections.abc import Iterable, Iterator

import csscompressor
import cssutils
from cssutils.css import CSSRule, CSSStyleSheet

from mail_forge.core.recover import try_recoverable

# cssutils reports every unknown property/at-rule; malformed fragments are skipped, not fatal.
cssutils.log.setLevel(logging.CRITICAL)

# At-rules that cannot (or must not) be pushed into style attributes.
HEAD_AT_RULES = frozenset(
    {
        "media",
        "supports",
        "font-face",
        "keyframes",
        "-webkit-keyframes",
        "-moz-keyframes",
        "-o-keyframes",
        "charset",
    }
)

# At-rules whose block contains rules rather than declarations.
GROUPING_AT_RULES = frozenset({"media", "supports", "container", "layer", "document", "-moz-document"})

_AT_KEYWORD_RE = re.compile(r"\s*(?:/\*.*?\*/\s*)*@([-\w]+)", re.DOTALL)
_COMMENT_RE = re.compile(r"/\*.*?(?:\*/|$)", re.DOTALL)


def parse_css(css_text: str) -> CSSStyleSheet:
    """Forgiving parse: errors are logged by cssutils and the offending node dropped."""
    parser = cssutils.CSSParser(raiseExceptions=False, validate=False)
    return parser.parseString(css_text)


def _string_end(css_text: str, start: int) -> int:
    quote = css_text[start]
    index = start + 1
    while index < len(css_text):
        char = css_text[index]
        if char == "\\":
            index += 2
            continue
        if char in (quote, "\n"):
            return index + 1
        index += 1
    return len(css_text)


def _structural(css_text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(index, char)`` for braces and semicolons outside comments, strings and escapes."""
    index, size = 0, len(css_text)
    while index < size:
        char = css_text[index]
        if char == "/" and css_text.startswith("/*", index):
            end = css_text.find("*/", index + 2)
            index = size if end < 0 else end + 2
            continue
        if char in "\"'":
            index = _string_end(css_text, index)
            continue
        if char == "\\":
            index += 2
            continue
        if char in "{};":
            yield index, char
        index += 1


def split_statements(css_text: str) -> list[str]:
    """Top-level statements (rules and at-rules) as stripped source slices, in order."""
    statements: list[str] = []
    depth = start = 0
    for index, char in _structural(css_text):
        if char == "{":
            depth += 1
            continue
        if char == "}":
            depth = max(depth - 1, 0)
        if depth == 0:
            statements.append(css_text[start : index + 1])
            start = index + 1
    statements.append(css_text[start:])
    return [s.strip() for s in statements if s.strip()]


def statement_at_keyword(statement: str) -> str | None:
    """Lower-cased at-keyword without the ``@``, or None for style rules and comments."""
    match = _AT_KEYWORD_RE.match(statement)
    return match.group(1).lower() if match else None


def split_block(statement: str) -> tuple[str, str] | None:
    """Return ``(prelude, body)`` of a block statement, or None for ``@import ...;`` style ones."""
    opening = next((index for index, char in _structural(statement) if char == "{"), None)
    if opening is None:
        return None
    closing = statement.rfind("}")
    body = statement[opening + 1 : closing] if closing > opening else statement[opening + 1 :]
    return statement[:opening].strip(), body


def has_rules(css_text: str) -> bool:
    return bool(_COMMENT_RE.sub("", css_text).strip())


def serialize_rules(rules: Iterable[CSSRule]) -> str:
    return "\n".join(text for text in (rule.cssText for rule in rules) if text)


def join_statements(statements: Iterable[str]) -> str:
    return "\n".join(s for s in statements if s)


def statement_css(statement: str) -> str:
    """Normalized text of one statement; empty when cssutils rejects it as malformed."""
    if statement_at_keyword(statement) in GROUPING_AT_RULES:
        return statement
    rules = list(parse_css(statement).cssRules)
    if any(rule.type == CSSRule.UNKNOWN_RULE for rule in rules):
        return statement
    return serialize_rules(rules)


def split_css(css_text: str) -> tuple[str, str]:
    """Return ``(head_css, inline_css)``; source order is kept inside each part."""
    head: list[str] = []
    inline: list[str] = []
    for statement in split_statements(css_text):
        text = statement_css(statement)
        if statement_at_keyword(statement) in HEAD_AT_RULES:
            head.append(text)
        else:
            inline.append(text)
    return join_statements(head), join_statements(inline)


def minify_css(css_text: str) -> str:
    if not css_text:
        return css_text
    return try_recoverable(lambda: csscompressor.compress(css_text), css_text, what="CSS minification")
