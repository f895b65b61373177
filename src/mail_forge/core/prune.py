"""Remove CSS rules whose selectors reference classes/ids absent from the markup.

Conservative mode (inline CSS) keeps every selector it cannot reason about.
Aggressive mode (head CSS) only refuses to drop plain tag/universal selectors.
"""

import re

from cssutils.css import CSSRule, CSSStyleSheet

from mail_forge.core.partition import (
    GROUPING_AT_RULES,
    has_rules,
    join_statements,
    parse_css,
    serialize_rules,
    split_block,
    split_statements,
    statement_at_keyword,
    statement_css,
)
from mail_forge.models import UsageSet

_ESCAPE = r"\\(?:[0-9a-fA-F]{1,6}\s?|.)"
_ESCAPE_RE = re.compile(r"\\(?:([0-9a-fA-F]{1,6})\s?|(.))", re.DOTALL)
_CLASS_TOKEN_RE = re.compile(rf"\.((?:{_ESCAPE}|[_a-zA-Z0-9-])+)")
_ID_TOKEN_RE = re.compile(rf"#((?:{_ESCAPE}|[_a-zA-Z0-9-])+)")
_ATTR_SELECTOR_RE = re.compile(r"\[[^\]]*\]")
_CLASS_ID_ATTR_RE = re.compile(
    r"""\[\s*(class|id)\s*([~^$*|]?=)\s*(?:"([^"]*)"|'([^']*)'|([^\]\s]+))\s*(?:[iIsS]\s*)?\]""",
    re.IGNORECASE,
)
_UNSAFE_CHARS = ("[", "*", ":", ">", "+", "~")
_EXACT_OPERATORS = ("=", "~=")


def _unescape(token: str) -> str:
    """``sm\\:hide`` -> ``sm:hide``; hex escapes (``\\3A ``) are decoded too."""

    def _replace(match: re.Match[str]) -> str:
        if match.group(1):
            return chr(min(int(match.group(1), 16), 0x10FFFF))
        return match.group(2)

    return _ESCAPE_RE.sub(_replace, token)


def _attribute_tokens(selector: str) -> tuple[list[str], list[str], bool]:
    """Return (class tokens, id tokens, force_keep) from class/id attribute selectors."""
    classes: list[str] = []
    ids: list[str] = []
    for match in _CLASS_ID_ATTR_RE.finditer(selector):
        attr, operator = match.group(1).lower(), match.group(2)
        if operator not in _EXACT_OPERATORS:
            # Substring/prefix/suffix matches cannot be checked against exact tokens.
            return classes, ids, True
        raw = next((g for g in match.group(3, 4, 5) if g is not None), "")
        (classes if attr == "class" else ids).extend(raw.split())
    return classes, ids, False


def keep_selector(selector: str, used: UsageSet, *, aggressive: bool = False) -> bool:
    bare = _ATTR_SELECTOR_RE.sub("", selector)
    classes = [_unescape(token) for token in _CLASS_TOKEN_RE.findall(bare)]
    ids = [_unescape(token) for token in _ID_TOKEN_RE.findall(bare)]

    attr_classes, attr_ids, force_keep = _attribute_tokens(selector)
    if force_keep and not aggressive:
        return True
    classes.extend(attr_classes)
    ids.extend(attr_ids)

    # Escaped characters belong to a class/id name, not to the selector syntax.
    if not aggressive and any(ch in _ESCAPE_RE.sub("", selector) for ch in _UNSAFE_CHARS):
        return True

    if not classes and not ids:
        return True

    return all(c in used.classes for c in classes) and all(i in used.ids for i in ids)


def _prune_rules(sheet: CSSStyleSheet, used: UsageSet, aggressive: bool) -> None:
    for index in reversed(range(len(sheet.cssRules))):
        rule = sheet.cssRules[index]
        if rule.type != CSSRule.STYLE_RULE:
            continue
        selectors = [s.selectorText for s in rule.selectorList]
        kept = [s for s in selectors if keep_selector(s, used, aggressive=aggressive)]
        if not kept:
            sheet.deleteRule(index)
        elif len(kept) < len(selectors):
            rule.selectorText = ", ".join(kept)


def _prune_statement(statement: str, used: UsageSet, aggressive: bool) -> str:
    keyword = statement_at_keyword(statement)
    if keyword in GROUPING_AT_RULES:
        block = split_block(statement)
        if block is None:
            return statement
        prelude, body = block
        return f"{prelude} {{\n{prune_css(body, used, aggressive=aggressive)}\n}}"
    if keyword is not None:
        return statement_css(statement)

    sheet = parse_css(statement)
    _prune_rules(sheet, used, aggressive)
    return serialize_rules(sheet.cssRules)


def prune_css(css_text: str, used: UsageSet, *, aggressive: bool = False) -> str:
    """Drop unused selectors at any nesting depth; rules lose only the selectors that are unused."""
    if not css_text:
        return css_text
    return join_statements(_prune_statement(s, used, aggressive) for s in split_statements(css_text))


def _strip_statement(statement: str) -> str:
    block = split_block(statement) if statement_at_keyword(statement) else None
    if block is None:
        return statement_css(statement)
    prelude, body = block
    if statement_at_keyword(statement) in GROUPING_AT_RULES:
        inner = strip_empty_at_rules(body)
        return f"{prelude} {{\n{inner}\n}}" if has_rules(inner) else ""
    return statement_css(statement) if has_rules(body) else ""


def strip_empty_at_rules(css_text: str) -> str:
    """Drop at-rules whose block has nothing but comments left (no ``@media {}`` shells)."""
    if not css_text:
        return css_text
    return join_statements(_strip_statement(s) for s in split_statements(css_text))


def pruned_bytes(before: str, after: str) -> tuple[int, int]:
    """Return (bytes removed, percent removed) for trim logging."""
    size_before = len(before.encode("utf-8"))
    delta = size_before - len(after.encode("utf-8"))
    return delta, round(delta * 100 / max(1, size_before))
