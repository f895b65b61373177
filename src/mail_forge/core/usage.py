import re

from mail_forge.models import UsageSet

# Syntactic scan, not a DOM: good enough to drop obviously unused class/id rules,
# and it never fails on partial or malformed markup.
_ATTR_RE = re.compile(
    r"""(?<![\w:-])(class|id)\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'=<>`]+))""",
    re.IGNORECASE,
)


def collect_used_selectors(html: str) -> UsageSet:
    classes: set[str] = set()
    ids: set[str] = set()
    for match in _ATTR_RE.finditer(html or ""):
        name = match.group(1).lower()
        value = next((g for g in match.group(2, 3, 4) if g is not None), "")
        if name == "class":
            classes.update(value.split())
        elif value.strip():
            ids.add(value.strip())
    return UsageSet(classes=frozenset(classes), ids=frozenset(ids))
