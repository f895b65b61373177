"""Shared fixtures and helpers for tests."""

import json
from pathlib import Path

import pytest

from mail_forge.models import BuildConfig

_TESTS_ROOT = Path(__file__).parent

CATEGORY = "X_IQ"
MAIL = "demo"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        rel = Path(str(item.fspath)).relative_to(_TESTS_ROOT)
        if rel.parts and rel.parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# A minimal mail project on disk
# ---------------------------------------------------------------------------

_HEAD_HELPER = """<style type="text/css">
{{ head_css | safe }}
</style>
"""

_INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ head_comment }}</title>
{% include "vendor/helpers/head.j2" %}
</head>
<body>
<table class="wrapper"><tr><td>
<p class="hero">${{ nav.title }}$</p>
<p id="footer">${{ nav.footer.note }}$</p>
</td></tr></table>
</body>
</html>
"""

_INLINE_SCSS = """.hero { color: $brand; }
.unused { color: blue; }
#footer { font-size: 11px; }
@media (max-width: 600px) {
  .hero { font-size: 12px; }
  .gone { color: green; }
}
@media print {
  .gone { display: none; }
}
"""


def write_json(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def mail_project(tmp_path: Path) -> Path:
    """Project root with one mail (``X_IQ/mail-demo``) and ``en``/``es`` translations."""
    root = tmp_path / "project"
    vendor = root / "vendor"
    (vendor / "styles").mkdir(parents=True)
    (vendor / "helpers").mkdir(parents=True)
    (vendor / "styles" / "tokens.scss").write_text("$brand: red;\n", encoding="utf-8")
    (vendor / "helpers" / "head.j2").write_text(_HEAD_HELPER, encoding="utf-8")

    app = root / CATEGORY / f"mail-{MAIL}" / "app"
    (app / "templates").mkdir(parents=True)
    (app / "styles").mkdir(parents=True)
    (app / "templates" / "index.j2").write_text(_INDEX_TEMPLATE, encoding="utf-8")
    (app / "styles" / "inline.scss").write_text(_INLINE_SCSS, encoding="utf-8")

    write_json(vendor / "data" / "en" / "nav.json", {"title": "Hello", "footer": {"note": "Bye"}})
    write_json(vendor / "data" / "es" / "nav.json", {"title": "Hola", "footer": {"note": "Adios"}})
    return root


@pytest.fixture
def build_config(mail_project: Path) -> BuildConfig:
    return BuildConfig(project_root=mail_project, category=CATEGORY, mail=MAIL, minify_css=False)
