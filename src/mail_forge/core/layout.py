"""Directory conventions for a mail project.

    <root>/<category>/mail-<name>/app/{templates,styles,resources}
    <root>/vendor/{styles,data,helpers}
    <dist>/<category>/mail-<name>/[<locale>/]index[.pretty].html
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from mail_forge.errors import ConfigurationError
from mail_forge.models import BuildConfig, StyleSource

_TEMPLATE_CANDIDATES = ("index.j2", "index.jinja")
_STYLE_ENTRY_CANDIDATES = ("inline.scss", "common.scss")
_AUTO_IMPORTS = ("tokens.scss",)

HEAD_ONLY_STYLESHEET = "head-only.scss"
HEAD_EXTRA_STYLESHEET = "head-extra.scss"

COMPACT_HTML = "index.html"
PRETTY_HTML = "index.pretty.html"


class MailLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_root: Path
    mail_root: Path
    templates_root: Path
    styles_root: Path
    vendor_root: Path
    lang_dir: Path
    dist_root: Path

    @property
    def vendor_styles(self) -> Path:
        return self.vendor_root / "styles"

    @property
    def vendor_helpers(self) -> Path:
        return self.vendor_root / "helpers"

    def watch_paths(self) -> list[Path]:
        return [
            self.mail_root / "app",
            self.vendor_helpers,
            self.vendor_styles,
            self.vendor_root / "data",
        ]


def mail_root_for(project_root: Path, category: str, mail: str) -> Path:
    return project_root / category / f"mail-{mail}"


def resolve_layout(config: BuildConfig) -> MailLayout:
    if not config.category or not config.mail:
        raise ConfigurationError("Required: --category <CAT> --mail <NAME> (e.g. --category X_IQ --mail roll-300126)")

    root = config.project_root
    mail_root = mail_root_for(root, config.category, config.mail)
    return MailLayout(
        project_root=root,
        mail_root=mail_root,
        templates_root=mail_root / "app" / "templates",
        styles_root=mail_root / "app" / "styles",
        vendor_root=root / "vendor",
        lang_dir=_absolute(root, config.lang_dir),
        dist_root=_absolute(root, config.dist) / config.category / f"mail-{config.mail}",
    )


def _absolute(root: Path, path: Path) -> Path:
    return path if path.is_absolute() else root / path


def resolve_template(layout: MailLayout) -> Path:
    """Return the single index template; both or neither present is an error."""
    present = [layout.templates_root / name for name in _TEMPLATE_CANDIDATES]
    present = [p for p in present if p.is_file()]
    if len(present) > 1:
        listed = "\n".join(f"- {p.relative_to(layout.project_root)}" for p in present)
        raise ConfigurationError(f"Both templates exist. Keep only ONE:\n{listed}")
    if not present:
        expected = " or ".join(_TEMPLATE_CANDIDATES)
        raise ConfigurationError(f"Template not found: expected {expected} in {layout.templates_root}")
    return present[0]


def resolve_style_source(layout: MailLayout) -> StyleSource:
    for name in _STYLE_ENTRY_CANDIDATES:
        entry = layout.styles_root / name
        if entry.is_file():
            return style_source_for(layout, entry)
    expected = " or ".join(_STYLE_ENTRY_CANDIDATES)
    raise ConfigurationError(f"Stylesheet entry not found (expected {expected}) in {layout.styles_root}")


def style_source_for(layout: MailLayout, entry: Path) -> StyleSource:
    return StyleSource(
        entry=entry,
        include_paths=(layout.styles_root, layout.vendor_styles),
        auto_imports=tuple(layout.vendor_styles / name for name in _AUTO_IMPORTS),
    )


def optional_stylesheets(layout: MailLayout, name: str) -> list[Path]:
    """Global chunk first, then the per-mail one; only files that exist."""
    candidates = [layout.vendor_styles / name, layout.styles_root / name]
    return [p for p in candidates if p.is_file()]
