from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class StyleSource(BaseModel):
    model_config = ConfigDict(frozen=True)

    entry: Path
    include_paths: tuple[Path, ...] = ()
    auto_imports: tuple[Path, ...] = ()


class UsageSet(BaseModel):
    """Class and id tokens present in one rendered HTML snapshot."""

    model_config = ConfigDict(frozen=True)

    classes: frozenset[str] = frozenset()
    ids: frozenset[str] = frozenset()


class BuildVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    minify_head: bool = False
    minify_inline: bool = False
    minify_html: bool = False
    pretty: bool = False


class CompiledStyles(BaseModel):
    """Compiled CSS for one mail, split by where it ends up."""

    model_config = ConfigDict(frozen=True)

    head: str = ""
    inline: str = ""
    head_only: str = ""
    head_extra: str = ""


class VariantOutput(BaseModel):
    """What one variant actually shipped."""

    model_config = ConfigDict(frozen=True)

    html: str
    head_css: str
    inline_css: str


class BuildConfig(BaseModel):
    """Immutable build configuration, constructed once at the entry point."""

    model_config = ConfigDict(frozen=True)

    project_root: Path
    category: str
    mail: str
    locales: tuple[str, ...] | None = None
    dist: Path = Path("dist")
    lang_dir: Path = Path("vendor") / "data"
    minify_css: bool = True
    minify_html: bool = False
    minify_all: bool = False
    trim_css: bool = True
    pretty: bool = False
    fail_on_missing: bool = False
    base: bool = True
    jobs: int = Field(default=4, ge=1)

    @property
    def mail_id(self) -> str:
        return f"{self.category}/mail-{self.mail}"

    def compact_variant(self) -> BuildVariant:
        return BuildVariant(
            name="compact",
            minify_head=self.minify_css or self.minify_all,
            minify_inline=self.minify_all,
            minify_html=self.minify_html or self.minify_all,
        )

    def pretty_variant(self) -> BuildVariant:
        return BuildVariant(name="pretty", pretty=True)


class BuildReport(BaseModel):
    dist_root: Path
    locales_written: list[str] = []
    locales_failed: dict[str, str] = {}
    head_bytes: int = 0
    inline_bytes: int = 0

    @property
    def ok(self) -> bool:
        return not self.locales_failed


class PreviewSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    dist_root: Path
    prefer_pretty: bool = True
    livereload: bool = True
