"""Tests for SCSS compilation."""

from __future__ import annotations

from pathlib import Path

import pytest

from mail_forge.core.styles import compile_optional_chunks, compile_stylesheet
from mail_forge.errors import CompileError
from mail_forge.models import StyleSource


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestCompileStylesheet:
    def test_auto_imports_are_visible(self, tmp_path: Path) -> None:
        tokens = _write(tmp_path / "vendor" / "tokens.scss", "$brand: red;\n")
        entry = _write(tmp_path / "app" / "inline.scss", ".hero { color: $brand; }\n")
        css = compile_stylesheet(StyleSource(entry=entry, auto_imports=(tokens,)))
        assert ".hero" in css
        assert "color: red" in css

    def test_missing_auto_import_is_ignored(self, tmp_path: Path) -> None:
        entry = _write(tmp_path / "inline.scss", ".hero { color: red; }\n")
        css = compile_stylesheet(StyleSource(entry=entry, auto_imports=(tmp_path / "tokens.scss",)))
        assert "color: red" in css

    def test_include_paths_resolve_imports(self, tmp_path: Path) -> None:
        _write(tmp_path / "shared" / "_mixins.scss", "@mixin big { font-size: 20px; }\n")
        entry = _write(tmp_path / "app" / "inline.scss", '@import "mixins";\n.hero { @include big; }\n')
        css = compile_stylesheet(StyleSource(entry=entry, include_paths=(tmp_path / "shared",)))
        assert "font-size: 20px" in css

    def test_syntax_error(self, tmp_path: Path) -> None:
        entry = _write(tmp_path / "inline.scss", ".hero { color: $undefined; }\n")
        with pytest.raises(CompileError, match="inline.scss"):
            compile_stylesheet(StyleSource(entry=entry))

    def test_missing_entry(self, tmp_path: Path) -> None:
        with pytest.raises(CompileError, match="not found"):
            compile_stylesheet(StyleSource(entry=tmp_path / "inline.scss"))


class TestCompileOptionalChunks:
    def test_chunks_joined_in_order(self, tmp_path: Path) -> None:
        first = _write(tmp_path / "a.scss", ".a { color: red; }\n")
        second = _write(tmp_path / "b.scss", ".b { color: blue; }\n")
        css = compile_optional_chunks([StyleSource(entry=first), StyleSource(entry=second)])
        assert css.index(".a") < css.index(".b")

    def test_failing_chunk_is_skipped(self, tmp_path: Path) -> None:
        broken = _write(tmp_path / "broken.scss", ".x { color: $nope; }\n")
        good = _write(tmp_path / "good.scss", ".b { color: blue; }\n")
        css = compile_optional_chunks([StyleSource(entry=broken), StyleSource(entry=good)])
        assert ".b" in css
        assert ".x" not in css

    def test_no_chunks(self) -> None:
        assert compile_optional_chunks([]) == ""
