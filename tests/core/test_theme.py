from __future__ import annotations

import pytest

from markwell.core import theme as theme_mod
from markwell.core.theme import (
    DEFAULT_THEME,
    ThemeError,
    find_theme_file,
    list_builtin_themes,
    resolve_theme,
    validate_theme,
)


def _collect():
    warnings: list[str] = []
    return warnings, warnings.append


def test_default_theme_when_nothing_configured(tmp_path):
    source = tmp_path / "notes.md"
    source.write_text("# Notes\n", encoding="utf-8")

    theme = resolve_theme(input_path=source)

    assert theme == dict(DEFAULT_THEME)
    assert theme is not DEFAULT_THEME


def test_builtin_themes_are_listed_and_resolve():
    assert list_builtin_themes() == [
        "default",
        "professional",
        "modern",
        "minimal",
    ]
    for name in list_builtin_themes():
        resolved = resolve_theme(theme_name=name)
        assert resolved["name"] == name
        assert "extends" not in resolved


def test_builtin_theme_inherits_and_substitutes_colors():
    theme = resolve_theme(theme_name="modern")

    assert theme["colors"]["primary"] == "0F766E"
    assert theme["spreadsheet"]["headerBackground"] == "14B8A6"
    assert theme["typography"]["headingSizes"][1] == 52
    assert theme["typography"]["headingSizes"][3] == 32
    assert theme["typography"]["codeFont"] == "Courier New"


def test_theme_file_found_by_walking_up(tmp_path):
    (tmp_path / ".markwell.yaml").write_text(
        "extends: professional\ncolors:\n  primary: '123456'\n",
        encoding="utf-8",
    )
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    source = nested / "doc.md"
    source.write_text("# Doc\n", encoding="utf-8")

    assert find_theme_file(source) == tmp_path / ".markwell.yaml"

    theme = resolve_theme(input_path=source)

    assert theme["colors"]["primary"] == "123456"
    assert theme["spreadsheet"]["headerBackground"] == "123456"
    assert theme["typography"]["fontFamily"] == "Cambria"


def test_theme_name_beats_theme_file(tmp_path):
    (tmp_path / ".markwell.yaml").write_text(
        "extends: minimal\n", encoding="utf-8"
    )
    source = tmp_path / "doc.md"

    theme = resolve_theme(theme_name="modern", input_path=source)

    assert theme["name"] == "modern"


def test_theme_name_may_be_a_path(tmp_path):
    custom = tmp_path / "brand.yaml"
    custom.write_text("name: brand\ncolors:\n  accent: 'ABCDEF'\n", "utf-8")

    theme = resolve_theme(theme_name=str(custom))

    assert theme["name"] == "brand"
    assert theme["colors"]["accent"] == "ABCDEF"
    assert theme["colors"]["primary"] == DEFAULT_THEME["colors"]["primary"]


def test_unknown_theme_name_warns_and_uses_default():
    warnings, warn = _collect()

    theme = resolve_theme(theme_name="does-not-exist", on_warning=warn)

    assert theme["name"] == "default"
    assert warnings == ['Theme "does-not-exist" not found, using default.']


def test_unparseable_theme_file_warns(tmp_path):
    (tmp_path / ".markwell.yaml").write_text("colors: [unclosed\n", "utf-8")
    warnings, warn = _collect()

    theme = resolve_theme(input_path=tmp_path / "doc.md", on_warning=warn)

    assert theme["name"] == "default"
    assert warnings and "Could not parse theme file" in warnings[0]


def test_empty_theme_file_is_default(tmp_path):
    (tmp_path / ".markwell.yaml").write_text("", encoding="utf-8")

    theme = resolve_theme(input_path=tmp_path / "doc.md")

    assert theme["colors"] == DEFAULT_THEME["colors"]


def test_validate_theme_reports_typos_and_bad_colors():
    warnings = validate_theme(
        {"colrs": {}, "mystery": 1, "colors": {"primary": 123}}
    )

    assert "did you mean 'colors'" in warnings[0]
    assert warnings[1] == "Unknown field 'mystery' in theme."
    assert "Color 'primary' should be a string" in warnings[2]


def test_validation_warnings_are_forwarded(tmp_path):
    custom = tmp_path / "typo.yaml"
    custom.write_text("sheet:\n  x: 1\n", encoding="utf-8")
    warnings, warn = _collect()

    resolve_theme(theme_name=str(custom), on_warning=warn)

    assert any("did you mean 'spreadsheet'" in w for w in warnings)


def test_colors_list_falls_back_to_default_palette(tmp_path):
    (tmp_path / ".markwell.yaml").write_text(
        "colors:\n  - primary\nspreadsheet:\n  headerBackground: $primary\n",
        encoding="utf-8",
    )
    source = tmp_path / "notes.md"
    source.write_text("# Notes\n", encoding="utf-8")
    warnings, warn = _collect()

    theme = resolve_theme(input_path=source, on_warning=warn)

    assert theme["colors"] == dict(DEFAULT_THEME["colors"])
    assert (
        theme["spreadsheet"]["headerBackground"]
        == DEFAULT_THEME["colors"]["primary"]
    )
    assert warnings == [
        "'colors' should be a mapping of names to hex values, got list."
    ]


def test_circular_inheritance_raises(tmp_path):
    first = tmp_path / "first.yaml"
    second = tmp_path / "second.yaml"
    first.write_text(f"name: first\nextends: {second}\n", "utf-8")
    second.write_text(f"name: second\nextends: {first}\n", "utf-8")

    with pytest.raises(ThemeError, match="Circular theme inheritance"):
        resolve_theme(theme_name=str(first))


def test_missing_base_theme_raises(tmp_path):
    custom = tmp_path / "child.yaml"
    custom.write_text("extends: nowhere-theme\n", encoding="utf-8")

    with pytest.raises(ThemeError, match="Cannot load base theme"):
        resolve_theme(theme_name=str(custom))


def test_non_mapping_theme_is_rejected(tmp_path):
    custom = tmp_path / "list.yaml"
    custom.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ThemeError):
        theme_mod.load_theme_file(custom)


def test_deep_merge_does_not_mutate_inputs():
    base = {"a": {"b": 1, "c": 2}}
    override = {"a": {"b": 3}, "d": [1]}

    merged = theme_mod.deep_merge(base, override)

    assert merged == {"a": {"b": 3, "c": 2}, "d": [1]}
    assert base == {"a": {"b": 1, "c": 2}}
