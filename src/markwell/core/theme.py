"""Theme loading, inheritance and validation.

A theme is resolved from (in order) the ``--theme`` value, the nearest
``.markwell.yaml`` above the input file, or the built-in default. Raw themes
may ``extend`` a built-in theme or another file; the result is deep-merged
onto :data:`DEFAULT_THEME` and whole-string ``$color`` references are
substituted from the ``colors`` table.
"""

from __future__ import annotations

import copy
import re
from importlib import resources
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import yaml

__all__ = [
    "DEFAULT_THEME",
    "KNOWN_FIELDS",
    "THEME_FILENAME",
    "TYPO_SUGGESTIONS",
    "ThemeError",
    "find_theme_file",
    "list_builtin_themes",
    "load_builtin_theme",
    "load_theme_file",
    "resolve_theme",
    "validate_theme",
]

THEME_FILENAME = ".markwell.yaml"
BUILTIN_THEMES: tuple[str, ...] = (
    "default",
    "professional",
    "modern",
    "minimal",
)

WarningCallback = Callable[[str], None]

DEFAULT_THEME: Mapping[str, Any] = {
    "name": "default",
    "colors": {
        "primary": "2B579A",
        "accent": "4472C4",
        "text": "333333",
        "background": "FFFFFF",
        "muted": "888888",
    },
    "typography": {
        # Sizes are half-points (22 == 11pt).
        "fontFamily": "Calibri",
        "bodySize": 22,
        "headingSizes": {1: 48, 2: 40, 3: 32, 4: 28, 5: 24, 6: 22},
        "codeFont": "Courier New",
    },
    "spacing": {
        # Twips (1/20 pt).
        "paragraphAfter": 120,
        "headingBefore": 240,
        "headingAfter": 120,
    },
    "document": {
        "margins": {"top": 1440, "bottom": 1440, "left": 1440, "right": 1440},
    },
    "spreadsheet": {
        "headerBackground": "4472C4",
        "headerTextColor": "FFFFFF",
        "headerBold": True,
    },
    "presentation": {"paginate": True},
    "transcript": {"speakerLabels": True},
    "defaults": {},
}

KNOWN_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "extends",
        "colors",
        "typography",
        "spacing",
        "document",
        "spreadsheet",
        "presentation",
        "transcript",
        "defaults",
    }
)

TYPO_SUGGESTIONS: Mapping[str, str] = {
    "colrs": "colors",
    "colour": "colors",
    "colours": "colors",
    "color": "colors",
    "typo": "typography",
    "typograpy": "typography",
    "fonts": "typography",
    "font": "typography",
    "space": "spacing",
    "spacings": "spacing",
    "doc": "document",
    "documents": "document",
    "sheet": "spreadsheet",
    "sheets": "spreadsheet",
    "excel": "spreadsheet",
    "slides": "presentation",
    "pptx": "presentation",
    "present": "presentation",
    "sub": "transcript",
    "srt": "transcript",
    "vtt": "transcript",
    "default": "defaults",
}

_VARIABLE_RE = re.compile(r"^\$(\w+)$")


class ThemeError(RuntimeError):
    """Raised when a theme cannot be loaded or its inheritance is broken."""


def list_builtin_themes() -> list[str]:
    return list(BUILTIN_THEMES)


def load_builtin_theme(name: str) -> Optional[dict[str, Any]]:
    """Return the raw built-in theme ``name`` or ``None`` when unknown."""

    if name not in BUILTIN_THEMES:
        return None
    resource = resources.files("markwell.themes").joinpath(f"{name}.yaml")
    try:
        text = resource.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    return _parse_yaml(text, source=f"built-in theme '{name}'")


def load_theme_file(path: Path) -> dict[str, Any]:
    """Load a raw theme from a YAML file; an empty file is an empty theme."""

    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ThemeError(f"Cannot read theme file {path}: {exc}") from exc
    return _parse_yaml(text, source=str(path))


def _parse_yaml(text: str, *, source: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ThemeError(f"Invalid YAML in {source}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ThemeError(f"Theme in {source} must be a mapping.")
    return data


def find_theme_file(start: Path) -> Optional[Path]:
    """Walk up from ``start``'s directory looking for ``.markwell.yaml``."""

    directory = Path(start).expanduser().absolute().parent
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / THEME_FILENAME
        if candidate.is_file():
            return candidate
    return None


def validate_theme(raw: Mapping[str, Any]) -> list[str]:
    """Return human-readable warnings for suspicious theme content."""

    warnings: list[str] = []
    for key in raw:
        if key in KNOWN_FIELDS:
            continue
        suggestion = TYPO_SUGGESTIONS.get(str(key).lower())
        if suggestion:
            warnings.append(
                f"Unknown field '{key}' in theme, did you mean "
                f"'{suggestion}'?"
            )
        else:
            warnings.append(f"Unknown field '{key}' in theme.")

    colors = raw.get("colors")
    if isinstance(colors, Mapping):
        for key, value in colors.items():
            if not isinstance(value, str):
                warnings.append(
                    f"Color '{key}' should be a string, got "
                    f"{type(value).__name__}."
                )
    elif colors is not None:
        warnings.append(
            f"'colors' should be a mapping of names to hex values, got "
            f"{type(colors).__name__}."
        )
    return warnings


def deep_merge(
    base: Mapping[str, Any], override: Mapping[str, Any]
) -> dict[str, Any]:
    result: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _resolve_inheritance(
    theme: Mapping[str, Any], chain: Optional[list[str]] = None
) -> dict[str, Any]:
    parent_name = theme.get("extends")
    if not parent_name:
        return dict(theme)

    seen = list(chain or [])
    if parent_name in seen:
        cycle = " -> ".join([*seen, str(parent_name)])
        raise ThemeError(f"Circular theme inheritance detected: {cycle}")
    if theme.get("name"):
        seen.append(str(theme["name"]))
    seen.append(str(parent_name))

    parent = load_builtin_theme(str(parent_name))
    if parent is None:
        try:
            parent = load_theme_file(Path(str(parent_name)))
        except ThemeError as exc:
            raise ThemeError(
                f'Cannot load base theme "{parent_name}"'
            ) from exc

    child = {key: value for key, value in theme.items() if key != "extends"}
    return deep_merge(_resolve_inheritance(parent, seen), child)


def _substitute(value: Any, colors: Mapping[str, Any]) -> Any:
    if isinstance(value, str):
        match = _VARIABLE_RE.match(value)
        if match and match.group(1) in colors:
            return colors[match.group(1)]
        return value
    if isinstance(value, list):
        return [_substitute(item, colors) for item in value]
    if isinstance(value, Mapping):
        return {key: _substitute(item, colors) for key, item in value.items()}
    return value


def resolve_theme(
    *,
    theme_name: Optional[str] = None,
    input_path: Optional[Path] = None,
    on_warning: Optional[WarningCallback] = None,
) -> dict[str, Any]:
    """Return a fully merged theme for a conversion."""

    warn = on_warning or (lambda _message: None)
    raw: Optional[Mapping[str, Any]] = None

    if theme_name:
        raw = load_builtin_theme(theme_name)
        if raw is None:
            try:
                raw = load_theme_file(Path(theme_name).expanduser())
            except ThemeError:
                warn(f'Theme "{theme_name}" not found, using default.')

    if raw is None and input_path is not None:
        theme_file = find_theme_file(input_path)
        if theme_file is not None:
            try:
                raw = load_theme_file(theme_file)
            except ThemeError:
                warn(
                    f'Could not parse theme file "{theme_file}", using default.'
                )

    if raw is None:
        return copy.deepcopy(dict(DEFAULT_THEME))

    for message in validate_theme(raw):
        warn(message)

    merged = deep_merge(DEFAULT_THEME, _resolve_inheritance(raw))
    merged.pop("extends", None)
    if not isinstance(merged.get("colors"), Mapping):
        merged["colors"] = copy.deepcopy(dict(DEFAULT_THEME["colors"]))
    return _substitute(merged, merged["colors"])

