"""Settings for ``markwell convert`` runs.

Each setting is looked up in order: command line flag, then a
``MARKWELL_CONVERT_*`` environment variable, then ``markwell.toml``, then
the built-in default. The TOML file lives in the workspace ``config/``
directory unless ``--config`` or ``MARKWELL_CONVERT_CONFIG`` points
elsewhere.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

from markwell.core import config as core_config
from markwell.core import workspace as workspace_mod

CONFIG_FILENAME = "markwell.toml"
CONFIG_ENV = "MARKWELL_CONVERT_CONFIG"
ENV_PREFIX = "MARKWELL_CONVERT_"

# Mirrors convert/template.toml.
DEFAULTS: Mapping[str, Mapping[str, Any]] = {
    "paths": {"output_dir": None},
    "execution": {"collision": "prompt"},
    "theme": {"name": None},
    "logging": {"level": "INFO"},
}


class ConvertConfigError(RuntimeError):
    """Raised when convert settings cannot be loaded."""


class CollisionPolicy(Enum):
    """What to do when an output file already exists."""

    PROMPT = "prompt"
    SKIP = "skip"
    OVERWRITE = "overwrite"
    VERSION = "version"

    @classmethod
    def from_value(cls, value: str) -> "CollisionPolicy":
        try:
            return cls(value.strip().lower())
        except ValueError:
            choices = ", ".join(policy.value for policy in cls)
            raise ConvertConfigError(
                f"Unknown collision policy '{value}'. "
                f"Expected one of: {choices}."
            ) from None


@dataclass(frozen=True)
class ConvertConfig:
    """Resolved settings; ``output_dir=None`` writes beside each input."""

    output_dir: Optional[Path]
    collision: CollisionPolicy
    theme: Optional[str]
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    output_dir: Optional[Path] = None
    collision: Optional[CollisionPolicy] = None
    theme: Optional[str] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: ConvertConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    overrides = overrides or ConfigOverrides()
    env = os.environ if env is None else env
    layout = workspace_mod.ensure_workspace(env=env, path=workspace_path)

    explicit = config_path or _env_path(env, CONFIG_ENV)
    candidate = explicit or layout.path_for("config") / CONFIG_FILENAME
    candidate = candidate.expanduser()

    table = DEFAULTS
    loaded: Optional[Path] = None
    if explicit is not None or candidate.is_file():
        try:
            table = core_config.apply_table(
                DEFAULTS, core_config.read_toml(candidate)
            )
        except core_config.ConfigFileError as exc:
            raise ConvertConfigError(str(exc)) from exc
        loaded = candidate

    def setting(flag: Any, name: str, section: str, key: str) -> Any:
        from_env = core_config.env_value(env, ENV_PREFIX + name)
        return core_config.first_set(flag, from_env, table[section][key])

    config = ConvertConfig(
        output_dir=_output_dir(
            setting(overrides.output_dir, "OUTPUT_DIR", "paths", "output_dir")
        ),
        collision=_collision(
            setting(overrides.collision, "COLLISION", "execution", "collision")
        ),
        theme=_theme(setting(overrides.theme, "THEME", "theme", "name")),
        log_level=_log_level(
            setting(overrides.log_level, "LOG_LEVEL", "logging", "level")
        ),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded)


def _env_path(env: Mapping[str, str], name: str) -> Optional[Path]:
    value = core_config.env_value(env, name)
    return Path(value) if value else None


def _output_dir(value: Any) -> Optional[Path]:
    if isinstance(value, str):
        value = value.strip() or None
    if value is None:
        return None
    if not isinstance(value, (str, Path)):
        raise ConvertConfigError("paths.output_dir must be a string.")
    # Relative directories are relative to where the command runs.
    return (Path.cwd() / Path(value).expanduser()).resolve()


def _collision(value: Any) -> CollisionPolicy:
    if isinstance(value, CollisionPolicy):
        return value
    if not isinstance(value, str):
        raise ConvertConfigError("execution.collision must be a string.")
    return CollisionPolicy.from_value(value)


def _theme(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConvertConfigError("theme.name must be a string.")
    return value.strip() or None


def _log_level(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConvertConfigError("logging.level must be a non-empty string.")
    return value.strip().upper()
