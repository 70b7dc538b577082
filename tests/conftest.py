from __future__ import annotations

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
# Importable without an editable install.
for entry in (TESTS_DIR.parent / "src", TESTS_DIR):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

from fixtures import ProjectDir  # noqa: E402

CONVERT_ENV = (
    "MARKWELL_CONVERT_CONFIG",
    "MARKWELL_CONVERT_OUTPUT_DIR",
    "MARKWELL_CONVERT_COLLISION",
    "MARKWELL_CONVERT_THEME",
    "MARKWELL_CONVERT_LOG_LEVEL",
)


@pytest.fixture
def project_dir(tmp_path: Path) -> ProjectDir:
    return ProjectDir(tmp_path)


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point MARKWELL_HOME at tmp and drop convert settings from the env."""

    monkeypatch.setenv("MARKWELL_HOME", str(tmp_path / ".markwell-home"))
    for name in CONVERT_ENV:
        monkeypatch.delenv(name, raising=False)
