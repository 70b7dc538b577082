from __future__ import annotations

from markwell.convert.config import CONFIG_FILENAME
from markwell.workspace import cli


def test_init_creates_workspace_from_env(tmp_path, capsys, monkeypatch):
    target = tmp_path / "workspace"
    monkeypatch.setenv("MARKWELL_HOME", str(target))

    code = cli.main([])

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith(f"Workspace ready at {target.resolve()}")
    assert out.count("(created)") == 3
    assert "convert config init" in out
    assert (target / "config").is_dir()
    assert (target / "logs").is_dir()


def test_init_reports_existing_entries_and_config(tmp_path, capsys):
    target = tmp_path / "again"
    cli.main(["--path", str(target), "--quiet"])
    (target / "config" / CONFIG_FILENAME).write_text("", encoding="utf-8")

    code = cli.main(["--path", str(target)])

    out = capsys.readouterr().out
    assert code == 0
    assert "(created)" not in out
    assert out.count("(exists)") == 4
    assert "convert config init" not in out


def test_init_quiet_prints_nothing(tmp_path, capsys):
    code = cli.main(["--path", str(tmp_path / "quiet"), "--quiet"])

    assert code == 0
    assert capsys.readouterr().out == ""
    assert (tmp_path / "quiet" / "logs").is_dir()


def test_init_rejects_file_path(tmp_path, capsys):
    target = tmp_path / "occupied"
    target.write_text("not a directory", encoding="utf-8")

    code = cli.main(["--path", str(target)])

    assert code == 1
    assert "not a directory" in capsys.readouterr().err
