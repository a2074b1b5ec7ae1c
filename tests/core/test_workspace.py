from __future__ import annotations

import stat

import pytest

from biostat_quiz.core import workspace


def test_ensure_workspace_creates_layout(tmp_path):
    home = tmp_path / "ws"
    layout = workspace.ensure_workspace(path=home)

    assert layout.home == home
    for key in ("config", "logs", "exports"):
        target = layout.path_for(key)
        assert target == home / key
        assert target.is_dir()
        assert stat.S_IMODE(target.stat().st_mode) == 0o700


def test_env_override_and_precedence(tmp_path):
    env = {workspace.WORKSPACE_ENV: str(tmp_path / "from-env")}
    layout = workspace.ensure_workspace(env=env)
    assert layout.home == tmp_path / "from-env"

    explicit = workspace.ensure_workspace(env=env, path=tmp_path / "explicit")
    assert explicit.home == tmp_path / "explicit"


def test_no_create_leaves_disk_untouched(tmp_path):
    layout = workspace.ensure_workspace(path=tmp_path / "lazy", create=False)
    assert not layout.home.exists()
    assert layout.path_for("logs") == tmp_path / "lazy" / "logs"


def test_file_in_place_of_workspace_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(workspace.WorkspaceError):
        workspace.ensure_workspace(path=blocker)

    home = tmp_path / "home"
    home.mkdir()
    (home / "logs").write_text("x", encoding="utf-8")
    with pytest.raises(workspace.WorkspaceError, match="logs"):
        workspace.ensure_workspace(path=home, create=False)


def test_unknown_directory_key(tmp_path):
    layout = workspace.ensure_workspace(path=tmp_path / "ws")
    with pytest.raises(KeyError):
        layout.path_for("cache")
