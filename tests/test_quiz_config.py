from __future__ import annotations

from pathlib import Path

import pytest

from biostat_quiz.quiz import config as quiz_config
from biostat_quiz.quiz.config import ConfigOverrides, QuizConfigError


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_config_file(tmp_path, workspace_env) -> None:
    result = quiz_config.load_config(env=workspace_env)
    config = result.config
    assert result.config_path is None
    assert config.num_questions == 10
    assert config.extended_kinds is False
    assert config.provider.model == "gpt-4o-mini"
    assert config.provider.timeout_seconds == 120.0
    assert config.export_enabled is True
    assert config.export_dir == result.layout.path_for("exports")
    assert config.log_level == "INFO"
    assert result.layout.home == tmp_path / "home"


def test_workspace_config_file_is_picked_up(workspace_env) -> None:
    layout_home = Path(workspace_env["BIOSTAT_QUIZ_HOME"])
    _write(
        layout_home / "config" / "quiz.toml",
        '[quiz]\nnum_questions = 25\n[provider]\nmodel = "gpt-x"\n',
    )
    result = quiz_config.load_config(env=workspace_env)
    assert result.config_path == layout_home / "config" / "quiz.toml"
    assert result.config.num_questions == 25
    assert result.config.provider.model == "gpt-x"
    assert result.config.provider.temperature == 0.7


def test_precedence_cli_over_env_over_file(tmp_path, workspace_env) -> None:
    path = _write(
        tmp_path / "custom.toml",
        "[quiz]\nnum_questions = 30\nextended_kinds = true\n"
        '[logging]\nlevel = "warning"\n',
    )
    env = dict(
        workspace_env,
        BIOSTAT_QUIZ_NUM_QUESTIONS="40",
        BIOSTAT_QUIZ_LOG_LEVEL="debug",
        BIOSTAT_QUIZ_EXTENDED_KINDS="no",
    )
    result = quiz_config.load_config(
        config_path=path,
        env=env,
        overrides=ConfigOverrides(num_questions=5, verbose=True),
    )
    config = result.config
    assert config.num_questions == 5
    assert config.log_level == "DEBUG"
    assert config.extended_kinds is False
    assert config.verbose is True


def test_config_path_from_env(tmp_path, workspace_env) -> None:
    path = _write(tmp_path / "env.toml", "[export]\nenabled = false\n")
    env = dict(workspace_env, BIOSTAT_QUIZ_CONFIG=str(path))
    result = quiz_config.load_config(env=env)
    assert result.config_path == path
    assert result.config.export_enabled is False


def test_missing_explicit_config_raises(tmp_path, workspace_env) -> None:
    with pytest.raises(QuizConfigError, match="not found"):
        quiz_config.load_config(
            config_path=tmp_path / "absent.toml", env=workspace_env
        )


def test_unknown_keys_are_rejected(tmp_path, workspace_env) -> None:
    path = _write(tmp_path / "typo.toml", "[quiz]\nnum_question = 4\n")
    with pytest.raises(QuizConfigError, match="quiz.num_question"):
        quiz_config.load_config(config_path=path, env=workspace_env)


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ("[quiz]\nnum_questions = 0\n", "positive integer"),
        ("[quiz]\nextended_kinds = 1\n", "boolean"),
        ("[provider]\ntemperature = 3.5\n", "between"),
        ('[provider]\nmodel = " "\n', "non-empty string"),
        ("[export]\noutput_dir = 7\n", "output_dir"),
        ("[quiz\n", "parse"),
    ],
)
def test_invalid_values_raise(tmp_path, workspace_env, body, message) -> None:
    path = _write(tmp_path / "bad.toml", body)
    with pytest.raises(QuizConfigError, match=message):
        quiz_config.load_config(config_path=path, env=workspace_env)


def test_invalid_env_value_raises(workspace_env) -> None:
    env = dict(workspace_env, BIOSTAT_QUIZ_NUM_QUESTIONS="many")
    with pytest.raises(QuizConfigError, match="BIOSTAT_QUIZ_NUM_QUESTIONS"):
        quiz_config.load_config(env=env)


def test_relative_export_dir_resolves_in_workspace(workspace_env) -> None:
    env = dict(workspace_env, BIOSTAT_QUIZ_EXPORT_DIR="reports")
    result = quiz_config.load_config(env=env)
    assert result.config.export_dir == (result.layout.home / "reports").resolve()


def test_write_default_config_round_trips(tmp_path, workspace_env) -> None:
    target = tmp_path / "quiz.toml"
    written = quiz_config.write_default_config(target)
    assert written == target
    assert "[provider]" in target.read_text(encoding="utf-8")

    with pytest.raises(QuizConfigError, match="already exists"):
        quiz_config.write_default_config(target)
    quiz_config.write_default_config(target, overwrite=True)

    result = quiz_config.load_config(config_path=target, env=workspace_env)
    assert result.config.num_questions == 10
