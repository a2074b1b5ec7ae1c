"""Configuration loader for quiz runs."""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional

from biostat_quiz.core import config as core_config
from biostat_quiz.core import workspace as workspace_mod

CONFIG_FILENAME = "quiz.toml"
CONFIG_ENV = "BIOSTAT_QUIZ_CONFIG"
ENV_PREFIX = "BIOSTAT_QUIZ_"

_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "quiz": {"num_questions": 10, "extended_kinds": False},
    "provider": {
        "model": "gpt-4o-mini",
        "temperature": 0.7,
        "max_output_tokens": 16000,
        "timeout_seconds": 120,
    },
    "export": {"enabled": True, "output_dir": ""},
    "logging": {"level": "INFO", "verbose": False},
}


class QuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class ProviderConfig:
    model: str
    temperature: float
    max_output_tokens: int
    timeout_seconds: float


@dataclass(frozen=True)
class QuizConfig:
    num_questions: int
    extended_kinds: bool
    provider: ProviderConfig
    export_enabled: bool
    export_dir: Path
    log_level: str
    verbose: bool


@dataclass(frozen=True)
class ConfigOverrides:
    """Command-line values layered over environment and file settings."""

    num_questions: Optional[int] = None
    extended_kinds: Optional[bool] = None
    model: Optional[str] = None
    export_enabled: Optional[bool] = None
    export_dir: Optional[Path] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def default_template() -> str:
    """Return the packaged ``quiz.toml`` template."""
    return (
        resources.files("biostat_quiz.quiz")
        .joinpath(CONFIG_FILENAME)
        .read_text(encoding="utf-8")
    )


def write_default_config(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_settings_template(
            path, template=default_template(), overwrite=overwrite
        )
    except core_config.SettingsFileError as exc:
        raise QuizConfigError(str(exc)) from exc


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve settings with precedence CLI > env > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    layout = workspace_mod.ensure_workspace(env=env_map, path=workspace_path)
    table = copy.deepcopy(_DEFAULTS)

    requested = _requested_path(config_path, env_map, layout)
    loaded_path: Optional[Path] = None
    if requested.exists():
        try:
            parsed = core_config.read_settings(requested)
            core_config.overlay_settings(table, parsed)
        except core_config.SettingsFileError as exc:
            raise QuizConfigError(str(exc)) from exc
        loaded_path = requested
    elif config_path is not None or (env_map.get(CONFIG_ENV) or "").strip():
        raise QuizConfigError(f"Config file not found: {requested}")

    _apply_env(table, env_map)
    _apply_overrides(table, overrides)
    return LoadResult(
        config=_build_config(table, layout),
        layout=layout,
        config_path=loaded_path,
    )


def _requested_path(
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    layout: workspace_mod.WorkspaceLayout,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return layout.path_for("config") / CONFIG_FILENAME


_ENV_KEYS = {
    "NUM_QUESTIONS": ("quiz", "num_questions", int),
    "EXTENDED_KINDS": ("quiz", "extended_kinds", "bool"),
    "MODEL": ("provider", "model", str),
    "TIMEOUT_SECONDS": ("provider", "timeout_seconds", float),
    "EXPORT_DIR": ("export", "output_dir", str),
    "LOG_LEVEL": ("logging", "level", str),
}


def _apply_env(
    table: MutableMapping[str, Dict[str, Any]], env_map: Mapping[str, str]
) -> None:
    for suffix, (section, key, kind) in _ENV_KEYS.items():
        raw = (env_map.get(f"{ENV_PREFIX}{suffix}") or "").strip()
        if not raw:
            continue
        if kind == "bool":
            table[section][key] = raw.lower() in {"1", "true", "yes", "on"}
            continue
        try:
            table[section][key] = kind(raw)
        except ValueError as exc:
            raise QuizConfigError(
                f"{ENV_PREFIX}{suffix} has an invalid value: {raw!r}"
            ) from exc


def _apply_overrides(
    table: MutableMapping[str, Dict[str, Any]], overrides: ConfigOverrides
) -> None:
    pairs = (
        (overrides.num_questions, "quiz", "num_questions"),
        (overrides.extended_kinds, "quiz", "extended_kinds"),
        (overrides.model, "provider", "model"),
        (overrides.export_enabled, "export", "enabled"),
        (overrides.export_dir, "export", "output_dir"),
        (overrides.log_level, "logging", "level"),
        (overrides.verbose, "logging", "verbose"),
    )
    for value, section, key in pairs:
        if value is not None:
            table[section][key] = value


def _build_config(
    table: Mapping[str, Mapping[str, Any]],
    layout: workspace_mod.WorkspaceLayout,
) -> QuizConfig:
    quiz = table["quiz"]
    provider = table["provider"]
    export = table["export"]
    logging_table = table["logging"]
    return QuizConfig(
        num_questions=_positive_int(
            quiz["num_questions"], field="quiz.num_questions"
        ),
        extended_kinds=_boolean(
            quiz["extended_kinds"], field="quiz.extended_kinds"
        ),
        provider=ProviderConfig(
            model=_string(provider["model"], field="provider.model"),
            temperature=_number_in_range(
                provider["temperature"],
                field="provider.temperature",
                low=0.0,
                high=2.0,
            ),
            max_output_tokens=_positive_int(
                provider["max_output_tokens"],
                field="provider.max_output_tokens",
            ),
            timeout_seconds=_number_in_range(
                provider["timeout_seconds"],
                field="provider.timeout_seconds",
                low=1.0,
                high=3600.0,
            ),
        ),
        export_enabled=_boolean(export["enabled"], field="export.enabled"),
        export_dir=_resolve_export_dir(export["output_dir"], layout),
        log_level=_string(logging_table["level"], field="logging.level").upper(),
        verbose=_boolean(logging_table["verbose"], field="logging.verbose"),
    )


def _positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise QuizConfigError(f"'{field}' must be a positive integer.")
    return value


def _boolean(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise QuizConfigError(f"'{field}' must be a boolean.")
    return value


def _string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _number_in_range(
    value: Any, *, field: str, low: float, high: float
) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise QuizConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not low <= number <= high:
        raise QuizConfigError(f"'{field}' must be between {low} and {high}.")
    return number


def _resolve_export_dir(
    value: Any, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if isinstance(value, Path):
        candidate: Optional[Path] = value
    elif isinstance(value, str):
        candidate = Path(value.strip()) if value.strip() else None
    else:
        raise QuizConfigError("'export.output_dir' must be a string.")
    if candidate is None:
        return layout.path_for("exports")
    candidate = candidate.expanduser()
    if not candidate.is_absolute():
        candidate = layout.home / candidate
    return candidate.resolve()
