"""Read, overlay and write the ``quiz.toml`` settings file."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, MutableMapping

try:  # Python >= 3.11 ships ``tomllib`` in the stdlib.
    import tomllib
except ModuleNotFoundError as exc:  # pragma: no cover - interpreter guard
    raise RuntimeError("Python 3.11+ is required for tomllib support.") from exc

__all__ = [
    "SettingsFileError",
    "overlay_settings",
    "read_settings",
    "write_settings_template",
]


class SettingsFileError(RuntimeError):
    """A settings file is missing, malformed or names unknown settings."""


def read_settings(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise SettingsFileError(f"Config file not found: {path}")
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise SettingsFileError(f"Failed to parse {path.name}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise SettingsFileError(f"{path.name} is not UTF-8 text.") from exc


def overlay_settings(
    defaults: MutableMapping[str, Any],
    document: Mapping[str, Any],
    *,
    section: str = "",
) -> None:
    """Copy ``document`` onto ``defaults`` in place.

    ``defaults`` fixes the shape: every key must already exist there, tables
    stay tables and plain settings stay plain.
    """

    for key, value in document.items():
        name = f"{section}{key}"
        if key not in defaults:
            raise SettingsFileError(f"Unknown setting '{name}' in quiz.toml.")
        expects_table = isinstance(defaults[key], MutableMapping)
        if expects_table != isinstance(value, Mapping):
            wanted = "a table" if expects_table else "a single value"
            raise SettingsFileError(
                f"'{name}' must be {wanted}, not {type(value).__name__}."
            )
        if expects_table:
            overlay_settings(defaults[key], value, section=f"{name}.")
        else:
            defaults[key] = value


def write_settings_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    """Write ``template`` to ``path``; an existing file needs ``overwrite``.

    The text lands in a sibling file first and is moved into place, so an
    interrupted write never leaves a half-written config behind.
    """

    if path.exists() and not overwrite:
        raise SettingsFileError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    staging = path.with_name(f".{path.name}.partial")
    staging.write_text(template, encoding="utf-8")
    try:
        staging.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    os.replace(staging, path)
    return path
