"""Workspace directory bootstrap (config, logs, exported transcripts)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, MutableMapping

__all__ = [
    "WORKSPACE_ENV",
    "DEFAULT_WORKSPACE",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]

WORKSPACE_ENV = "BIOSTAT_QUIZ_HOME"
DEFAULT_WORKSPACE = Path.home() / ".biostat-quiz"

_SUBDIRS = {
    "config": "config",
    "logs": "logs",
    "exports": "exports",
}


class WorkspaceError(RuntimeError):
    """Raised when the workspace layout cannot be prepared."""


@dataclass(frozen=True)
class WorkspaceLayout:
    """Resolved workspace paths."""

    home: Path
    directories: Mapping[str, Path]

    def path_for(self, key: str) -> Path:
        try:
            return self.directories[key]
        except KeyError as exc:
            raise KeyError(f"Unknown workspace directory '{key}'.") from exc


def ensure_workspace(
    *,
    env: Mapping[str, str] | None = None,
    path: Path | None = None,
    create: bool = True,
) -> WorkspaceLayout:
    """Resolve the workspace root and, unless ``create`` is off, build it.

    ``path`` wins over ``BIOSTAT_QUIZ_HOME`` which wins over the default
    ``~/.biostat-quiz``.
    """

    env_map = os.environ if env is None else env
    home = _resolve_home(env_map, path)
    if home.exists() and not home.is_dir():
        raise WorkspaceError(
            f"Configured workspace exists and is not a directory: {home}"
        )

    directories: MutableMapping[str, Path] = {}
    for key, relative in _SUBDIRS.items():
        target = home / relative
        if create:
            _ensure_dir(target)
        elif target.exists() and not target.is_dir():
            raise WorkspaceError(
                f"Expected workspace directory for '{key}' but found a file: "
                f"{target}"
            )
        directories[key] = target
    if create:
        _ensure_dir(home)

    return WorkspaceLayout(
        home=home, directories=MappingProxyType(dict(directories))
    )


def _resolve_home(env: Mapping[str, str], override: Path | None) -> Path:
    if override is not None:
        target = override
    else:
        custom = (env.get(WORKSPACE_ENV) or "").strip()
        target = Path(custom) if custom else DEFAULT_WORKSPACE
    return target.expanduser().absolute()


def _ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except (FileExistsError, PermissionError) as exc:
        raise WorkspaceError(f"Unable to prepare directory: {path}") from exc
    try:
        path.chmod(0o700)
    except (PermissionError, NotImplementedError):  # pragma: no cover
        pass
