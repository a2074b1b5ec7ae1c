"""Shared helpers: provider credentials, TOML config, logging, workspace."""

from __future__ import annotations

from .ai import API_KEY_ENV, ConfigurationError, load_client
from .config import (
    SettingsFileError,
    overlay_settings,
    read_settings,
    write_settings_template,
)
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "API_KEY_ENV",
    "ConfigurationError",
    "load_client",
    "SettingsFileError",
    "overlay_settings",
    "read_settings",
    "write_settings_template",
    "JsonLogFormatter",
    "configure_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
