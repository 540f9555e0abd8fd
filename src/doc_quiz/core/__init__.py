"""Shared helpers: AI client, TOML config, logging, workspace."""

from __future__ import annotations

from .ai import API_KEY_ENV, load_client
from .config import TomlConfigError, load_toml, merge_defaults
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "API_KEY_ENV",
    "load_client",
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "JsonLogFormatter",
    "configure_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
]
