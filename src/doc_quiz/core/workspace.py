"""Workspace directory helpers for doc-quiz config and logs."""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, MutableMapping


WORKSPACE_ENV = "DOC_QUIZ_HOME"
DEFAULT_WORKSPACE = Path.home() / ".doc-quiz"

_SUBDIRS = {
    "config": "config",
    "logs": "logs",
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
) -> WorkspaceLayout:
    """Create (if needed) and return the workspace layout.

    An explicit ``path`` or ``DOC_QUIZ_HOME`` is used as-is. The default home
    falls back to a directory under the system temp dir when it is not
    writable.
    """

    env_map = os.environ if env is None else env
    base, has_override = _resolve_base(env_map, override=path)

    candidates = [base]
    if not has_override:
        candidates.append(Path(tempfile.gettempdir()) / "doc-quiz")

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            return _materialize(candidate)
        except PermissionError as exc:
            last_error = exc
    raise WorkspaceError(
        "Unable to prepare workspace at {0}".format(base)
    ) from last_error


def _resolve_base(
    env: Mapping[str, str], *, override: Path | None
) -> tuple[Path, bool]:
    if override is not None:
        return override.expanduser().resolve(), True
    custom = (env.get(WORKSPACE_ENV) or "").strip()
    if custom:
        return Path(custom).expanduser().resolve(), True
    return DEFAULT_WORKSPACE.expanduser().resolve(), False


def _materialize(base: Path) -> WorkspaceLayout:
    if base.exists() and not base.is_dir():
        raise WorkspaceError(
            "Configured workspace exists and is not a directory: {0}".format(
                base
            )
        )
    directories: MutableMapping[str, Path] = {}
    for key, relative in _SUBDIRS.items():
        target = base / relative
        if target.exists() and not target.is_dir():
            raise WorkspaceError(
                "Expected directory but found a non-directory entry: "
                "{0}".format(target)
            )
        target.mkdir(parents=True, exist_ok=True)
        _chmod_safe(target, 0o700)
        directories[key] = target
    _chmod_safe(base, 0o700)
    return WorkspaceLayout(
        home=base,
        directories=MappingProxyType(dict(directories)),
    )


def _chmod_safe(path: Path, mode: int) -> None:
    try:
        path.chmod(mode)
    except (PermissionError, NotImplementedError):
        return
