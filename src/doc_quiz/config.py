"""Configuration loader for doc-quiz."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from .core import config as core_config
from .core import workspace as workspace_mod
from .generator import (
    DEFAULT_MAX_CHARS,
    DEFAULT_MODEL,
    DEFAULT_QUESTION_COUNT,
    GenerationSettings,
)

CONFIG_FILENAME = "doc_quiz.toml"
CONFIG_ENV = "DOC_QUIZ_CONFIG"
ENV_PREFIX = "DOC_QUIZ_"

CONFIG_TEMPLATE = f"""\
# doc-quiz configuration

[ai]
model = "{DEFAULT_MODEL}"
temperature = 0.2
max_tokens = 2000

[quiz]
question_count = {DEFAULT_QUESTION_COUNT}
max_chars = {DEFAULT_MAX_CHARS}

[logging]
level = "INFO"
"""


class DocQuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class DocQuizConfig:
    generation: GenerationSettings
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of env and file options."""

    model: Optional[str] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: DocQuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise DocQuizConfigError(str(exc)) from exc

    requested = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )
    options = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        try:
            core_config.merge_defaults(
                options, core_config.load_toml(requested)
            )
        except core_config.TomlConfigError as exc:
            raise DocQuizConfigError(str(exc)) from exc
        loaded_path = requested
    elif config_path is not None or env_map.get(CONFIG_ENV, "").strip():
        raise DocQuizConfigError(f"Config file not found: {requested}")

    ai = options["ai"]
    quiz = options["quiz"]
    generation = GenerationSettings(
        model=_require_str(
            _pick_first(overrides.model, _env(env_map, "MODEL"), ai["model"]),
            "ai.model",
        ),
        temperature=_require_number(ai["temperature"], "ai.temperature"),
        max_tokens=_require_positive_int(ai["max_tokens"], "ai.max_tokens"),
        question_count=_require_positive_int(
            quiz["question_count"], "quiz.question_count"
        ),
        max_chars=_require_positive_int(quiz["max_chars"], "quiz.max_chars"),
    )
    log_level = _require_str(
        _pick_first(
            overrides.log_level,
            _env(env_map, "LOG_LEVEL"),
            options["logging"]["level"],
        ),
        "logging.level",
    ).upper()

    return LoadResult(
        config=DocQuizConfig(generation=generation, log_level=log_level),
        layout=layout,
        config_path=loaded_path,
    )


def write_config_template(path: Path, *, overwrite: bool = False) -> Path:
    if path.exists() and not overwrite:
        raise DocQuizConfigError(f"Config already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    return path


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    defaults = GenerationSettings()
    return {
        "ai": {
            "model": defaults.model,
            "temperature": defaults.temperature,
            "max_tokens": defaults.max_tokens,
        },
        "quiz": {
            "question_count": defaults.question_count,
            "max_chars": defaults.max_chars,
        },
        "logging": {"level": "INFO"},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    candidate = env_map.get(CONFIG_ENV, "").strip()
    if candidate:
        return Path(candidate).expanduser()
    return default_path


def _env(env_map: Mapping[str, str], key: str) -> Optional[str]:
    value = env_map.get(f"{ENV_PREFIX}{key}", "").strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def _require_str(value: object, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise DocQuizConfigError(f"{key} must be a non-empty string.")
    return value.strip()


def _require_number(value: object, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DocQuizConfigError(f"{key} must be a number.")
    return float(value)


def _require_positive_int(value: object, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise DocQuizConfigError(f"{key} must be a positive integer.")
    return value


__all__ = [
    "CONFIG_ENV",
    "CONFIG_FILENAME",
    "CONFIG_TEMPLATE",
    "ConfigOverrides",
    "DocQuizConfig",
    "DocQuizConfigError",
    "LoadResult",
    "load_config",
    "write_config_template",
]
