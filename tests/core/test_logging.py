from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from doc_quiz.core import logging as core_logging


@pytest.fixture
def fresh_logger_name(request) -> str:
    name = f"doc_quiz.test_{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def _flush(logger: logging.Logger) -> None:
    for handler in logger.handlers:
        handler.flush()


def test_configure_logger_writes_json_lines(tmp_path, fresh_logger_name):
    logger, log_path = core_logging.configure_logger(
        fresh_logger_name, log_dir=tmp_path / "logs"
    )

    logger.info("quiz ready", extra={"question_count": 5, "path": Path("x")})
    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception("failed", extra={"items": (1, {"k": object()})})
    _flush(logger)

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    first = json.loads(lines[0])
    assert first["message"] == "quiz ready"
    assert first["level"] == "INFO"
    assert first["extra"] == {"question_count": 5, "path": "x"}
    last = json.loads(lines[-1])
    assert "ValueError: boom" in last["exception"]
    assert last["extra"]["items"][0] == 1
    assert last["extra"]["items"][1]["k"].startswith("<object")


def test_file_level_filters_records(tmp_path, fresh_logger_name):
    logger, log_path = core_logging.configure_logger(
        fresh_logger_name, log_dir=tmp_path / "logs", level="warning"
    )

    logger.info("hidden")
    logger.warning("shown")
    _flush(logger)

    messages = [
        json.loads(line)["message"]
        for line in log_path.read_text(encoding="utf-8").splitlines()
    ]
    assert messages == ["shown"]


def test_child_loggers_reach_the_file(tmp_path, fresh_logger_name):
    logger, log_path = core_logging.configure_logger(
        fresh_logger_name, log_dir=tmp_path / "logs"
    )

    logging.getLogger(f"{fresh_logger_name}.workflow").info("from child")
    _flush(logger)

    record = json.loads(log_path.read_text(encoding="utf-8").splitlines()[0])
    assert record["logger"].endswith(".workflow")


def test_console_handler_toggles_without_duplicates(tmp_path, fresh_logger_name):
    log_dir = tmp_path / "logs"

    def console_handlers(logger):
        return [
            h for h in logger.handlers if getattr(h, "_doc_quiz_console", False)
        ]

    logger, _ = core_logging.configure_logger(
        fresh_logger_name, log_dir=log_dir, verbose=True
    )
    core_logging.configure_logger(fresh_logger_name, log_dir=log_dir, verbose=True)
    assert len(console_handlers(logger)) == 1
    assert len(logger.handlers) == 2

    core_logging.configure_logger(fresh_logger_name, log_dir=log_dir)
    assert console_handlers(logger) == []
    assert len(logger.handlers) == 1


def test_unwritable_log_dir_falls_back_to_tempdir(
    tmp_path, monkeypatch, fresh_logger_name
):
    target = tmp_path / "blocked"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):  # noqa: ANN001
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    monkeypatch.setattr(core_logging.tempfile, "gettempdir", lambda: str(tmp_path))

    _, log_path = core_logging.configure_logger(fresh_logger_name, log_dir=target)

    assert log_path.parent == tmp_path / "doc-quiz-logs"
    assert log_path.exists()


def test_coerce_level_defaults_to_info():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level("debug") == logging.DEBUG
