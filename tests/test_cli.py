from __future__ import annotations

import io
import logging

import pytest
from rich.console import Console

from doc_quiz import cli
from doc_quiz.config import CONFIG_FILENAME
from doc_quiz.generator import QuizGenerator
from doc_quiz.workflow import QuizWorkflow


class RecordingApp:
    instances: list["RecordingApp"] = []

    def __init__(self, workflow, *, initial_path=None, client_factory=None):
        self.workflow = workflow
        self.initial_path = initial_path
        self.client_factory = client_factory
        self.ran = False
        RecordingApp.instances.append(self)

    def run(self) -> None:
        self.ran = True


@pytest.fixture(autouse=True)
def isolated(monkeypatch):
    for key in ("DOC_QUIZ_CONFIG", "DOC_QUIZ_MODEL", "DOC_QUIZ_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    RecordingApp.instances.clear()
    yield
    logger = logging.getLogger(cli.LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=200), buffer


def test_main_launches_app_with_configured_generator(tmp_path):
    console, _ = _console()
    document = tmp_path / "notes.docx"
    document.write_bytes(b"data")
    client = object()

    code = cli.main(
        ["--workspace", str(tmp_path / "ws"), "--model", "gpt-x", str(document)],
        console=console,
        client_factory=lambda key: client,
        app_factory=RecordingApp,
    )

    assert code == 0
    (app,) = RecordingApp.instances
    assert app.ran is True
    assert app.initial_path == document
    assert isinstance(app.workflow, QuizWorkflow)
    generator = app.workflow.generator
    assert isinstance(generator, QuizGenerator)
    assert generator.client is client
    assert generator.settings.model == "gpt-x"
    assert (tmp_path / "ws" / "logs" / "doc_quiz.log").exists()


def test_missing_api_key_still_launches(tmp_path):
    console, buffer = _console()

    def no_key(key):
        raise RuntimeError("OPENAI_API_KEY not found in environment.")

    code = cli.main(
        ["--workspace", str(tmp_path / "ws")],
        console=console,
        client_factory=no_key,
        app_factory=RecordingApp,
    )

    assert code == 0
    (app,) = RecordingApp.instances
    assert app.workflow.generator.client is None
    assert app.client_factory is no_key
    assert "OPENAI_API_KEY" in buffer.getvalue()


def test_missing_document_returns_error(tmp_path):
    console, buffer = _console()

    code = cli.main(
        ["--workspace", str(tmp_path / "ws"), str(tmp_path / "nope.pdf")],
        console=console,
        client_factory=lambda key: object(),
        app_factory=RecordingApp,
    )

    assert code == 1
    assert RecordingApp.instances == []
    assert "Document not found" in buffer.getvalue()


def test_config_error_returns_two(tmp_path):
    console, buffer = _console()

    code = cli.main(
        ["--workspace", str(tmp_path), "--config", str(tmp_path / "missing.toml")],
        console=console,
        app_factory=RecordingApp,
    )

    assert code == 2
    assert "Configuration error" in buffer.getvalue()
    assert RecordingApp.instances == []


def test_init_config_writes_template_once(tmp_path):
    console, buffer = _console()
    argv = ["--workspace", str(tmp_path / "ws"), "--init-config"]

    first = cli.main(argv, console=console, app_factory=RecordingApp)
    second = cli.main(argv, console=console, app_factory=RecordingApp)

    assert first == 0
    assert second == 1
    assert (tmp_path / "ws" / "config" / CONFIG_FILENAME).exists()
    assert "already exists" in buffer.getvalue()
    assert RecordingApp.instances == []


def test_run_exits_with_main_status(monkeypatch):
    monkeypatch.setattr(cli, "main", lambda: 3)

    with pytest.raises(SystemExit) as exc:
        cli.run()

    assert exc.value.code == 3
