"""Textual front end for the document-to-quiz workflow."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    LoadingIndicator,
    Select,
    Static,
)

from .core import load_client
from .state import QuizQuestionState
from .workflow import AppState, QuizWorkflow

MARK_OPTIONS = [("1 Mark", 1), ("2 Marks", 2)]

EditHandler = Callable[[int, str, object], None]
AttachHandler = Callable[[int, str], None]


def image_summary(data_uri: Optional[str]) -> str:
    if not data_uri:
        return "No image attached."
    header, _, payload = data_uri.partition(",")
    mime_type = header[len("data:"):].split(";", 1)[0] or "unknown type"
    size = len(payload) * 3 // 4 - payload.count("=")
    return f"Image attached ({mime_type}, {_format_size(size)})."


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    return f"{size / 1024:.1f} KB"


def option_label(option: str, *, correct: bool) -> str:
    return f"✓ {option}" if correct else f"  {option}"


def looks_like_image(path: Path) -> bool:
    mime_type, _ = mimetypes.guess_type(path.name)
    return bool(mime_type and mime_type.startswith("image/"))


class QuestionCard(Vertical):
    """One generated question with its explanation, image and marks editors."""

    def __init__(
        self,
        question: QuizQuestionState,
        *,
        number: int,
        on_edit: EditHandler,
        on_attach: AttachHandler,
    ) -> None:
        super().__init__(classes="card")
        self.question = question
        self.number = number
        self._on_edit = on_edit
        self._on_attach = on_attach
        self._image_path = Input(placeholder="Path to an image file")

    def compose(self) -> ComposeResult:
        q = self.question
        yield Static(f"{self.number}. {q.question}", classes="stem")
        with Vertical(classes="options"):
            for option in q.options:
                correct = q.is_correct(option)
                yield Static(
                    option_label(option, correct=correct),
                    classes="option correct" if correct else "option",
                )
        yield Static("Explanation", classes="label")
        yield Input(
            value=q.explanation,
            placeholder="Add an optional explanation...",
            name="explanation",
        )
        yield Static("Supporting Image", classes="label")
        with Horizontal(classes="image-row"):
            yield self._image_path
            yield Button("Attach", name="attach")
        yield Static(image_summary(q.image), classes="image-status")
        yield Static("Marks", classes="label")
        yield Select(MARK_OPTIONS, value=q.marks, allow_blank=False, name="marks")

    def show_image(self, data_uri: Optional[str]) -> None:
        self.query_one(".image-status", Static).update(image_summary(data_uri))

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.name == "explanation":
            event.stop()
            self._on_edit(self.question.id, "explanation", event.value)

    def on_select_changed(self, event: Select.Changed) -> None:
        event.stop()
        if isinstance(event.value, int):
            self._on_edit(self.question.id, "marks", event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.name != "attach":
            return
        event.stop()
        self._on_attach(self.question.id, self._image_path.value)


class ErrorModal(ModalScreen[bool]):
    """Lists error messages; dismisses with True to enter an API key."""

    def __init__(self, messages: Sequence[str]) -> None:
        super().__init__()
        self.messages = tuple(messages)

    def compose(self) -> ComposeResult:
        with Vertical(id="error-dialog"):
            yield Static("Something went wrong", id="error-title")
            for message in self.messages:
                yield Static(message, classes="error-message")
            with Horizontal(id="error-actions"):
                yield Button("Set API key", id="select-key")
                yield Button("Close", id="close-error", variant="primary")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "select-key")


class ApiKeyScreen(ModalScreen[Optional[str]]):
    """Prompt for an OpenAI API key."""

    def compose(self) -> ComposeResult:
        with Vertical(id="key-dialog"):
            yield Static("Enter your OpenAI API key")
            yield Input(password=True, placeholder="sk-...", id="api-key")
            with Horizontal(id="key-actions"):
                yield Button("Cancel", id="cancel-key")
                yield Button("Save", id="save-key", variant="primary")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self.dismiss(event.value.strip() or None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-key":
            value = self.query_one("#api-key", Input).value.strip()
            self.dismiss(value or None)
        else:
            self.dismiss(None)


class DocQuizApp(App):
    TITLE = "Doc-to-Quiz AI"
    SUB_TITLE = "Upload a document, and let AI create a quiz for you."
    CSS = """
#upload { height: auto; padding: 1; }
#file-path { width: 1fr; }
#loading { height: auto; }
#loading LoadingIndicator { height: 3; }
#status { content-align: center middle; color: $text-muted; }
.card { height: auto; border: round $primary; padding: 0 1; margin: 1 0; }
.stem { text-style: bold; margin-bottom: 1; }
.options { height: auto; }
.option { padding: 0 1; background: $panel; margin-bottom: 1; }
.option.correct { background: $success 20%; color: $success; }
.label { color: $text-muted; }
.image-row { height: auto; }
.image-row Input { width: 1fr; }
.image-status { color: $text-muted; }
ErrorModal, ApiKeyScreen { align: center middle; }
#error-dialog, #key-dialog {
    width: 60; height: auto; border: thick $error; padding: 1 2;
    background: $surface;
}
#key-dialog { border: thick $primary; }
#error-title { text-style: bold; color: $error; margin-bottom: 1; }
#error-actions, #key-actions { height: auto; align-horizontal: right; }
"""
    BINDINGS = [
        ("ctrl+g", "generate", "Generate"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        workflow: QuizWorkflow,
        *,
        initial_path: Optional[Path] = None,
        client_factory: Callable[[Optional[str]], Any] = load_client,
    ) -> None:
        super().__init__()
        self.workflow = workflow
        self.client_factory = client_factory
        self._initial_path = initial_path
        self._selected_path: Optional[Path] = None
        self._rendered_batch: Optional[int] = None
        self._shown_errors: Optional[tuple[str, ...]] = None
        self._path_input = Input(
            value=str(initial_path or ""),
            placeholder="Path to a .pdf, .doc, or .docx file",
            id="file-path",
        )
        self._generate_button = Button(
            "Generate Quiz", id="generate", variant="primary"
        )
        self._loading_box = Vertical(id="loading")
        self._status_line = Static("", id="status")
        self._question_list = VerticalScroll(id="questions")

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="upload"):
            yield self._path_input
            yield self._generate_button
        with self._loading_box:
            yield LoadingIndicator()
            yield self._status_line
        yield self._question_list
        yield Footer()

    def on_mount(self) -> None:
        self.workflow.subscribe(self._render_state)
        if self._initial_path is not None:
            self.select_path(str(self._initial_path))
        self._render_state(self.workflow.state)

    def select_path(self, raw: str) -> bool:
        path = Path(raw.strip()).expanduser()
        if not raw.strip() or not path.is_file():
            self.workflow.report_error([f"File not found: {raw.strip()}"])
            return False
        try:
            self.workflow.select_path(path)
        except OSError as exc:
            self.workflow.report_error([f"Could not read {path}: {exc}"])
            return False
        self._selected_path = path
        return True

    def action_generate(self) -> None:
        if self.workflow.state.is_loading:
            return
        raw = self._path_input.value.strip()
        if raw and Path(raw).expanduser() != self._selected_path:
            if not self.select_path(raw):
                return
        self.run_worker(
            self.workflow.generate(), exclusive=True, group="generate"
        )

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "file-path":
            self.select_path(event.value)

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "file-path":
            self._sync_generate_button(self.workflow.state)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "generate":
            self.action_generate()

    def edit_question(self, identifier: int, name: str, value: object) -> None:
        self.workflow.update_field(identifier, name, value)

    def attach_image(self, identifier: int, raw: str) -> None:
        path = Path(raw.strip()).expanduser()
        if not raw.strip() or not path.is_file():
            self.workflow.report_error([f"Image not found: {raw.strip()}"])
            return
        if not looks_like_image(path):
            self.workflow.report_error(
                [f"{path.name} does not look like an image file."]
            )
            return
        self.run_worker(self._load_image(identifier, path))

    async def _load_image(self, identifier: int, path: Path) -> None:
        try:
            await self.workflow.set_image(identifier, path)
        except OSError as exc:
            self.workflow.report_error([f"Could not read {path}: {exc}"])

    def _render_state(self, state: AppState) -> None:
        self._loading_box.display = state.is_loading
        self._status_line.update(state.loading_status)
        self._sync_generate_button(state)
        if state.quiz.batch != self._rendered_batch:
            self._render_questions(state)
        else:
            for card in self._question_list.query(QuestionCard):
                current = state.quiz.get(card.question.id)
                if current is not None and current.image != card.question.image:
                    card.question = current
                    card.show_image(current.image)
        if state.errors and self._shown_errors is None:
            self._show_errors(state.errors)

    def _show_errors(self, errors: tuple[str, ...]) -> None:
        self._shown_errors = errors
        self.push_screen(ErrorModal(errors), self._on_error_closed)

    def _sync_generate_button(self, state: AppState) -> None:
        button = self._generate_button
        raw = self._path_input.value.strip()
        button.disabled = state.is_loading or (
            state.document is None and not raw
        )
        button.label = "Generating..." if state.is_loading else "Generate Quiz"

    def _render_questions(self, state: AppState) -> None:
        self._rendered_batch = state.quiz.batch
        container = self._question_list
        container.remove_children()
        cards = [
            QuestionCard(
                question,
                number=index,
                on_edit=self.edit_question,
                on_attach=self.attach_image,
            )
            for index, question in enumerate(state.quiz.questions, start=1)
        ]
        if cards:
            container.mount_all(cards)

    def _on_error_closed(self, wants_key: Optional[bool]) -> None:
        shown, self._shown_errors = self._shown_errors, None
        pending = self.workflow.state.errors
        if pending and pending != shown:
            # Reported while the dialog was open.
            self._show_errors(pending)
        else:
            self.workflow.dismiss_errors()
        if wants_key:
            self.push_screen(ApiKeyScreen(), self._on_api_key)

    def _on_api_key(self, key: Optional[str]) -> None:
        if not key:
            return
        try:
            client = self.client_factory(key)
        except RuntimeError as exc:
            self.workflow.report_error([str(exc)])
            return
        self.workflow.generator.client = client  # type: ignore[attr-defined]
        self.notify("API key updated.")


__all__ = [
    "ApiKeyScreen",
    "DocQuizApp",
    "ErrorModal",
    "QuestionCard",
    "MARK_OPTIONS",
    "image_summary",
    "looks_like_image",
    "option_label",
]
