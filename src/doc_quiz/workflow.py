"""Document-to-quiz orchestration and the application state it owns."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence

from . import state as quiz_state
from .extract import SourceDocument, extract_text
from .state import GeneratedQuestion, QuizState

EXTRACTING_STATUS = "Extracting text from document..."
GENERATING_STATUS = "Generating questions with AI..."
NO_FILE_MESSAGE = "Please select a file first."
FALLBACK_ERROR_MESSAGE = "An unexpected error occurred."


class Generator(Protocol):
    def generate(self, text: str) -> Sequence[GeneratedQuestion]: ...


Extractor = Callable[[SourceDocument], str]


@dataclass(frozen=True)
class AppState:
    """Everything the presentation layer renders."""

    document: Optional[SourceDocument] = None
    quiz: QuizState = field(default_factory=QuizState)
    is_loading: bool = False
    loading_status: str = ""
    errors: Optional[tuple[str, ...]] = None

    @property
    def can_generate(self) -> bool:
        return self.document is not None and not self.is_loading


Listener = Callable[[AppState], None]


def error_messages(exc: BaseException) -> tuple[str, ...]:
    return (str(exc) or FALLBACK_ERROR_MESSAGE,)


class QuizWorkflow:
    """Runs extraction and generation and keeps :class:`AppState` current.

    Listeners are called with the new state after every transition. Nothing
    here serializes concurrent :meth:`generate` calls; the last one to finish
    wins.
    """

    def __init__(
        self,
        generator: Generator,
        *,
        extractor: Extractor = extract_text,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.generator = generator
        self.extractor = extractor
        self.logger = logger or logging.getLogger(__name__)
        self.state = AppState()
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: AppState) -> None:
        if new_state == self.state:
            return
        self.state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    def select_file(self, document: SourceDocument) -> None:
        self.logger.info(
            "Selected document",
            extra={
                "document": document.name,
                "mime_type": document.mime_type,
                "size_bytes": len(document.data),
            },
        )
        self._commit(
            replace(
                self.state,
                document=document,
                quiz=quiz_state.clear(self.state.quiz),
                errors=None,
            )
        )

    def select_path(self, path: Path) -> None:
        self.select_file(SourceDocument.from_path(path))

    async def generate(self) -> bool:
        """Extract, generate and publish a new quiz for the selected file.

        Returns True on success. On failure the quiz is left as it was and the
        error message is published on ``state.errors``.
        """
        document = self.state.document
        if document is None:
            self.report_error([NO_FILE_MESSAGE])
            return False

        self._commit(replace(self.state, is_loading=True, errors=None))
        try:
            self._set_status(EXTRACTING_STATUS)
            text = await asyncio.to_thread(self.extractor, document)

            self._set_status(GENERATING_STATUS)
            questions = await asyncio.to_thread(self.generator.generate, text)

            self._commit(
                replace(
                    self.state,
                    quiz=quiz_state.replace_all(self.state.quiz, questions),
                )
            )
        except Exception as exc:
            self.logger.exception(
                "Quiz generation failed",
                extra={"document": document.name},
            )
            self._commit(replace(self.state, errors=error_messages(exc)))
            return False
        finally:
            self._commit(
                replace(self.state, is_loading=False, loading_status="")
            )

        self.logger.info(
            "Quiz ready",
            extra={
                "document": document.name,
                "question_count": len(self.state.quiz.questions),
            },
        )
        return True

    def _set_status(self, status: str) -> None:
        self._commit(replace(self.state, loading_status=status))

    def update_field(self, identifier: int, name: str, value: object) -> None:
        self._commit(
            replace(
                self.state,
                quiz=quiz_state.update_field(
                    self.state.quiz, identifier, name, value
                ),
            )
        )

    async def set_image(self, identifier: int, path: Path) -> None:
        """Attach the image at ``path`` to one question once it is read.

        The image is discarded when the quiz was replaced during the read.
        """
        batch = self.state.quiz.batch
        data_uri = await quiz_state.read_image_data_uri(path)
        if self.state.quiz.batch != batch:
            self.logger.info(
                "Discarded image for a replaced quiz",
                extra={"question_id": identifier, "path": path},
            )
            return
        self.update_field(identifier, "image", data_uri)

    def clear(self) -> None:
        self._commit(
            replace(self.state, quiz=quiz_state.clear(self.state.quiz))
        )

    def report_error(self, messages: Sequence[str]) -> None:
        self._commit(replace(self.state, errors=tuple(messages)))

    def dismiss_errors(self) -> None:
        self._commit(replace(self.state, errors=None))


__all__ = [
    "AppState",
    "QuizWorkflow",
    "error_messages",
    "EXTRACTING_STATUS",
    "GENERATING_STATUS",
    "NO_FILE_MESSAGE",
    "FALLBACK_ERROR_MESSAGE",
]
