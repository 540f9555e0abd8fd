"""Quiz data model and the pure functions that update it.

State objects are frozen; every update returns a new :class:`QuizState`.
Question ids are assigned once, from batch position, and never renumbered.
"""

from __future__ import annotations

import asyncio
import base64
import mimetypes
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Optional

EDITABLE_FIELDS = frozenset({"explanation", "image", "marks"})
ALLOWED_MARKS = (1, 2)


@dataclass(frozen=True)
class GeneratedQuestion:
    """A multiple-choice question as returned by the model."""

    question: str
    options: tuple[str, ...]
    correct_answer: str


@dataclass(frozen=True)
class QuizQuestionState:
    """A generated question plus the user's annotations."""

    id: int
    question: str
    options: tuple[str, ...]
    correct_answer: str
    explanation: str = ""
    image: Optional[str] = None
    marks: int = 1

    @classmethod
    def from_generated(
        cls, question: GeneratedQuestion, identifier: int
    ) -> "QuizQuestionState":
        return cls(
            id=identifier,
            question=question.question,
            options=tuple(question.options),
            correct_answer=question.correct_answer,
        )

    def is_correct(self, option: str) -> bool:
        return option == self.correct_answer


@dataclass(frozen=True)
class QuizState:
    questions: tuple[QuizQuestionState, ...] = field(default_factory=tuple)
    batch: int = 0

    def get(self, identifier: int) -> Optional[QuizQuestionState]:
        for question in self.questions:
            if question.id == identifier:
                return question
        return None

    @property
    def total_marks(self) -> int:
        return sum(question.marks for question in self.questions)


def replace_all(
    state: QuizState, questions: Iterable[GeneratedQuestion]
) -> QuizState:
    """Discard the current questions and start a new batch."""
    fresh = tuple(
        QuizQuestionState.from_generated(question, index)
        for index, question in enumerate(questions)
    )
    return QuizState(questions=fresh, batch=state.batch + 1)


def update_field(
    state: QuizState, identifier: int, name: str, value: object
) -> QuizState:
    """Replace one editable field of the question with ``identifier``.

    Unknown ids leave ``state`` untouched. Unknown field names and marks
    other than 1 or 2 raise ValueError.
    """
    if name not in EDITABLE_FIELDS:
        raise ValueError(
            f"Field '{name}' is not editable. Expected one of: "
            f"{', '.join(sorted(EDITABLE_FIELDS))}."
        )
    if name == "marks" and value not in ALLOWED_MARKS:
        raise ValueError(f"Marks must be 1 or 2, got {value!r}.")
    if state.get(identifier) is None:
        return state
    updated = tuple(
        replace(question, **{name: value})
        if question.id == identifier
        else question
        for question in state.questions
    )
    return replace(state, questions=updated)


def clear(state: QuizState) -> QuizState:
    return QuizState(questions=(), batch=state.batch + 1)


def encode_data_uri(data: bytes, mime_type: str) -> str:
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def guess_image_type(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(Path(path).name)
    return mime_type or "application/octet-stream"


async def read_image_data_uri(path: Path) -> str:
    """Read ``path`` off the event loop and return it as a data URI."""
    source = Path(path).expanduser()
    data = await asyncio.to_thread(source.read_bytes)
    return encode_data_uri(data, guess_image_type(source))


__all__ = [
    "ALLOWED_MARKS",
    "EDITABLE_FIELDS",
    "GeneratedQuestion",
    "QuizQuestionState",
    "QuizState",
    "clear",
    "encode_data_uri",
    "guess_image_type",
    "read_image_data_uri",
    "replace_all",
    "update_field",
]
