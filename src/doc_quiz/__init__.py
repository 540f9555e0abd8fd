"""Turn documents into editable multiple-choice quizzes."""

from .extract import (
    EmptyTextError,
    ExtractionError,
    SourceDocument,
    UnsupportedFormatError,
    extract_text,
)
from .generator import GenerationError, GenerationSettings, QuizGenerator
from .state import (
    GeneratedQuestion,
    QuizQuestionState,
    QuizState,
    clear,
    replace_all,
    update_field,
)
from .workflow import AppState, QuizWorkflow

__all__ = [
    "AppState",
    "EmptyTextError",
    "ExtractionError",
    "GeneratedQuestion",
    "GenerationError",
    "GenerationSettings",
    "QuizGenerator",
    "QuizQuestionState",
    "QuizState",
    "QuizWorkflow",
    "SourceDocument",
    "UnsupportedFormatError",
    "clear",
    "extract_text",
    "replace_all",
    "update_field",
]
