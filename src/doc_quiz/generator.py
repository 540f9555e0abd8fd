"""Multiple-choice question generation through the OpenAI API.

A single chat-completion request carries the prompt and a strict JSON schema;
the reply is parsed and shape-checked into :class:`GeneratedQuestion`
records. Nothing is retried; any failure surfaces as
:class:`GenerationError`.
"""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from .extract import EmptyTextError
from .state import GeneratedQuestion

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_QUESTION_COUNT = 5
DEFAULT_MAX_CHARS = 20_000
OPTION_COUNT = 4

QUESTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "question": {
            "type": "string",
            "description": "The question text.",
        },
        "options": {
            "type": "array",
            "items": {"type": "string"},
            "description": "An array of 4 possible answers.",
        },
        "correctAnswer": {
            "type": "string",
            "description": (
                "The exact string of the correct answer from the options "
                "array."
            ),
        },
    },
    "required": ["question", "options", "correctAnswer"],
    "additionalProperties": False,
}

# Strict structured output needs an object at the root.
RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "questions": {"type": "array", "items": QUESTION_SCHEMA},
    },
    "required": ["questions"],
    "additionalProperties": False,
}


class GenerationError(RuntimeError):
    """Raised when the model request or its payload fails."""


@dataclass(frozen=True)
class GenerationSettings:
    model: str = DEFAULT_MODEL
    temperature: float = 0.2
    max_tokens: int = 2000
    question_count: int = DEFAULT_QUESTION_COUNT
    max_chars: int = DEFAULT_MAX_CHARS


def truncate_text(text: str, max_chars: int = DEFAULT_MAX_CHARS) -> str:
    return text[:max_chars]


def build_prompt(
    text: str,
    *,
    count: int = DEFAULT_QUESTION_COUNT,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> str:
    """Instruction asking for ``count`` MCQs over the truncated ``text``."""
    return (
        f"Based on the following text, generate {count} multiple-choice "
        "questions suitable for a quiz. For each question, provide "
        f"{OPTION_COUNT} distinct options and clearly indicate the correct "
        "answer. The text is:\n\n"
        f"---\n{truncate_text(text, max_chars)}\n---"
    )


def response_format() -> Dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": "quiz_questions",
            "strict": True,
            "schema": RESPONSE_SCHEMA,
        },
    }


def parse_questions(content: str) -> List[Any]:
    """Decode the model reply into a list of raw question records.

    Accepts the schema's ``{"questions": [...]}`` wrapper or a bare array,
    optionally with the whole reply wrapped in a Markdown code fence.
    """
    payload = (content or "").strip()
    fenced = re.match(r"```(?:json)?\s*(.+?)```\s*$", payload, re.DOTALL)
    if fenced:
        payload = fenced.group(1)
    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise GenerationError(
            f"The model returned invalid JSON: {exc}"
        ) from exc
    if isinstance(data, dict) and "questions" in data:
        data = data["questions"]
    if not isinstance(data, list):
        raise GenerationError(
            "The model response was not a list of questions."
        )
    return data


def validate_question(record: Any) -> GeneratedQuestion:
    """Check one raw record and build a :class:`GeneratedQuestion`.

    Raises ValueError with the reason when the record is malformed.
    """
    if not isinstance(record, dict):
        raise ValueError("question must be an object")
    question = record.get("question")
    if not isinstance(question, str) or not question.strip():
        raise ValueError("question text is required")
    options = record.get("options")
    if not isinstance(options, list) or not all(
        isinstance(option, str) for option in options
    ):
        raise ValueError("options must be a list of strings")
    if len(options) != OPTION_COUNT:
        raise ValueError(
            f"expected {OPTION_COUNT} options, got {len(options)}"
        )
    stripped = [option.strip() for option in options]
    if not all(stripped):
        raise ValueError("option text must be non-empty")
    if len(set(stripped)) != len(stripped):
        raise ValueError("duplicate options detected")
    answer = record.get("correctAnswer")
    if not isinstance(answer, str) or not answer.strip():
        raise ValueError("correctAnswer is required")
    if answer not in options:
        try:
            answer = options[stripped.index(answer.strip())]
        except ValueError:
            raise ValueError(
                "correctAnswer must match one of the options"
            ) from None
    return GeneratedQuestion(
        question=question,
        options=tuple(options),
        correct_answer=answer,
    )


def build_questions(
    records: Sequence[Any], *, limit: int = DEFAULT_QUESTION_COUNT
) -> List[GeneratedQuestion]:
    questions: List[GeneratedQuestion] = []
    for index, record in enumerate(records):
        if len(questions) >= limit:
            break
        try:
            questions.append(validate_question(record))
        except ValueError as exc:
            logger.warning(
                "Dropped malformed question",
                extra={"index": index, "reason": str(exc)},
            )
    if not questions:
        raise GenerationError("The model returned no usable questions.")
    return questions


class QuizGenerator:
    """Turns document text into a batch of generated questions."""

    def __init__(
        self,
        client: Any,
        *,
        settings: Optional[GenerationSettings] = None,
    ) -> None:
        self.client = client
        self.settings = settings or GenerationSettings()

    def generate(self, text: str) -> List[GeneratedQuestion]:
        if not text.strip():
            raise EmptyTextError(
                "Could not extract any text from the document. It might be "
                "empty or scanned as an image."
            )
        settings = self.settings
        prompt = build_prompt(
            text,
            count=settings.question_count,
            max_chars=settings.max_chars,
        )
        logger.info(
            "Requesting quiz questions",
            extra={
                "model": settings.model,
                "text_chars": len(text),
                "prompt_chars": len(prompt),
                "truncated": len(text) > settings.max_chars,
            },
        )
        started = time.monotonic()
        content = self._complete(prompt)
        records = parse_questions(content)
        questions = build_questions(records, limit=settings.question_count)
        logger.info(
            "Generated quiz questions",
            extra={
                "received": len(records),
                "kept": len(questions),
                "elapsed_seconds": round(time.monotonic() - started, 3),
            },
        )
        return questions

    def _complete(self, prompt: str) -> str:
        if self.client is None:
            raise GenerationError(
                "No OpenAI client is configured. Set OPENAI_API_KEY or "
                "enter an API key."
            )
        settings = self.settings
        try:
            response = self.client.chat.completions.create(
                model=settings.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=settings.temperature,
                max_tokens=settings.max_tokens,
                response_format=response_format(),
            )
            content = response.choices[0].message.content
        except Exception as exc:
            logger.error(
                "Quiz generation request failed",
                extra={"error": repr(exc)},
            )
            raise GenerationError(
                f"Failed to generate questions: {exc}"
            ) from exc
        return (content or "").strip()


__all__ = [
    "GenerationError",
    "GenerationSettings",
    "QuizGenerator",
    "build_prompt",
    "build_questions",
    "parse_questions",
    "response_format",
    "truncate_text",
    "validate_question",
    "RESPONSE_SCHEMA",
    "QUESTION_SCHEMA",
    "DEFAULT_MAX_CHARS",
    "DEFAULT_QUESTION_COUNT",
    "OPTION_COUNT",
]
