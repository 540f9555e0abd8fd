from __future__ import annotations

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

ROOT = TESTS_DIR.parent
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from fixtures import FakeOpenAIClient  # noqa: E402


FRANCE_QUESTION = {
    "question": "What is the capital of France?",
    "options": ["Paris", "London", "Berlin", "Madrid"],
    "correctAnswer": "Paris",
}


@pytest.fixture
def fake_client() -> FakeOpenAIClient:
    """A fresh fake OpenAI client with no queued responses."""

    return FakeOpenAIClient()


@pytest.fixture
def france_question() -> dict:
    return {
        **FRANCE_QUESTION,
        "options": list(FRANCE_QUESTION["options"]),
    }
