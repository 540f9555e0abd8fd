"""Shared testing fixtures for the doc_quiz test suite."""

from .documents import (  # noqa: F401
    DOCX_MIME,
    FakePdfPage,
    FakePdfReader,
    build_docx,
    build_pdf,
    docx_document,
)
from .openai import FakeOpenAIClient, completion, raising  # noqa: F401

__all__ = [
    "DOCX_MIME",
    "FakeOpenAIClient",
    "FakePdfPage",
    "FakePdfReader",
    "build_docx",
    "build_pdf",
    "completion",
    "docx_document",
    "raising",
]
