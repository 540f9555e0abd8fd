"""Plain-text extraction for uploaded quiz source documents."""

from __future__ import annotations

import io
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from docx import Document
from docx.text.paragraph import Paragraph
from pypdf import PdfReader

logger = logging.getLogger(__name__)

WORD_MIME_TYPES: frozenset[str] = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/msword",
    }
)
WORD_EXTENSIONS: tuple[str, ...] = (".doc", ".docx")
PDF_MIME_TYPE = "application/pdf"


class ExtractionError(RuntimeError):
    """Base class for documents that cannot feed the generator."""


class UnsupportedFormatError(ExtractionError):
    """Raised when the file is neither a word-processing file nor a PDF."""


class EmptyTextError(ExtractionError):
    """Raised when a document yields no usable text."""


@dataclass(frozen=True)
class SourceDocument:
    """An uploaded file: its name, declared MIME type and raw bytes."""

    name: str
    mime_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: Path) -> "SourceDocument":
        source = Path(path).expanduser()
        mime_type, _ = mimetypes.guess_type(source.name)
        return cls(
            name=source.name,
            mime_type=mime_type or "",
            data=source.read_bytes(),
        )


@dataclass(frozen=True)
class ExtractorDependencies:
    """Callable seams for the format-specific decoders."""

    word: Callable[[bytes], str]
    pdf: Callable[[bytes], str]


def is_word_document(document: SourceDocument) -> bool:
    return document.mime_type in WORD_MIME_TYPES or document.name.lower().endswith(
        WORD_EXTENSIONS
    )


def is_pdf_document(document: SourceDocument) -> bool:
    return document.mime_type == PDF_MIME_TYPE


def extract_text(
    document: SourceDocument,
    *,
    dependencies: Optional[ExtractorDependencies] = None,
) -> str:
    """Return the plain text of ``document``.

    Word files are checked before PDFs. Decoder errors propagate unchanged.
    """

    deps = dependencies or default_dependencies()
    if is_word_document(document):
        kind = "word"
        text = deps.word(document.data)
    elif is_pdf_document(document):
        kind = "pdf"
        text = deps.pdf(document.data)
    else:
        raise UnsupportedFormatError(
            "Unsupported file type. Please upload a PDF, DOC, or DOCX file."
        )

    logger.info(
        "Extracted document text",
        extra={
            "document": document.name,
            "kind": kind,
            "char_count": len(text),
        },
    )
    if not text.strip():
        raise EmptyTextError(
            "Could not extract any text from the document. It might be empty "
            "or scanned as an image."
        )
    return text


def default_dependencies() -> ExtractorDependencies:
    return ExtractorDependencies(word=extract_word_text, pdf=extract_pdf_text)


def extract_word_text(data: bytes) -> str:
    """Raw text of a word-processing file, one blank line after each paragraph.

    Paragraphs nested in tables are included in document order.
    """

    document = Document(io.BytesIO(data))
    return "".join(f"{text}\n\n" for text in _iter_paragraph_text(document))


def _iter_paragraph_text(container) -> Iterator[str]:
    for block in container.iter_inner_content():
        if isinstance(block, Paragraph):
            yield block.text
            continue
        for row in block.rows:
            for cell in row.cells:
                yield from _iter_paragraph_text(cell)


def extract_pdf_text(
    data: bytes,
    *,
    reader_factory: Callable[[io.BytesIO], PdfReader] = PdfReader,
) -> str:
    """Text of every page in order; items joined by spaces, pages by newlines."""

    reader = reader_factory(io.BytesIO(data))
    return join_pages(_page_items(page) for page in reader.pages)


def join_pages(pages: Iterable[Iterable[str]]) -> str:
    return "".join(" ".join(items) + "\n" for items in pages)


def _page_items(page) -> list[str]:
    items: list[str] = []

    def collect(text, cm, tm, font_dict, font_size) -> None:
        for line in (text or "").splitlines():
            stripped = line.strip()
            if stripped:
                items.append(stripped)

    page.extract_text(visitor_text=collect)
    return items


__all__ = [
    "ExtractionError",
    "UnsupportedFormatError",
    "EmptyTextError",
    "SourceDocument",
    "ExtractorDependencies",
    "extract_text",
    "extract_word_text",
    "extract_pdf_text",
    "join_pages",
    "default_dependencies",
    "is_word_document",
    "is_pdf_document",
    "WORD_MIME_TYPES",
    "PDF_MIME_TYPE",
]
