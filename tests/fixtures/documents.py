"""Document builders: real DOCX and PDF bytes, plus fake pypdf readers."""

from __future__ import annotations

import io
from typing import Iterable, List, Optional, Sequence

from docx import Document

from doc_quiz.extract import SourceDocument

DOCX_MIME = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)


def build_docx(
    paragraphs: Sequence[str],
    *,
    table: Optional[Sequence[Sequence[str]]] = None,
    trailing: Sequence[str] = (),
) -> bytes:
    document = Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for row_index, row in enumerate(table):
            for col_index, value in enumerate(row):
                grid.cell(row_index, col_index).text = value
    for text in trailing:
        document.add_paragraph(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def docx_document(
    paragraphs: Sequence[str], *, name: str = "notes.docx", mime: str = DOCX_MIME
) -> SourceDocument:
    return SourceDocument(name=name, mime_type=mime, data=build_docx(paragraphs))


def build_pdf(pages: Sequence[Sequence[str]]) -> bytes:
    """A minimal real PDF; each line is drawn in its own text block."""

    page_ids = [4 + 2 * index for index in range(len(pages))]
    kids = " ".join(f"{page_id} 0 R" for page_id in page_ids)
    objects: List[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for page_id, lines in zip(page_ids, pages):
        body = "\n".join(
            f"BT /F1 12 Tf 72 {720 - 20 * row} Td ({_pdf_escape(line)}) Tj ET"
            for row, line in enumerate(lines)
        ).encode("latin-1")
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                "/Resources << /Font << /F1 3 0 R >> >> "
                f"/Contents {page_id + 1} 0 R >>"
            ).encode()
        )
        objects.append(
            b"<< /Length %d >>\nstream\n" % len(body) + body + b"\nendstream"
        )

    out = io.BytesIO()
    out.write(b"%PDF-1.4\n")
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(out.tell())
        out.write(b"%d 0 obj\n" % number + body + b"\nendobj\n")
    xref = out.tell()
    out.write(b"xref\n0 %d\n" % (len(objects) + 1))
    out.write(b"0000000000 65535 f \n")
    for offset in offsets:
        out.write(b"%010d 00000 n \n" % offset)
    out.write(
        b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n"
        % (len(objects) + 1, xref)
    )
    return out.getvalue()


def _pdf_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


class FakePdfPage:
    """Feeds text items to pypdf's ``visitor_text`` callback."""

    def __init__(self, items: Iterable[str]) -> None:
        self.items = list(items)

    def extract_text(self, *, visitor_text=None, **_: object) -> str:
        for item in self.items:
            if visitor_text is not None:
                visitor_text(item, None, None, None, 12.0)
        return "".join(self.items)


class FakePdfReader:
    def __init__(self, pages: Sequence[Sequence[str]]) -> None:
        self.pages: List[FakePdfPage] = [FakePdfPage(items) for items in pages]
        self.streams: List[io.BytesIO] = []

    def __call__(self, stream: io.BytesIO) -> "FakePdfReader":
        self.streams.append(stream)
        return self
