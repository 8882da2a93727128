"""PDF metadata extraction using PyMuPDF (fitz).

Used by ``odinsource doc add`` to fill in a title, author or year the user
did not give on the command line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import fitz  # PyMuPDF

from odinsource.errors import InvalidSource

# PDF dates look like "D:20170612093000+02'00'"
_PDF_DATE_RE = re.compile(r"^(?:D:)?(\d{4})")


@dataclass
class PDFMetadata:
    """Metadata read from a PDF's document information dictionary."""

    title: str | None = None
    author: str | None = None
    year: int | None = None
    subject: str | None = None
    keywords: str | None = None
    page_count: int = 0


def _year_from_pdf_date(value: str | None) -> int | None:
    if not value:
        return None
    m = _PDF_DATE_RE.match(value.strip())
    if not m:
        return None
    year = int(m.group(1))
    return year if year > 0 else None


def extract_pdf_metadata(pdf_path: Path) -> PDFMetadata:
    """Extract metadata from a PDF without extracting text.

    Args:
        pdf_path: Path to the PDF file.

    Returns:
        PDFMetadata with title, author, year, etc.

    Raises:
        InvalidSource: If the file does not exist or is not a readable PDF.
    """
    if not pdf_path.is_file():
        raise InvalidSource(str(pdf_path), "pdf")

    try:
        doc = fitz.open(str(pdf_path))
    except Exception as exc:
        raise InvalidSource(str(pdf_path), "pdf", reason=f"unreadable PDF ({exc})") from exc
    try:
        meta = doc.metadata or {}
        return PDFMetadata(
            title=(meta.get("title") or "").strip() or None,
            author=(meta.get("author") or "").strip() or None,
            year=_year_from_pdf_date(meta.get("creationDate")),
            subject=meta.get("subject") or None,
            keywords=meta.get("keywords") or None,
            page_count=len(doc),
        )
    finally:
        doc.close()
