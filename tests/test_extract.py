"""Tests for odinsource.extract.

Test PDFs are built with PyMuPDF.
"""

from pathlib import Path

import fitz
import pytest

from odinsource.errors import InvalidSource
from odinsource.extract import PDFMetadata, _year_from_pdf_date, extract_pdf_metadata


@pytest.fixture
def sample_pdf(tmp_path: Path) -> Path:
    """Minimal 2-page PDF with title, author and creation date."""
    doc = fitz.open()
    for i in range(2):
        page = doc.new_page()
        page.insert_text(fitz.Point(72, 72), f"Page {i + 1}")
    doc.set_metadata(
        {
            "title": "Attention Is All You Need",
            "author": "Vaswani, Ashish",
            "creationDate": "D:20170612093000",
        }
    )
    pdf_path = tmp_path / "sample.pdf"
    doc.save(str(pdf_path))
    doc.close()
    return pdf_path


@pytest.fixture
def bare_pdf(tmp_path: Path) -> Path:
    """One blank page, empty metadata."""
    doc = fitz.open()
    doc.new_page()
    doc.set_metadata({})
    pdf_path = tmp_path / "bare.pdf"
    doc.save(str(pdf_path))
    doc.close()
    return pdf_path


class TestExtractMetadata:
    def test_reads_fields(self, sample_pdf):
        meta = extract_pdf_metadata(sample_pdf)
        assert meta.title == "Attention Is All You Need"
        assert meta.author == "Vaswani, Ashish"
        assert meta.year == 2017
        assert meta.page_count == 2

    def test_empty_metadata(self, bare_pdf):
        meta = extract_pdf_metadata(bare_pdf)
        assert meta.title is None
        assert meta.author is None
        assert meta.page_count == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidSource):
            extract_pdf_metadata(tmp_path / "nope.pdf")

    def test_not_a_pdf(self, tmp_path):
        p = tmp_path / "fake.pdf"
        p.write_bytes(b"this is not a pdf at all")
        with pytest.raises(InvalidSource, match="unreadable"):
            extract_pdf_metadata(p)


class TestYear:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("D:20170612093000+02'00'", 2017),
            ("1999", 1999),
            ("", None),
            (None, None),
            ("garbage", None),
        ],
    )
    def test_year_from_pdf_date(self, raw, expected):
        assert _year_from_pdf_date(raw) == expected


def test_defaults():
    assert PDFMetadata().page_count == 0
