"""Tests for odinsource.bulk: TOML bulk import."""

import textwrap

import pytest

from odinsource.bulk import import_documents, import_file, load_bulk_file
from odinsource.documents import list_documents
from odinsource.errors import BulkImportError, DuplicateTitle, InvalidSource
from odinsource.tags import list_tags


def _write(path, text):
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


@pytest.fixture
def bulk_file(tmp_path, make_pdf):
    make_pdf("a.pdf")
    make_pdf("b.pdf")
    return _write(
        tmp_path / "library.toml",
        """\
        [[documents]]
        title = "Attention Is All You Need"
        path = "src/a.pdf"
        author = "Vaswani"
        year = 2017
        tags = "ml, nlp"

        [[documents]]
        title = "The UNIX Time-Sharing System"
        path = "src/b.pdf"
        tags = "systems"
        """,
    )


class TestLoad:
    def test_paths_relative_to_file(self, bulk_file, tmp_path):
        records = load_bulk_file(bulk_file)
        assert [r.path for r in records] == [tmp_path / "src" / "a.pdf", tmp_path / "src" / "b.pdf"]
        assert records[0].year == 2017
        assert records[1].author == ""

    def test_not_toml_extension(self, tmp_path):
        p = _write(tmp_path / "library.txt", "[[documents]]\n")
        with pytest.raises(InvalidSource, match="toml"):
            load_bulk_file(p)

    def test_syntax_error(self, tmp_path):
        p = _write(tmp_path / "bad.toml", "[[documents]\ntitle = \n")
        with pytest.raises(BulkImportError, match="invalid TOML"):
            load_bulk_file(p)

    def test_empty(self, tmp_path):
        p = _write(tmp_path / "empty.toml", "title = 'x'\n")
        with pytest.raises(BulkImportError, match="non-empty"):
            load_bulk_file(p)

    def test_missing_title(self, tmp_path, make_pdf):
        make_pdf("a.pdf")
        p = _write(tmp_path / "l.toml", '[[documents]]\npath = "src/a.pdf"\n')
        with pytest.raises(BulkImportError, match=r"documents\[0\] is missing 'title'"):
            load_bulk_file(p)

    def test_unknown_field(self, tmp_path, make_pdf):
        make_pdf("a.pdf")
        p = _write(tmp_path / "l.toml", '[[documents]]\ntitle = "x"\npath = "src/a.pdf"\npages = 3\n')
        with pytest.raises(BulkImportError, match="pages"):
            load_bulk_file(p)

    def test_wrong_type(self, tmp_path, make_pdf):
        make_pdf("a.pdf")
        p = _write(tmp_path / "l.toml", '[[documents]]\ntitle = "x"\npath = "src/a.pdf"\nyear = "2017"\n')
        with pytest.raises(BulkImportError, match="year"):
            load_bulk_file(p)

    def test_missing_source(self, tmp_path):
        p = _write(tmp_path / "l.toml", '[[documents]]\ntitle = "x"\npath = "src/none.pdf"\n')
        with pytest.raises(BulkImportError, match=r"documents\[0\]\.path"):
            load_bulk_file(p)


class TestImport:
    def test_import_file(self, catalog, bulk_file):
        results = import_file(catalog, bulk_file)
        assert [r.inserted for r in results] == [True, True]
        assert [d.title for d in list_documents(catalog)] == [
            "attention is all you need",
            "the unix time-sharing system",
        ]
        assert [t.value for t in list_tags(catalog)] == ["ml", "nlp", "systems"]

    def test_reimport_reports_duplicates(self, catalog, bulk_file):
        import_file(catalog, bulk_file)
        results = import_file(catalog, bulk_file)
        assert [r.status for r in results] == ["duplicate", "duplicate"]
        assert len(list_documents(catalog)) == 2

    def test_invalid_file_adds_nothing(self, catalog, bulk_file, tmp_path):
        text = bulk_file.read_text() + '\n[[documents]]\ntitle = "x"\npath = "src/none.pdf"\n'
        bad = _write(tmp_path / "bad.toml", text)
        with pytest.raises(BulkImportError):
            import_file(catalog, bad)
        assert list_documents(catalog) == []

    def test_stops_at_failing_record(self, catalog, bulk_file, monkeypatch):
        records = load_bulk_file(bulk_file)
        calls = []

        def insert(cat, record):
            calls.append(record.title)
            raise DuplicateTitle(record.title)

        monkeypatch.setattr("odinsource.bulk.insert_document", insert)
        with pytest.raises(DuplicateTitle):
            import_documents(catalog, records)
        assert calls == ["Attention Is All You Need"]
