"""Tests for odinsource.tags: tag strings, insert, rename, delete."""

import pytest

from odinsource.documents import NewDocument, get_document, insert_document
from odinsource.errors import InvalidTag, TagExists, TagNotFound
from odinsource.tags import (
    Tag,
    delete_tag,
    get_tag,
    get_tag_by_value,
    insert_tag,
    insert_tags,
    join_tags,
    list_tags,
    normalize_tags,
    normalize_value,
    rename_tag,
    split_tags,
)


def _add_doc(catalog, make_pdf, title, tags):
    path = make_pdf(title.replace(" ", "_") + ".pdf")
    return insert_document(catalog, NewDocument(title=title, path=path, tags=tags)).document


# ---------------------------------------------------------------------------
# Tag strings
# ---------------------------------------------------------------------------


class TestTagStrings:
    def test_normalize_value(self):
        assert normalize_value("  ML ") == "ml"

    def test_normalize_value_empty(self):
        with pytest.raises(InvalidTag, match="empty"):
            normalize_value("   ")

    def test_normalize_value_comma(self):
        with pytest.raises(InvalidTag, match="comma"):
            normalize_value("ml,nlp")

    def test_split_trims_and_dedupes(self):
        assert split_tags(" ML, systems,,ml") == ["ml", "systems"]

    def test_split_empty(self):
        assert split_tags("") == []
        assert split_tags(None) == []

    def test_join_drops_empty(self):
        assert join_tags(["a", "", "b", "a"]) == "a,b"

    def test_normalize_tags(self):
        assert normalize_tags("ML, Systems,,ml") == "ml,systems"


# ---------------------------------------------------------------------------
# Insert and lookup
# ---------------------------------------------------------------------------


class TestInsert:
    def test_insert_assigns_id(self, catalog):
        tag = insert_tag(catalog, "ml")
        assert tag == Tag(id=1, value="ml")

    def test_insert_is_idempotent(self, catalog):
        first = insert_tag(catalog, "ml")
        second = insert_tag(catalog, " ML ")
        assert first == second
        assert len(list_tags(catalog)) == 1

    def test_insert_many(self, catalog):
        created = insert_tags(catalog, "ml, nlp, ml")
        assert [t.value for t in created] == ["ml", "nlp"]
        assert [t.value for t in list_tags(catalog)] == ["ml", "nlp"]

    def test_insert_many_nothing(self, catalog):
        with pytest.raises(InvalidTag, match="no tags"):
            insert_tags(catalog, " , ")

    def test_list_in_storage_order(self, catalog):
        insert_tags(catalog, "zeta, alpha, mid")
        assert [t.id for t in list_tags(catalog)] == [1, 2, 3]
        assert [t.value for t in list_tags(catalog)] == ["zeta", "alpha", "mid"]

    def test_get_by_value(self, catalog):
        insert_tag(catalog, "ml")
        assert get_tag_by_value(catalog, "ML").id == 1

    def test_get_missing(self, catalog):
        with pytest.raises(TagNotFound) as exc_info:
            get_tag(catalog, 99)
        assert exc_info.value.ident == 99

    def test_str(self):
        assert str(Tag(id=3, value="ml")) == "   3  ml"


# ---------------------------------------------------------------------------
# Rename
# ---------------------------------------------------------------------------


class TestRename:
    def test_rename_rewrites_documents(self, catalog, make_pdf):
        insert_tags(catalog, "ml, nlp")
        doc = _add_doc(catalog, make_pdf, "attention", "ml,nlp")

        renamed = rename_tag(catalog, "machine-learning", value="ml")

        assert renamed == Tag(id=1, value="machine-learning")
        assert get_document(catalog, doc.id).tags == "machine-learning,nlp"
        assert [t.value for t in list_tags(catalog)] == ["machine-learning", "nlp"]

    def test_rename_by_id(self, catalog):
        insert_tag(catalog, "ml")
        assert rename_tag(catalog, "ai", tag_id=1).value == "ai"
        assert get_tag(catalog, 1).value == "ai"

    def test_rename_does_not_touch_substring(self, catalog, make_pdf):
        doc = _add_doc(catalog, make_pdf, "web page", "html,ml")
        rename_tag(catalog, "machine-learning", value="ml")
        assert get_document(catalog, doc.id).tags == "html,machine-learning"

    def test_rename_onto_existing(self, catalog):
        insert_tags(catalog, "ml, ai")
        with pytest.raises(TagExists) as exc_info:
            rename_tag(catalog, "ai", value="ml")
        assert exc_info.value.existing_id == 2

    def test_rename_same_value_is_noop(self, catalog):
        insert_tag(catalog, "ml")
        assert rename_tag(catalog, "ML", value="ml") == Tag(id=1, value="ml")

    def test_rename_missing(self, catalog):
        with pytest.raises(TagNotFound):
            rename_tag(catalog, "x", value="nope")

    def test_rename_needs_one_identifier(self, catalog):
        with pytest.raises(ValueError):
            rename_tag(catalog, "x")


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


class TestDelete:
    def test_delete_scrubs_documents(self, catalog, make_pdf):
        a = _add_doc(catalog, make_pdf, "paper a", "ml,nlp,systems")
        b = _add_doc(catalog, make_pdf, "paper b", "nlp")

        deleted = delete_tag(catalog, value="nlp")

        assert deleted.value == "nlp"
        assert get_document(catalog, a.id).tags == "ml,systems"
        assert get_document(catalog, b.id).tags == ""
        assert "nlp" not in [t.value for t in list_tags(catalog)]

    def test_delete_by_id(self, catalog):
        insert_tags(catalog, "ml, nlp")
        delete_tag(catalog, tag_id=1)
        assert [t.value for t in list_tags(catalog)] == ["nlp"]

    def test_delete_unknown_value_is_noop(self, catalog):
        insert_tag(catalog, "ml")
        assert delete_tag(catalog, value="nope") is None
        assert len(list_tags(catalog)) == 1

    def test_delete_unknown_id(self, catalog):
        with pytest.raises(TagNotFound):
            delete_tag(catalog, tag_id=42)

    def test_delete_needs_exactly_one_identifier(self, catalog):
        with pytest.raises(ValueError):
            delete_tag(catalog, tag_id=1, value="ml")


# ---------------------------------------------------------------------------
# Tags referenced by documents
# ---------------------------------------------------------------------------


class TestDocumentTagLifecycle:
    def test_existing_tag_keeps_id_new_tag_gets_next(self, catalog, make_pdf):
        insert_tag(catalog, "ml")
        _add_doc(catalog, make_pdf, "p1", "ml,nlp")
        assert list_tags(catalog) == [Tag(1, "ml"), Tag(2, "nlp")]

    def test_rename_then_search(self, catalog, make_pdf):
        from odinsource.documents import find_by_tag, find_by_tag_substring

        insert_tag(catalog, "ml")
        p1 = _add_doc(catalog, make_pdf, "p1", "ml,nlp")
        _add_doc(catalog, make_pdf, "p2", "systems")
        before = [d.id for d in find_by_tag_substring(catalog, "ml")]

        rename_tag(catalog, "machine-learning", tag_id=1)

        assert get_document(catalog, p1.id).tags == "machine-learning,nlp"
        assert [d.id for d in find_by_tag_substring(catalog, "machine-learning")] == before
        assert find_by_tag(catalog, "ml") == []
        assert list_tags(catalog)[:2] == [Tag(1, "machine-learning"), Tag(2, "nlp")]
