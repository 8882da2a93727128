"""Tests for odinsource.sync: token rewrites behind tag rename/delete."""

from odinsource.documents import NewDocument, get_document, insert_document
from odinsource.sync import on_tag_deleted, on_tag_renamed, remove_token, replace_token


class TestTokens:
    def test_replace(self):
        assert replace_token("ml,nlp", "ml", "machine-learning") == "machine-learning,nlp"

    def test_replace_collapses_repeat(self):
        assert replace_token("ai,ml", "ml", "ai") == "ai"

    def test_replace_absent(self):
        assert replace_token("html", "ml", "x") == "html"

    def test_remove_middle(self):
        assert remove_token("ml,nlp,systems", "nlp") == "ml,systems"

    def test_remove_last_token(self):
        assert remove_token("ml", "ml") == ""

    def test_remove_is_token_exact(self):
        assert remove_token("html,ml", "ml") == "html"

    def test_remove_from_empty(self):
        assert remove_token("", "ml") == ""


class TestCatalogRewrites:
    def test_counts_and_idempotence(self, catalog, make_pdf):
        insert_document(catalog, NewDocument(title="a", path=make_pdf("a.pdf"), tags="ml"))
        insert_document(catalog, NewDocument(title="b", path=make_pdf("b.pdf"), tags="nlp"))

        with catalog.connect() as conn:
            assert on_tag_renamed(conn, "ml", "ai") == 1
        with catalog.connect() as conn:
            assert on_tag_renamed(conn, "ml", "ai") == 0

    def test_deleted_leaves_tag_row(self, catalog, make_pdf):
        doc = insert_document(
            catalog, NewDocument(title="a", path=make_pdf("a.pdf"), tags="ml,nlp")
        ).document
        with catalog.connect() as conn:
            assert on_tag_deleted(conn, "ml") == 1
            remaining = conn.execute("SELECT COUNT(*) FROM tags WHERE value = 'ml'").fetchone()[0]
        assert remaining == 1
        assert get_document(catalog, doc.id).tags == "nlp"

    def test_rollback_keeps_documents_unchanged(self, catalog, make_pdf):
        doc = insert_document(
            catalog, NewDocument(title="a", path=make_pdf("a.pdf"), tags="ml")
        ).document
        try:
            with catalog.connect() as conn:
                on_tag_renamed(conn, "ml", "ai")
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert get_document(catalog, doc.id).tags == "ml"
