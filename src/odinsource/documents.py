"""Document catalog: bibliographic records plus their stored PDF copies.

A document row carries its bibliographic fields, the opaque ``content_id``
naming its file in the content store, and a denormalized comma-joined
``tags`` string. Every tag token a document carries is guaranteed to
exist in the tag catalog: inserts and updates create missing tags, and
tag renames/deletes rewrite the documents (see :mod:`odinsource.sync`).
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

from odinsource.catalog import Catalog
from odinsource.content import new_content_id
from odinsource.errors import (
    ContentMissing,
    DocumentNotFound,
    DuplicateTitle,
    InvalidRecord,
    InvalidSource,
)
from odinsource.tags import ensure_tags, normalize_tags, normalize_value, split_tags

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class Document:
    """A catalogued document, as stored in the documents table."""

    id: int
    title: str
    content_id: str
    author: str = ""
    year: int = 0
    publication: str = ""
    volume: int = 0
    tags: str = ""
    doi: str = ""

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> Document:
        return cls(
            id=row["id"],
            title=row["title"],
            content_id=row["content_id"],
            author=row["author"] or "",
            year=row["year"] or 0,
            publication=row["publication"] or "",
            volume=row["volume"] or 0,
            tags=row["tags"] or "",
            doi=row["doi"] or "",
        )

    @property
    def tag_list(self) -> list[str]:
        return split_tags(self.tags)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class NewDocument:
    """Input for :func:`insert_document`: a title and a source file at minimum."""

    title: str
    path: Path
    author: str = ""
    year: int = 0
    publication: str = ""
    volume: int = 0
    tags: str = ""
    doi: str = ""


@dataclass
class DocumentChanges:
    """Field changes for :func:`update_document`. ``None`` means leave as is."""

    title: str | None = None
    author: str | None = None
    year: int | None = None
    publication: str | None = None
    volume: int | None = None
    tags: str | None = None
    doi: str | None = None

    def provided(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass
class InsertResult:
    """Outcome of an insert: ``inserted`` or ``duplicate`` (existing record returned)."""

    status: str
    document: Document
    message: str = ""

    @property
    def inserted(self) -> bool:
        return self.status == "inserted"


@dataclass
class DeleteResult:
    """Outcome of a delete.

    The row removal is the primary operation and always succeeded when a
    result is returned; ``content_removed`` and ``warning`` report the
    best-effort removal of the stored file.
    """

    document: Document
    content_removed: bool = True
    warning: str = ""


_COLUMNS = ("title", "author", "publication", "volume", "year", "content_id", "tags", "doi")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def normalize_title(title: str) -> str:
    t = " ".join(title.split()).lower()
    if not t:
        raise InvalidRecord("title", title, "a document needs a non-empty title")
    return t


def _check_count(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRecord(name, value, "must be a whole number")
    if value < 0:
        raise InvalidRecord(name, value, "must not be negative")
    return value


def validate_source(path: str | Path, extension: str) -> Path:
    """Check that *path* is an existing file with the expected extension.

    Raises:
        InvalidSource: Otherwise.
    """
    p = Path(path).expanduser()
    if not p.is_file() or p.suffix.lower() != f".{extension}":
        raise InvalidSource(str(path), extension)
    return p


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def _fetch(conn: sqlite3.Connection, doc_id: int | None = None, title: str | None = None) -> Document | None:
    if doc_id is not None:
        row = conn.execute("SELECT * FROM documents WHERE id = ?", (doc_id,)).fetchone()
    else:
        row = conn.execute("SELECT * FROM documents WHERE title = ?", (title,)).fetchone()
    return Document.from_row(row) if row else None


def _lookup(conn: sqlite3.Connection, doc_id: int | None, title: str | None) -> Document:
    if (doc_id is None) == (title is None):
        raise ValueError("Identify the document by exactly one of doc_id or title")
    if doc_id is not None:
        doc = _fetch(conn, doc_id=doc_id)
        if doc is None:
            raise DocumentNotFound(doc_id)
        return doc
    t = normalize_title(title)
    doc = _fetch(conn, title=t)
    if doc is None:
        raise DocumentNotFound(t)
    return doc


def get_document(catalog: Catalog, doc_id: int) -> Document:
    with catalog.connect() as conn:
        return _lookup(conn, doc_id, None)


def get_document_by_title(catalog: Catalog, title: str) -> Document:
    with catalog.connect() as conn:
        return _lookup(conn, None, title)


def list_documents(catalog: Catalog) -> list[Document]:
    """All documents in storage order."""
    with catalog.connect() as conn:
        rows = conn.execute("SELECT * FROM documents ORDER BY id").fetchall()
        return [Document.from_row(r) for r in rows]


def _escape_like(fragment: str) -> str:
    return fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def find_by_tag_substring(catalog: Catalog, fragment: str) -> list[Document]:
    """Documents whose tag string contains *fragment* anywhere.

    This is a plain substring match, not a token match: ``"ml"`` also finds
    a document tagged ``"html"``. Use :func:`find_by_tag` for exact tokens.
    """
    pattern = f"%{_escape_like(fragment.strip().lower())}%"
    with catalog.connect() as conn:
        rows = conn.execute(
            "SELECT * FROM documents WHERE tags LIKE ? ESCAPE '\\' ORDER BY id",
            (pattern,),
        ).fetchall()
        return [Document.from_row(r) for r in rows]


def find_by_tag(catalog: Catalog, value: str) -> list[Document]:
    """Documents carrying *value* as one of their tag tokens."""
    v = normalize_value(value)
    return [d for d in list_documents(catalog) if v in d.tag_list]


def stored_content_path(catalog: Catalog, document: Document) -> Path:
    """Location of a document's stored file.

    Raises:
        ContentMissing: If the file is not in the content store.
    """
    path = catalog.store.resolve(document.content_id)
    if not catalog.store.exists(document.content_id):
        raise ContentMissing(document.title, str(path))
    return path


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def insert_document(catalog: Catalog, record: NewDocument) -> InsertResult:
    """Catalogue a new document and store a copy of its source file.

    A document whose normalized title is already catalogued is not added
    again; the existing record is returned with ``status="duplicate"``.

    Raises:
        InvalidSource: If the source path is not an existing file of the
            store's extension. Nothing is persisted.
        InvalidRecord: If a field value is unusable.
        ContentStoreError: If the copy fails. The row is rolled back.
    """
    source = validate_source(record.path, catalog.store.extension)
    title = normalize_title(record.title)
    values: dict[str, Any] = {
        "title": title,
        "author": record.author or "",
        "publication": record.publication or "",
        "volume": _check_count("volume", record.volume or 0),
        "year": _check_count("year", record.year or 0),
        "tags": normalize_tags(record.tags),
        "doi": (record.doi or "").strip(),
    }

    with catalog.connect() as conn:
        existing = _fetch(conn, title=title)
    if existing is not None:
        logger.warning("Document already in catalog: %r (id %d)", title, existing.id)
        return InsertResult(
            status="duplicate",
            document=existing,
            message=str(DuplicateTitle(title, existing.id)),
        )

    values["content_id"] = new_content_id()
    stored = False
    try:
        with catalog.connect() as conn:
            try:
                cur = conn.execute(
                    f"INSERT INTO documents ({', '.join(_COLUMNS)}) "
                    f"VALUES ({', '.join(':' + c for c in _COLUMNS)})",
                    values,
                )
            except sqlite3.IntegrityError as exc:
                raise DuplicateTitle(title) from exc
            ensure_tags(conn, values["tags"])
            catalog.store.put(values["content_id"], source)
            stored = True
            doc_id = cur.lastrowid
    except Exception:
        if stored:
            catalog.store.remove(values["content_id"])
        raise

    document = Document(id=doc_id, **values)
    logger.info("Document %r added with id %d", title, doc_id)
    return InsertResult(status="inserted", document=document, message=f"Added '{title}'")


def _apply_changes(conn: sqlite3.Connection, doc: Document, changes: DocumentChanges) -> Document:
    updates: dict[str, Any] = {}
    for name, value in changes.provided().items():
        if name == "title":
            value = normalize_title(value)
            other = _fetch(conn, title=value)
            if other is not None and other.id != doc.id:
                raise DuplicateTitle(value, other.id)
        elif name == "tags":
            value = normalize_tags(value)
        elif name in ("year", "volume"):
            value = _check_count(name, value)
        elif name == "doi":
            value = value.strip()
        if getattr(doc, name) != value:
            updates[name] = value

    if not updates:
        logger.debug("Document %d: nothing to change", doc.id)
        return doc

    if "tags" in updates:
        ensure_tags(conn, updates["tags"])
    assignments = ", ".join(f"{name} = :{name}" for name in updates)
    conn.execute(f"UPDATE documents SET {assignments} WHERE id = :id", {**updates, "id": doc.id})
    logger.info("Document %d updated: %s", doc.id, ", ".join(sorted(updates)))
    return replace(doc, **updates)


def update_document(catalog: Catalog, doc_id: int, changes: DocumentChanges) -> Document:
    """Apply the provided field changes to a document.

    Raises:
        DocumentNotFound: If no document has this id.
        DuplicateTitle: If the new title belongs to another document.
        InvalidRecord: If a field value is unusable.
    """
    with catalog.connect() as conn:
        doc = _lookup(conn, doc_id, None)
        return _apply_changes(conn, doc, changes)


def update_document_by_title(catalog: Catalog, title: str, changes: DocumentChanges) -> Document:
    """Same as :func:`update_document`, identifying the document by title."""
    with catalog.connect() as conn:
        doc = _lookup(conn, None, title)
        return _apply_changes(conn, doc, changes)


def delete_document(
    catalog: Catalog,
    *,
    doc_id: int | None = None,
    title: str | None = None,
) -> DeleteResult:
    """Remove a document row, then its stored file (best effort).

    Raises:
        DocumentNotFound: If the document does not exist.
    """
    with catalog.connect() as conn:
        doc = _lookup(conn, doc_id, title)
        conn.execute("DELETE FROM documents WHERE id = ?", (doc.id,))
    logger.info("Document %r (id %d) removed from catalog", doc.title, doc.id)

    removed = catalog.store.remove(doc.content_id)
    warning = ""
    if not removed:
        warning = (
            f"Stored file {catalog.store.resolve(doc.content_id)} could not be removed; "
            f"it may already be gone."
        )
    return DeleteResult(document=doc, content_removed=removed, warning=warning)


# Field names accepted from bulk files and front-ends.
FIELD_NAMES = tuple(f.name for f in fields(NewDocument))
CHANGE_FIELDS = tuple(f.name for f in fields(DocumentChanges))
