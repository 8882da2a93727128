"""Bulk import of document lists from a TOML file.

File format::

    [[documents]]
    title = "Attention is all you need"
    path = "pdfs/vaswani2017.pdf"    # relative to the TOML file
    author = "Vaswani et al."
    year = 2017
    tags = "ml, nlp"

    [[documents]]
    title = "..."
    path = "..."

The whole file is parsed and validated before anything is inserted: a
syntax error, a bad field or a missing source file aborts the batch.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from odinsource.catalog import Catalog
from odinsource.documents import (
    FIELD_NAMES,
    InsertResult,
    NewDocument,
    insert_document,
    validate_source,
)
from odinsource.errors import BulkImportError, InvalidSource, OdinError

logger = logging.getLogger(__name__)

BULK_EXTENSION = "toml"

_STR_FIELDS = ("title", "author", "publication", "tags", "doi", "path")
_INT_FIELDS = ("year", "volume")
_REQUIRED = ("title", "path")


def _entry_to_record(entry: Any, index: int, base: Path, extension: str, src: str) -> NewDocument:
    where = f"documents[{index}]"
    if not isinstance(entry, dict):
        raise BulkImportError(src, f"{where} must be a table, got {type(entry).__name__}")

    unknown = sorted(set(entry) - set(FIELD_NAMES))
    if unknown:
        raise BulkImportError(src, f"{where} has unknown field(s): {', '.join(unknown)}")
    for name in _REQUIRED:
        if not entry.get(name):
            raise BulkImportError(src, f"{where} is missing '{name}'")
    for name in _STR_FIELDS:
        if name in entry and not isinstance(entry[name], str):
            raise BulkImportError(src, f"{where}.{name} must be a string")
    if not entry["title"].strip():
        raise BulkImportError(src, f"{where}.title is blank")
    for name in _INT_FIELDS:
        value = entry.get(name, 0)
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise BulkImportError(src, f"{where}.{name} must be a non-negative integer")

    path = Path(entry["path"]).expanduser()
    if not path.is_absolute():
        path = base / path
    try:
        validate_source(path, extension)
    except InvalidSource as exc:
        raise BulkImportError(src, f"{where}.path: {exc.reason} ({path})") from exc

    fields = {k: v for k, v in entry.items() if k != "path"}
    return NewDocument(path=path, **fields)


def load_bulk_file(path: Path, extension: str = "pdf") -> list[NewDocument]:
    """Parse and validate a bulk import file.

    Args:
        path: The TOML file.
        extension: Extension expected of every referenced source file.

    Returns:
        One :class:`NewDocument` per ``[[documents]]`` entry.

    Raises:
        InvalidSource: If *path* is not an existing ``.toml`` file.
        BulkImportError: If the file cannot be parsed or any entry is invalid.
    """
    path = Path(path).expanduser()
    if not path.is_file() or path.suffix.lower() != f".{BULK_EXTENSION}":
        raise InvalidSource(str(path), BULK_EXTENSION)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise BulkImportError(str(path), f"invalid TOML: {e}") from e
    except UnicodeDecodeError as e:
        raise BulkImportError(str(path), f"UTF-8 decode error: {e}") from e

    entries = data.get("documents")
    if not isinstance(entries, list) or not entries:
        raise BulkImportError(str(path), "expected a non-empty [[documents]] array")

    base = path.parent
    return [
        _entry_to_record(entry, i, base, extension, str(path)) for i, entry in enumerate(entries)
    ]


def import_documents(catalog: Catalog, records: list[NewDocument]) -> list[InsertResult]:
    """Insert records one after another.

    There is no cross-record transaction: if an insert fails, the records
    before it stay catalogued and the error propagates.
    """
    results = []
    for i, record in enumerate(records):
        try:
            results.append(insert_document(catalog, record))
        except OdinError:
            logger.error("Bulk import stopped at record %d (%s)", i, record.title)
            raise
    added = sum(1 for r in results if r.inserted)
    logger.info("Bulk import: %d added, %d already present", added, len(results) - added)
    return results


def import_file(catalog: Catalog, path: Path) -> list[InsertResult]:
    """Load, validate and insert every document of a bulk file."""
    return import_documents(catalog, load_bulk_file(path, catalog.store.extension))
