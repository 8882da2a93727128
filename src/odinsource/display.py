"""Plain-text listings printed by the CLI."""

from __future__ import annotations

from collections.abc import Iterable

from odinsource.documents import Document
from odinsource.tags import Tag

WIDTH = 80
_RULE = "-" * WIDTH
_DOUBLE_RULE = "=" * WIDTH


def _field(label: str, value: object) -> str:
    return f"{label + ':':12} {value}"


def format_document(doc: Document, path: str | None = None) -> str:
    """One document as a labelled block between rules."""
    lines = [
        _RULE,
        _field("id", doc.id),
        _field("title", doc.title),
        _field("author", doc.author),
        _field("publication", doc.publication),
        _field("volume", doc.volume),
        _field("year", doc.year),
        _field("doi", doc.doi),
        _field("tags", doc.tags),
        _field("content id", doc.content_id),
    ]
    if path is not None:
        lines.append(_field("path", path))
    lines.append(_RULE)
    return "\n".join(lines)


def format_documents(docs: Iterable[Document]) -> str:
    docs = list(docs)
    body = "\n".join(format_document(d) for d in docs) if docs else "(no documents)"
    return f"Documents:\n{_DOUBLE_RULE}\n{body}\n{_DOUBLE_RULE}"


def format_tags(tags: Iterable[Tag]) -> str:
    tags = list(tags)
    if not tags:
        return "Tags:\n(no tags)"
    return "Tags:\n" + "\n".join(str(t) for t in tags)
