"""JSON response builder for the MCP server.

Every response carries a ``hints`` mapping showing the client which call
to make next.
"""

from __future__ import annotations

import json
from typing import Any

from odinsource.documents import Document
from odinsource.tags import Tag


def response(data: dict[str, Any], hints: dict[str, str] | None = None) -> str:
    """Build a JSON response with self-describing hints.

    Args:
        data: The response payload.
        hints: Optional contextual hints (next actions).

    Returns:
        JSON string with ``hints`` appended.
    """
    data["hints"] = hints or {}
    return json.dumps(data, indent=2)


def error(message: str, hints: dict[str, str] | None = None) -> str:
    """Build a JSON error response with hints."""
    return response({"error": message}, hints=hints)


def tag_dict(tag: Tag) -> dict[str, Any]:
    return {"id": tag.id, "value": tag.value}


def document_hints(doc: Document) -> dict[str, str]:
    """Standard hints for a single-document response."""
    return {
        "view": f"documents(id={doc.id}, view=true)",
        "update": f"documents(id={doc.id}, meta={{...}})",
        "delete": f"documents(id={doc.id}, delete=true)",
        "same_tags": f"documents(tag='{doc.tag_list[0]}')" if doc.tag_list else "tags()",
    }


def tag_hints(tag: Tag) -> dict[str, str]:
    return {
        "documents": f"documents(tag='{tag.value}', exact=true)",
        "rename": f"tags(id={tag.id}, rename='new-value')",
        "delete": f"tags(id={tag.id}, delete=true)",
    }
