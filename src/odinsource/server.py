"""OdinSource MCP server for managing a document and tag catalog.

Run with: odinsource-mcp (or python -m odinsource.server)
The server uses stdio transport for MCP client communication.
"""

from __future__ import annotations

import functools
import json
import logging
import time
import traceback
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from odinsource import bulk, documents, tags
from odinsource import config as odin_config
from odinsource import hints as hints_mod
from odinsource.catalog import Catalog, open_catalog
from odinsource.errors import OdinError
from odinsource.extract import extract_pdf_metadata
from odinsource.logs import configure_logging
from odinsource.opener import open_path

mcp_server = FastMCP("OdinSource")

logger = logging.getLogger("odinsource.server")

# ---------------------------------------------------------------------------
# Tool invocation logging. Each tool call runs in a worker thread via
# anyio.to_thread so the event loop stays responsive; tools are sync.
# ---------------------------------------------------------------------------

_original_tool = mcp_server.tool

# Global tool timeout (seconds). Bulk imports of large files are the slow path.
_TOOL_TIMEOUT = 120


def _logging_tool(**kwargs):
    """Drop-in replacement for ``mcp_server.tool()`` that adds invocation logging."""
    import anyio

    decorator = _original_tool(**kwargs)

    def wrapper(fn):
        @functools.wraps(fn)
        async def logged(*args, **kw):
            name = fn.__name__
            logger.info("TOOL %s called", name)
            t0 = time.monotonic()
            try:
                try:
                    with anyio.fail_after(_TOOL_TIMEOUT):
                        result = await anyio.to_thread.run_sync(functools.partial(fn, *args, **kw))
                except TimeoutError:
                    logger.error("TOOL %s timed out after %ds", name, _TOOL_TIMEOUT)
                    raise OdinError(f"Tool {name} timed out after {_TOOL_TIMEOUT}s.")
                logger.info(
                    "TOOL %s completed in %.2fs (%d bytes)",
                    name,
                    time.monotonic() - t0,
                    len(result) if isinstance(result, str) else 0,
                )
                return result
            except OdinError:
                raise
            except Exception as exc:
                logger.error(
                    "TOOL %s crashed after %.2fs:\n%s",
                    name,
                    time.monotonic() - t0,
                    traceback.format_exc(),
                )
                raise OdinError(f"Internal error in {name}: {type(exc).__name__}: {exc}") from exc

        return decorator(logged)

    return wrapper


mcp_server.tool = _logging_tool  # type: ignore[assignment]


# ---------------------------------------------------------------------------
# Catalog: re-read per call so edits made by the CLI are always visible
# ---------------------------------------------------------------------------


def _config() -> odin_config.OdinConfig:
    return odin_config.load_config()


def _catalog() -> Catalog:
    return open_catalog(_config())


# ---------------------------------------------------------------------------
# tags
# ---------------------------------------------------------------------------


@mcp_server.tool(name="tags")
def tags_tool(
    id: int = 0,
    value: str = "",
    add: str = "",
    rename: str = "",
    delete: bool = False,
) -> str:
    """Manage the tag catalog.

    Routing is compositional: which params are present determines the operation.

    no args: list all tags
    add: comma-separated tags to create ('ml, nlp')
    id or value: show one tag and the documents carrying it
    id or value + rename: rename the tag everywhere (documents included)
    id or value + delete: delete the tag and remove it from every document
    """
    return _route_tags(id=id, value=value, add=add, rename=rename, delete=delete)


def _route_tags(
    id: int = 0,
    value: str = "",
    add: str = "",
    rename: str = "",
    delete: bool = False,
) -> str:
    try:
        catalog = _catalog()
        if add:
            created = tags.insert_tags(catalog, add)
            return hints_mod.response(
                {"tags": [hints_mod.tag_dict(t) for t in created]},
                hints={"list": "tags()"},
            )

        if not id and not value:
            all_tags = tags.list_tags(catalog)
            return hints_mod.response(
                {"count": len(all_tags), "tags": [hints_mod.tag_dict(t) for t in all_tags]},
                hints={"add": "tags(add='tag1, tag2')", "documents": "documents(tag='...')"},
            )

        ident: dict[str, Any] = {"tag_id": id} if id else {"value": value}

        if delete:
            deleted = tags.delete_tag(catalog, **ident)
            if deleted is None:
                return hints_mod.response(
                    {"deleted": None, "message": f"Tag '{value}' not in catalog; nothing deleted."},
                    hints={"list": "tags()"},
                )
            return hints_mod.response(
                {"deleted": hints_mod.tag_dict(deleted)},
                hints={"list": "tags()"},
            )

        if rename:
            renamed = tags.rename_tag(catalog, rename, **ident)
            return hints_mod.response(
                {"renamed": hints_mod.tag_dict(renamed)},
                hints=hints_mod.tag_hints(renamed),
            )

        tag = tags.get_tag(catalog, id) if id else tags.get_tag_by_value(catalog, value)
        docs = documents.find_by_tag(catalog, tag.value)
        return hints_mod.response(
            {
                "tag": hints_mod.tag_dict(tag),
                "documents": [{"id": d.id, "title": d.title} for d in docs],
            },
            hints=hints_mod.tag_hints(tag),
        )
    except OdinError as exc:
        return hints_mod.error(str(exc), hints={"list": "tags()"})


# ---------------------------------------------------------------------------
# documents
# ---------------------------------------------------------------------------


_INT_META = ("year", "volume")


def _parse_meta(meta: str) -> dict[str, Any]:
    try:
        data = json.loads(meta)
    except json.JSONDecodeError as exc:
        raise ValueError(f"meta is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("meta must be a JSON object")
    unknown = sorted(set(data) - set(documents.CHANGE_FIELDS))
    if unknown:
        raise ValueError(
            f"Unknown field(s) in meta: {', '.join(unknown)}. "
            f"Valid fields: {', '.join(documents.CHANGE_FIELDS)}"
        )
    for name, value in data.items():
        if name in _INT_META:
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"meta field '{name}' must be an integer")
        elif not isinstance(value, str):
            raise ValueError(f"meta field '{name}' must be a string")
    return data


def _document_add(catalog: Catalog, path: str, fields: dict[str, Any]) -> str:
    source = Path(path).expanduser()
    if not fields.get("title"):
        pdf = extract_pdf_metadata(source)
        fields["title"] = pdf.title or source.stem
        fields.setdefault("author", pdf.author or "")
        fields.setdefault("year", pdf.year or 0)
    result = documents.insert_document(catalog, documents.NewDocument(path=source, **fields))
    data: dict[str, Any] = {"status": result.status, "document": result.document.to_dict()}
    if result.message:
        data["message"] = result.message
    return hints_mod.response(data, hints=hints_mod.document_hints(result.document))


def _route_documents(
    id: int = 0,
    title: str = "",
    path: str = "",
    toml: str = "",
    meta: str = "",
    tag: str = "",
    exact: bool = False,
    delete: bool = False,
    view: bool = False,
) -> str:
    try:
        fields = _parse_meta(meta) if meta else {}
    except ValueError as exc:
        return hints_mod.error(str(exc), hints={"example": "documents(id=1, meta='{\"year\": 2017}')"})

    try:
        catalog = _catalog()

        if toml:
            results = bulk.import_file(catalog, Path(toml))
            return hints_mod.response(
                {
                    "added": [r.document.id for r in results if r.inserted],
                    "duplicates": [r.message for r in results if not r.inserted],
                },
                hints={"list": "documents()"},
            )

        if path:
            return _document_add(catalog, path, fields)

        if not id and not title:
            if tag:
                if exact:
                    docs = documents.find_by_tag(catalog, tag)
                else:
                    docs = documents.find_by_tag_substring(catalog, tag)
            else:
                docs = documents.list_documents(catalog)
            return hints_mod.response(
                {"count": len(docs), "documents": [d.to_dict() for d in docs]},
                hints={
                    "get": "documents(id=N)",
                    "add": "documents(path='paper.pdf', meta='{\"title\": \"...\"}')",
                    "tags": "tags()",
                },
            )

        if delete:
            result = documents.delete_document(catalog, doc_id=id or None, title=title or None)
            data: dict[str, Any] = {"deleted": result.document.to_dict()}
            if result.warning:
                data["warning"] = result.warning
            return hints_mod.response(data, hints={"list": "documents()"})

        if fields:
            changes = documents.DocumentChanges(**fields)
            if id:
                doc = documents.update_document(catalog, id, changes)
            else:
                doc = documents.update_document_by_title(catalog, title, changes)
            return hints_mod.response({"document": doc.to_dict()}, hints=hints_mod.document_hints(doc))

        doc = documents.get_document(catalog, id) if id else documents.get_document_by_title(catalog, title)
        stored = documents.stored_content_path(catalog, doc)
        if view:
            try:
                open_path(stored, _config().opener)
            except OSError as exc:
                return hints_mod.error(f"Cannot start a viewer for {stored}: {exc}")
        return hints_mod.response(
            {"document": doc.to_dict(), "path": str(stored), "opened": view},
            hints=hints_mod.document_hints(doc),
        )
    except OdinError as exc:
        return hints_mod.error(str(exc), hints={"list": "documents()"})


@mcp_server.tool(name="documents")
def documents_tool(
    id: int = 0,
    title: str = "",
    path: str = "",
    toml: str = "",
    meta: str = "",
    tag: str = "",
    exact: bool = False,
    delete: bool = False,
    view: bool = False,
) -> str:
    """Everything about catalogued documents.

    Routing is compositional: which params are present determines the operation.

    no args: list all documents; tag filters by tag text (exact=true for whole tags)
    path: add a PDF; meta JSON gives fields, title defaults to the PDF's own
    toml: bulk import a TOML file of [[documents]] entries
    id or title: show a document and its stored file
    id or title + meta: update fields ('{"year": 2017, "tags": "ml,nlp"}')
    id or title + delete: remove the document and its stored file
    id or title + view: open the stored file in a viewer
    """
    return _route_documents(
        id=id,
        title=title,
        path=path,
        toml=toml,
        meta=meta,
        tag=tag,
        exact=exact,
        delete=delete,
        view=view,
    )


def main():
    """Run the OdinSource MCP server."""
    try:
        cfg = _config()
        configure_logging(logging.WARNING, cfg.log_path)
    except OdinError as exc:
        configure_logging(logging.WARNING)
        logger.error("%s", exc)
        raise SystemExit(1) from exc

    logger.info("OdinSource server started")
    try:
        mcp_server.run()
    except KeyboardInterrupt:
        logger.info("OdinSource server stopped (keyboard interrupt)")
    except Exception:
        logger.critical("OdinSource server crashed:\n%s", traceback.format_exc())
        raise


if __name__ == "__main__":
    main()
