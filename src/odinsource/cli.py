"""Command-line interface for OdinSource.

Usage:
    odinsource tag add "ml, nlp"
    odinsource tag modify by-value ml machine-learning
    odinsource tag delete --id 3
    odinsource tag list

    odinsource doc add --path paper.pdf --title "Attention is all you need" --tags "ml,nlp"
    odinsource doc add --toml library.toml
    odinsource doc modify by-id 4 --year 2017
    odinsource doc delete --title "attention is all you need"
    odinsource doc list --tag ml
    odinsource doc open --id 4

    odinsource check --repair
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from odinsource import __version__, paths
from odinsource import bulk, check, display, documents, tags
from odinsource import config as odin_config
from odinsource.catalog import Catalog, open_catalog
from odinsource.errors import InvalidSource, OdinError
from odinsource.extract import extract_pdf_metadata
from odinsource.logs import configure_logging
from odinsource.opener import open_path

logger = logging.getLogger(__name__)


def _print_tags(catalog: Catalog) -> None:
    print(display.format_tags(tags.list_tags(catalog)))


def _print_documents(catalog: Catalog) -> None:
    print(display.format_documents(documents.list_documents(catalog)))


# ---------------------------------------------------------------------------
# tag
# ---------------------------------------------------------------------------


def cmd_tag_add(catalog: Catalog, args: argparse.Namespace) -> int:
    tags.insert_tags(catalog, args.values)
    _print_tags(catalog)
    return 0


def cmd_tag_modify(catalog: Catalog, args: argparse.Namespace) -> int:
    if args.by == "by-id":
        tags.rename_tag(catalog, args.new, tag_id=args.id)
    else:
        tags.rename_tag(catalog, args.new, value=args.old)
    _print_tags(catalog)
    return 0


def cmd_tag_delete(catalog: Catalog, args: argparse.Namespace) -> int:
    deleted = tags.delete_tag(catalog, tag_id=args.id, value=args.value)
    if deleted is None:
        print(f"warning: tag {args.value!r} not found, nothing deleted", file=sys.stderr)
    _print_tags(catalog)
    return 0


def cmd_tag_list(catalog: Catalog, args: argparse.Namespace) -> int:
    _print_tags(catalog)
    return 0


# ---------------------------------------------------------------------------
# doc
# ---------------------------------------------------------------------------


def _record_from_args(args: argparse.Namespace) -> documents.NewDocument:
    """Build an insert record, filling unset title/author/year from the PDF."""
    path = Path(args.path).expanduser()
    title, author, year = args.title, args.author, args.year
    if title is None or author is None or year is None:
        try:
            meta = extract_pdf_metadata(path)
        except InvalidSource:
            if title is None:
                raise
            logger.warning("Could not read PDF metadata from %s", path)
        else:
            title = title if title is not None else meta.title or path.stem
            author = author if author is not None else meta.author or ""
            year = year if year is not None else meta.year or 0
    return documents.NewDocument(
        title=title,
        path=path,
        author=author or "",
        year=year or 0,
        publication=args.publication or "",
        volume=args.volume or 0,
        tags=args.tags or "",
        doi=args.doi or "",
    )


def cmd_doc_add(catalog: Catalog, args: argparse.Namespace) -> int:
    if args.toml:
        results = bulk.import_file(catalog, Path(args.toml))
    else:
        results = [documents.insert_document(catalog, _record_from_args(args))]
    for r in results:
        if not r.inserted:
            print(f"warning: {r.message}", file=sys.stderr)
    _print_documents(catalog)
    return 0


def _changes_from_args(args: argparse.Namespace) -> documents.DocumentChanges:
    return documents.DocumentChanges(**{name: getattr(args, name) for name in documents.CHANGE_FIELDS})


def cmd_doc_modify(catalog: Catalog, args: argparse.Namespace) -> int:
    changes = _changes_from_args(args)
    if args.by == "by-id":
        documents.update_document(catalog, args.id, changes)
    else:
        documents.update_document_by_title(catalog, args.match_title, changes)
    _print_documents(catalog)
    return 0


def cmd_doc_delete(catalog: Catalog, args: argparse.Namespace) -> int:
    result = documents.delete_document(catalog, doc_id=args.id, title=args.title)
    if result.warning:
        print(f"warning: {result.warning}", file=sys.stderr)
    _print_documents(catalog)
    return 0


def cmd_doc_list(catalog: Catalog, args: argparse.Namespace) -> int:
    if args.tag is None:
        docs = documents.list_documents(catalog)
    elif args.exact:
        docs = documents.find_by_tag(catalog, args.tag)
    else:
        docs = documents.find_by_tag_substring(catalog, args.tag)
    print(display.format_documents(docs))
    return 0


def cmd_doc_open(catalog: Catalog, args: argparse.Namespace) -> int:
    if args.id is not None:
        doc = documents.get_document(catalog, args.id)
    else:
        doc = documents.get_document_by_title(catalog, args.title)
    path = documents.stored_content_path(catalog, doc)
    try:
        open_path(path, args.opener)
    except OSError as exc:
        print(f"error: cannot start a viewer for {path}: {exc}", file=sys.stderr)
        return 1
    print(display.format_document(doc, path=str(path)))
    return 0


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


def cmd_check(catalog: Catalog, args: argparse.Namespace) -> int:
    report = check.repair_catalog(catalog) if args.repair else check.check_catalog(catalog)
    print(report.summary())
    if report.ok:
        return 0
    # Missing content survives a repair.
    return 0 if args.repair and not report.missing_content else 1


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _add_field_options(p: argparse.ArgumentParser, *, with_title: bool = True) -> None:
    if with_title:
        p.add_argument("--title", default=None, help="Document title (stored lowercase)")
    p.add_argument("--author", default=None)
    p.add_argument("--year", type=int, default=None)
    p.add_argument("--publication", default=None)
    p.add_argument("--volume", type=int, default=None)
    p.add_argument("--tags", default=None, help="Comma-separated tags, e.g. 'ml,nlp'")
    p.add_argument("--doi", default=None)


def _id_or(p: argparse.ArgumentParser, other: str, help_other: str) -> None:
    g = p.add_mutually_exclusive_group(required=True)
    g.add_argument("--id", type=int, default=None, help="Numeric id")
    g.add_argument(f"--{other}", default=None, help=help_other)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="odinsource",
        description="Catalogue PDF documents and their tags",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config-dir",
        default=None,
        help=f"Configuration directory (default: ${paths.HOME_ENV} or ~/{paths.DOT_DIR})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    # tag
    tag = sub.add_parser("tag", help="Manage the tag catalog")
    tag_sub = tag.add_subparsers(dest="action", required=True)

    p = tag_sub.add_parser("add", help="Add one or more comma-separated tags")
    p.add_argument("values", help="e.g. 'ml, nlp'")
    p.set_defaults(func=cmd_tag_add)

    p = tag_sub.add_parser("modify", help="Rename a tag everywhere")
    by = p.add_subparsers(dest="by", required=True)
    q = by.add_parser("by-id")
    q.add_argument("id", type=int)
    q.add_argument("new")
    q = by.add_parser("by-value")
    q.add_argument("old")
    q.add_argument("new")
    p.set_defaults(func=cmd_tag_modify)

    p = tag_sub.add_parser("delete", help="Delete a tag and remove it from every document")
    _id_or(p, "value", "Tag value")
    p.set_defaults(func=cmd_tag_delete)

    p = tag_sub.add_parser("list", help="List all tags")
    p.set_defaults(func=cmd_tag_list)

    # doc
    doc = sub.add_parser("doc", help="Manage the document catalog")
    doc_sub = doc.add_subparsers(dest="action", required=True)

    p = doc_sub.add_parser("add", help="Add a PDF, or every document of a TOML file")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--path", help="Source PDF")
    src.add_argument("--toml", help="Bulk import file with [[documents]] entries")
    _add_field_options(p)
    p.set_defaults(func=cmd_doc_add)

    p = doc_sub.add_parser("modify", help="Change document fields")
    by = p.add_subparsers(dest="by", required=True)
    q = by.add_parser("by-id")
    q.add_argument("id", type=int)
    _add_field_options(q)
    q = by.add_parser("by-title")
    q.add_argument("match_title", metavar="TITLE")
    _add_field_options(q)
    p.set_defaults(func=cmd_doc_modify)

    p = doc_sub.add_parser("delete", help="Delete a document and its stored file")
    _id_or(p, "title", "Document title")
    p.set_defaults(func=cmd_doc_delete)

    p = doc_sub.add_parser("list", help="List documents")
    p.add_argument("--tag", default=None, help="Only documents whose tags contain this text")
    p.add_argument("--exact", action="store_true", help="Match --tag as a whole tag")
    p.set_defaults(func=cmd_doc_list)

    p = doc_sub.add_parser("open", help="Open a stored document in a viewer")
    _id_or(p, "title", "Document title")
    p.set_defaults(func=cmd_doc_open)

    # check
    p = sub.add_parser("check", help="Check the catalog against the content store")
    p.add_argument("--repair", action="store_true", help="Create missing tags, remove orphan files")
    p.set_defaults(func=cmd_check)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "toml", None):
        given = [f"--{name}" for name in documents.CHANGE_FIELDS if getattr(args, name) is not None]
        if given:
            parser.error(f"--toml cannot be combined with {', '.join(given)}; set fields in the TOML file")

    level = logging.DEBUG if args.verbose else logging.WARNING
    configure_logging(level)

    try:
        home = paths.expand(args.config_dir) if args.config_dir else paths.home_dir()
        odin_config.create_default(home)
        cfg = odin_config.load_config(home)
        configure_logging(level, cfg.log_path)
        catalog = open_catalog(cfg)
        args.opener = cfg.opener
        return args.func(catalog, args)
    except OdinError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
