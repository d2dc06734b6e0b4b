"""Inspect how an uploaded textbook is cleaned, segmented and grounded.

Subcommands mirror the pipeline stages:
  text        : cleaned whole-document text
  pages       : raw per-page text (first 2000 characters of each page)
  units       : detected heading sections
  unit N      : content located for one unit
  tables      : reconstructed tables as CSV (or HTML)
  find-unit N : pages that mention a unit, with an excerpt
  context N   : bounded context and grounding prompt for a unit
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pdf_context import build_text_unit_context, build_unit_context_and_prompt
from pdf_extract import extract_text_per_page
from pdf_models import ExtractionSettings
from pdf_pipeline import document_type, extract_document_text, find_unit_pages
from pdf_segment import get_unit_content, split_into_units
from pdf_tables import extract_tables, tables_to_csv, tables_to_html

_PAGE_PREVIEW_CHARS = 2000
_CONTEXT_PREVIEW_CHARS = 2000
_PROMPT_PREVIEW_CHARS = 800


def _read_input(path_str: str) -> tuple[Path, bytes]:
    path = Path(path_str)
    if not path.exists():
        print(f"Error: file not found: {path}", file=sys.stderr)
        sys.exit(1)
    return path, path.read_bytes()


def _require_pdf(path: Path) -> None:
    if document_type(path.name) != "pdf":
        print(f"Error: {path.name} is not a PDF", file=sys.stderr)
        sys.exit(1)


def cmd_text(args: argparse.Namespace, settings: ExtractionSettings) -> int:
    path, data = _read_input(args.file)
    print(extract_document_text(data, path.name, settings))
    return 0


def cmd_pages(args: argparse.Namespace, settings: ExtractionSettings) -> int:
    path, data = _read_input(args.file)
    _require_pdf(path)
    pages = extract_text_per_page(data)
    for page in pages:
        print(f"--- page {page.page_number} ---")
        print(page.text[:_PAGE_PREVIEW_CHARS] if page.text else "[no text]")
        print()
    print(f"Total pages: {len(pages)}")
    return 0


def cmd_units(args: argparse.Namespace, settings: ExtractionSettings) -> int:
    path, data = _read_input(args.file)
    sections = split_into_units(extract_document_text(data, path.name, settings))
    if not sections:
        print("No unit headings found.")
        return 2
    for key, section in sections.items():
        print(f"{key:<14} {section.title}  ({len(section.content)} chars)")
    return 0


def cmd_unit(args: argparse.Namespace, settings: ExtractionSettings) -> int:
    path, data = _read_input(args.file)
    content = get_unit_content(extract_document_text(data, path.name, settings), args.unit, settings)
    if not content:
        print(f"Unit {args.unit} not found.")
        return 2
    print(content)
    return 0


def cmd_tables(args: argparse.Namespace, settings: ExtractionSettings) -> int:
    path, data = _read_input(args.file)
    _require_pdf(path)
    pages = extract_tables(data, settings).pages
    rendered = tables_to_html(pages) if args.html else tables_to_csv(pages)
    found = 0
    for page_number, tables in rendered.items():
        for i, table in enumerate(tables, 1):
            found += 1
            print(f"--- page {page_number}, table {i} ---")
            print(table)
            print()
    if not found:
        print("No tables found.")
        return 2
    return 0


def cmd_find_unit(args: argparse.Namespace, settings: ExtractionSettings) -> int:
    path, data = _read_input(args.file)
    _require_pdf(path)
    hits = find_unit_pages(data, args.unit)
    if not hits:
        print(f"No explicit unit/chapter token found for {args.unit}")
        return 2
    for hit in hits:
        print(f"--- page {hit.page_number} ---")
        print(hit.excerpt)
        print()
    return 0


def cmd_context(args: argparse.Namespace, settings: ExtractionSettings) -> int:
    path, data = _read_input(args.file)
    if document_type(path.name) == "pdf":
        result = build_unit_context_and_prompt(data, args.unit, args.max_chars, settings)
    else:
        text = extract_document_text(data, path.name, settings)
        result = build_text_unit_context(text, args.unit, args.max_chars, settings)

    if not result.context:
        print(f"No content found for unit {args.unit}.")
        return 2
    print("--- Context (truncated) ---")
    print(result.context[:_CONTEXT_PREVIEW_CHARS])
    print("\n--- Prompt (preview) ---")
    print(result.prompt[:_PROMPT_PREVIEW_CHARS])
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract grounded unit context from a textbook PDF.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log which extraction tiers ran",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def add(name: str, handler, help_text: str, unit: bool = False) -> argparse.ArgumentParser:
        p = sub.add_parser(name, help=help_text)
        p.add_argument("file", help="Path to the PDF, .txt or .md file")
        if unit:
            p.add_argument("unit", type=int, help="Unit number")
        p.set_defaults(handler=handler)
        return p

    add("text", cmd_text, "Print cleaned document text")
    add("pages", cmd_pages, "Dump raw per-page text")
    add("units", cmd_units, "List detected heading sections")
    add("unit", cmd_unit, "Print the content of one unit", unit=True)
    tables = add("tables", cmd_tables, "Print reconstructed tables")
    tables.add_argument("--html", action="store_true", help="Render HTML instead of CSV")
    add("find-unit", cmd_find_unit, "List pages mentioning a unit", unit=True)
    context = add("context", cmd_context, "Build grounded context for a unit", unit=True)
    context.add_argument(
        "--max-chars",
        type=int, default=None, metavar="N",
        help="Upper bound on context length (default: 8000)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = ExtractionSettings.from_env()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if getattr(args, "unit", 0) < 0:
        print("Error: unit number must be non-negative", file=sys.stderr)
        return 1
    try:
        return args.handler(args, settings)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
