"""Bounded, grounded context for a single unit of an uploaded document."""

from __future__ import annotations

import logging

from pdf_clean import clean_pdf_text
from pdf_extract import extract_text, extract_text_per_page
from pdf_models import DEFAULT_SETTINGS, ExtractionSettings, PageText, UnitContext
from pdf_ocr import OcrEngine
from pdf_segment import (
    ANY_UNIT_TOKEN_RE,
    check_unit_number,
    extract_unit_body,
    get_unit_content,
    section_token_re,
    unit_token_re,
)
from pdf_tables import extract_tables, tables_to_csv

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "You are given the following authoritative excerpt from a user's textbook "
    "(Unit {unit_number}). Use only this text to answer the user's question. "
    "If the answer is not present, say you don't know and suggest where the "
    "user might look in the unit.\n\n"
    "Context:\n{context}\n\n"
    "Question: <INSERT USER QUESTION HERE>"
)


def build_grounding_prompt(context: str, unit_number: int) -> str:
    return PROMPT_TEMPLATE.format(unit_number=unit_number, context=context)


def trim_context(body: str, max_chars: int, min_break_offset: int = 200) -> str:
    """Cut *body* to at most *max_chars*, preferring a paragraph or sentence end.

    A break only counts if it lies past *min_break_offset*; otherwise the cut
    is hard at *max_chars*.
    """
    if max_chars < 0:
        raise ValueError(f"max_chars must be non-negative, got {max_chars}")
    body = body.strip()
    if len(body) <= max_chars:
        return body

    trimmed = body[:max_chars]
    last_break = max(trimmed.rfind("\n\n"), trimmed.rfind(". "))
    if last_break > min_break_offset:
        trimmed = trimmed[: last_break + 1]
    return trimmed.rstrip()


def _find_start_page(pages: list[PageText], unit_number: int) -> int | None:
    title_token = unit_token_re(unit_number)
    section_token = section_token_re(unit_number)
    for page in pages:
        if title_token.search(page.text) or section_token.search(page.text):
            return page.page_number
    return None


def _collect_pages(pages: list[PageText], start_page: int, limit: int) -> str:
    """Concatenate pages from *start_page* until the next unit begins or *limit* is passed."""
    collected: list[str] = []
    for page in pages:
        if page.page_number < start_page:
            continue
        if len("\n".join(collected)) >= limit:
            break
        if page.page_number > start_page and ANY_UNIT_TOKEN_RE.search(page.text):
            break
        text = clean_pdf_text(page.text)
        if text:
            collected.append(text)
    return "\n\n".join(collected)


def _page_aware_body(
    buffer: bytes, unit_number: int, max_chars: int, settings: ExtractionSettings
) -> str:
    pages = extract_text_per_page(buffer)
    start_page = _find_start_page(pages, unit_number)
    if start_page is None:
        logger.debug("unit %d: no start page found", unit_number)
        return ""
    logger.debug("unit %d: starts on page %d", unit_number, start_page)
    return _collect_pages(pages, start_page, max_chars * settings.accumulate_factor)


def _segmented_body(
    buffer: bytes,
    unit_number: int,
    settings: ExtractionSettings,
    ocr_engine: OcrEngine | None,
) -> str:
    cleaned = clean_pdf_text(extract_text(buffer, settings, ocr_engine))
    return (
        extract_unit_body(cleaned, unit_number, settings=settings)
        or get_unit_content(cleaned, unit_number, settings)
        or ""
    )


def _table_body(buffer: bytes, settings: ExtractionSettings) -> str:
    csv_map = tables_to_csv(extract_tables(buffer, settings).pages)
    snippets: list[str] = []
    for page_number in sorted(csv_map)[: settings.table_csv_pages]:
        snippets.extend(csv[: settings.table_csv_chars] for csv in csv_map[page_number])
    return "\n\n".join(snippets)


def build_unit_context_and_prompt(
    buffer: bytes | None,
    unit_number: int,
    max_chars: int | None = None,
    settings: ExtractionSettings | None = None,
    ocr_engine: OcrEngine | None = None,
) -> UnitContext:
    """Assemble the excerpt for *unit_number* and the prompt that grounds on it.

    Sources are tried in order: consecutive pages from the first page that
    mentions the unit, then segmentation of the whole-document text, then
    CSV of the first reconstructed tables. An empty context means nothing was
    found; callers report that rather than guess.
    """
    check_unit_number(unit_number)
    settings = settings or DEFAULT_SETTINGS
    if max_chars is None:
        max_chars = settings.max_chars
    if max_chars < 0:
        raise ValueError(f"max_chars must be non-negative, got {max_chars}")

    body = ""
    if buffer:
        sources = [
            ("pages", lambda: _page_aware_body(buffer, unit_number, max_chars, settings)),
            ("segments", lambda: _segmented_body(buffer, unit_number, settings, ocr_engine)),
            ("tables", lambda: _table_body(buffer, settings)),
        ]
        for name, source in sources:
            try:
                body = source().strip()
            except Exception as exc:
                logger.debug("unit %d: %s source failed: %s", unit_number, name, exc)
                continue
            if body:
                logger.debug("unit %d: context from %s source", unit_number, name)
                break

    context = trim_context(body, max_chars, settings.min_break_offset)
    return UnitContext(context=context, prompt=build_grounding_prompt(context, unit_number))


def build_text_unit_context(
    text: str,
    unit_number: int,
    max_chars: int | None = None,
    settings: ExtractionSettings | None = None,
) -> UnitContext:
    """Same as :func:`build_unit_context_and_prompt` for already-extracted text."""
    check_unit_number(unit_number)
    settings = settings or DEFAULT_SETTINGS
    if max_chars is None:
        max_chars = settings.max_chars
    body = get_unit_content(clean_pdf_text(text), unit_number, settings) or ""
    context = trim_context(body, max_chars, settings.min_break_offset)
    return UnitContext(context=context, prompt=build_grounding_prompt(context, unit_number))
