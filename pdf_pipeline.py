from __future__ import annotations

import logging
from pathlib import Path

from pdf_clean import clean_pdf_text
from pdf_extract import extract_text, extract_text_per_page
from pdf_models import ExtractionSettings, PageHit
from pdf_ocr import OcrEngine
from pdf_segment import check_unit_number, unit_token_re

logger = logging.getLogger(__name__)

_TEXT_SUFFIXES = {".txt": "txt", ".md": "markdown", ".markdown": "markdown"}


def snippet(text: str, position: int, radius: int = 60) -> str:
    """Return a short text excerpt around *position* for display."""
    start = max(0, position - radius)
    end = min(len(text), position + radius)
    return f"...{text[start:end].replace(chr(10), ' ')}..."


def document_type(filename: str) -> str:
    suffix = Path(filename).suffix.lower()
    if suffix == ".pdf":
        return "pdf"
    if suffix in _TEXT_SUFFIXES:
        return _TEXT_SUFFIXES[suffix]
    raise ValueError(f"Unsupported file type: {filename}")


def extract_document_text(
    buffer: bytes | None,
    filename: str,
    settings: ExtractionSettings | None = None,
    ocr_engine: OcrEngine | None = None,
) -> str:
    """Cleaned text of an uploaded document; plain text skips the PDF stages."""
    kind = document_type(filename)
    if not buffer:
        return ""
    if kind == "pdf":
        return extract_text(buffer, settings, ocr_engine)
    return clean_pdf_text(buffer.decode("utf-8", errors="replace"))


def find_unit_pages(buffer: bytes | None, unit_number: int, radius: int = 300) -> list[PageHit]:
    """Every page mentioning "Unit N"/"Chapter N", with an excerpt around the first mention."""
    check_unit_number(unit_number)
    token = unit_token_re(unit_number)
    hits: list[PageHit] = []
    for page in extract_text_per_page(buffer):
        m = token.search(page.text)
        if not m:
            continue
        hits.append(PageHit(page_number=page.page_number, excerpt=snippet(page.text, m.start(), radius)))
    logger.debug("unit %d mentioned on %d page(s)", unit_number, len(hits))
    return hits
