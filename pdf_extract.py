from __future__ import annotations

import io
import logging
import warnings
from collections import defaultdict
from typing import Callable, Optional

import pdfplumber

from pdf_clean import clean_pdf_text
from pdf_models import DEFAULT_SETTINGS, ExtractionSettings, PageText, TextRun
from pdf_ocr import OcrEngine, get_ocr_engine

logger = logging.getLogger(__name__)

logging.getLogger("pdfminer").setLevel(logging.ERROR)
warnings.filterwarnings("ignore", module="pdfminer")


def open_pdf(buffer: bytes) -> pdfplumber.PDF:
    return pdfplumber.open(io.BytesIO(buffer))


def _append_run(runs: list[TextRun], text: str, x0: float, x1: float, y: float) -> None:
    text = text.strip()
    if text:
        runs.append(TextRun(text=text, x=x0, y=y, width=x1 - x0))


def chars_to_runs(chars: list[dict], page_height: float) -> list[TextRun]:
    """Group page.chars into positioned runs, top-to-bottom then left-to-right.

    Characters are bucketed by rounded ``top``. Within a row a run is broken by a
    horizontal gap wider than ~1.5 average character widths, or by two
    consecutive spaces; a narrower gap with no space glyph becomes a single space.
    """
    by_y: dict[int, list[dict]] = defaultdict(list)
    for c in chars:
        by_y[round(c["top"])].append(c)

    runs: list[TextRun] = []
    for y_key in sorted(by_y.keys()):
        row = sorted(by_y[y_key], key=lambda c: c["x0"])
        current_text = ""
        current_x0 = 0.0
        current_x1 = 0.0
        current_y = 0.0

        for c in row:
            ch = c["text"]
            gap = c["x0"] - current_x1 if current_text else 0.0
            avg_char_width = (current_x1 - current_x0) / len(current_text) if current_text else 5.0
            is_split = gap > max(avg_char_width * 1.5, 4.0)
            is_double_space = ch == " " and current_text.endswith(" ")

            if is_split or is_double_space:
                _append_run(runs, current_text, current_x0, current_x1, current_y)
                current_text = ""

            if ch == " " and not current_text:
                continue

            if not current_text:
                current_x0 = c["x0"]
                current_y = page_height - c["bottom"]
            elif ch != " " and not current_text.endswith(" ") and gap > avg_char_width * 0.3:
                current_text += " "
            current_text += ch
            current_x1 = c["x1"]

        _append_run(runs, current_text, current_x0, current_x1, current_y)

    return runs


def page_runs(page: pdfplumber.page.Page) -> list[TextRun]:
    return chars_to_runs(page.chars, float(page.height))


def _page_run_text(page: pdfplumber.page.Page) -> str:
    try:
        return " ".join(run.text for run in page_runs(page)).strip()
    except Exception as exc:
        logger.debug("page %s: run extraction failed: %s", page.page_number, exc)
        return ""


def _fast_text(pdf: pdfplumber.PDF, settings: ExtractionSettings, ocr_engine: OcrEngine | None) -> str | None:
    text = "\n\n".join((page.extract_text() or "").strip() for page in pdf.pages).strip()
    if len(text) > settings.min_text_chars:
        return clean_pdf_text(text)
    return None


def _run_text(pdf: pdfplumber.PDF, settings: ExtractionSettings, ocr_engine: OcrEngine | None) -> str | None:
    page_texts = [_page_run_text(page) for page in pdf.pages]
    combined = "\n\n".join(t for t in page_texts if t)
    if len(combined) > settings.min_text_chars:
        return clean_pdf_text(combined)
    return None


def _ocr_text(pdf: pdfplumber.PDF, settings: ExtractionSettings, ocr_engine: OcrEngine | None) -> str | None:
    engine = ocr_engine if ocr_engine is not None else get_ocr_engine()
    if not engine.available:
        logger.debug("no OCR engine available; skipping OCR tier")
        return None

    ocr_texts: list[str] = []
    for page in pdf.pages[: settings.ocr_page_cap]:
        try:
            image = page.to_image(resolution=settings.ocr_resolution).original
            png = io.BytesIO()
            image.save(png, format="PNG")
            text = engine.recognize(png.getvalue())
        except Exception as exc:
            logger.debug("page %s: OCR failed: %s", page.page_number, exc)
            continue
        if text and text.strip():
            ocr_texts.append(text.strip())

    combined = "\n\n".join(ocr_texts)
    return clean_pdf_text(combined) or None


_Tier = Callable[[pdfplumber.PDF, ExtractionSettings, Optional[OcrEngine]], Optional[str]]

_TEXT_TIERS: list[tuple[str, _Tier]] = [
    ("fast", _fast_text),
    ("runs", _run_text),
    ("ocr", _ocr_text),
]


def extract_text(
    buffer: bytes | None,
    settings: ExtractionSettings | None = None,
    ocr_engine: OcrEngine | None = None,
) -> str:
    """Return cleaned whole-document text, or ``""`` when nothing is recoverable.

    Tiers run in order and the first to produce text wins: pdfplumber's own
    text layout, then run reconstruction from page.chars, then OCR of
    rasterised pages (only if an engine is available).
    """
    settings = settings or DEFAULT_SETTINGS
    if not buffer:
        return ""

    try:
        with open_pdf(buffer) as pdf:
            for name, tier in _TEXT_TIERS:
                try:
                    text = tier(pdf, settings, ocr_engine)
                except Exception as exc:
                    logger.debug("%s tier failed: %s", name, exc)
                    continue
                if text:
                    logger.debug("text extracted by %s tier (%d chars)", name, len(text))
                    return text
                logger.debug("%s tier produced too little text", name)
    except Exception as exc:
        logger.warning("could not read PDF: %s", exc)

    return ""


def extract_text_per_page(buffer: bytes | None) -> list[PageText]:
    """Raw run text for every page, in page order; failed pages give ``""``."""
    pages: list[PageText] = []
    if not buffer:
        return pages

    try:
        with open_pdf(buffer) as pdf:
            for page in pdf.pages:
                pages.append(PageText(page_number=page.page_number, text=_page_run_text(page)))
    except Exception as exc:
        logger.warning("could not read PDF: %s", exc)

    return pages
