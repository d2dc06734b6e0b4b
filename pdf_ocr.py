"""Optional OCR capability for scanned PDFs.

The engine is resolved once per process: a Tesseract-backed engine when both
the ``pytesseract`` package and the ``tesseract`` binary are present, and a
no-op sentinel otherwise. Callers check ``engine.available`` instead of
attempting OCR and catching import failures.
"""

from __future__ import annotations

import importlib.util
import io
import logging
import os
import shutil
from typing import Protocol

logger = logging.getLogger(__name__)


class OcrEngine(Protocol):
    available: bool

    def recognize(self, image_bytes: bytes) -> str: ...


class NullOcrEngine:
    """Stands in when no OCR backend is installed."""

    available = False

    def recognize(self, image_bytes: bytes) -> str:
        return ""


class TesseractOcrEngine:
    available = True

    def __init__(self, lang: str = "eng", tesseract_cmd: str | None = None) -> None:
        import pytesseract

        self._pytesseract = pytesseract
        self.lang = lang
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def recognize(self, image_bytes: bytes) -> str:
        from PIL import Image

        with Image.open(io.BytesIO(image_bytes)) as image:
            return self._pytesseract.image_to_string(image, lang=self.lang) or ""


def resolve_ocr_engine() -> OcrEngine:
    tesseract_cmd = os.getenv("TESSERACT_CMD", "tesseract")
    if importlib.util.find_spec("pytesseract") is None:
        logger.debug("pytesseract not installed; OCR fallback disabled")
        return NullOcrEngine()
    if shutil.which(tesseract_cmd) is None:
        logger.debug("tesseract binary %r not found; OCR fallback disabled", tesseract_cmd)
        return NullOcrEngine()
    return TesseractOcrEngine(
        lang=os.getenv("LESSON_PDF_OCR_LANG", "eng"),
        tesseract_cmd=tesseract_cmd,
    )


_engine: OcrEngine | None = None


def get_ocr_engine() -> OcrEngine:
    """Return the process-wide OCR engine, resolving it on first use."""
    global _engine
    if _engine is None:
        _engine = resolve_ocr_engine()
    return _engine


def reset_ocr_engine() -> None:
    global _engine
    _engine = None
