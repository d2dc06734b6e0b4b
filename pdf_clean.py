"""Lightweight cleaning for text pulled out of PDFs (often OCR-noisy)."""

from __future__ import annotations

import re

_LINE_ENDINGS_RE = re.compile(r"\r\n?")
_HORIZONTAL_WS_RE = re.compile(r"[ \t]+")
_WS_AROUND_NEWLINE_RE = re.compile(r"[ \t]*\n[ \t]*")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")
_BLANK_LINES_RE = re.compile(r"\n{2,}")
_WRAPPED_HYPHEN_RE = re.compile(r"(?<=\w)-\n[ \t]*(?=\S)")
_SINGLE_NEWLINE_RE = re.compile(r"(?<=[^\n])\n(?=[^\n])")
_MULTI_SPACE_RE = re.compile(r"[ \t]{2,}")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([,.!?;:])")

# (pattern, replacement) applied in order
_OCR_SUBSTITUTIONS: list[tuple[re.Pattern, str]] = [
    (re.compile("\ufb01"), "fi"),
    (re.compile("\ufb02"), "fl"),
    (re.compile("[\u2018\u2019]"), "'"),
    (re.compile("[\u201c\u201d]"), '"'),
    (re.compile("[\u2013\u2014]"), "-"),
]


def normalize_whitespace(s: str) -> str:
    out = _LINE_ENDINGS_RE.sub("\n", s)
    out = _HORIZONTAL_WS_RE.sub(" ", out)
    out = _WS_AROUND_NEWLINE_RE.sub("\n", out)
    out = _EXCESS_NEWLINES_RE.sub("\n\n", out)
    return out.strip()


def fix_hyphenation_and_line_breaks(s: str) -> str:
    """Rejoin words split across lines and unwrap lines inside a paragraph.

    Paragraph breaks (two or more newlines) survive as exactly one blank line.
    """
    if not s:
        return s
    out = _WRAPPED_HYPHEN_RE.sub("", s)
    out = _BLANK_LINES_RE.sub("\n\n", out)
    out = _SINGLE_NEWLINE_RE.sub(" ", out)
    out = _MULTI_SPACE_RE.sub(" ", out)
    return out.strip()


def fix_common_ocr_errors(s: str) -> str:
    # '0'/'O' and '1'/'l' confusions are left to the heading matcher
    for pattern, replacement in _OCR_SUBSTITUTIONS:
        s = pattern.sub(replacement, s)
    return s


def normalize_punctuation(s: str) -> str:
    return _SPACE_BEFORE_PUNCT_RE.sub(r"\1", s)


def clean_pdf_text(raw: str | None) -> str:
    """Normalize raw PDF text. Total: empty or missing input gives ``""``."""
    if not raw:
        return ""
    out = normalize_whitespace(str(raw))
    out = fix_hyphenation_and_line_breaks(out)
    out = fix_common_ocr_errors(out)
    out = normalize_punctuation(out)
    return out.strip()
