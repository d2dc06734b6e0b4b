"""Split cleaned document text into units/chapters using OCR-tolerant headings."""

from __future__ import annotations

import re
from typing import Callable, Optional

from pdf_models import DEFAULT_SETTINGS, ExtractionSettings, Section, SectionMap

_LINE_SPLIT_RE = re.compile(r"\r?\n")

# OCR corruptions of heading keywords; extend here, not in the matcher
_HEADING_CORRECTIONS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"U[nN][l1I]t", re.IGNORECASE), "Unit"),
    (re.compile(r"Chapt?r", re.IGNORECASE), "Chapter"),
    (re.compile("[\u2018\u2019\u201c\u201d]"), "'"),
    (re.compile(r"\s+"), " "),
]

_HEADING_RE = re.compile(
    r"^\s*(Unit|Chapter|Lesson|Section)\b[\s\-:]*([0-9]{1,3})\b(.*)$",
    re.IGNORECASE,
)
_INLINE_HEADING_RE = re.compile(r"\b(Unit|Chapter|Lesson|Section)\s*([0-9]{1,3})\b", re.IGNORECASE)
ANY_UNIT_TOKEN_RE = re.compile(r"\b(?:Unit|Chapter)\s*[0-9]{1,3}\b", re.IGNORECASE)

_EXACT_KEY_KINDS = ("Unit", "Chapter", "Lesson")
_NEXT_UNIT_OFFSET = 10
_TOC_SNIPPET_CHARS = 80
_TITLE_WORDS = 6


def check_unit_number(unit_number: int) -> None:
    if isinstance(unit_number, bool) or not isinstance(unit_number, int):
        raise ValueError(f"unit number must be an integer, got {unit_number!r}")
    if unit_number < 0:
        raise ValueError(f"unit number must be non-negative, got {unit_number}")


def unit_token_re(unit_number: int) -> re.Pattern:
    """Matches "Unit N" / "Chapter N" anywhere, case-insensitive."""
    return re.compile(rf"\b(?:Unit|Chapter)\s*{unit_number}\b", re.IGNORECASE)


def section_token_re(unit_number: int) -> re.Pattern:
    """Matches a sub-section number such as "3.1" for unit 3."""
    return re.compile(rf"\b{unit_number}\.[0-9]{{1,3}}\b")


def pre_normalize_heading_line(line: str) -> str:
    for pattern, replacement in _HEADING_CORRECTIONS:
        line = pattern.sub(replacement, line)
    return line.strip()


def _store_section(out: SectionMap, key: str, title: str, lines: list[str]) -> None:
    content = "\n".join(lines).strip()
    if key in out and not content:
        return
    out[key] = Section(title=title, content=content)


def split_into_units(cleaned_text: str) -> SectionMap:
    """Map heading keys like ``"Unit 3"`` to their title and body.

    Only line-start headings count. Text before the first heading belongs to no
    section. A repeated key is replaced by the later occurrence, except that an
    occurrence with no body (running headers, ToC lines) never overwrites a
    section that already has content.
    """
    out: SectionMap = {}
    if not cleaned_text:
        return out

    current_key: str | None = None
    current_title = ""
    lines: list[str] = []

    for raw_line in _LINE_SPLIT_RE.split(cleaned_text):
        m = _HEADING_RE.match(pre_normalize_heading_line(raw_line))
        if m:
            if current_key:
                _store_section(out, current_key, current_title, lines)
            current_key = f"{m.group(1).capitalize()} {int(m.group(2))}"
            rest = m.group(3).strip().lstrip("-:.").strip()
            current_title = f"{current_key} - {rest}" if rest else current_key
            lines = []
            continue

        if current_key:
            lines.append(raw_line)

    if current_key:
        _store_section(out, current_key, current_title, lines)

    return out


def fallback_extract_units(cleaned_text: str, window: int | None = None) -> SectionMap:
    """Inline scan: each heading token anywhere owns the text up to the next one."""
    if window is None:
        window = DEFAULT_SETTINGS.fallback_window_chars
    out: SectionMap = {}
    if not cleaned_text:
        return out

    matches = list(_INLINE_HEADING_RE.finditer(cleaned_text))
    for i, m in enumerate(matches):
        next_index = matches[i + 1].start() if i + 1 < len(matches) else len(cleaned_text)
        start = m.start()
        key = f"{m.group(1).capitalize()} {int(m.group(2))}"
        out[key] = Section(title=key, content=cleaned_text[start : min(next_index, start + window)].strip())

    return out


def _toc_title_candidate(text: str, unit_number: int) -> str | None:
    """Title words following the first "Unit N" mention."""
    m = re.search(rf"Unit\s*{unit_number}(?!\d)[^\n]{{0,{_TOC_SNIPPET_CHARS}}}", text, re.IGNORECASE)
    if not m:
        return None
    stripped = re.sub(r"\d+", "", m.group(0))
    words = re.sub(r"unit", "", stripped, count=1, flags=re.IGNORECASE).split()
    words = [w for w in words if re.search(r"\w", w)]
    return " ".join(words[:_TITLE_WORDS]) or None


def _title_after_toc(text: str, unit_number: int, settings: ExtractionSettings) -> int | None:
    candidate = _toc_title_candidate(text, unit_number)
    if candidate is None:
        return None
    # a first hit near the top is the contents listing itself
    m = re.search(re.escape(candidate), text, re.IGNORECASE)
    if m and m.start() > settings.toc_skip_chars:
        return m.start()
    return None


def _section_numbering(text: str, unit_number: int, settings: ExtractionSettings) -> int | None:
    m = re.search(rf"^[ \t]*({unit_number}\.[0-9]{{1,3}})\b", text, re.MULTILINE)
    return m.start(1) if m else None


def _unit_token(text: str, unit_number: int, settings: ExtractionSettings) -> int | None:
    m = unit_token_re(unit_number).search(text)
    return m.start() if m else None


_BodyLocator = Callable[[str, int, ExtractionSettings], Optional[int]]

_BODY_START_LOCATORS: list[_BodyLocator] = [
    _title_after_toc,
    _section_numbering,
    _unit_token,
]


def _slice_body(text: str, start: int, max_chars: int) -> str:
    end = min(len(text), start + max_chars)
    nxt = ANY_UNIT_TOKEN_RE.search(text, start + _NEXT_UNIT_OFFSET)
    if nxt:
        end = min(end, nxt.start())
    return text[start:end].strip()


def extract_unit_body(
    cleaned_text: str,
    unit_number: int,
    max_chars: int | None = None,
    settings: ExtractionSettings | None = None,
) -> str | None:
    """Locate the real body of a unit, skipping table-of-contents mentions.

    Anchors are tried loosest-last: the unit title, if its first mention lies
    past the contents, then a line-start sub-section number ("3.1"), then the
    first raw "Unit N"/"Chapter N" token. The body runs to the next unit token or
    ``max_chars``, whichever comes first.
    """
    check_unit_number(unit_number)
    settings = settings or DEFAULT_SETTINGS
    if max_chars is None:
        max_chars = settings.unit_body_max_chars
    if not cleaned_text:
        return None

    for locate in _BODY_START_LOCATORS:
        start = locate(cleaned_text, unit_number, settings)
        if start is None:
            continue
        body = _slice_body(cleaned_text, start, max_chars)
        if body:
            return body
    return None


def get_unit_content(
    cleaned_text: str,
    unit_number: int,
    settings: ExtractionSettings | None = None,
) -> str | None:
    """Content for unit ``unit_number``, or ``None`` when no heading can be found."""
    settings = settings or DEFAULT_SETTINGS
    body = extract_unit_body(cleaned_text, unit_number, settings=settings)
    if body:
        return body

    sections = split_into_units(cleaned_text)
    for kind in _EXACT_KEY_KINDS:
        section = sections.get(f"{kind} {unit_number}")
        if section is not None:
            return section.content or None

    merged = {**sections, **fallback_extract_units(cleaned_text, settings.fallback_window_chars)}
    loose = re.compile(rf"(?:Unit|Chapter|Lesson)\s*{unit_number}", re.IGNORECASE)
    for key, section in merged.items():
        if loose.fullmatch(key):
            return section.content or None
    return None
