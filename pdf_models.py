from __future__ import annotations

import os
from dataclasses import dataclass, field, fields

_ENV_PREFIX = "LESSON_PDF_"


@dataclass(frozen=True)
class PageText:
    """Raw text of one page, 1-based page number."""

    page_number: int
    text: str


@dataclass
class TextRun:
    """A positioned run of characters from a page, in PDF (bottom-up) coordinates."""

    text: str
    x: float
    y: float
    width: float


@dataclass
class Line:
    """Runs sharing a y band, sorted left-to-right."""

    y: float
    runs: list[TextRun]


@dataclass
class Table:
    rows: list[list[str]]


@dataclass
class PageTables:
    page_number: int
    tables: list[Table] = field(default_factory=list)


@dataclass
class TableExtraction:
    pages: list[PageTables] = field(default_factory=list)


@dataclass
class Section:
    """A heading-delimited block; content excludes the heading line."""

    title: str
    content: str


SectionMap = dict[str, Section]


@dataclass
class UnitContext:
    context: str
    prompt: str


@dataclass
class PageHit:
    """A page mentioning a unit token, with an excerpt around the first mention."""

    page_number: int
    excerpt: str


@dataclass(frozen=True)
class ExtractionSettings:
    """Empirical thresholds used across the pipeline."""

    min_text_chars: int = 200
    ocr_page_cap: int = 10
    ocr_resolution: int = 150
    line_y_tolerance: float = 4.0
    toc_skip_chars: int = 1000
    unit_body_max_chars: int = 20000
    fallback_window_chars: int = 2000
    accumulate_factor: int = 2
    max_chars: int = 8000
    table_csv_pages: int = 3
    table_csv_chars: int = 1000
    min_break_offset: int = 200

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ExtractionSettings:
        """Build settings from ``LESSON_PDF_<FIELD>`` variables, defaults otherwise."""
        env = os.environ if environ is None else environ
        overrides: dict[str, int | float] = {}
        for f in fields(cls):
            raw = env.get(_ENV_PREFIX + f.name.upper())
            if raw is None or not raw.strip():
                continue
            cast = float if f.type in (float, "float") else int
            try:
                overrides[f.name] = cast(raw.strip())
            except ValueError:
                raise ValueError(
                    f"invalid value for {_ENV_PREFIX}{f.name.upper()}: {raw!r}"
                ) from None
        return cls(**overrides)


DEFAULT_SETTINGS = ExtractionSettings()
