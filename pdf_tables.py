"""Geometric table reconstruction from positioned text runs.

Conservative by construction: meant for straightforward column-aligned tables,
not merged cells or nested layouts.
"""

from __future__ import annotations

import csv
import html
import io
import logging
import math
import statistics

from pdf_clean import clean_pdf_text
from pdf_extract import open_pdf, page_runs
from pdf_models import (
    DEFAULT_SETTINGS,
    ExtractionSettings,
    Line,
    PageTables,
    Table,
    TableExtraction,
    TextRun,
)

logger = logging.getLogger(__name__)

_MIN_BASE_GAP = 8
_MIN_GAP_THRESHOLD = 12
_GAP_SCALE = 1.4
_MIN_COLUMNS = 2
_MIN_CELLS_PER_ROW = 2
_MIN_ROWS = 3


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def group_lines(runs: list[TextRun], y_tolerance: float = 4.0) -> list[Line]:
    """Group runs into lines top-to-bottom; each run joins the first line within tolerance."""
    ordered = sorted(runs, key=lambda r: (-r.y, r.x))
    lines: list[Line] = []
    for run in ordered:
        for line in lines:
            if abs(line.y - run.y) <= y_tolerance:
                line.runs.append(run)
                break
        else:
            lines.append(Line(y=run.y, runs=[run]))

    for line in lines:
        line.runs.sort(key=lambda r: r.x)
    return lines


def gap_threshold(gaps: list[int]) -> int:
    median_gap = _round_half_up(statistics.median(gaps))
    mean_gap = _round_half_up(statistics.mean(gaps))
    base = max(_MIN_BASE_GAP, min(median_gap or mean_gap, mean_gap))
    return max(_MIN_GAP_THRESHOLD, _round_half_up(base * _GAP_SCALE))


def detect_columns(runs: list[TextRun]) -> list[list[int]]:
    """Partition the page's distinct rounded x-positions at wide gaps."""
    xs = sorted({_round_half_up(r.x) for r in runs})
    if len(xs) < 2:
        return [xs] if xs else []

    gaps = [b - a for a, b in zip(xs, xs[1:])]
    threshold = gap_threshold(gaps)

    columns: list[list[int]] = [[xs[0]]]
    for gap, x in zip(gaps, xs[1:]):
        if gap >= threshold:
            columns.append([x])
        else:
            columns[-1].append(x)
    return columns


def _nearest_column(x: float, centers: list[int]) -> int:
    best = 0
    best_dist = abs(x - centers[0])
    for i, center in enumerate(centers[1:], 1):
        dist = abs(x - center)
        if dist < best_dist:
            best, best_dist = i, dist
    return best


def reconstruct_tables(runs: list[TextRun], y_tolerance: float = 4.0) -> list[Table]:
    """Return at most one table for a page's runs, or ``[]`` if none qualifies."""
    runs = [r for r in runs if r.text.strip()]
    if not runs:
        return []

    columns = detect_columns(runs)
    if len(columns) < _MIN_COLUMNS:
        return []

    centers = [_round_half_up(sum(col) / len(col)) for col in columns]
    rows: list[list[str]] = []
    for line in group_lines(runs, y_tolerance):
        cells = [""] * len(centers)
        for run in line.runs:
            ci = _nearest_column(run.x, centers)
            cells[ci] = f"{cells[ci]} {run.text.strip()}" if cells[ci] else run.text.strip()
        cleaned = [clean_pdf_text(c) for c in cells]
        if sum(1 for c in cleaned if c) >= _MIN_CELLS_PER_ROW:
            rows.append(cleaned)

    if len(rows) < _MIN_ROWS:
        return []
    return [Table(rows=rows)]


def extract_tables(
    buffer: bytes | None,
    settings: ExtractionSettings | None = None,
) -> TableExtraction:
    settings = settings or DEFAULT_SETTINGS
    out = TableExtraction()
    if not buffer:
        return out

    try:
        with open_pdf(buffer) as pdf:
            for page in pdf.pages:
                try:
                    tables = reconstruct_tables(page_runs(page), settings.line_y_tolerance)
                except Exception as exc:
                    logger.debug("page %s: table reconstruction failed: %s", page.page_number, exc)
                    tables = []
                out.pages.append(PageTables(page_number=page.page_number, tables=tables))
    except Exception as exc:
        logger.warning("could not read PDF for tables: %s", exc)

    return out


def table_to_csv(table: Table) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerows(table.rows)
    return buf.getvalue().rstrip("\n")


def table_to_html(table: Table) -> str:
    rows_html = "".join(
        "<tr>" + "".join(f"<td>{html.escape(cell)}</td>" for cell in row) + "</tr>"
        for row in table.rows
    )
    return f'<table border="1">{rows_html}</table>'


def tables_to_csv(pages: list[PageTables]) -> dict[int, list[str]]:
    """Page number -> one CSV string per table on that page."""
    return {p.page_number: [table_to_csv(t) for t in p.tables] for p in pages}


def tables_to_html(pages: list[PageTables]) -> dict[int, list[str]]:
    return {p.page_number: [table_to_html(t) for t in p.tables] for p in pages}
