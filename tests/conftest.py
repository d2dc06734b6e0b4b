from __future__ import annotations

import pytest

PAGE_WIDTH = 612
PAGE_HEIGHT = 792


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(pages: list[list[tuple[float, float, str]]], font_size: int = 12) -> bytes:
    """Write a minimal PDF; each page is a list of (x, y, text) placed in Helvetica."""
    page_ids = [4 + 2 * i for i in range(len(pages))]
    kids = " ".join(f"{pid} 0 R" for pid in page_ids)
    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(pages)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica /Encoding /WinAnsiEncoding >>",
    ]
    for i, items in enumerate(pages):
        content = "\n".join(
            f"BT /F1 {font_size} Tf {x:.2f} {y:.2f} Td ({_escape(text)}) Tj ET"
            for x, y, text in items
        ).encode("latin-1")
        objects.append(
            (
                f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {PAGE_WIDTH} {PAGE_HEIGHT}] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {5 + 2 * i} 0 R >>"
            ).encode()
        )
        objects.append(b"<< /Length %d >>\nstream\n" % len(content) + content + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets: list[int] = []
    for num, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{num} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += f"{off:010d} 00000 n \n".encode()
    out += (
        f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\n"
        f"startxref\n{xref_at}\n%%EOF\n"
    ).encode()
    return bytes(out)


def text_lines(lines: list[str], x: float = 72, top: float = 740, leading: float = 16) -> list[tuple[float, float, str]]:
    return [(x, top - i * leading, line) for i, line in enumerate(lines)]


@pytest.fixture
def textbook_pdf() -> bytes:
    """Three pages: an introduction, Unit 2 and Unit 3."""
    return make_pdf(
        [
            text_lines(["Biology for Schools", "Introduction", "This book is organised into units."]),
            text_lines(
                [
                    "Unit 2",
                    "2.1 Overview",
                    "Photosynthesis converts light into chemical energy.",
                    "Plants store the energy as sugar.",
                ]
            ),
            text_lines(["Unit 3", "3.1 Respiration", "Cells release stored energy."]),
        ]
    )


@pytest.fixture
def table_pdf() -> bytes:
    return make_pdf(
        [
            [
                (72, 700, "Name"),
                (300, 700, "Score"),
                (73, 680, "Alice"),
                (301, 680, "91"),
                (74, 660, "Bob"),
                (302, 660, "78"),
            ]
        ]
    )


@pytest.fixture
def blank_pdf() -> bytes:
    return make_pdf([[]])
