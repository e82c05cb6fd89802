"""Shared fixtures for the timetable test suite.

Documents are assembled in memory: ``make_pdf`` writes a minimal but valid
PDF (catalog, page tree, one page, optional Form XObjects and an xref table)
around a raw content stream, and ``layout`` describes a small timetable grid
both as ``PDFElements`` and as the content stream that draws it.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field

import pytest

from pdf_models import PDFElements, RectRecord, TextFragment
from timetable_models import Color

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)

TEST_COURSES = {
    "R1.01": "Initiation au développement",
    "R1.02": "Développement d'interfaces web",
    "R1.06": "Mathématiques discrètes",
    "S1.01": "Implémentation d'un besoin client",
    "S2.05": "Gestion d'un projet",
}

HEADER_TEXT = "Semaine 1 (36) : du 02/09/2024 au 07/09/2024"


# ---------------------------------------------------------------------------
# PDF assembly
# ---------------------------------------------------------------------------


def pdf_string(text: str) -> bytes:
    """Encode *text* as a PDF literal string operand."""
    escaped = text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
    return b"(" + escaped.encode("latin-1") + b")"


def rg(color: str) -> bytes:
    r, g, b = (int(color[i:i + 2], 16) / 255 for i in (1, 3, 5))
    return f"{r:.6f} {g:.6f} {b:.6f} rg\n".encode()


def build_pdf(
    content: bytes,
    forms: dict[str, tuple[bytes, list[str]]] | None = None,
    with_page: bool = True,
) -> bytes:
    """Return the bytes of a one-page PDF drawing *content*.

    *forms* maps an XObject name to ``(content, names it can invoke)``; every
    form is also reachable from the page resources.
    """
    forms = forms or {}
    form_ids = {name: 5 + i for i, name in enumerate(forms)}

    def xobject_dict(names: list[str]) -> bytes:
        refs = b" ".join(f"/{n} {form_ids[n]} 0 R".encode() for n in names)
        return b"<< /XObject << " + refs + b" >> >>"

    def stream_obj(extra: bytes, data: bytes) -> bytes:
        return (
            b"<< " + extra + f" /Length {len(data)} >>\nstream\n".encode()
            + data + b"\nendstream"
        )

    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        (b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>" if with_page
         else b"<< /Type /Pages /Kids [] /Count 0 >>"),
        # Without a page, object 3 must not look like one either: pdfminer
        # falls back to scanning the xref for /Type /Page dictionaries.
        (b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 842 595] /Contents 4 0 R"
         b" /Resources " + xobject_dict(list(forms)) + b" >>" if with_page
         else b"<< /Kind /Unused >>"),
        stream_obj(b"", content),
    ]
    for form_content, refs in forms.values():
        objects.append(
            stream_obj(
                b"/Type /XObject /Subtype /Form /BBox [0 0 842 595] /Resources "
                + xobject_dict(refs),
                form_content,
            )
        )

    out = bytearray(b"%PDF-1.4\n")
    offsets = []
    for num, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{num} 0 obj\n".encode() + body + b"\nendobj\n"

    xref_at = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for off in offsets:
        out += f"{off:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_at}\n%%EOF\n".encode()
    return bytes(out)


@pytest.fixture
def make_pdf():
    return build_pdf


# ---------------------------------------------------------------------------
# Timetable layout
# ---------------------------------------------------------------------------


@dataclass
class Layout:
    rects: list[RectRecord] = field(default_factory=list)
    texts: list[TextFragment] = field(default_factory=list)

    def rect(self, x: float, y: float, w: float, h: float, color: Color) -> None:
        self.rects.append(RectRecord(x, y, w, h, color.value))

    def text(self, x: float, y: float, text: str) -> None:
        self.texts.append(TextFragment(x, y, text))

    def without_rect(self, x: float, y: float, color: Color) -> Layout:
        kept = [r for r in self.rects if not (r.x == x and r.y == y and r.color == color.value)]
        return Layout(kept, list(self.texts))

    def elements(self) -> PDFElements:
        return PDFElements(texts=tuple(self.texts), rects=tuple(self.rects))

    def content(self) -> bytes:
        """Content stream drawing the layout with closed paths and Tm-placed text."""
        out = bytearray()
        for r in self.rects:
            out += rg(r.color)
            out += (
                f"{r.x:g} {r.y:g} m {r.x + r.w:g} {r.y:g} l {r.x + r.w:g} {r.y + r.h:g} l "
                f"{r.x:g} {r.y + r.h:g} l h f\n"
            ).encode()
        for t in self.texts:
            out += f"BT 1 0 0 1 {t.x:g} {t.y:g} Tm ".encode() + pdf_string(t.text) + b" Tj ET\n"
        return bytes(out)


def build_layout() -> Layout:
    """Monday grid with groups G1/G2, timings 08:00 .. 14:00 and five lessons.

    Header spans y 500-520; timing rulers sit right below it (480-500). The
    LUNDI cell covers 300-480 and the group rows G1 (420-480), G2 (360-420).
    Group keys: 420 -> G1A, 510 -> G1B, 360 -> G2A, 450 -> G2B.
    """
    lay = Layout()
    lay.rect(0, 500, 800, 20, Color.HEADER)
    lay.text(10, 505, HEADER_TEXT)

    for x, label in ((100, "08:00"), (150, "09:30"), (200, "11:00"), (250, "12:30"), (300, "14:00")):
        lay.rect(x, 480, 50, 20, Color.RULERS)
        lay.text(x + 5, 488, label)

    lay.rect(1, 300, 49, 180, Color.RULERS)
    lay.text(5, 390, "LUNDI")
    lay.rect(50, 420, 50, 60, Color.RULERS)
    lay.text(55, 450, "G1")
    lay.rect(50, 360, 50, 60, Color.RULERS)
    lay.text(55, 390, "G2")

    # CM, G1A, 08:00-09:30
    lay.rect(100, 420, 50, 60, Color.CM)
    lay.text(102, 465, "S1.01")
    lay.text(102, 455, "Amphi A -")
    lay.text(102, 445, "Dupont")
    lay.text(102, 435, "Amphi A")

    # TP, G2A, 09:30-11:00
    lay.rect(150, 360, 50, 30, Color.TP)
    lay.text(152, 380, "R1.01 - Martin - B204")

    # TD, G1, 11:00-12:30
    lay.rect(200, 420, 50, 60, Color.TD)
    lay.text(202, 465, "R1.02-Durand-C101")

    # DS, G2, 11:00-12:30
    lay.rect(200, 360, 50, 60, Color.DS)
    lay.text(202, 400, "R1.06 - Leroy - Amphi B")

    # SAE spanning G2A up to G1, 12:30-14:00
    lay.rect(250, 360, 50, 120, Color.SAE)
    lay.text(252, 420, "S1.01 - Dupont - Salle 1")
    return lay


@pytest.fixture
def layout() -> Layout:
    return build_layout()


@pytest.fixture
def courses() -> dict[str, str]:
    return dict(TEST_COURSES)
