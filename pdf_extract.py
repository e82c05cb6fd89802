"""Content-stream interpreter for the first page of a timetable PDF.

pdfplumber opens the document and hands over the pdfminer page object; the
page's content stream is then tokenised with pdfminer's ``PDFContentParser``
and every operator keyword is dispatched to a handler from a fixed table.

Only the operators that matter for the timetable layout are interpreted:
rectangles and simple paths (to recover filled cells), the RGB fill colour,
text positioning and show-text operators. Form XObjects are followed through
an explicit work list so nesting depth never grows the Python stack, and a
visited set stops self-referencing forms from looping.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO

import pdfplumber
from pdfminer.pdfinterp import PDFContentParser
from pdfminer.pdftypes import PDFStream, resolve1
from pdfminer.psparser import PSEOF, PSException, PSKeyword, PSLiteral, literal_name

from pdf_models import GraphicsState, PDFElements, RectRecord, TextFragment, TextMatrix
from timetable_errors import DocumentOpenError, MissingFirstPageError, ScanFailedError

log = logging.getLogger(__name__)

PDFSource = bytes | str | Path | BinaryIO

# The generator never emits TL, so T* and ' advance by this fixed amount.
DEFAULT_LEADING = 14.0

TEXT_ENCODINGS = ("utf-8", "latin-1", "cp1252", "ascii")

IDENTITY_MATRIX: TextMatrix = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

FILL_OPERATORS = frozenset({b"f", b"F", b"f*", b"B", b"B*", b"b", b"b*"})

OPERATORS = FILL_OPERATORS | frozenset(
    {
        b"re", b"m", b"l", b"h", b"n",
        b"rg",
        b"BT", b"Tm", b"Td", b"TD", b"TL", b"T*",
        b"Tj", b"TJ", b"'", b'"',
        b"Do",
    }
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """Convert an RGB triple in [0, 1] to ``#RRGGBB``."""
    channels = [min(255, max(0, int(round(c * 255)))) for c in (r, g, b)]
    return "#{:02X}{:02X}{:02X}".format(*channels)


def decode_text(data: bytes) -> str | None:
    """Decode a PDF string with the first encoding that accepts it."""
    for encoding in TEXT_ENCODINGS:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError:
            continue
    return None


# ---------------------------------------------------------------------------
# Path tracking
# ---------------------------------------------------------------------------


@dataclass
class Subpath:
    points: list[tuple[float, float]] = field(default_factory=list)
    closed: bool = False


def subpath_to_rect(points: list[tuple[float, float]], color: str | None) -> RectRecord | None:
    """Return the rectangle spanned by *points*, or None if they are not one.

    A subpath counts as an axis-aligned rectangle when it has at least four
    points that project onto exactly two x values and two y values.
    """
    if len(points) < 4:
        return None
    xs = {p[0] for p in points}
    ys = {p[1] for p in points}
    if len(xs) != 2 or len(ys) != 2:
        return None
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)
    return RectRecord(x=min_x, y=min_y, w=max_x - min_x, h=max_y - min_y, color=color)


class PathTracker:
    """Accumulates m/l/h/re subpaths until a painting operator consumes them."""

    def __init__(self) -> None:
        self.current = Subpath()
        self.subpaths: list[Subpath] = []

    def move_to(self, x: float, y: float) -> None:
        if self.current.points:
            self.subpaths.append(self.current)
        self.current = Subpath(points=[(x, y)])

    def line_to(self, x: float, y: float) -> None:
        self.current.points.append((x, y))

    def close(self) -> None:
        self.current.closed = True

    def finish_subpaths(self) -> None:
        if self.current.points:
            self.subpaths.append(self.current)
        self.current = Subpath()

    def reset(self) -> None:
        self.current = Subpath()
        self.subpaths = []

    def capture_rectangles(self, fill_color: str | None) -> list[RectRecord]:
        self.finish_subpaths()
        rects = []
        for subpath in self.subpaths:
            rect = subpath_to_rect(subpath.points, fill_color)
            if rect is not None:
                rects.append(rect)
        self.reset()
        return rects


# ---------------------------------------------------------------------------
# Scan context
# ---------------------------------------------------------------------------


@dataclass
class WorkItem:
    """A content stream waiting to be scanned, with the state it starts from."""

    key: Any
    streams: list[Any]
    resources: dict[str, Any]
    saved_state: GraphicsState


class OperandError(ValueError):
    """An operator found too few operands, or one of the wrong type.

    Only the offending operator is dropped; the scan carries on.
    """


class ScanContext:
    """Mutable state of one interpretation pass, handed to every operator handler."""

    def __init__(self, leading: float = DEFAULT_LEADING) -> None:
        self.leading = leading
        self.state = GraphicsState()
        self.texts: list[TextFragment] = []
        self.rects: list[RectRecord] = []
        self.operands: list[Any] = []
        self.paths = PathTracker()
        self.worklist: list[WorkItem] = []
        self.visited: set[Any] = set()
        self.resources: dict[str, Any] = {}

    # -- operand stack -----------------------------------------------------

    def pop(self, operator: bytes) -> Any:
        if not self.operands:
            raise OperandError(f"missing operand for {operator.decode('latin-1')!r}")
        return self.operands.pop()

    def pop_number(self, operator: bytes) -> float:
        value = self.pop(operator)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise OperandError(
                f"expected a number for {operator.decode('latin-1')!r}, got {value!r}"
            )
        return float(value)

    def pop_string(self, operator: bytes) -> bytes:
        value = self.pop(operator)
        if not isinstance(value, bytes):
            raise OperandError(
                f"expected a string for {operator.decode('latin-1')!r}, got {value!r}"
            )
        return value

    def pop_array(self, operator: bytes) -> list[Any]:
        value = self.pop(operator)
        if not isinstance(value, list):
            raise OperandError(
                f"expected an array for {operator.decode('latin-1')!r}, got {value!r}"
            )
        return value

    def pop_name(self, operator: bytes) -> str:
        value = self.pop(operator)
        if not isinstance(value, PSLiteral):
            raise OperandError(
                f"expected a name for {operator.decode('latin-1')!r}, got {value!r}"
            )
        return literal_name(value)

    # -- text --------------------------------------------------------------

    def translate_text(self, tx: float, ty: float) -> None:
        a, b, c, d, e, f = self.state.text_matrix or IDENTITY_MATRIX
        self.state.text_matrix = (a, b, c, d, e + tx, f + ty)

    def next_line(self) -> None:
        if self.state.text_matrix is not None:
            a, b, c, d, e, f = self.state.text_matrix
            self.state.text_matrix = (a, b, c, d, e, f - self.leading)

    def show_text(self, text: str) -> None:
        if not text:
            return
        # Glyph space origin is (0, 0), so only the translation survives.
        if self.state.text_matrix is None:
            x = y = 0.0
        else:
            x, y = self.state.text_matrix[4], self.state.text_matrix[5]
        self.texts.append(TextFragment(x=x, y=y, text=text))


OperatorHandler = Callable[[ScanContext], None]


# ---------------------------------------------------------------------------
# Operator handlers (operands are popped in reverse order)
# ---------------------------------------------------------------------------


def _op_re(ctx: ScanContext) -> None:
    h = ctx.pop_number(b"re")
    w = ctx.pop_number(b"re")
    y = ctx.pop_number(b"re")
    x = ctx.pop_number(b"re")
    ctx.rects.append(RectRecord(x=x, y=y, w=w, h=h, color=ctx.state.fill_color))
    ctx.paths.move_to(x, y)
    ctx.paths.line_to(x + w, y)
    ctx.paths.line_to(x + w, y + h)
    ctx.paths.line_to(x, y + h)
    ctx.paths.close()


def _op_m(ctx: ScanContext) -> None:
    y = ctx.pop_number(b"m")
    x = ctx.pop_number(b"m")
    ctx.paths.move_to(x, y)


def _op_l(ctx: ScanContext) -> None:
    y = ctx.pop_number(b"l")
    x = ctx.pop_number(b"l")
    ctx.paths.line_to(x, y)


def _op_h(ctx: ScanContext) -> None:
    ctx.paths.close()


def _op_fill(ctx: ScanContext) -> None:
    ctx.rects.extend(ctx.paths.capture_rectangles(ctx.state.fill_color))


def _op_n(ctx: ScanContext) -> None:
    ctx.paths.reset()


def _op_rg(ctx: ScanContext) -> None:
    b = ctx.pop_number(b"rg")
    g = ctx.pop_number(b"rg")
    r = ctx.pop_number(b"rg")
    ctx.state.fill_color = rgb_to_hex(r, g, b)


def _op_BT(ctx: ScanContext) -> None:
    ctx.state.text_matrix = IDENTITY_MATRIX


def _op_Tm(ctx: ScanContext) -> None:
    f = ctx.pop_number(b"Tm")
    e = ctx.pop_number(b"Tm")
    d = ctx.pop_number(b"Tm")
    c = ctx.pop_number(b"Tm")
    b = ctx.pop_number(b"Tm")
    a = ctx.pop_number(b"Tm")
    ctx.state.text_matrix = (a, b, c, d, e, f)


def _op_Td(ctx: ScanContext) -> None:
    ty = ctx.pop_number(b"Td")
    tx = ctx.pop_number(b"Td")
    ctx.translate_text(tx, ty)


def _op_TD(ctx: ScanContext) -> None:
    ty = ctx.pop_number(b"TD")
    tx = ctx.pop_number(b"TD")
    ctx.translate_text(tx, ty)


def _op_TL(ctx: ScanContext) -> None:
    ctx.pop_number(b"TL")


def _op_T_star(ctx: ScanContext) -> None:
    ctx.next_line()


def _op_Tj(ctx: ScanContext) -> None:
    text = decode_text(ctx.pop_string(b"Tj"))
    if text is not None:
        ctx.show_text(text)


def _op_TJ(ctx: ScanContext) -> None:
    parts = []
    for item in ctx.pop_array(b"TJ"):
        if isinstance(item, bytes):
            part = decode_text(item)
            if part is not None:
                parts.append(part)
    ctx.show_text("".join(parts))


def _op_quote(ctx: ScanContext) -> None:
    data = ctx.pop_string(b"'")
    ctx.next_line()
    text = decode_text(data)
    if text is not None:
        ctx.show_text(text)


def _op_double_quote(ctx: ScanContext) -> None:
    data = ctx.pop_string(b'"')
    ctx.pop_number(b'"')
    ctx.pop_number(b'"')
    ctx.next_line()
    text = decode_text(data)
    if text is not None:
        ctx.show_text(text)


def _op_Do(ctx: ScanContext) -> None:
    name = ctx.pop_name(b"Do")
    xobjects = resolve1(ctx.resources.get("XObject"))
    if not isinstance(xobjects, dict):
        return
    stream = resolve1(xobjects.get(name))
    if not isinstance(stream, PDFStream):
        return
    subtype = resolve1(stream.get("Subtype"))
    if not isinstance(subtype, PSLiteral) or literal_name(subtype) != "Form":
        return

    key = stream.objid if stream.objid is not None else id(stream)
    if key in ctx.visited:
        log.debug("Do %s: form already scanned, skipping", name)
        return

    resources = resolve1(stream.get("Resources"))
    if not isinstance(resources, dict):
        resources = ctx.resources
    ctx.worklist.append(
        WorkItem(key=key, streams=[stream], resources=resources, saved_state=ctx.state.copy())
    )
    log.debug("Do %s: form queued", name)


def build_operator_table() -> dict[bytes, OperatorHandler]:
    table: dict[bytes, OperatorHandler] = {
        b"re": _op_re,
        b"m": _op_m,
        b"l": _op_l,
        b"h": _op_h,
        b"n": _op_n,
        b"rg": _op_rg,
        b"BT": _op_BT,
        b"Tm": _op_Tm,
        b"Td": _op_Td,
        b"TD": _op_TD,
        b"TL": _op_TL,
        b"T*": _op_T_star,
        b"Tj": _op_Tj,
        b"TJ": _op_TJ,
        b"'": _op_quote,
        b'"': _op_double_quote,
        b"Do": _op_Do,
    }
    for op in FILL_OPERATORS:
        table[op] = _op_fill

    if table.keys() != OPERATORS:
        missing = sorted(OPERATORS - table.keys())
        extra = sorted(table.keys() - OPERATORS)
        raise RuntimeError(f"operator table mismatch: missing={missing} extra={extra}")
    return table


# ---------------------------------------------------------------------------
# Interpreter
# ---------------------------------------------------------------------------


class ContentInterpreter:
    """Turns page 1 of a PDF into a flat :class:`PDFElements`.

    An instance holds no per-document state, so it can be reused and shared;
    every call to :meth:`extract` or :meth:`interpret_page` builds a fresh
    :class:`ScanContext`.
    """

    def __init__(self, leading: float = DEFAULT_LEADING) -> None:
        self.leading = leading
        self.operators = build_operator_table()

    def extract(self, source: PDFSource) -> PDFElements:
        label = _describe(source)
        fp: Any = io.BytesIO(source) if isinstance(source, bytes) else source
        try:
            pdf = pdfplumber.open(fp)
        except Exception as exc:
            raise DocumentOpenError(label, str(exc)) from exc

        with pdf:
            try:
                pages = pdf.pages
            except Exception as exc:
                raise DocumentOpenError(label, str(exc)) from exc
            if not pages:
                raise MissingFirstPageError()
            page = pages[0].page_obj
            elements = self.interpret_page(page.contents, page.resources or {})

        log.info(
            "%s: extracted texts=%s rects=%s",
            label,
            len(elements.texts),
            len(elements.rects),
        )
        return elements

    def interpret_page(self, contents: list[Any], resources: dict[str, Any]) -> PDFElements:
        ctx = ScanContext(self.leading)
        ctx.worklist.append(
            WorkItem(key="page", streams=list(contents), resources=resources, saved_state=ctx.state)
        )

        while ctx.worklist:
            item = ctx.worklist.pop()
            if item.key in ctx.visited:
                continue
            ctx.visited.add(item.key)
            ctx.state = item.saved_state.copy()
            ctx.resources = item.resources
            self._scan(ctx, item.streams)

        return PDFElements(texts=tuple(ctx.texts), rects=tuple(ctx.rects))

    def _scan(self, ctx: ScanContext, streams: list[Any]) -> None:
        ctx.operands = []
        ctx.paths.reset()
        try:
            parser = PDFContentParser(streams)
            while True:
                try:
                    _, obj = parser.nextobject()
                except PSEOF:
                    break
                if isinstance(obj, PSKeyword):
                    handler = self.operators.get(obj.name)
                    if handler is not None:
                        try:
                            handler(ctx)
                        except OperandError as exc:
                            log.debug("ignoring malformed operator: %s", exc)
                    ctx.operands.clear()
                else:
                    ctx.operands.append(obj)
        except PSException as exc:
            raise ScanFailedError(str(exc) or type(exc).__name__) from exc


def extract_elements(source: PDFSource, leading: float = DEFAULT_LEADING) -> PDFElements:
    """Interpret page 1 of *source* (bytes, path or binary file object)."""
    return ContentInterpreter(leading).extract(source)


def _describe(source: PDFSource) -> str:
    if isinstance(source, bytes):
        return f"<{len(source)} bytes>"
    if isinstance(source, (str, Path)):
        return str(source)
    return getattr(source, "name", "<stream>")
