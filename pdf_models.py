from __future__ import annotations

from dataclasses import dataclass

TextMatrix = tuple[float, float, float, float, float, float]


@dataclass(frozen=True)
class TextFragment:
    """A decoded show-text operand anchored at the text matrix origin."""

    x: float
    y: float
    text: str


@dataclass(frozen=True)
class RectRecord:
    """An axis-aligned rectangle with the fill colour active when it was drawn."""

    x: float
    y: float
    w: float
    h: float
    color: str | None = None


@dataclass(frozen=True)
class RectBounds:
    left_x: float
    bottom_y: float
    right_x: float
    top_y: float


@dataclass(frozen=True)
class PDFElements:
    """Everything the interpreter found on page 1, in content-stream order."""

    texts: tuple[TextFragment, ...]
    rects: tuple[RectRecord, ...]


@dataclass
class GraphicsState:
    """Per-scan state threaded through the operator handlers."""

    text_matrix: TextMatrix | None = None
    fill_color: str | None = None

    def copy(self) -> GraphicsState:
        return GraphicsState(self.text_matrix, self.fill_color)
