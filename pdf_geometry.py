from __future__ import annotations

from collections.abc import Iterable

from pdf_models import RectBounds, RectRecord, TextFragment


def rect_bounds(rect: RectRecord) -> RectBounds:
    return RectBounds(
        left_x=rect.x,
        bottom_y=rect.y,
        right_x=rect.x + rect.w,
        top_y=rect.y + rect.h,
    )


def texts_in_bounds(
    texts: Iterable[TextFragment],
    bounds: RectBounds,
    top_offset: float = 0.0,
    bottom_offset: float = 0.0,
) -> list[TextFragment]:
    """Return the fragments whose anchor lies inside *bounds*, edges included.

    *top_offset* lowers the top edge and *bottom_offset* lowers the bottom
    edge, so a positive pair shifts the window down to follow text baselines
    that sit below a cell border.
    """
    return [
        t
        for t in texts
        if bounds.left_x <= t.x <= bounds.right_x
        and bounds.bottom_y - bottom_offset <= t.y <= bounds.top_y - top_offset
    ]


def round_to(value: float, places: int = 4) -> float:
    """Round half away from zero to *places* decimals, for use as a dict key."""
    multiplier = 10.0**places
    scaled = value * multiplier
    rounded = int(scaled + 0.5) if scaled >= 0 else -int(-scaled + 0.5)
    return rounded / multiplier
