"""Rebuild the time axis and the day/group axis of the timetable grid.

Layout of the generator's page (y grows upward, as in PDF user space)::

    --------------------------------------------------------------
    |                           HEADER                           |
    --------------------------------------------------------------
    ^ header.left_x  | 08:00 | 09:30 | 11:00 | ...   < timing rulers,
                                                     top == header bottom
     |       | G1 |                                              |
     | LUNDI | G2 |                                              |
     |       | G3 |                                              |
     |-------|----|----------------------------------------------|
     ^ day cell at header.left_x + 1
             ^ group rows start at the day cell's right edge
"""

from __future__ import annotations

import logging

from pdf_geometry import rect_bounds, round_to, texts_in_bounds
from pdf_models import PDFElements, RectBounds
from timetable_models import Color, GroupTable, SubGroup, TimetableGroup, TimingTable, Weekday

log = logging.getLogger(__name__)

# Day cells sit one unit to the right of the header's left edge.
DAY_CELL_INDENT = 1.0


def get_timetable_timings(elements: PDFElements, header: RectBounds) -> TimingTable:
    """Map the left x of each timing ruler to its label, e.g. ``{120.5: "13:30"}``."""
    timings: TimingTable = {}
    for rect in elements.rects:
        if rect.color != Color.RULERS.value:
            continue
        bounds = rect_bounds(rect)
        if bounds.top_y != header.bottom_y:
            continue

        texts = texts_in_bounds(elements.texts, bounds)
        label = next((t.text.strip() for t in texts if t.text.strip()), None)
        if label is None:
            log.debug("timing ruler at x=%s has no label", rect.x)
            continue
        timings[rect.x] = label

    log.debug("timings: %s", timings)
    return timings


def get_timetable_groups(elements: PDFElements, header: RectBounds) -> GroupTable:
    """Map rounded bottom y values of lesson cells to the group row they belong to.

    Every group row is split in two halves: subgroup A is keyed by the row's
    bottom edge, subgroup B by its top edge plus half the row height.
    """
    rulers = [r for r in elements.rects if r.color == Color.RULERS.value]
    days = [r for r in rulers if r.x == header.left_x + DAY_CELL_INDENT]

    groups: GroupTable = {}
    for day_rect in days:
        day_bounds = rect_bounds(day_rect)
        day_texts = texts_in_bounds(elements.texts, day_bounds)
        if not day_texts:
            continue
        day = Weekday.from_french(day_texts[0].text)
        if day is None:
            log.debug("skipping day cell with text %r", day_texts[0].text)
            continue

        for rect in rulers:
            bounds = rect_bounds(rect)
            within_day = bounds.top_y <= day_bounds.top_y and bounds.bottom_y >= day_bounds.bottom_y
            if not within_day or bounds.left_x != day_bounds.right_x:
                continue

            texts = texts_in_bounds(elements.texts, bounds)
            if not texts:
                continue
            main = _parse_group_number(texts[0].text)
            if main is None:
                log.debug("skipping group row with text %r", texts[0].text)
                continue

            groups[round_to(bounds.bottom_y, 4)] = TimetableGroup(main, SubGroup.A, day)
            groups[round_to(bounds.top_y + rect.h / 2, 4)] = TimetableGroup(main, SubGroup.B, day)

    log.debug("groups: %s entries", len(groups))
    return groups


def _parse_group_number(text: str) -> int | None:
    """``"G2"`` -> 2: the group number is the second character."""
    if len(text) < 2 or text[1] not in "0123456789":
        return None
    return int(text[1])
