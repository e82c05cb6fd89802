from __future__ import annotations

import logging
import re
from datetime import datetime
from zoneinfo import ZoneInfo

from pdf_geometry import rect_bounds, texts_in_bounds
from pdf_models import PDFElements
from timetable_errors import (
    HeaderRectNotFoundError,
    HeaderTextsNotFoundError,
    HeaderTextUnparseableError,
)
from timetable_models import Color, HeaderResult, TimetableHeader

log = logging.getLogger(__name__)

TIMEZONE = ZoneInfo("Europe/Paris")

_HEADER_RE = re.compile(
    r"Semaine (\d+) \((\d+)\) : du (\d\d/\d\d/\d\d\d\d) au (\d\d/\d\d/\d\d\d\d)"
)
_DATE_FORMAT = "%d/%m/%Y"


def parse_header_date(value: str) -> datetime:
    """Parse ``dd/mm/yyyy`` as midnight, Paris time."""
    return datetime.strptime(value, _DATE_FORMAT).replace(tzinfo=TIMEZONE)


def get_timetable_header(elements: PDFElements) -> HeaderResult:
    header_rect = next(
        (r for r in elements.rects if r.color == Color.HEADER.value),
        None,
    )
    if header_rect is None:
        raise HeaderRectNotFoundError()

    bounds = rect_bounds(header_rect)
    texts = texts_in_bounds(elements.texts, bounds)
    if not texts:
        raise HeaderTextsNotFoundError()

    text = texts[0].text
    m = _HEADER_RE.search(text)
    if m is None:
        raise HeaderTextUnparseableError(text)

    week, week_in_year, start, end = m.groups()
    try:
        start_date = parse_header_date(start)
        end_date = parse_header_date(end)
    except ValueError as exc:
        raise HeaderTextUnparseableError(text) from exc

    header = TimetableHeader(
        week_number=int(week),
        week_number_in_year=int(week_in_year),
        start_date=start_date,
        end_date=end_date,
    )
    log.debug("header: %s", header)
    return HeaderResult(header=header, bounds=bounds)
