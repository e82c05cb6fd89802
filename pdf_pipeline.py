"""Extract a weekly class timetable from a generator-produced PDF.

Pipeline:
  1. extract_elements        – interpret page 1's content stream into
                               positioned texts and filled rectangles
  2. get_timetable_header    – read the week header from the header-coloured cell
  3. get_timetable_timings   – map timing-ruler x positions to "HH:MM" labels
     get_timetable_groups    – map group-row y positions to (group, subgroup, day)
  4. get_timetable_lessons   – classify every lesson-coloured cell
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
import warnings
from collections.abc import Mapping

from course_codes import load_course_codes
from pdf_extract import DEFAULT_LEADING, PDFSource, extract_elements
from pdf_models import PDFElements
from timetable_errors import TimetableError
from timetable_grid import get_timetable_groups, get_timetable_timings
from timetable_header import get_timetable_header
from timetable_lessons import get_timetable_lessons
from timetable_models import (
    Lesson,
    LessonCM,
    LessonOther,
    LessonSAE,
    Timetable,
)
from timetable_sources import (
    TIMETABLE_LISTING_URL,
    TimetableYear,
    download_timetable,
    find_timetable_for_week,
    list_timetables,
)

log = logging.getLogger(__name__)

logging.getLogger("pdfminer").setLevel(logging.ERROR)
warnings.filterwarnings("ignore", module="pdfminer")


def parse_elements(
    elements: PDFElements,
    course_codes: Mapping[str, str] | None = None,
) -> Timetable:
    header = get_timetable_header(elements)
    timings = get_timetable_timings(elements, header.bounds)
    groups = get_timetable_groups(elements, header.bounds)
    lessons = get_timetable_lessons(elements, header, timings, groups, course_codes)
    return Timetable(header=header.header, lessons=tuple(lessons))


def parse_timetable(
    source: PDFSource,
    course_codes: Mapping[str, str] | None = None,
    leading: float = DEFAULT_LEADING,
) -> Timetable:
    """Parse the timetable on page 1 of *source* (bytes, path or binary file)."""
    elements = extract_elements(source, leading=leading)
    return parse_elements(elements, course_codes)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def timetable_to_dict(timetable: Timetable) -> dict:
    return dataclasses.asdict(timetable)


def _print_lesson(index: int, lesson: Lesson) -> None:
    v = lesson.variant
    print(f"\nLesson {index}:")
    print(
        f"  Time:    {lesson.start_date:%H:%M %d/%m/%Y} - {lesson.end_date:%H:%M %d/%m/%Y}"
    )
    print(f"  Type:    {v.type.value}")
    if isinstance(v, LessonOther):
        print(f"  Description: {v.description}")
    else:
        print(f"  Subject: {v.code}")
    print(f"  Teacher: {v.teacher}")
    print(f"  Room:    {v.room}")
    if isinstance(v, LessonSAE):
        print(f"  Group:   {v.group if v.group else 'All groups'}")
    elif not isinstance(v, (LessonCM, LessonOther)):
        print(f"  Group:   {v.group}")
    if not isinstance(v, LessonOther):
        print(f"  Lesson:  {v.course_name}")
    if isinstance(v, (LessonCM, LessonSAE)) and v.raw_lesson:
        print(f"  Label:   {v.raw_lesson}")


def print_timetable(timetable: Timetable) -> None:
    h = timetable.header
    print("=" * 64)
    print(
        f"Week {h.week_number} ({h.week_number_in_year}): "
        f"{h.start_date:%d/%m/%Y} - {h.end_date:%d/%m/%Y}"
    )
    print("=" * 64)
    if not timetable.lessons:
        print("No lessons found in the document.")
        return
    print(f"{len(timetable.lessons)} lessons")
    for i, lesson in enumerate(timetable.lessons, 1):
        _print_lesson(i, lesson)
    print()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extract the weekly class timetable from a timetable PDF.",
    )
    parser.add_argument("pdf", nargs="?", help="Path to the PDF file")
    parser.add_argument(
        "--year",
        choices=[y.value for y in TimetableYear],
        help="Fetch the published timetable for this year of study instead of a local file",
    )
    parser.add_argument(
        "--week",
        type=int, metavar="N",
        help="Week number to fetch (with --year)",
    )
    parser.add_argument(
        "--listing-url",
        default=TIMETABLE_LISTING_URL, metavar="URL",
        help=f"Directory listing root (default: {TIMETABLE_LISTING_URL})",
    )
    parser.add_argument(
        "--course-codes",
        metavar="FILE",
        help="JSON object mapping course codes to course names",
    )
    parser.add_argument(
        "--leading",
        type=float, default=DEFAULT_LEADING, metavar="N",
        help=f"Line advance used by T* and ' (default: {DEFAULT_LEADING:g})",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the timetable as JSON",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log skipped cells and interpreter details",
    )
    return parser


def _fetch_source(year: str, week: int, listing_url: str) -> bytes:
    entries = list_timetables(TimetableYear(year), base_url=listing_url)
    entry = find_timetable_for_week(week, entries)
    if entry is None:
        print(f"Error: no timetable published for {year} week {week}", file=sys.stderr)
        sys.exit(1)
    return download_timetable(entry)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.year:
        if args.week is None:
            parser.error("--year requires --week")
        source: PDFSource = _fetch_source(args.year, args.week, args.listing_url)
    elif args.pdf:
        source = args.pdf
    else:
        parser.error("a PDF path or --year/--week is required")

    course_codes = None
    if args.course_codes:
        course_codes = load_course_codes(args.course_codes)

    try:
        timetable = parse_timetable(source, course_codes=course_codes, leading=args.leading)
    except TimetableError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps(timetable_to_dict(timetable), indent=2, ensure_ascii=False, default=str))
    else:
        print_timetable(timetable)


if __name__ == "__main__":
    main()
