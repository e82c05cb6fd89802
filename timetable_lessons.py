from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, datetime

from course_codes import BUT_INFO_COURSES
from pdf_geometry import rect_bounds, round_to, texts_in_bounds
from pdf_models import PDFElements, RectBounds
from timetable_errors import UnknownCourseCodeError
from timetable_header import TIMEZONE
from timetable_models import (
    LESSON_COLORS,
    Color,
    GroupTable,
    HeaderResult,
    Lesson,
    LessonCM,
    LessonDS,
    LessonGroup,
    LessonOther,
    LessonSAE,
    LessonTD,
    LessonTP,
    LessonVariant,
    TimetableGroup,
    TimingTable,
    Weekday,
)

log = logging.getLogger(__name__)

# Text baselines sit below the top border of a cell and may hang below its
# bottom edge; these shift the capture window accordingly.
_CM_TOP_OFFSET = 6.0
_TOP_OFFSET = 4.0
_BOTTOM_OFFSET = 6.0

# Margin used when looking for other group rows inside an SAE cell.
_SAE_GROUP_MARGIN = 2.0


def lesson_datetime(time_label: str, base_date: datetime, weekday: Weekday) -> datetime | None:
    """Combine ``"13:30"`` with the ISO week of *base_date* and *weekday*."""
    parts = time_label.split(":")
    if len(parts) != 2:
        return None
    try:
        hour, minute = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    if not (0 <= hour < 24 and 0 <= minute < 60):
        return None

    iso_year, iso_week, _ = base_date.isocalendar()
    day = date.fromisocalendar(iso_year, iso_week, weekday.iso)
    return datetime(
        day.year, day.month, day.day, hour, minute, tzinfo=base_date.tzinfo or TIMEZONE
    )


def remove_duplicate_codes(code: str) -> str:
    """``"R1.01 R1.01"`` -> ``"R1.01"``, keeping first occurrences in order."""
    return " ".join(dict.fromkeys(code.split()))


def _course_name(code: str, course_codes: Mapping[str, str]) -> str:
    try:
        return course_codes[code]
    except KeyError:
        raise UnknownCourseCodeError(code) from None


def _split_parts(text: str, separator: str) -> list[str]:
    """Split on *separator*, dropping empty pieces but keeping blank ones as ``""``.

    ``"R1.02 -   - C101"`` gives ``["R1.02", "", "C101"]``: an unassigned
    teacher still leaves the code and the room in place.
    """
    return [p.strip() for p in text.split(separator) if p]


def _pop_room_and_teacher(texts: list[str]) -> tuple[str, str] | None:
    """Pop the room (last) and teacher (before it) off *texts*.

    The generator sometimes repeats the room on two lines; in that case the
    teacher is one line further up.
    """
    if not texts:
        return None
    room = texts.pop()
    teacher = texts.pop() if texts else None
    if teacher == room:
        teacher = texts.pop() if texts else None
    if teacher is None:
        return None
    return room, teacher


# ---------------------------------------------------------------------------
# Per-colour segmentation
# ---------------------------------------------------------------------------


def _build_cm(texts: list[str], course_codes: Mapping[str, str]) -> LessonVariant | None:
    if not texts:
        return None
    first, *rest = texts
    code_part, _, after = first.partition(" -")
    code = remove_duplicate_codes(code_part.strip())
    label_head = [after.strip()] if after.strip() else []

    popped = _pop_room_and_teacher(rest)
    if popped is None:
        return None
    room, teacher = popped

    return LessonCM(
        code=code,
        raw_lesson=" ".join(label_head + rest),
        course_name=_course_name(code, course_codes),
        teacher=teacher,
        room=room,
    )


def _build_grouped(
    color: str,
    texts: list[str],
    group: TimetableGroup,
    course_codes: Mapping[str, str],
) -> LessonVariant | None:
    if not texts:
        return None

    if color == Color.TP.value:
        parts = _split_parts(texts[0], " - ")
    else:
        parts = _split_parts(texts[0], "-")
    if len(parts) < 3:
        return None
    code, teacher, room = parts[0], parts[1], parts[2]
    course_name = _course_name(code, course_codes)

    if color == Color.TP.value:
        return LessonTP(
            group=LessonGroup(group.main, group.sub),
            code=code,
            teacher=teacher,
            course_name=course_name,
            room=room,
        )
    cls = LessonTD if color == Color.TD.value else LessonDS
    return cls(
        group=LessonGroup(group.main),
        code=code,
        teacher=teacher,
        course_name=course_name,
        room=room,
    )


def _groups_inside(bounds: RectBounds, groups: GroupTable) -> int:
    low = bounds.bottom_y + _SAE_GROUP_MARGIN
    high = bounds.top_y - _SAE_GROUP_MARGIN
    return sum(1 for y in groups if low < y < high)


def _build_sae(
    texts: list[str],
    bounds: RectBounds,
    group: TimetableGroup,
    groups: GroupTable,
    course_codes: Mapping[str, str],
) -> LessonVariant | None:
    if len(texts) == 1:
        parts = _split_parts(texts[0], " - ")
        if len(parts) < 3:
            return None
        code, teacher, room = parts[0], parts[1], parts[2]
        # A cell covering other group rows is shared by both subgroups.
        sub = group.sub if _groups_inside(bounds, groups) == 0 else None
        return LessonSAE(
            group=LessonGroup(group.main, sub),
            code=code,
            teacher=teacher,
            course_name=_course_name(code, course_codes),
            raw_lesson=None,
            room=room,
        )

    remaining = list(texts)
    popped = _pop_room_and_teacher(remaining)
    if popped is None:
        return None
    room, teacher = popped

    description = " ".join(remaining)
    if not description:
        return None

    first_word = description.split(maxsplit=1)[0]
    course_name = course_codes.get(first_word)
    if course_name is None:
        return LessonOther(description=description, teacher=teacher, room=room)

    _, sep, label = description.partition(" - ")
    return LessonSAE(
        group=None,
        code=first_word,
        teacher=teacher,
        course_name=course_name,
        raw_lesson=label if sep else "",
        room=room,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def get_timetable_lessons(
    elements: PDFElements,
    header: HeaderResult,
    timings: TimingTable,
    groups: GroupTable,
    course_codes: Mapping[str, str] | None = None,
) -> list[Lesson]:
    """Classify every lesson-coloured rectangle into a :class:`Lesson`.

    Rectangles that do not line up with the timing or group rulers, or whose
    text does not fit their colour's layout, are skipped. A course code
    missing from *course_codes* raises :class:`UnknownCourseCodeError`,
    except for multi-line SAE cells which fall back to :class:`LessonOther`.
    """
    if course_codes is None:
        course_codes = BUT_INFO_COURSES

    base_date = header.header.start_date
    lessons: list[Lesson] = []
    skipped = 0

    for rect in elements.rects:
        color = rect.color
        if color not in LESSON_COLORS:
            continue

        bounds = rect_bounds(rect)
        contained = texts_in_bounds(
            elements.texts,
            bounds,
            top_offset=_CM_TOP_OFFSET if color == Color.CM.value else _TOP_OFFSET,
            bottom_offset=_BOTTOM_OFFSET,
        )
        texts = [t.text.strip() for t in contained if t.text.strip()]

        group = groups.get(round_to(bounds.bottom_y, 4))
        start_label = timings.get(bounds.left_x)
        end_label = timings.get(bounds.right_x)
        if group is None or start_label is None or end_label is None:
            log.debug(
                "skipping %s cell at (%s, %s): group=%s start=%s end=%s",
                color, rect.x, rect.y, group, start_label, end_label,
            )
            skipped += 1
            continue

        start_date = lesson_datetime(start_label, base_date, group.day)
        end_date = lesson_datetime(end_label, base_date, group.day)
        if start_date is None or end_date is None:
            log.debug("skipping %s cell: bad timing %r-%r", color, start_label, end_label)
            skipped += 1
            continue

        if color == Color.CM.value:
            variant = _build_cm(texts, course_codes)
        elif color == Color.SAE.value:
            variant = _build_sae(texts, bounds, group, groups, course_codes)
        else:
            variant = _build_grouped(color, texts, group, course_codes)

        if variant is None:
            log.debug("skipping %s cell with texts %r", color, texts)
            skipped += 1
            continue

        lessons.append(Lesson(start_date=start_date, end_date=end_date, variant=variant))

    log.info("lessons: classified=%s skipped=%s", len(lessons), skipped)
    return lessons
