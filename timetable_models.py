from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum

from pdf_models import RectBounds


class Color(str, Enum):
    """Fill colours used by the timetable generator."""

    HEADER = "#64CCFF"
    RULERS = "#FFFFA7"
    CM = "#FFFF0C"
    TD = "#FFBAB3"
    TP = "#B3FFFF"
    DS = "#F23EA7"
    SAE = "#9FFF9F"


LESSON_COLORS = frozenset(
    {Color.CM.value, Color.TD.value, Color.TP.value, Color.DS.value, Color.SAE.value}
)


class Weekday(IntEnum):
    """Day of the week, numbered from Sunday = 1."""

    MONDAY = 2
    TUESDAY = 3
    WEDNESDAY = 4
    THURSDAY = 5
    FRIDAY = 6
    SATURDAY = 7

    @classmethod
    def from_french(cls, name: str) -> Weekday | None:
        return _FRENCH_DAYS.get(name.strip().lower())

    @property
    def iso(self) -> int:
        return self.value - 1


_FRENCH_DAYS = {
    "lundi": Weekday.MONDAY,
    "mardi": Weekday.TUESDAY,
    "mercredi": Weekday.WEDNESDAY,
    "jeudi": Weekday.THURSDAY,
    "vendredi": Weekday.FRIDAY,
    "samedi": Weekday.SATURDAY,
}


class SubGroup(str, Enum):
    A = "A"
    B = "B"


class LessonType(str, Enum):
    CM = "CM"
    TP = "TP"
    TD = "TD"
    DS = "DS"
    SAE = "SAE"
    OTHER = "OTHER"


@dataclass(frozen=True)
class TimetableHeader:
    week_number: int
    week_number_in_year: int
    start_date: datetime
    end_date: datetime


@dataclass(frozen=True)
class HeaderResult:
    """The parsed header plus the bounds later stages anchor on."""

    header: TimetableHeader
    bounds: RectBounds


@dataclass(frozen=True)
class TimetableGroup:
    """Row of the grid: G1A on Monday is ``TimetableGroup(1, SubGroup.A, MONDAY)``."""

    main: int
    sub: SubGroup
    day: Weekday


TimingTable = dict[float, str]
GroupTable = dict[float, TimetableGroup]


@dataclass(frozen=True)
class LessonGroup:
    """Audience of a lesson; ``sub=None`` means every subgroup of *main*."""

    main: int
    sub: SubGroup | None = None

    def __str__(self) -> str:
        return f"G{self.main}{self.sub.value if self.sub else ''}"


@dataclass(frozen=True)
class LessonCM:
    code: str
    raw_lesson: str
    course_name: str
    teacher: str
    room: str
    type: LessonType = field(default=LessonType.CM, init=False)


@dataclass(frozen=True)
class LessonTP:
    group: LessonGroup
    code: str
    teacher: str
    course_name: str
    room: str
    type: LessonType = field(default=LessonType.TP, init=False)


@dataclass(frozen=True)
class LessonTD:
    group: LessonGroup
    code: str
    teacher: str
    course_name: str
    room: str
    type: LessonType = field(default=LessonType.TD, init=False)


@dataclass(frozen=True)
class LessonDS:
    group: LessonGroup
    code: str
    teacher: str
    course_name: str
    room: str
    type: LessonType = field(default=LessonType.DS, init=False)


@dataclass(frozen=True)
class LessonSAE:
    """Project session; ``group=None`` means it is open to every group."""

    group: LessonGroup | None
    code: str
    teacher: str
    course_name: str
    raw_lesson: str | None
    room: str
    type: LessonType = field(default=LessonType.SAE, init=False)


@dataclass(frozen=True)
class LessonOther:
    """SAE-coloured cell whose subject could not be matched to a course code."""

    description: str
    teacher: str
    room: str
    type: LessonType = field(default=LessonType.OTHER, init=False)


LessonVariant = LessonCM | LessonTP | LessonTD | LessonDS | LessonSAE | LessonOther


@dataclass(frozen=True)
class Lesson:
    start_date: datetime
    end_date: datetime
    variant: LessonVariant


@dataclass(frozen=True)
class Timetable:
    header: TimetableHeader
    lessons: tuple[Lesson, ...]
