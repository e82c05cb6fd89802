"""Locate and download published timetables.

The department publishes one PDF per week and year of study in a plain
directory listing, e.g. ``<base>/A1/A1_S3.pdf``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import requests

log = logging.getLogger(__name__)

TIMETABLE_LISTING_URL = "http://edt-iut-info.unilim.fr/edt"
REQUEST_TIMEOUT = 30

_ENTRY_PATTERN = r'href="(?P<name>{year}_S\d+\.pdf)".*?(?P<date>\d{{4}}-\d{{2}}-\d{{2}} \d{{2}}:\d{{2}})'
_WEEK_RE = re.compile(r"_S(\d+)\.pdf$")


class TimetableYear(str, Enum):
    A1 = "A1"
    A2 = "A2"
    A3 = "A3"


@dataclass(frozen=True)
class OnlineTimetableEntry:
    """One ``A{year}_S{week}.pdf`` file from the directory listing."""

    file_name: str
    last_updated: datetime
    week_number: int
    year: TimetableYear
    url: str

    def __lt__(self, other: OnlineTimetableEntry) -> bool:
        return self.week_number < other.week_number


def parse_listing(html: str, year: TimetableYear, base_url: str = TIMETABLE_LISTING_URL) -> list[OnlineTimetableEntry]:
    """Extract *year*'s timetable files from a directory listing page, sorted by week."""
    entry_re = re.compile(_ENTRY_PATTERN.format(year=re.escape(year.value)))
    entries = []
    for m in entry_re.finditer(html):
        name = m.group("name")
        week = _WEEK_RE.search(name)
        if week is None:
            continue
        try:
            updated = datetime.strptime(m.group("date"), "%Y-%m-%d %H:%M")
        except ValueError:
            updated = datetime.min
        entries.append(
            OnlineTimetableEntry(
                file_name=name,
                last_updated=updated,
                week_number=int(week.group(1)),
                year=year,
                url=f"{base_url.rstrip('/')}/{year.value}/{name}",
            )
        )
    return sorted(entries)


def list_timetables(year: TimetableYear, base_url: str = TIMETABLE_LISTING_URL) -> list[OnlineTimetableEntry]:
    url = f"{base_url.rstrip('/')}/{year.value}/"
    r = requests.get(url, timeout=REQUEST_TIMEOUT)
    r.raise_for_status()
    entries = parse_listing(r.text, year, base_url)
    log.info("%s: %s timetables listed", url, len(entries))
    return entries


def find_timetable_for_week(week: int, entries: list[OnlineTimetableEntry]) -> OnlineTimetableEntry | None:
    return next((e for e in entries if e.week_number == week), None)


def download_timetable(entry: OnlineTimetableEntry) -> bytes:
    r = requests.get(entry.url, timeout=REQUEST_TIMEOUT)
    r.raise_for_status()
    log.info("Downloaded: %s (%s bytes)", entry.file_name, len(r.content))
    return r.content
