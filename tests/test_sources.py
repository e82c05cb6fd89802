from datetime import datetime

import pytest
import requests

import timetable_sources
from timetable_sources import (
    TimetableYear,
    download_timetable,
    find_timetable_for_week,
    list_timetables,
    parse_listing,
)

LISTING = """<html><head><title>Index of /edt/A1</title></head><body>
<table>
<tr><th><a href="?C=N;O=D">Name</a></th><th><a href="?C=M;O=A">Last modified</a></th></tr>
<tr><td><a href="/edt/">Parent Directory</a></td><td>&nbsp;</td></tr>
<tr><td><a href="A1_S10.pdf">A1_S10.pdf</a></td><td align="right">2024-11-08 17:02  </td><td align="right">61K</td></tr>
<tr><td><a href="A1_S2.pdf">A1_S2.pdf</a></td><td align="right">2024-09-06 14:12  </td><td align="right">58K</td></tr>
<tr><td><a href="notes.txt">notes.txt</a></td><td align="right">2024-09-01 09:00  </td></tr>
<tr><td><a href="A1_S3.pdf">A1_S3.pdf</a></td><td align="right">2024-13-45 99:99  </td><td align="right">60K</td></tr>
</table></body></html>
"""


class FakeResponse:
    def __init__(self, text="", content=b"", status=200):
        self.text = text
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class TestParseListing:
    def test_entries_sorted_by_week(self):
        entries = parse_listing(LISTING, TimetableYear.A1, "http://example.test/edt/")
        assert [e.week_number for e in entries] == [2, 3, 10]
        assert entries[0].url == "http://example.test/edt/A1/A1_S2.pdf"
        assert entries[0].last_updated == datetime(2024, 9, 6, 14, 12)
        assert entries[0].year is TimetableYear.A1

    def test_bad_date_falls_back(self):
        entries = parse_listing(LISTING, TimetableYear.A1)
        assert entries[1].last_updated == datetime.min

    def test_other_years_are_ignored(self):
        html = LISTING.replace("A1_S10.pdf", "A2_S10.pdf")
        assert [e.week_number for e in parse_listing(html, TimetableYear.A1)] == [2, 3]
        a2 = parse_listing(html, TimetableYear.A2, "http://example.test/edt")
        assert [e.file_name for e in a2] == ["A2_S10.pdf"]
        assert a2[0].url == "http://example.test/edt/A2/A2_S10.pdf"

    def test_empty_listing(self):
        assert parse_listing("<html></html>", TimetableYear.A2) == []


class TestFindTimetable:
    def test_found_and_missing(self):
        entries = parse_listing(LISTING, TimetableYear.A1)
        assert find_timetable_for_week(10, entries).file_name == "A1_S10.pdf"
        assert find_timetable_for_week(4, entries) is None


class TestNetwork:
    def test_list_timetables(self, monkeypatch):
        calls = []

        def fake_get(url, timeout):
            calls.append(url)
            return FakeResponse(text=LISTING)

        monkeypatch.setattr(timetable_sources.requests, "get", fake_get)
        entries = list_timetables(TimetableYear.A1, base_url="http://example.test/edt")
        assert calls == ["http://example.test/edt/A1/"]
        assert len(entries) == 3

    def test_download(self, monkeypatch):
        monkeypatch.setattr(
            timetable_sources.requests, "get", lambda url, timeout: FakeResponse(content=b"%PDF-1.4")
        )
        entry = parse_listing(LISTING, TimetableYear.A1)[0]
        assert download_timetable(entry) == b"%PDF-1.4"

    def test_http_error_propagates(self, monkeypatch):
        monkeypatch.setattr(
            timetable_sources.requests, "get", lambda url, timeout: FakeResponse(status=404)
        )
        with pytest.raises(requests.HTTPError):
            list_timetables(TimetableYear.A3)
