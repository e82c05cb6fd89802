from __future__ import annotations


class TimetableError(Exception):
    """Base class for every document-level failure of a timetable parse."""


class DocumentError(TimetableError):
    """The PDF itself could not be read."""


class DocumentOpenError(DocumentError):
    def __init__(self, source: str, reason: str = "") -> None:
        self.source = source
        message = f"cannot open PDF document: {source}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class MissingFirstPageError(DocumentError):
    def __init__(self) -> None:
        super().__init__("PDF document has no first page")


class ScanFailedError(DocumentError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"content stream scan failed: {reason}")


class HeaderError(TimetableError):
    """The week header could not be located or read."""


class HeaderRectNotFoundError(HeaderError):
    def __init__(self) -> None:
        super().__init__("header rectangle not found")


class HeaderTextsNotFoundError(HeaderError):
    def __init__(self) -> None:
        super().__init__("no text inside the header rectangle")


class HeaderTextUnparseableError(HeaderError):
    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"unparseable header text: {text!r}")


class UnknownCourseCodeError(TimetableError):
    def __init__(self, code: str) -> None:
        self.code = code
        super().__init__(f"course code not in reference table: {code!r}")
