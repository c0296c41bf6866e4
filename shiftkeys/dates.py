"""Issue-date normalization for the orcz.com code tables.

The tables were edited by hand over many years, so the issue date column mixes
spelled months ("Sept 13th, 2019"), numeric dates ("9/13/2019", "2019.09.13")
and the odd "Unknown". ``parse_issue_date`` turns all of them into a
``datetime.date`` or the ``UNKNOWN`` marker.
"""

import re
from datetime import date
from enum import Enum
from typing import Optional, Union

from .errors import ComponentRange, InvalidToken, MissingDay, MissingMonth, MissingYear


class DateDialect(Enum):
    STANDARD = "standard"
    ALTERNATE = "alternate"


class _UnknownDate:
    """Marker for an issue date the table does not know."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "UNKNOWN"

    def __str__(self):
        return "Unknown"

    def __reduce__(self):
        return (_UnknownDate, ())


UNKNOWN = _UnknownDate()

IssueDate = Union[date, _UnknownDate]

UNKNOWN_TEXTS = frozenset({"unknown", "n/a"})

MONTHS = {
    "january": 1, "janurary": 1, "jan": 1,
    "february": 2, "febuary": 2, "feburary": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "agust": 8, "aug": 8,
    "september": 9, "septmber": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "decemeber": 12, "dec": 12,
}

# Longest names first so "Sept" never lexes as "Sep" + "t"
_MONTH_ALTERNATION = "|".join(sorted(MONTHS, key=len, reverse=True))

_STANDARD_SKIP = r"\s+|,|\(|\)|\.\.\.|\.|thru|verified|st|nd|rd|th"
_ALTERNATE_SKIP = _STANDARD_SKIP + r"|-|/"

_TOKEN_PATTERNS = {
    DateDialect.STANDARD: re.compile(
        rf"(?P<month>{_MONTH_ALTERNATION})|(?P<number>[0-9]+)|(?P<skip>{_STANDARD_SKIP})",
        re.IGNORECASE,
    ),
    DateDialect.ALTERNATE: re.compile(
        rf"(?P<month>{_MONTH_ALTERNATION})|(?P<number>[0-9]+)|(?P<skip>{_ALTERNATE_SKIP})",
        re.IGNORECASE,
    ),
}

# Whole-string numeric forms, tried before lexing
_MDY_SLASH = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_MDY_ALTERNATE = re.compile(r"^(\d{1,2})([.\-])(\d{1,2})\2(\d{4})$")
_YMD_ALTERNATE = re.compile(r"^(\d{4})([./\-])(\d{1,2})\2(\d{1,2})$")

_UNRECOGNIZED = re.compile(r"\S+?(?=\s|$)|\S")


def parse_issue_date(text: str, dialect: DateDialect = DateDialect.STANDARD) -> IssueDate:
    """Parse ``text`` into a date, or ``UNKNOWN`` for "Unknown" / "n/a".

    Raises a subclass of ``InvalidDate`` when the text cannot be read.
    """
    stripped = text.strip()
    if stripped.lower() in UNKNOWN_TEXTS:
        return UNKNOWN

    numeric = _match_numeric(stripped, dialect)
    if numeric is not None:
        year, month, day = numeric
        return _build_date(year, month, day, text)

    month = day = year = None
    pattern = _TOKEN_PATTERNS[dialect]
    pos = 0
    while pos < len(stripped):
        match = pattern.match(stripped, pos)
        if match is None or match.end() == pos:
            bad = _UNRECOGNIZED.match(stripped, pos).group()
            raise InvalidToken(bad, text)
        pos = match.end()

        if match.lastgroup == "month":
            if month is None:
                month = MONTHS[match.group().lower()]
        elif match.lastgroup == "number":
            if day is None:
                day = _to_int(match.group(), text)
            elif year is None:
                year = _to_int(match.group(), text)

    if year is None:
        raise MissingYear("Missing year in date", details={"text": text})
    if month is None:
        raise MissingMonth("Missing month in date", details={"text": text})
    if day is None:
        raise MissingDay("Missing day in date", details={"text": text})

    return _build_date(year, month, day, text)


def _match_numeric(text: str, dialect: DateDialect) -> Optional[tuple]:
    match = _MDY_SLASH.match(text)
    if match:
        return int(match.group(3)), int(match.group(1)), int(match.group(2))

    if dialect is DateDialect.ALTERNATE:
        match = _MDY_ALTERNATE.match(text)
        if match:
            return int(match.group(4)), int(match.group(1)), int(match.group(3))
        match = _YMD_ALTERNATE.match(text)
        if match:
            return int(match.group(1)), int(match.group(3)), int(match.group(4))

    return None


def _to_int(token: str, text: str) -> int:
    try:
        return int(token)
    except ValueError as e:
        # int() refuses digit strings past sys.get_int_max_str_digits()
        raise ComponentRange(f"Number too long: {token[:10]}...", details={"text": text}, cause=e) from e


def _build_date(year: int, month: int, day: int, text: str) -> date:
    try:
        return date(year, month, day)
    except (ValueError, OverflowError) as e:
        raise ComponentRange(
            f"Date out of range: {year:04d}-{month:02d}-{day:02d}",
            details={"text": text},
            cause=e,
        ) from e
