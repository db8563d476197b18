"""
Query parameter types
=====================

Typed values produced by the validators: calendar dates with an explicit
zero value, and the closed enumerations for sort keys and release types.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

DATE_FORMAT = "%Y-%m-%d"
MIN_DATE = date(1800, 1, 1)
MAX_DATE = date(2200, 1, 1)


class Reason(str, Enum):
    NON_NUMERIC = "NonNumeric"
    NEGATIVE = "Negative"
    TOO_HIGH = "TooHigh"
    MALFORMED = "Malformed"
    OUT_OF_RANGE = "OutOfRange"
    UNKNOWN = "Unknown"


class InvalidValue(ValueError):
    def __init__(self, reason: Reason, detail: str = ""):
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)
        self.reason = reason
        self.detail = detail


# ---------------------------------- Date -------------------------------------


class Date:
    """
    Calendar date in ISO ``YYYY-MM-DD`` form.

    The zero date (no value) is valid: it formats to ``""`` so that
    ``Date.parse(d.format()) == d`` holds for every date, and it is embedded in
    queries as the literal ``null``.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Optional[date] = None):
        self._value = value

    @classmethod
    def parse(cls, s: str) -> "Date":
        if s == "":
            return cls()
        try:
            d = datetime.strptime(s, DATE_FORMAT).date()
        except ValueError as exc:
            raise InvalidValue(Reason.MALFORMED, f"invalid date string {s!r}") from exc
        if d < MIN_DATE:
            raise InvalidValue(Reason.OUT_OF_RANGE, f"{s!r}: date too far in past")
        if d > MAX_DATE:
            raise InvalidValue(Reason.OUT_OF_RANGE, f"{s!r}: date too far in future")
        return cls(d)

    @classmethod
    def must_parse(cls, s: str) -> "Date":
        try:
            return cls.parse(s)
        except InvalidValue as exc:
            raise ValueError(f"must_parse: {exc}") from exc

    @property
    def value(self) -> Optional[date]:
        return self._value

    def is_set(self) -> bool:
        return self._value is not None

    def format(self) -> str:
        return self._value.strftime(DATE_FORMAT) if self._value else ""

    def es_string(self) -> str:
        if self._value is None:
            return "null"
        return f'"{self.format()}"'

    def after(self, other: "Date") -> bool:
        return self.is_set() and other.is_set() and self._value > other._value

    def __eq__(self, other):
        return isinstance(other, Date) and self._value == other._value

    def __hash__(self):
        return hash(self._value)

    def __repr__(self):
        return f"Date({self.format()!r})"

    def __str__(self):
        return self.format()


# --------------------------- Closed enumerations -----------------------------


class _ParamEnum(str, Enum):
    """String enum matched case-insensitively against request parameters."""

    @classmethod
    def parse(cls, s: str):
        for member in cls:
            if member.value.lower() == (s or "").lower():
                return member
        raise InvalidValue(Reason.UNKNOWN, f"invalid {cls.__name__} string: {s!r}")

    @classmethod
    def must_parse(cls, s: str):
        try:
            return cls.parse(s)
        except InvalidValue as exc:
            raise ValueError(f"must_parse: {exc}") from exc

    def format(self) -> str:
        return self.value


class ReleaseSort(_ParamEnum):
    RELEASE_DATE_ASC = "release_date_asc"
    RELEASE_DATE_DESC = "release_date_desc"
    TITLE_ASC = "title_asc"
    TITLE_DESC = "title_desc"
    RELEVANCE = "relevance"

    def es_string(self) -> str:
        return _RELEASE_SORT_ES[self]


_RELEASE_SORT_ES = {
    ReleaseSort.RELEASE_DATE_ASC: '{"release_date": "asc"}',
    ReleaseSort.RELEASE_DATE_DESC: '{"release_date": "desc"}',
    ReleaseSort.TITLE_ASC: '{"title.title_raw": "asc"}',
    ReleaseSort.TITLE_DESC: '{"title.title_raw": "desc"}',
    ReleaseSort.RELEVANCE: '{"_score": "desc"}',
}


class SearchSort(_ParamEnum):
    RELEVANCE = "relevance"
    TITLE = "title"
    RELEASE_DATE_ASC = "release_date_asc"
    RELEASE_DATE_DESC = "release_date_desc"
    FIRST_LETTER = "first_letter"

    @property
    def template(self) -> str:
        return _SEARCH_SORT_TEMPLATES[self]


# sort key -> sort template included by the content query
_SEARCH_SORT_TEMPLATES = {
    SearchSort.RELEVANCE: "sortByRelevance",
    SearchSort.TITLE: "sortByTitle",
    SearchSort.RELEASE_DATE_ASC: "sortByReleaseDateAsc",
    SearchSort.RELEASE_DATE_DESC: "sortByReleaseDate",
    SearchSort.FIRST_LETTER: "sortByFirstLetter",
}


class ReleaseType(_ParamEnum):
    UPCOMING = "type-upcoming"
    PUBLISHED = "type-published"
    CANCELLED = "type-cancelled"
