import pytest

from app.core.errors import ValidationError
from app.query.params import Date, ReleaseSort, ReleaseType, SearchSort
from app.query.validators import release_validators, search_validators


@pytest.fixture()
def sv():
    return search_validators()


@pytest.fixture()
def rv():
    return release_validators()


# ----------------------- limit / offset -----------------------


@pytest.mark.parametrize("value,expected", [("0", 0), ("10", 10), ("1000", 1000)])
def test_limit_accepts_range(sv, value, expected):
    assert sv.validate("limit", value) == expected


@pytest.mark.parametrize(
    "value,reason",
    [
        ("abc", "NonNumeric"),
        ("1.5", "NonNumeric"),
        ("+5", "NonNumeric"),
        ("--5", "NonNumeric"),
        ("\u00b2", "NonNumeric"),
        ("", "NonNumeric"),
        ("-1", "Negative"),
        ("1001", "TooHigh"),
    ],
)
def test_limit_rejects(sv, value, reason):
    with pytest.raises(ValidationError) as ei:
        sv.validate("limit", value)
    assert ei.value.reason == reason
    assert ei.value.message == "Invalid limit parameter"
    assert ei.value.status_code == 400


def test_offset_has_no_upper_bound(rv):
    assert rv.validate("offset", "250000") == 250000


@pytest.mark.parametrize(
    "value,reason",
    [("x1", "NonNumeric"), ("--5", "NonNumeric"), ("\u00b2", "NonNumeric"), ("-3", "Negative")],
)
def test_offset_rejects(rv, value, reason):
    with pytest.raises(ValidationError) as ei:
        rv.validate("offset", value)
    assert ei.value.reason == reason


# ----------------------- dates -----------------------


def test_empty_date_is_zero(rv):
    d = rv.validate("date", "")
    assert not d.is_set()
    assert d == Date()


@pytest.mark.parametrize(
    "value,reason",
    [("2021/01/01", "Malformed"), ("yesterday", "Malformed"), ("1799-12-31", "OutOfRange"), ("2200-01-02", "OutOfRange")],
)
def test_date_rejects(rv, value, reason):
    with pytest.raises(ValidationError) as ei:
        rv.validate("date", value, "dateFrom")
    assert ei.value.reason == reason
    assert ei.value.message == "Invalid dateFrom parameter"


def test_date_bounds_are_inclusive(rv):
    assert rv.validate("date", "1800-01-01").format() == "1800-01-01"
    assert rv.validate("date", "2200-01-01").format() == "2200-01-01"


# ----------------------- enums -----------------------


def test_sort_is_case_insensitive(sv, rv):
    assert sv.validate("sort", "Release_Date_Desc") is SearchSort.RELEASE_DATE_DESC
    assert rv.validate("sort", "TITLE_ASC") is ReleaseSort.TITLE_ASC


def test_unknown_sort(sv):
    with pytest.raises(ValidationError) as ei:
        sv.validate("sort", "popularity")
    assert ei.value.reason == "Unknown"
    assert ei.value.message == "Invalid sort parameter"


def test_release_type(rv):
    assert rv.validate("release-type", "type-upcoming") is ReleaseType.UPCOMING
    with pytest.raises(ValidationError) as ei:
        rv.validate("release-type", "type-future")
    assert ei.value.message == "Invalid release-type parameter"


def test_sub_query_and_aggregation_field_allow_lists(sv):
    assert sv.validate("query", "featured") == "featured"
    assert sv.validate("aggField", "_type") == "_type"
    with pytest.raises(ValidationError):
        sv.validate("query", "everything")
    with pytest.raises(ValidationError):
        sv.validate("aggField", "title")


def test_unregistered_validator_is_a_programming_error(sv):
    with pytest.raises(KeyError):
        sv.validate("release-type", "type-upcoming")


# ----------------------- round trips -----------------------


@pytest.mark.parametrize("name,value", [("limit", "25"), ("offset", "0"), ("date", "2021-06-30"), ("date", "")])
def test_format_parse_round_trip(rv, name, value):
    parsed = rv.validate(name, value)
    assert rv.validate(name, str(parsed)) == parsed


@pytest.mark.parametrize("enum", [SearchSort, ReleaseSort, ReleaseType])
def test_enum_round_trip(enum):
    for member in enum:
        assert enum.parse(member.format()) is member
        assert enum.must_parse(member.format()) is member


def test_must_parse_raises_value_error():
    with pytest.raises(ValueError):
        ReleaseType.must_parse("nope")
    with pytest.raises(ValueError):
        Date.must_parse("2021-13-01")
