from datetime import date, time, timedelta

import pytest

from src.shared.domain.calendar import ensure_not_past, normalize_optional_date, parse_date, parse_time, window
from src.shared.exceptions import InvalidInputError


def test_parse_date_accepts_strict_iso_only():
    assert parse_date("2030-02-01") == date(2030, 2, 1)
    for bad in ("2030-2-1", "01/02/2030", "2030-02-01T10:00", "", None, 20300201):
        with pytest.raises(InvalidInputError):
            parse_date(bad)


def test_parse_date_rejects_impossible_calendar_day():
    with pytest.raises(InvalidInputError) as exc:
        parse_date("2030-02-30", "date")
    assert exc.value.details == {"field": "date"}


@pytest.mark.parametrize(
    "raw, expected",
    [("10:00", time(10, 0)), ("00:00", time(0, 0)), ("23:59:59", time(23, 59, 59)), ("09:05:07", time(9, 5, 7))],
)
def test_parse_time_valid(raw, expected):
    assert parse_time(raw) == expected


@pytest.mark.parametrize("raw", ["24:00", "9:00", "10:60", "10:00:60", "10", "ten", None])
def test_parse_time_invalid(raw):
    with pytest.raises(InvalidInputError):
        parse_time(raw)


def test_next_consultation_normalisation():
    assert normalize_optional_date("") is None
    assert normalize_optional_date("Invalid date") is None
    assert normalize_optional_date(None) is None
    assert normalize_optional_date("null") is None
    assert normalize_optional_date("2030-13-01") is None
    assert normalize_optional_date("2030-05-17") == date(2030, 5, 17)
    assert normalize_optional_date("2030-05-17T00:00:00.000Z") == date(2030, 5, 17)


def test_ensure_not_past_uses_calendar_day():
    today = date.today()
    assert ensure_not_past(today) == today
    with pytest.raises(InvalidInputError):
        ensure_not_past(today - timedelta(days=1))


def test_window_is_inclusive_range_from_today():
    start, end = window(30)
    assert start == date.today()
    assert end - start == timedelta(days=30)
