from datetime import date
from itertools import product

import pytest

from models import Interval, days_between, each_day, intervals_overlap, parse_iso_date


def iv(start: str, end: str) -> Interval:
    return Interval(parse_iso_date(start), parse_iso_date(end))


def test_parse_iso_date():
    assert parse_iso_date("2024-02-29") == date(2024, 2, 29)
    assert parse_iso_date(" 2024-01-05 ") == date(2024, 1, 5)


@pytest.mark.parametrize("value", ["", "   ", "2024-1-5", "05/01/2024", "2024-02-30", "2024-01-05T00:00:00Z"])
def test_parse_iso_date_rejects_bad_input(value):
    with pytest.raises(ValueError):
        parse_iso_date(value)


def test_days_between_counts_nights():
    assert days_between(date(2024, 1, 1), date(2024, 1, 5)) == 4
    assert days_between(date(2024, 1, 5), date(2024, 1, 1)) == -4
    assert days_between(date(2024, 2, 28), date(2024, 3, 1)) == 2
    assert iv("2024-12-30", "2025-01-02").nights == 3


def test_each_day_is_half_open_and_restartable():
    interval = iv("2024-02-27", "2024-03-02")
    expected = [date(2024, 2, 27), date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
    assert list(each_day(interval)) == expected
    # a fresh generator each call
    assert list(each_day(interval)) == expected


def test_each_day_empty_for_zero_length():
    assert list(each_day(iv("2024-01-01", "2024-01-01"))) == []


def test_touching_intervals_do_not_overlap():
    assert intervals_overlap(iv("2024-01-01", "2024-01-05"), iv("2024-01-05", "2024-01-10")) is False


def test_genuine_overlap_detected():
    assert intervals_overlap(iv("2024-01-01", "2024-01-05"), iv("2024-01-03", "2024-01-08")) is True


def test_contained_interval_overlaps():
    assert intervals_overlap(iv("2024-01-01", "2024-01-15"), iv("2024-01-05", "2024-01-06")) is True


def test_overlap_is_symmetric():
    intervals = [
        iv("2024-01-01", "2024-01-05"),
        iv("2024-01-05", "2024-01-10"),
        iv("2024-01-03", "2024-01-08"),
        iv("2024-01-09", "2024-01-20"),
        iv("2023-12-25", "2024-01-02"),
    ]
    for a, b in product(intervals, repeat=2):
        assert intervals_overlap(a, b) == intervals_overlap(b, a)
