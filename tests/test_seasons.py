from datetime import date, datetime

import pytest

from bot.systems.seasons import days_until, in_window, is_refresh_hour


@pytest.mark.parametrize(
    "today,expected",
    [
        (date(2024, 12, 20), True),
        (date(2025, 1, 3), True),
        (date(2025, 1, 6), False),
        (date(2024, 12, 14), False),
    ],
)
def test_window_wraps_new_year(today, expected):
    assert in_window(today, "12-15", "01-05") is expected


def test_plain_window():
    assert in_window(date(2024, 10, 25), "10-20", "11-02")
    assert not in_window(date(2024, 11, 3), "10-20", "11-02")


def test_days_until():
    assert days_until(date(2024, 10, 20), "10-20") == 0
    assert days_until(date(2024, 10, 18), "10-20") == 2
    assert days_until(date(2024, 10, 21), "10-20") == 364


def test_leap_day_falls_back():
    assert days_until(date(2025, 2, 27), "02-29") == 1


def test_refresh_hour():
    assert is_refresh_hour(datetime(2024, 1, 1, 0, 5), (0, 0))
    assert not is_refresh_hour(datetime(2024, 1, 1, 1, 0), (0, 0))
    assert not is_refresh_hour(datetime(2024, 1, 1, 6, 10), (6, 30))
    assert is_refresh_hour(datetime(2024, 1, 1, 6, 45), (6, 30))
