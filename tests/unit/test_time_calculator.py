"""Time parsing and interval arithmetic."""
from datetime import date, time, timedelta

import pytest

from salon.domain.scheduling.time_calculator import (
    add_minutes_to_time,
    intervals_conflict,
    minutes_to_time,
    parse_date_field,
    parse_time_field,
    time_to_minutes,
)


def test_parse_date_accepts_plain_and_iso_timestamp():
    assert parse_date_field("2025-03-10") == date(2025, 3, 10)
    assert parse_date_field("2025-03-10T14:30:00.000Z") == date(2025, 3, 10)


@pytest.mark.parametrize("raw", [None, "", "10/03/2025", "2025-13-40", "tomorrow"])
def test_parse_date_rejects_unusable_values(raw):
    assert parse_date_field(raw) is None


def test_parse_time_accepts_short_and_long_forms():
    assert parse_time_field("09:15") == time(9, 15)
    assert parse_time_field("09:15:30") == time(9, 15, 30)


@pytest.mark.parametrize("raw", [None, "", "9h", "25:00", "10:75", "10:00:00:00"])
def test_parse_time_rejects_unusable_values(raw):
    assert parse_time_field(raw) is None


def test_time_to_minutes_handles_strings_times_and_timedeltas():
    assert time_to_minutes("10:30") == 630
    assert time_to_minutes("10:30:59") == 630
    assert time_to_minutes(time(1, 5)) == 65
    assert time_to_minutes(timedelta(hours=2, minutes=3)) == 123
    assert time_to_minutes(None) == 0


def test_minutes_render_as_hh_mm_00():
    assert minutes_to_time(90) == "01:30:00"
    assert minutes_to_time(0) == "00:00:00"
    assert add_minutes_to_time("09:00", 45) == "09:45:00"


def test_touching_intervals_do_not_conflict():
    # 09:00-09:30 and 09:30-10:00
    assert not intervals_conflict(540, 570, 570, 600)
    assert not intervals_conflict(570, 600, 540, 570)


def test_overlapping_and_nested_intervals_conflict():
    assert intervals_conflict(540, 570, 555, 585)
    assert intervals_conflict(540, 600, 550, 560)
    assert intervals_conflict(550, 560, 540, 600)
