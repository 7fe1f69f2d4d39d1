import datetime as dt

import pytest

from planner_py.scheduler.errors import ValidationError
from planner_py.utils.time_utils import (
    format_date_key,
    is_valid_date_key,
    is_valid_time,
    minutes_to_time,
    overlaps,
    parse_time,
    require_date_key,
    snap_to_anchor,
    time_to_minutes,
    to_12h,
)


def test_time_roundtrip_and_no_wrap():
    assert time_to_minutes("09:30") == 570
    assert minutes_to_time(570) == "09:30"
    assert minutes_to_time(0) == "00:00"
    # past midnight is not wrapped
    assert minutes_to_time(24 * 60 + 5) == "24:05"


@pytest.mark.parametrize("value", ["9:30", "24:00", "12:60", "", "ab:cd", None])
def test_invalid_times_rejected(value):
    assert not is_valid_time(value)
    with pytest.raises(ValidationError):
        parse_time(value)


def test_to_12h():
    assert to_12h("00:15") == "12:15 AM"
    assert to_12h("12:00") == "12:00 PM"
    assert to_12h("23:45") == "11:45 PM"
    assert to_12h("") == ""


def test_overlap_is_half_open():
    assert overlaps(540, 600, 570, 630)
    assert not overlaps(540, 600, 600, 660)
    assert not overlaps(600, 660, 540, 600)
    assert overlaps(540, 600, 550, 560)


def test_snap_to_anchor_modes():
    # grid 08:00 + k*30
    assert snap_to_anchor(500, 30, 480) == 510
    assert snap_to_anchor(494, 30, 480) == 480
    # exact half rounds up
    assert snap_to_anchor(495, 30, 480) == 510
    assert snap_to_anchor(500, 30, 480, mode="floor") == 480
    assert snap_to_anchor(481, 30, 480, mode="ceil") == 510
    # before the anchor
    assert snap_to_anchor(470, 30, 480, mode="floor") == 450


def test_snap_rejects_bad_args():
    with pytest.raises(ValueError):
        snap_to_anchor(500, 0, 480)
    with pytest.raises(ValueError):
        snap_to_anchor(500, 30, 480, mode="round")


def test_date_keys():
    assert format_date_key(dt.date(2025, 1, 1)) == "2025-01-01"
    assert is_valid_date_key("2024-02-29")
    assert not is_valid_date_key("2025-02-29")
    assert not is_valid_date_key("2025-1-1")
    assert require_date_key("2025-01-01") == "2025-01-01"
    with pytest.raises(ValidationError):
        require_date_key("01/01/2025")
