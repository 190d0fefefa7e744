"""
Tests for timezone and wall-clock helpers.
"""

from datetime import time

import pendulum
import pytest

from bookingslots.domain.exceptions import InvalidInputError
from bookingslots.domain.models import WorkingHoursEntry
from bookingslots.domain.timezones import (
    check_day_boundary_crossing,
    convert_working_hours_to_client_timezone,
    date_for_weekday,
    format_display_time,
    get_timezone_options,
    gmt_offset_label,
    localize,
    localize_exact,
    parse_calendar_date,
    parse_time_of_day,
    resolve_timezone,
)
from bookingslots.domain.working_hours import parse_working_hours


class TestResolveTimezone:

    def test_valid_timezone(self):
        tz = resolve_timezone("America/New_York")

        assert tz.name == "America/New_York"

    @pytest.mark.parametrize("name", ["Mars/Olympus_Mons", "", "   ", None])
    def test_invalid_timezone_fails_fast(self, name):
        with pytest.raises(InvalidInputError):
            resolve_timezone(name)


class TestParsing:

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("09:00", time(9, 0)),
            ("17:30", time(17, 30)),
            ("08:15:00", time(8, 15)),
            (" 7:05 ", time(7, 5)),
        ],
    )
    def test_parse_time_of_day(self, value, expected):
        assert parse_time_of_day(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "9", "09:60", "nine", "", None, "09:00:00:00"])
    def test_parse_time_of_day_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            parse_time_of_day(value)

    def test_parse_calendar_date(self):
        parsed = parse_calendar_date("2024-11-25")

        assert parsed == pendulum.Date(2024, 11, 25)

    def test_parse_calendar_date_accepts_date_objects(self):
        assert parse_calendar_date(pendulum.datetime(2024, 11, 25, 13, 0)) == pendulum.Date(2024, 11, 25)

    @pytest.mark.parametrize("value", ["2024-13-01", "25.11.2024", "", None])
    def test_parse_calendar_date_invalid(self, value):
        with pytest.raises(InvalidInputError):
            parse_calendar_date(value)

    def test_format_display_time(self):
        assert format_display_time("00:00") == "12:00 AM"
        assert format_display_time("09:05") == "9:05 AM"
        assert format_display_time("12:00") == "12:00 PM"
        assert format_display_time("13:30") == "1:30 PM"

    def test_date_for_weekday(self):
        wednesday = pendulum.Date(2024, 11, 27)

        assert date_for_weekday(wednesday, "monday") == pendulum.Date(2024, 11, 25)
        assert date_for_weekday(wednesday, "Sunday") == pendulum.Date(2024, 12, 1)


class TestLocalize:

    def test_localize_uses_offset_of_that_date(self):
        tz = resolve_timezone("America/New_York")

        winter = localize(pendulum.Date(2024, 1, 15), 9 * 60, tz)
        summer = localize(pendulum.Date(2024, 7, 15), 9 * 60, tz)

        assert winter.in_timezone("UTC").hour == 14
        assert summer.in_timezone("UTC").hour == 13

    def test_localize_exact_skips_spring_forward_gap(self):
        tz = resolve_timezone("America/New_York")

        assert localize_exact(pendulum.Date(2024, 3, 10), 2 * 60 + 30, tz) is None
        assert localize_exact(pendulum.Date(2024, 3, 10), 3 * 60, tz) is not None

    def test_localize_exact_keeps_ambiguous_fall_back_time(self):
        tz = resolve_timezone("America/New_York")

        local = localize_exact(pendulum.Date(2024, 11, 3), 90, tz)

        assert local is not None
        assert (local.hour, local.minute) == (1, 30)


class TestOffsets:

    def test_gmt_offset_labels(self):
        summer = pendulum.datetime(2024, 7, 1, 12, 0, tz="UTC")

        assert gmt_offset_label("UTC", summer) == "GMT+0"
        assert gmt_offset_label("America/New_York", summer) == "GMT-4"
        assert gmt_offset_label("Asia/Kolkata", summer) == "GMT+5:30"
        assert gmt_offset_label("America/St_Johns", summer) == "GMT-2:30"

    def test_timezone_options_are_labelled_and_unique(self):
        winter = pendulum.datetime(2024, 1, 15, 12, 0, tz="UTC")

        options = get_timezone_options(winter)
        values = [option.value for option in options]

        assert values[0] == "UTC"
        assert len(values) == len(set(values))
        by_value = {option.value: option.label for option in options}
        assert by_value["America/New_York"].endswith("GMT-5")
        assert by_value["Asia/Tokyo"] == "JST (Tokyo) GMT+9"


class TestDayBoundaries:

    def test_evening_shift_moves_to_next_day(self):
        entry = WorkingHoursEntry(day="monday", enabled=True, start_time=time(20, 0), end_time=time(23, 0))

        crossing = check_day_boundary_crossing(
            entry, "America/New_York", "Europe/Berlin", pendulum.Date(2024, 11, 25)
        )

        assert crossing.next_day
        assert not crossing.previous_day
        assert not crossing.crosses_midnight

    def test_shift_crossing_midnight(self):
        entry = WorkingHoursEntry(day="monday", enabled=True, start_time=time(17, 0), end_time=time(21, 0))

        crossing = check_day_boundary_crossing(
            entry, "America/New_York", "Europe/Berlin", pendulum.Date(2024, 11, 25)
        )

        assert crossing.crosses_midnight
        assert not crossing.next_day

    def test_morning_shift_moves_to_previous_day(self):
        entry = WorkingHoursEntry(day="monday", enabled=True, start_time=time(9, 0), end_time=time(12, 0))

        crossing = check_day_boundary_crossing(
            entry, "Asia/Tokyo", "America/New_York", pendulum.Date(2024, 11, 25)
        )

        assert crossing.previous_day
        assert not crossing.crosses_midnight

    def test_closed_entry_never_crosses(self):
        crossing = check_day_boundary_crossing(
            WorkingHoursEntry.closed("monday"), "Asia/Tokyo", "America/New_York", pendulum.Date(2024, 11, 25)
        )

        assert not (crossing.crosses_midnight or crossing.next_day or crossing.previous_day)

    def test_convert_working_hours_to_client_timezone(self):
        parsed = parse_working_hours(
            {
                "monday": {"enabled": True, "startTime": "09:00", "endTime": "17:00"},
                "friday": {"enabled": True, "startTime": "22:00", "endTime": "23:30"},
            },
            "America/New_York",
        )

        converted = convert_working_hours_to_client_timezone(
            parsed, "America/Los_Angeles", pendulum.Date(2024, 11, 27)
        )

        assert [shift.professional_day for shift in converted] == ["monday", "friday"]
        monday = converted[0]
        assert monday.start.format("YYYY-MM-DD HH:mm") == "2024-11-25 06:00"
        assert monday.end.format("HH:mm") == "14:00"
        assert monday.client_start_day == "monday"
        assert monday.client_end_day == "monday"
