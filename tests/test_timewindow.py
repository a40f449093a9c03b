"""Tests für Uhrzeit-Hilfsfunktionen, Weekday und TimeSlot."""

import pytest
from pydantic import ValidationError

from models.timeslot import TimeSlot, Weekday
from models.timewindow import format_minutes, gap_minutes, normalize_clock, overlaps, to_minutes


class TestToMinutes:

    def test_basic(self):
        assert to_minutes("00:00") == 0
        assert to_minutes("09:30") == 570
        assert to_minutes("23:59") == 1439

    def test_single_digit_hour(self):
        assert to_minutes("9:05") == 545

    @pytest.mark.parametrize("bad", ["", "9", "09:5", "24:00", "12:60", "ab:cd", "09-30"])
    def test_malformed_raises(self, bad):
        with pytest.raises(ValueError):
            to_minutes(bad)

    def test_numeric_not_lexical(self):
        """'9:00' < '10:45' numerisch, obwohl lexikalisch '9' > '1'."""
        assert to_minutes("9:00") < to_minutes("10:45")

    def test_format_roundtrip(self):
        assert format_minutes(570) == "09:30"
        assert normalize_clock("9:05") == "09:05"

    def test_format_out_of_range(self):
        with pytest.raises(ValueError):
            format_minutes(24 * 60)


class TestOverlap:

    def test_touching_does_not_overlap(self):
        assert overlaps("09:00", "10:00", "10:00", "11:00") is False
        assert overlaps("10:00", "11:00", "09:00", "10:00") is False

    def test_partial_overlap(self):
        assert overlaps("09:00", "10:30", "10:00", "11:00") is True

    def test_containment(self):
        assert overlaps("09:00", "12:00", "10:00", "11:00") is True
        assert overlaps("10:00", "11:00", "09:00", "12:00") is True

    def test_identical(self):
        assert overlaps("09:00", "10:30", "09:00", "10:30") is True

    def test_disjoint(self):
        assert overlaps("09:00", "10:30", "13:30", "15:00") is False

    def test_gap_minutes(self):
        assert gap_minutes("10:30", "10:45") == 15
        assert gap_minutes("10:30", "10:00") == 0


class TestWeekday:

    @pytest.mark.parametrize("raw", ["monday", "Monday", "MONDAY", " monday "])
    def test_case_insensitive(self, raw):
        assert Weekday.parse(raw) == Weekday.MONDAY

    def test_unknown_day(self):
        with pytest.raises(ValueError, match="Unbekannter Wochentag"):
            Weekday.parse("funday")

    def test_python_weekday(self):
        assert Weekday.MONDAY.python_weekday == 0
        assert Weekday.SUNDAY.python_weekday == 6


class TestTimeSlot:

    def test_day_parsed_case_insensitive(self):
        slot = TimeSlot(day="Wednesday", start="9:00", end="10:30")
        assert slot.day == Weekday.WEDNESDAY
        assert slot.start == "09:00"
        assert slot.duration_minutes == 90

    def test_start_must_precede_end(self):
        with pytest.raises(ValidationError):
            TimeSlot(day="monday", start="10:00", end="10:00")

    def test_malformed_time_rejected(self):
        with pytest.raises(ValidationError):
            TimeSlot(day="monday", start="25:00", end="26:00")

    def test_overlap_requires_same_day(self):
        a = TimeSlot(day="monday", start="09:00", end="10:30")
        b = TimeSlot(day="tuesday", start="09:00", end="10:30")
        c = TimeSlot(day="monday", start="10:00", end="11:00")
        assert not a.overlaps(b)
        assert a.overlaps(c)

    def test_hashable(self):
        a = TimeSlot(day="monday", start="09:00", end="10:30")
        b = TimeSlot(day="Monday", start="9:00", end="10:30")
        assert len({a, b}) == 1
