"""Tests for the digest day calendar."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from healthdigest.pulse.digest import CalendarIndex, day_key, start_of_day


class TestCalendarIndex:
    """Tests for CalendarIndex.build."""

    def test_fourteen_days_ending_yesterday(self, now, tz):
        """Should return 14 strictly increasing keys from 14 days ago to yesterday."""
        index = CalendarIndex.build(now, tz)

        assert len(index) == 14
        assert index[0] == date(2024, 3, 6)
        assert index[-1] == date(2024, 3, 19)
        assert all(b - a == timedelta(days=1) for a, b in zip(index.days, index.days[1:]))

    def test_reference_day_is_excluded(self, now, tz):
        """Should never include the reference day itself."""
        index = CalendarIndex.build(now, tz)

        assert date(2024, 3, 20) not in index

    def test_reference_day_uses_timezone(self):
        """Should pick the local date of the reference instant, not its UTC date."""
        tz = ZoneInfo("Asia/Tokyo")
        now = datetime(2024, 3, 19, 20, 0, tzinfo=timezone.utc)  # 2024-03-20 05:00 in Tokyo

        index = CalendarIndex.build(now, tz)

        assert index[-1] == date(2024, 3, 19)

    def test_deterministic(self, now, tz):
        """Should produce equal indexes for equal inputs."""
        assert CalendarIndex.build(now, tz) == CalendarIndex.build(now, tz)

    def test_window_spans_dst_change(self, now, tz):
        """Should anchor the window on local midnights even across a DST change."""
        start, end = CalendarIndex.build(now, tz).window()

        assert start == datetime(2024, 3, 6, tzinfo=tz)
        assert end == datetime(2024, 3, 20, tzinfo=tz)
        # 2024-03-10 lost one hour in New York
        assert end.timestamp() - start.timestamp() == 14 * 86400 - 3600

    def test_position_and_key_for(self, now, tz):
        """Should map in-window instants to their key and reject others."""
        index = CalendarIndex.build(now, tz)

        assert index.position(date(2024, 3, 6)) == 0
        assert index.position(date(2024, 3, 20)) is None
        assert index.key_for(datetime(2024, 3, 12, 23, 59, tzinfo=tz)) == date(2024, 3, 12)
        assert index.key_for(datetime(2024, 3, 20, 0, 1, tzinfo=tz)) is None


class TestSleepWindow:
    """Tests for CalendarIndex.sleep_window."""

    def test_window_is_previous_afternoon_to_afternoon(self, now, tz):
        """Should span 15:00 of the previous day to 15:00 of the day."""
        index = CalendarIndex.build(now, tz)

        start, end = index.sleep_window(date(2024, 3, 15), 15)

        assert start == datetime(2024, 3, 14, 15, tzinfo=tz)
        assert end == datetime(2024, 3, 15, 15, tzinfo=tz)

    def test_invalid_boundary_hour(self, now, tz):
        """Should refuse a boundary hour outside 0..23."""
        index = CalendarIndex.build(now, tz)

        with pytest.raises(ValueError):
            index.sleep_window(date(2024, 3, 15), 24)


class TestDayKey:
    """Tests for day_key and start_of_day."""

    def test_normalizes_to_local_date(self, tz):
        """Should use the local calendar date of the instant."""
        instant = datetime(2024, 3, 15, 3, 0, tzinfo=timezone.utc)  # 23:00 on the 14th in New York

        assert day_key(instant, tz) == date(2024, 3, 14)

    def test_naive_timestamp_rejected(self, tz):
        """Should not guess the zone of a naive timestamp."""
        with pytest.raises(ValueError):
            day_key(datetime(2024, 3, 15, 3, 0), tz)

    def test_start_of_day(self, tz):
        """Should return aware local midnight."""
        assert start_of_day(date(2024, 3, 15), tz) == datetime(2024, 3, 15, 0, 0, tzinfo=tz)
