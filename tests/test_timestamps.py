"""Tests for observation timestamp reconstruction"""
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from meteostat_loader.exceptions import TimestampError
from meteostat_loader.timestamps import load_timezone, reconstruct_timestamp


class TestReconstructTimestamp:
    """Test reconstruction of hourly observation instants."""

    def test_station_local_time(self):
        """Test date/hour is interpreted in the station's timezone"""
        ts = reconstruct_timestamp("2023-01-01", "5", "Europe/Berlin")

        assert ts == datetime(2023, 1, 1, 5, tzinfo=ZoneInfo("Europe/Berlin"))
        assert ts.astimezone(timezone.utc) == datetime(2023, 1, 1, 4, tzinfo=timezone.utc)

    def test_deterministic(self):
        """Test two reconstructions give the same instant"""
        first = reconstruct_timestamp("2023-07-15", "13", "America/New_York")
        second = reconstruct_timestamp("2023-07-15", "13", "America/New_York")

        assert first == second
        assert first.timestamp() == second.timestamp()

    def test_timezone_shift_equals_offset_difference(self):
        """Test switching zones shifts the instant by the offset difference"""
        utc = reconstruct_timestamp("2023-01-01", "12", "UTC")
        berlin = reconstruct_timestamp("2023-01-01", "12", "Europe/Berlin")
        tokyo = reconstruct_timestamp("2023-01-01", "12", "Asia/Tokyo")

        assert utc - berlin == timedelta(hours=1)
        assert utc - tokyo == timedelta(hours=9)

    def test_summer_time_offset(self):
        """Test daylight saving time is applied"""
        ts = reconstruct_timestamp("2023-07-01", "12", "Europe/Berlin")
        assert ts.utcoffset() == timedelta(hours=2)

    def test_two_digit_and_single_digit_hours(self):
        """Test H and HH hour formats"""
        assert reconstruct_timestamp("2023-01-01", "7", "UTC").hour == 7
        assert reconstruct_timestamp("2023-01-01", "07", "UTC").hour == 7
        assert reconstruct_timestamp("2023-01-01", "23", "UTC").hour == 23

    def test_accepts_loaded_zone(self):
        """Test a pre-loaded ZoneInfo is used as-is"""
        tz = load_timezone("Europe/Berlin")
        assert reconstruct_timestamp("2023-01-01", "5", tz).tzinfo is tz

    @pytest.mark.parametrize("date,hour", [
        ("2023-13-01", "5"),
        ("2023-01-01", "24"),
        ("01.01.2023", "5"),
        ("2023-01-01", ""),
        ("", ""),
        ("2023-1-1", "5"),
        ("2023-01-1", "5"),
        ("2023-01-01", "005"),
        ("2023-01-01", " 5"),
        ("2023-01-01", "+5"),
    ])
    def test_invalid_date_or_hour(self, date, hour):
        """Test malformed date/hour raises TimestampError"""
        with pytest.raises(TimestampError):
            reconstruct_timestamp(date, hour, "UTC")

    @pytest.mark.parametrize("name", ["Mars/Olympus_Mons", "", "../etc/passwd"])
    def test_unknown_timezone(self, name):
        """Test unknown zone names raise TimestampError"""
        with pytest.raises(TimestampError):
            reconstruct_timestamp("2023-01-01", "5", name)


class TestTransitionHours:
    """Test wall-clock hours around daylight saving transitions."""

    def test_fall_back_east_of_utc_takes_later_hour(self):
        """Test repeated 02:00 in Berlin resolves to the CET occurrence"""
        ts = reconstruct_timestamp("2023-10-29", "2", "Europe/Berlin")

        assert ts.astimezone(timezone.utc) == datetime(2023, 10, 29, 1, tzinfo=timezone.utc)
        assert ts.utcoffset() == timedelta(hours=1)

    def test_fall_back_west_of_utc_takes_earlier_hour(self):
        """Test repeated 01:00 in New York resolves to the EDT occurrence"""
        ts = reconstruct_timestamp("2023-11-05", "1", "America/New_York")

        assert ts.astimezone(timezone.utc) == datetime(2023, 11, 5, 5, tzinfo=timezone.utc)

    def test_spring_forward_gap_uses_previous_offset(self):
        """Test the skipped 02:00 in Berlin maps to 01:00 UTC"""
        ts = reconstruct_timestamp("2023-03-26", "2", "Europe/Berlin")

        assert ts.astimezone(timezone.utc) == datetime(2023, 3, 26, 1, tzinfo=timezone.utc)

    def test_neighbouring_hours_unaffected(self):
        """Test hours around the transition keep their usual offsets"""
        before = reconstruct_timestamp("2023-10-29", "1", "Europe/Berlin")
        after = reconstruct_timestamp("2023-10-29", "3", "Europe/Berlin")

        assert before.astimezone(timezone.utc).hour == 23
        assert after.astimezone(timezone.utc).hour == 2
