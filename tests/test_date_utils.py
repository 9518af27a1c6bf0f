"""
Tests for Date Utilities - LOTTO645
===================================

Test suite for draw-date management in Korea Standard Time
with timezone handling and validation testing.
"""

import pytest
import pytz
from datetime import datetime
from lotto645.date_utils import DateManager, calculate_next_drawing_date, is_valid_drawing_date, validate_date_format


class TestDateManager:
    """Test suite for DateManager class."""

    def test_get_current_kst_time(self):
        """Test getting current KST time."""
        current_kst = DateManager.get_current_kst_time()

        assert current_kst.tzinfo is not None
        assert current_kst.tzinfo.zone == 'Asia/Seoul'
        assert isinstance(current_kst, datetime)

    def test_convert_to_kst_string(self):
        """Test converting string dates to KST."""
        kst_time = DateManager.convert_to_kst("2025-08-09T14:30:00")
        assert kst_time.tzinfo.zone == 'Asia/Seoul'
        assert kst_time.hour == 14
        assert kst_time.minute == 30

        kst_time = DateManager.convert_to_kst("2025-08-09")
        assert (kst_time.year, kst_time.month, kst_time.day) == (2025, 8, 9)

        kst_time = DateManager.convert_to_kst("2025-08-09 20:00:00")
        assert kst_time.hour == 20

    def test_convert_to_kst_datetime(self):
        """Test converting datetime objects to KST."""
        # Naive datetimes are taken as KST
        kst_time = DateManager.convert_to_kst(datetime(2025, 8, 9, 15, 30))
        assert kst_time.tzinfo.zone == 'Asia/Seoul'
        assert kst_time.hour == 15

        # 12:00 UTC is 21:00 KST (no DST in Korea)
        utc_dt = pytz.UTC.localize(datetime(2025, 8, 9, 12, 0))
        kst_time = DateManager.convert_to_kst(utc_dt)
        assert kst_time.hour == 21
        assert kst_time.day == 9

    def test_calculate_next_drawing_date_weekday(self):
        """Test calculating next drawing date from a weekday."""
        monday = DateManager.LOTTO_TIMEZONE.localize(datetime(2025, 8, 4, 10, 0))
        assert DateManager.calculate_next_drawing_date(monday) == "2025-08-09"

        friday_night = DateManager.LOTTO_TIMEZONE.localize(datetime(2025, 8, 8, 23, 59))
        assert DateManager.calculate_next_drawing_date(friday_night) == "2025-08-09"

    def test_calculate_next_drawing_date_saturday(self):
        """Test calculating next drawing date from Saturday around the 20:35 draw."""
        saturday_early = DateManager.LOTTO_TIMEZONE.localize(datetime(2025, 8, 9, 20, 34))
        assert DateManager.calculate_next_drawing_date(saturday_early) == "2025-08-09"

        saturday_draw = DateManager.LOTTO_TIMEZONE.localize(datetime(2025, 8, 9, 20, 35))
        assert DateManager.calculate_next_drawing_date(saturday_draw) == "2025-08-16"

    def test_calculate_next_drawing_date_from_utc(self):
        """Saturday 12:00 UTC is already past the KST cutoff."""
        utc_saturday = pytz.UTC.localize(datetime(2025, 8, 9, 12, 0))
        assert DateManager.calculate_next_drawing_date(utc_saturday) == "2025-08-16"

    def test_is_valid_drawing_date(self):
        """Test drawing date validation."""
        assert DateManager.is_valid_drawing_date("2025-08-09") == True   # Saturday
        assert DateManager.is_valid_drawing_date("2002-12-07") == True   # first draw

        assert DateManager.is_valid_drawing_date("2025-08-08") == False  # Friday
        assert DateManager.is_valid_drawing_date("2025-08-10") == False  # Sunday
        assert DateManager.is_valid_drawing_date("2002-11-30") == False  # before the first draw

        assert DateManager.is_valid_drawing_date("invalid-date") == False
        assert DateManager.is_valid_drawing_date("2025/08/09") == False

    def test_validate_date_format(self):
        """Test date format validation."""
        assert DateManager.validate_date_format("2025-08-09") == True
        assert DateManager.validate_date_format("2002-12-07") == True

        assert DateManager.validate_date_format("2025/08/09") == False
        assert DateManager.validate_date_format("09-08-2025") == False
        assert DateManager.validate_date_format("2025-8-9") == False
        assert DateManager.validate_date_format("") == False
        assert DateManager.validate_date_format("2025-13-01") == False  # Invalid month

        # Edge cases
        assert DateManager.validate_date_format("2001-08-08") == False  # Before the lottery existed
        assert DateManager.validate_date_format("2099-08-08") == False  # Too far ahead
        assert DateManager.validate_date_format(None) == False
        assert DateManager.validate_date_format(123) == False

    def test_days_until_next_drawing(self):
        """Test calculating days until next drawing."""
        monday = DateManager.LOTTO_TIMEZONE.localize(datetime(2025, 8, 4, 10, 0))
        assert DateManager.days_until_next_drawing(monday) == 5

        saturday_morning = DateManager.LOTTO_TIMEZONE.localize(datetime(2025, 8, 9, 9, 0))
        assert DateManager.days_until_next_drawing(saturday_morning) == 0

        saturday_night = DateManager.LOTTO_TIMEZONE.localize(datetime(2025, 8, 9, 22, 0))
        assert DateManager.days_until_next_drawing(saturday_night) == 7

    def test_estimate_next_draw_number(self):
        """The weekly cadence advances one draw number per week."""
        monday = DateManager.LOTTO_TIMEZONE.localize(datetime(2025, 8, 4, 10, 0))
        assert DateManager.estimate_next_draw_number(1183, "2025-08-02", monday) == 1184
        assert DateManager.estimate_next_draw_number(1181, "2025-07-19", monday) == 1184


class TestConvenienceFunctions:
    """Test suite for convenience functions."""

    def test_calculate_next_drawing_date_function(self):
        """Test the convenience function."""
        next_date = calculate_next_drawing_date()
        assert validate_date_format(next_date)
        assert is_valid_drawing_date(next_date)

    def test_is_valid_drawing_date_function(self):
        """Test the convenience function."""
        assert is_valid_drawing_date("2025-08-09") == True   # Saturday
        assert is_valid_drawing_date("2025-08-08") == False  # Friday

    def test_validate_date_format_function(self):
        """Test the convenience function."""
        assert validate_date_format("2025-08-09") == True
        assert validate_date_format("invalid") == False


if __name__ == "__main__":
    # Run tests if executed directly
    pytest.main([__file__, "-v"])
