"""
Date Utilities - LOTTO645
=========================

Centralised date handling for the weekly Lotto 6/45 draw in Korea
Standard Time, with detailed logging for tracking and debugging.
"""

import pytz
from datetime import datetime, timedelta
from typing import Optional, Union
from loguru import logger


class DateManager:
    """
    Central manager for every draw-date operation.

    Features:
    - Standard timezone (Asia/Seoul)
    - One draw per week, Saturday 20:35 KST
    - Draw-number estimation from the weekly cadence
    """

    LOTTO_TIMEZONE = pytz.timezone('Asia/Seoul')

    # Saturday=5
    DRAWING_DAYS = [5]

    DRAWING_HOUR = 20
    DRAWING_MINUTE = 35

    # round 1 was drawn on 2002-12-07
    FIRST_DRAW_DATE = datetime(2002, 12, 7)

    def __init__(self):
        logger.debug("DateManager initialized with timezone: Asia/Seoul")

    @classmethod
    def get_current_kst_time(cls) -> datetime:
        """
        Gets the current date and time in Korea Standard Time.

        Returns:
            datetime: Current timezone-aware KST time
        """
        system_utc = datetime.now(pytz.UTC)
        current_time = system_utc.astimezone(cls.LOTTO_TIMEZONE)
        logger.debug(f"System UTC: {system_utc.isoformat()} -> KST {current_time.isoformat()}")
        return current_time

    @classmethod
    def convert_to_kst(cls, dt: Union[datetime, str]) -> datetime:
        """
        Converts any date/time to KST.

        Args:
            dt: datetime or ISO string ("YYYY-MM-DD", "YYYY-MM-DD HH:MM:SS" or with a "T")

        Returns:
            datetime: Timezone-aware KST time. Naive inputs are taken as KST.
        """
        if isinstance(dt, str):
            try:
                if 'T' in dt:
                    parsed_dt = datetime.fromisoformat(dt.replace('Z', '+00:00'))
                else:
                    parsed_dt = datetime.strptime(dt[:19], '%Y-%m-%d %H:%M:%S')
            except ValueError as e:
                logger.debug(f"Falling back to date-only parse for '{dt}': {e}")
                parsed_dt = datetime.strptime(dt[:10], '%Y-%m-%d')
        else:
            parsed_dt = dt

        if parsed_dt.tzinfo is None:
            return cls.LOTTO_TIMEZONE.localize(parsed_dt)
        return parsed_dt.astimezone(cls.LOTTO_TIMEZONE)

    @classmethod
    def _before_cutoff(cls, moment: datetime) -> bool:
        return (moment.hour, moment.minute) < (cls.DRAWING_HOUR, cls.DRAWING_MINUTE)

    @classmethod
    def calculate_next_drawing_date(cls, reference_date: Optional[datetime] = None) -> str:
        """
        Calculates the next draw date from a reference date.

        Args:
            reference_date: Reference moment (defaults to now)

        Returns:
            str: Next draw date as YYYY-MM-DD
        """
        if reference_date is None:
            reference_date = cls.get_current_kst_time()
        else:
            reference_date = cls.convert_to_kst(reference_date)

        if reference_date.weekday() in cls.DRAWING_DAYS and cls._before_cutoff(reference_date):
            next_draw_date = reference_date.strftime('%Y-%m-%d')
            logger.debug(f"Drawing day before cutoff time - next drawing today: {next_draw_date}")
            return next_draw_date

        for i in range(1, 8):
            next_date = reference_date + timedelta(days=i)
            if next_date.weekday() in cls.DRAWING_DAYS:
                next_draw_date = next_date.strftime('%Y-%m-%d')
                logger.debug(f"Next drawing date found: {next_draw_date} (in {i} days)")
                return next_draw_date

        raise ValueError(f"No drawing day within a week of {reference_date.isoformat()}")

    @classmethod
    def is_valid_drawing_date(cls, date_str: str) -> bool:
        """
        Checks whether a date falls on a draw day.

        Args:
            date_str: Date as YYYY-MM-DD

        Returns:
            bool: True for a Saturday on or after the first draw
        """
        try:
            date_obj = datetime.strptime(date_str, '%Y-%m-%d')
        except ValueError as e:
            logger.error(f"Invalid date format for drawing validation: {date_str} - {e}")
            return False

        is_valid = date_obj.weekday() in cls.DRAWING_DAYS and date_obj >= cls.FIRST_DRAW_DATE
        if not is_valid:
            logger.warning(f"Invalid drawing date: {date_str} ({date_obj.strftime('%A')}) - not a drawing day")
        return is_valid

    @classmethod
    def validate_date_format(cls, date_str: str) -> bool:
        """
        Validates that a date is a plausible YYYY-MM-DD draw-history date.

        Args:
            date_str: Date string to validate

        Returns:
            bool: True when well-formed and between the first draw and next year
        """
        if not isinstance(date_str, str):
            logger.error(f"Date validation failed: not a string - {type(date_str)}")
            return False

        if len(date_str) != 10 or date_str.count('-') != 2:
            logger.error(f"Date validation failed: expected YYYY-MM-DD, got '{date_str}'")
            return False

        try:
            date_obj = datetime.strptime(date_str, '%Y-%m-%d')
        except ValueError as e:
            logger.error(f"Date format validation failed: {date_str} - {e}")
            return False

        current_year = datetime.now().year
        if date_obj.year < cls.FIRST_DRAW_DATE.year or date_obj.year > current_year + 1:
            logger.warning(f"Date outside reasonable range: {date_str} (year {date_obj.year})")
            return False
        return True

    @classmethod
    def days_until_next_drawing(cls, reference_date: Optional[datetime] = None) -> int:
        """
        Calculates how many calendar days remain until the next draw.

        Args:
            reference_date: Reference moment (optional)

        Returns:
            int: 0 on a draw day before the cutoff, otherwise 1..7
        """
        if reference_date is None:
            reference_date = cls.get_current_kst_time()
        else:
            reference_date = cls.convert_to_kst(reference_date)

        next_drawing = datetime.strptime(cls.calculate_next_drawing_date(reference_date), '%Y-%m-%d')
        days_until = (next_drawing.date() - reference_date.date()).days
        logger.debug(f"Days until next drawing: {days_until} (from {reference_date.date()} to {next_drawing.date()})")
        return days_until

    @classmethod
    def estimate_next_draw_number(cls, last_draw_number: int, last_draw_date: str,
                                  reference_date: Optional[datetime] = None) -> int:
        """
        Estimates the number of the next draw from the weekly cadence.

        Args:
            last_draw_number: Number of the most recent known draw
            last_draw_date: Its date as YYYY-MM-DD
            reference_date: Reference moment (defaults to now)

        Returns:
            int: Draw number of the next scheduled draw
        """
        next_date = datetime.strptime(cls.calculate_next_drawing_date(reference_date), '%Y-%m-%d')
        last_date = datetime.strptime(last_draw_date[:10], '%Y-%m-%d')
        weeks = max(1, (next_date - last_date).days // 7)
        return last_draw_number + weeks


def get_current_kst_time() -> datetime:
    """Convenience wrapper for the current KST time."""
    return DateManager.get_current_kst_time()


def calculate_next_drawing_date(reference_date: Optional[datetime] = None) -> str:
    """Convenience wrapper to calculate the next draw date."""
    return DateManager.calculate_next_drawing_date(reference_date)


def is_valid_drawing_date(date_str: str) -> bool:
    """Convenience wrapper to validate a draw date."""
    return DateManager.is_valid_drawing_date(date_str)


def validate_date_format(date_str: str) -> bool:
    """Convenience wrapper to validate a date format."""
    return DateManager.validate_date_format(date_str)
