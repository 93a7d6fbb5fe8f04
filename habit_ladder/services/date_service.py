"""
Date calculation service.
Calendar days are local and run midnight to midnight; every day window is
half-open [day_start, day_end).
"""
from datetime import datetime, timedelta, date


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def now() -> datetime:
        """Current local time"""
        return datetime.now()

    @staticmethod
    def today() -> date:
        """Current local calendar day"""
        return datetime.now().date()

    @staticmethod
    def get_day_range(target_date: date) -> tuple[datetime, datetime]:
        """
        Get datetime range for a full day (midnight to midnight).

        Args:
            target_date: Date to get range for

        Returns:
            Tuple of (day_start, day_end) datetimes
        """
        day_start = datetime.combine(target_date, datetime.min.time())
        day_end = datetime.combine(target_date + timedelta(days=1), datetime.min.time())
        return day_start, day_end

    @staticmethod
    def to_local_naive(dt: datetime) -> datetime:
        """
        Convert a timezone-aware datetime to naive local time.

        Naive values are assumed to be local already and pass through.
        """
        if dt.tzinfo is None:
            return dt
        return dt.astimezone().replace(tzinfo=None)
