"""
Streak calculation service.
Streaks are counted per trackable item by walking the completion ledger
backwards one calendar day at a time.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Session

from habit_ladder.repositories.completion_repository import CompletionRepository
from habit_ladder.services.date_service import DateService

logger = logging.getLogger("habit_ladder.streak")


class StreakService:
    """Service for consecutive-day streak computation"""

    def __init__(self, db: Session):
        self.db = db
        self.completion_repo = CompletionRepository()
        self.date_service = DateService()

    def compute_streak(
        self,
        user_id: int,
        item_id: int,
        reference_date: date,
        not_before: Optional[datetime] = None
    ) -> int:
        """
        Compute the consecutive-day run ending at reference_date, inclusive.

        The reference day itself always counts. Walks back from the previous
        day and stops at the first day with no completion, so older history
        behind a gap is ignored. No cap on the walk.

        Args:
            user_id: Acting user
            item_id: Trackable item
            reference_date: Day being completed
            not_before: Completions earlier than this do not count
                (set by an administrative streak reset)

        Returns:
            Streak length (>= 1)
        """
        streak = 1
        check_date = reference_date - timedelta(days=1)

        while True:
            day_start, day_end = self.date_service.get_day_range(check_date)
            if not_before is not None:
                if not_before >= day_end:
                    break
                day_start = max(day_start, not_before)
            if not self.completion_repo.exists_in_window(
                self.db, user_id, item_id, day_start, day_end
            ):
                break
            streak += 1
            check_date -= timedelta(days=1)

        logger.debug(f"Streak for item {item_id} (user {user_id}) on {reference_date}: {streak}")
        return streak

    def live_streak(
        self,
        user_id: int,
        today: date,
        not_before: Optional[datetime] = None
    ) -> int:
        """
        Best streak among the user's runs that are still alive.

        A run is alive while its item's latest completion falls on today or
        yesterday; its length is that completion's streak_at_completion.

        Returns:
            Longest live run, 0 when none is alive
        """
        since, _ = self.date_service.get_day_range(today - timedelta(days=1))
        if not_before is not None:
            since = max(since, not_before)

        streaks = self.completion_repo.get_latest_streaks(self.db, user_id, since)
        return max(streaks.values(), default=0)
