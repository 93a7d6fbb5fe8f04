"""
Progression engine.
Turns completion events into point awards, streak accounting, level changes
and achievement unlocks, and reverses the point side of a completion on undo.

Every completion path (habits, goals, activities) goes through this service,
so there is exactly one award formula and one level model.

Undo is a point correction only: it gives back the points of the removed
completion and re-derives the level, but it does not rewind current_streak,
longest_streak or unlocked achievements.
"""
import logging
import threading
from datetime import datetime, date
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from habit_ladder.constants import LADDER_THEMES
from habit_ladder.exceptions import (
    ItemNotFoundException,
    LedgerNotFoundException,
    ForbiddenException,
    AlreadyCompletedException,
    AlreadyCompletedTodayException,
    NothingToUndoException,
    ItemInactiveException,
    ValidationException,
)
from habit_ladder.models import (
    CompletionEvent, ProgressionLedger, TrackableItem, UnlockedAchievement, User
)
from habit_ladder.repositories.item_repository import ItemRepository
from habit_ladder.repositories.completion_repository import CompletionRepository
from habit_ladder.repositories.ledger_repository import (
    LedgerRepository, AchievementRepository
)
from habit_ladder.repositories.checklist_repository import ChecklistRepository
from habit_ladder.schemas import (
    AchievementResponse, CompletionResponse, CompletionResult,
    LedgerSnapshot, RungResponse, UndoResult
)
from habit_ladder.services.access_service import AccessPolicy
from habit_ladder.services.achievement_service import (
    AchievementService, Achievement, LedgerState
)
from habit_ladder.services.date_service import DateService
from habit_ladder.services.points_service import PointsService
from habit_ladder.services.streak_service import StreakService

logger = logging.getLogger("habit_ladder.progression")

# Per-user locks serializing ledger read-modify-write inside this process
_user_locks: Dict[int, threading.Lock] = {}
_user_locks_guard = threading.Lock()


def _lock_for(user_id: int) -> threading.Lock:
    with _user_locks_guard:
        lock = _user_locks.get(user_id)
        if lock is None:
            lock = threading.Lock()
            _user_locks[user_id] = lock
        return lock


class ProgressionService:
    """Service orchestrating completions, undo and ledger maintenance"""

    def __init__(self, db: Session, access_policy: Optional[AccessPolicy] = None):
        self.db = db
        self.item_repo = ItemRepository()
        self.completion_repo = CompletionRepository()
        self.ledger_repo = LedgerRepository()
        self.achievement_repo = AchievementRepository()
        self.checklist_repo = ChecklistRepository()
        self.date_service = DateService()
        self.points_service = PointsService()
        self.streak_service = StreakService(db)
        self.achievement_service = AchievementService()
        self.access_policy = access_policy or AccessPolicy()

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def complete_item(
        self,
        user_id: int,
        item_id: int,
        notes: Optional[str] = None,
        completed_at: Optional[datetime] = None
    ) -> CompletionResult:
        """
        Record a completion and apply its progression effects.

        All checks run before anything is written. The completion insert,
        the point increment, level/streak updates, achievement unlocks and
        the checklist reset are committed together or not at all.

        Args:
            user_id: Acting user (must own the item)
            item_id: Item being completed
            notes: Optional free-text note stored on the completion
            completed_at: Completion time, defaults to now

        Returns:
            CompletionResult with the stored completion, the ledger snapshot
            and the achievements unlocked by this event

        Raises:
            ItemNotFoundException, ForbiddenException, ItemInactiveException,
            AlreadyCompletedTodayException, AlreadyCompletedException,
            ValidationException
        """
        now = self.date_service.now()
        when = self.date_service.to_local_naive(completed_at) if completed_at else now
        if when > now:
            raise ValidationException("completed_at", "cannot be in the future", when)
        day = when.date()

        with _lock_for(user_id):
            item = self._get_owned_item(user_id, item_id)
            if not item.is_active:
                raise ItemInactiveException(item_id)
            self._ensure_not_completed(user_id, item, day)

            existing = self.ledger_repo.get_by_user(self.db, user_id)
            streak = self.streak_service.compute_streak(
                user_id, item_id, day,
                not_before=existing.streaks_reset_at if existing else None
            )
            award = self.points_service.compute_award(item.point_value, streak)

            try:
                ledger = self.ledger_repo.get_or_create(self.db, user_id)

                completion = CompletionEvent(
                    item_id=item_id,
                    user_id=user_id,
                    completed_at=when,
                    points_awarded=award,
                    streak_at_completion=streak,
                    notes=notes
                )
                self.completion_repo.insert(self.db, completion)

                self.ledger_repo.add_points(self.db, user_id, award)
                self.db.refresh(ledger)

                previous_level = ledger.current_level
                ledger.current_level = self.points_service.level_for(ledger.total_points)
                self._fold_streak(ledger, streak)

                unlocked = self.achievement_service.evaluate(
                    LedgerState(
                        total_points=ledger.total_points,
                        current_level=ledger.current_level
                    ),
                    latest_streak=streak,
                    latest_award=award,
                    unlocked_ids=self.achievement_repo.get_ids(self.db, user_id),
                    now=now
                )
                self.achievement_repo.add_many(
                    self.db, [self._to_row(user_id, a) for a in unlocked]
                )

                reopened = 0
                if item.is_recurring:
                    reopened = self.checklist_repo.reset_repetitive(self.db, item_id, now)

                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Completion of item {item_id} for user {user_id} failed: {e}")
                raise

            self.db.refresh(completion)
            self.db.refresh(ledger)

        logger.info(
            f"User {user_id} completed item {item_id}: streak={streak}, "
            f"award={award}, total={ledger.total_points}"
        )
        if ledger.current_level != previous_level:
            logger.info(
                f"User {user_id} moved from level {previous_level} to {ledger.current_level}"
            )
        for achievement in unlocked:
            logger.info(f"User {user_id} unlocked achievement '{achievement.id}'")
        if reopened:
            logger.info(f"Reopened {reopened} repetitive checklist tasks of item {item_id}")

        return CompletionResult(
            completion=CompletionResponse.model_validate(completion),
            ledger=self._snapshot(ledger),
            new_achievements=[self._to_response(a) for a in unlocked]
        )

    def undo_completion(
        self,
        user_id: int,
        item_id: int,
        on_date: Optional[date] = None
    ) -> UndoResult:
        """
        Remove today's completion of an item and give back its points.

        Points are subtracted from lifetime and weekly totals (never below
        zero) and the level is re-derived. Streak fields and achievements are
        left as they are.

        Args:
            user_id: Acting user (must own the item)
            item_id: Item whose completion is undone
            on_date: Calendar day to search; only today is accepted

        Returns:
            UndoResult with the ledger snapshot and the points removed

        Raises:
            ItemNotFoundException, ForbiddenException, NothingToUndoException,
            ValidationException (on_date is not today)
        """
        today = self.date_service.today()
        day = on_date or today
        if day != today:
            raise ValidationException("on_date", "only today's completion can be undone", day)

        with _lock_for(user_id):
            self._get_owned_item(user_id, item_id)

            day_start, day_end = self.date_service.get_day_range(day)
            completion = self.completion_repo.find_in_window(
                self.db, user_id, item_id, day_start, day_end
            )
            if not completion:
                raise NothingToUndoException(item_id, day)

            points = completion.points_awarded
            try:
                ledger = self.ledger_repo.get_or_create(self.db, user_id)
                self.ledger_repo.subtract_points(self.db, user_id, points)
                self.db.refresh(ledger)
                ledger.current_level = self.points_service.level_for(ledger.total_points)

                self.completion_repo.delete(self.db, completion)
                self.db.commit()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Undo of item {item_id} for user {user_id} failed: {e}")
                raise

            self.db.refresh(ledger)

        logger.info(
            f"User {user_id} undid item {item_id} on {day}: -{points} points, "
            f"total={ledger.total_points}"
        )
        return UndoResult(ledger=self._snapshot(ledger), points_removed=points)

    def list_completions(
        self,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        item_id: Optional[int] = None
    ) -> List[CompletionEvent]:
        """Get a user's completions, newest first"""
        if item_id is not None:
            self._get_owned_item(user_id, item_id)
        return self.completion_repo.get_by_user(self.db, user_id, start, end, item_id)

    # ------------------------------------------------------------------
    # Ledger
    # ------------------------------------------------------------------

    def ensure_ledger(self, user_id: int) -> ProgressionLedger:
        """Create the user's ledger if it does not exist yet"""
        ledger = self.ledger_repo.get_by_user(self.db, user_id)
        if ledger:
            return ledger
        ledger = self.ledger_repo.get_or_create(self.db, user_id)
        self.db.commit()
        logger.info(f"Created progression ledger for user {user_id}")
        return ledger

    def get_ledger(self, user_id: int) -> LedgerSnapshot:
        """
        Get the user's ledger snapshot.

        Raises:
            LedgerNotFoundException: If the user has no ledger yet
        """
        return self._snapshot(self._get_ledger_row(user_id))

    def reset_weekly_points(self, user_id: int) -> LedgerSnapshot:
        """Zero the user's weekly points (weekly boundary hook)"""
        with _lock_for(user_id):
            ledger = self._get_ledger_row(user_id)
            self.ledger_repo.reset_weekly(self.db, user_id)
            self.db.refresh(ledger)

        logger.info(f"Weekly points reset for user {user_id}")
        return self._snapshot(ledger)

    def reset_all_weekly_points(self) -> int:
        """
        Zero weekly points on every ledger.

        Returns:
            Number of ledgers reset
        """
        count = self.ledger_repo.reset_weekly(self.db)
        logger.info(f"Weekly points reset for {count} ledgers")
        return count

    def reset_progress(self, actor: Optional[User], user_id: int) -> LedgerSnapshot:
        """
        Administrative reset of a user's streak counters.

        This is the only operation that lowers longest_streak. Points, level
        and achievements are kept.

        Raises:
            ForbiddenException: If the actor is not an admin
            LedgerNotFoundException: If the user has no ledger
        """
        self.access_policy.require_admin(actor)

        with _lock_for(user_id):
            ledger = self._get_ledger_row(user_id)
            ledger.current_streak = 0
            ledger.longest_streak = 0
            ledger.streak_updated_on = self.date_service.today()
            ledger.streaks_reset_at = self.date_service.now()
            self.ledger_repo.update(self.db, ledger)

        logger.info(f"Admin {actor.id} reset streaks of user {user_id}")
        return self._snapshot(ledger)

    def update_theme(self, user_id: int, ladder_theme: str) -> LedgerSnapshot:
        """Change the ladder theme shown for the user"""
        if ladder_theme not in LADDER_THEMES:
            raise ValidationException("ladder_theme", "unknown theme", ladder_theme)

        with _lock_for(user_id):
            ledger = self._get_ledger_row(user_id)
            ledger.ladder_theme = ladder_theme
            self.ledger_repo.update(self.db, ledger)

        return self._snapshot(ledger)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_owned_item(self, user_id: int, item_id: int) -> TrackableItem:
        item = self.item_repo.get_by_id(self.db, item_id)
        if not item:
            raise ItemNotFoundException(item_id)
        if item.user_id != user_id:
            raise ForbiddenException(user_id, f"item {item_id}")
        return item

    def _get_ledger_row(self, user_id: int) -> ProgressionLedger:
        ledger = self.ledger_repo.get_by_user(self.db, user_id)
        if not ledger:
            raise LedgerNotFoundException(user_id)
        return ledger

    def _ensure_not_completed(self, user_id: int, item: TrackableItem, day: date) -> None:
        """Idempotence guard: one completion per day (recurring) or ever (one-time)"""
        if item.is_recurring:
            day_start, day_end = self.date_service.get_day_range(day)
            if self.completion_repo.exists_in_window(
                self.db, user_id, item.id, day_start, day_end
            ):
                logger.info(f"Item {item.id} already completed by user {user_id} on {day}")
                raise AlreadyCompletedTodayException(item.id, day)
        elif self.completion_repo.exists_for_item(self.db, user_id, item.id):
            logger.info(f"One-time item {item.id} already completed by user {user_id}")
            raise AlreadyCompletedException(item.id)

    def _fold_streak(self, ledger: ProgressionLedger, streak: int) -> None:
        """
        Refresh the user-level streak fields after a completion.

        current_streak is the best per-item run still alive today (see
        StreakService.live_streak); longest_streak only grows.
        """
        today = self.date_service.today()
        ledger.current_streak = self.streak_service.live_streak(
            ledger.user_id, today, ledger.streaks_reset_at
        )
        ledger.streak_updated_on = today
        ledger.longest_streak = max(
            ledger.longest_streak or 0, streak, ledger.current_streak
        )

    def _current_streak(self, ledger: ProgressionLedger, today: date) -> int:
        # A value stored today stands (undo does not rewind it); older ones are recomputed
        if ledger.streak_updated_on == today:
            return ledger.current_streak or 0
        return self.streak_service.live_streak(
            ledger.user_id, today, ledger.streaks_reset_at
        )

    def _snapshot(self, ledger: ProgressionLedger) -> LedgerSnapshot:
        """Build the read model of a ledger"""
        today = self.date_service.today()
        current_streak = self._current_streak(ledger, today)

        ladder = self.points_service.rung_progress(ledger.total_points)
        achievements = self.achievement_repo.get_for_user(self.db, ledger.user_id)

        return LedgerSnapshot(
            user_id=ledger.user_id,
            total_points=ledger.total_points,
            weekly_points=ledger.weekly_points,
            current_level=ledger.current_level,
            current_streak=current_streak,
            longest_streak=ledger.longest_streak,
            ladder_theme=ledger.ladder_theme,
            challenge_start_date=ledger.challenge_start_date,
            rung=RungResponse(**ladder["rung"]),
            next_rung=RungResponse(**ladder["next_rung"]) if ladder["next_rung"] else None,
            progress_to_next=ladder["progress_to_next"],
            achievements=[
                AchievementResponse(
                    id=row.achievement_id,
                    title=row.title,
                    description=row.description,
                    icon=row.icon,
                    category=row.category,
                    unlocked_at=row.unlocked_at
                )
                for row in achievements
            ]
        )

    @staticmethod
    def _to_row(user_id: int, achievement: Achievement) -> UnlockedAchievement:
        return UnlockedAchievement(
            user_id=user_id,
            achievement_id=achievement.id,
            title=achievement.title,
            description=achievement.description,
            icon=achievement.icon,
            category=achievement.category,
            unlocked_at=achievement.unlocked_at
        )

    @staticmethod
    def _to_response(achievement: Achievement) -> AchievementResponse:
        return AchievementResponse(
            id=achievement.id,
            title=achievement.title,
            description=achievement.description,
            icon=achievement.icon,
            category=achievement.category,
            unlocked_at=achievement.unlocked_at
        )
