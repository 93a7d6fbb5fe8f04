"""
Ledger repository - Data access layer for progression ledgers and achievements.
Point changes are issued as single UPDATE statements so concurrent writers
never lose an increment.
"""
from datetime import datetime
from typing import List, Optional, Set
from sqlalchemy.orm import Session
from sqlalchemy import case

from habit_ladder.models import ProgressionLedger, UnlockedAchievement


class LedgerRepository:
    """Repository for ProgressionLedger data access"""

    @staticmethod
    def get_by_user(db: Session, user_id: int) -> Optional[ProgressionLedger]:
        """Get the ledger of a user"""
        return db.query(ProgressionLedger).filter(
            ProgressionLedger.user_id == user_id
        ).first()

    @staticmethod
    def get_or_create(db: Session, user_id: int) -> ProgressionLedger:
        """
        Get the user's ledger, staging a fresh one if missing.

        The new row is flushed, not committed; the caller decides when the
        surrounding transaction ends.
        """
        ledger = LedgerRepository.get_by_user(db, user_id)
        if ledger:
            return ledger

        ledger = ProgressionLedger(
            user_id=user_id,
            total_points=0,
            weekly_points=0,
            current_level=0,
            current_streak=0,
            longest_streak=0,
            challenge_start_date=datetime.now()
        )
        db.add(ledger)
        db.flush()
        return ledger

    @staticmethod
    def add_points(db: Session, user_id: int, points: int) -> None:
        """Atomically add points to lifetime and weekly totals"""
        db.query(ProgressionLedger).filter(
            ProgressionLedger.user_id == user_id
        ).update(
            {
                ProgressionLedger.total_points: ProgressionLedger.total_points + points,
                ProgressionLedger.weekly_points: ProgressionLedger.weekly_points + points,
            },
            synchronize_session=False
        )

    @staticmethod
    def subtract_points(db: Session, user_id: int, points: int) -> None:
        """Atomically subtract points from both totals, floored at zero"""
        total = ProgressionLedger.total_points
        weekly = ProgressionLedger.weekly_points
        db.query(ProgressionLedger).filter(
            ProgressionLedger.user_id == user_id
        ).update(
            {
                total: case((total < points, 0), else_=total - points),
                weekly: case((weekly < points, 0), else_=weekly - points),
            },
            synchronize_session=False
        )

    @staticmethod
    def reset_weekly(db: Session, user_id: Optional[int] = None) -> int:
        """
        Zero weekly points for one user, or for every ledger when user_id is None.

        Returns:
            Number of ledgers touched
        """
        query = db.query(ProgressionLedger)
        if user_id is not None:
            query = query.filter(ProgressionLedger.user_id == user_id)
        count = query.update(
            {ProgressionLedger.weekly_points: 0},
            synchronize_session=False
        )
        db.commit()
        return count

    @staticmethod
    def update(db: Session, ledger: ProgressionLedger) -> ProgressionLedger:
        """Commit pending ledger changes"""
        db.commit()
        db.refresh(ledger)
        return ledger


class AchievementRepository:
    """Repository for UnlockedAchievement data access"""

    @staticmethod
    def get_for_user(db: Session, user_id: int) -> List[UnlockedAchievement]:
        """Get unlocked achievements in unlock order"""
        return db.query(UnlockedAchievement).filter(
            UnlockedAchievement.user_id == user_id
        ).order_by(UnlockedAchievement.unlocked_at, UnlockedAchievement.id).all()

    @staticmethod
    def get_ids(db: Session, user_id: int) -> Set[str]:
        """Get the set of unlocked achievement IDs"""
        rows = db.query(UnlockedAchievement.achievement_id).filter(
            UnlockedAchievement.user_id == user_id
        ).all()
        return {row[0] for row in rows}

    @staticmethod
    def add_many(db: Session, achievements: List[UnlockedAchievement]) -> None:
        """Stage a batch of unlocks (caller commits)"""
        if not achievements:
            return
        db.add_all(achievements)
        db.flush()
