"""
Completion repository - Data access layer for CompletionEvent rows.
Insert and delete do not commit; the progression engine owns the transaction.
"""
from datetime import datetime
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_

from habit_ladder.models import CompletionEvent


class CompletionRepository:
    """Repository for CompletionEvent data access"""

    @staticmethod
    def find_in_window(
        db: Session,
        user_id: int,
        item_id: int,
        window_start: datetime,
        window_end: datetime
    ) -> Optional[CompletionEvent]:
        """
        Get the most recent completion of an item inside [window_start, window_end).

        Args:
            db: Database session
            user_id: Acting user
            item_id: Trackable item
            window_start: Inclusive lower bound
            window_end: Exclusive upper bound

        Returns:
            Latest matching event, or None
        """
        return db.query(CompletionEvent).filter(
            and_(
                CompletionEvent.user_id == user_id,
                CompletionEvent.item_id == item_id,
                CompletionEvent.completed_at >= window_start,
                CompletionEvent.completed_at < window_end
            )
        ).order_by(CompletionEvent.completed_at.desc(), CompletionEvent.id.desc()).first()

    @staticmethod
    def exists_in_window(
        db: Session,
        user_id: int,
        item_id: int,
        window_start: datetime,
        window_end: datetime
    ) -> bool:
        """Check whether any completion falls inside [window_start, window_end)"""
        return db.query(CompletionEvent.id).filter(
            and_(
                CompletionEvent.user_id == user_id,
                CompletionEvent.item_id == item_id,
                CompletionEvent.completed_at >= window_start,
                CompletionEvent.completed_at < window_end
            )
        ).first() is not None

    @staticmethod
    def exists_for_item(db: Session, user_id: int, item_id: int) -> bool:
        """Check whether the item was ever completed by the user"""
        return db.query(CompletionEvent.id).filter(
            and_(
                CompletionEvent.user_id == user_id,
                CompletionEvent.item_id == item_id
            )
        ).first() is not None

    @staticmethod
    def count_for_item(db: Session, item_id: int) -> int:
        """Count completions referencing an item"""
        return db.query(CompletionEvent).filter(
            CompletionEvent.item_id == item_id
        ).count()

    @staticmethod
    def get_by_user(
        db: Session,
        user_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        item_id: Optional[int] = None
    ) -> List[CompletionEvent]:
        """Get a user's completions, newest first, optionally filtered"""
        query = db.query(CompletionEvent).filter(CompletionEvent.user_id == user_id)
        if item_id is not None:
            query = query.filter(CompletionEvent.item_id == item_id)
        if start is not None:
            query = query.filter(CompletionEvent.completed_at >= start)
        if end is not None:
            query = query.filter(CompletionEvent.completed_at < end)
        return query.order_by(
            CompletionEvent.completed_at.desc(), CompletionEvent.id.desc()
        ).all()

    @staticmethod
    def get_completed_item_ids(
        db: Session,
        user_id: int,
        window_start: datetime,
        window_end: datetime
    ) -> set:
        """Get IDs of items completed by the user inside the window"""
        rows = db.query(CompletionEvent.item_id).filter(
            and_(
                CompletionEvent.user_id == user_id,
                CompletionEvent.completed_at >= window_start,
                CompletionEvent.completed_at < window_end
            )
        ).distinct().all()
        return {row[0] for row in rows}

    @staticmethod
    def get_latest_streaks(db: Session, user_id: int, since: datetime) -> Dict[int, int]:
        """
        Get the streak of each item's latest completion at or after since.

        Returns:
            Mapping of item ID to streak_at_completion
        """
        rows = db.query(
            CompletionEvent.item_id, CompletionEvent.streak_at_completion
        ).filter(
            and_(
                CompletionEvent.user_id == user_id,
                CompletionEvent.completed_at >= since
            )
        ).order_by(CompletionEvent.completed_at.desc(), CompletionEvent.id.desc()).all()

        latest = {}
        for item_id, streak in rows:
            latest.setdefault(item_id, streak)
        return latest

    @staticmethod
    def insert(db: Session, event: CompletionEvent) -> CompletionEvent:
        """Stage a new completion (caller commits)"""
        db.add(event)
        db.flush()
        return event

    @staticmethod
    def delete(db: Session, event: CompletionEvent) -> None:
        """Stage deletion of a completion (caller commits)"""
        db.delete(event)
        db.flush()
