"""
Checklist repository - Data access layer for ChecklistTask rows.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import and_

from habit_ladder.models import ChecklistTask


class ChecklistRepository:
    """Repository for ChecklistTask data access"""

    @staticmethod
    def get_by_id(db: Session, task_id: int) -> Optional[ChecklistTask]:
        """Get checklist task by ID"""
        return db.query(ChecklistTask).filter(ChecklistTask.id == task_id).first()

    @staticmethod
    def get_by_user(
        db: Session,
        user_id: int,
        item_id: Optional[int] = None,
        include_archived: bool = False
    ) -> List[ChecklistTask]:
        """Get a user's checklist tasks, optionally for one item"""
        query = db.query(ChecklistTask).filter(ChecklistTask.user_id == user_id)
        if item_id is not None:
            query = query.filter(ChecklistTask.item_id == item_id)
        if not include_archived:
            query = query.filter(ChecklistTask.is_archived == False)
        return query.order_by(ChecklistTask.created_at, ChecklistTask.id).all()

    @staticmethod
    def reset_repetitive(db: Session, item_id: int, now: datetime) -> int:
        """
        Reopen completed repetitive tasks of an item (caller commits).

        Returns:
            Number of tasks reopened
        """
        return db.query(ChecklistTask).filter(
            and_(
                ChecklistTask.item_id == item_id,
                ChecklistTask.is_completed == True,
                ChecklistTask.is_repetitive == True
            )
        ).update(
            {
                ChecklistTask.is_completed: False,
                ChecklistTask.last_shown: now,
            },
            synchronize_session=False
        )

    @staticmethod
    def create(db: Session, task: ChecklistTask) -> ChecklistTask:
        """Create new checklist task"""
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def update(db: Session, task: ChecklistTask) -> ChecklistTask:
        """Update existing checklist task"""
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def count_for_item(db: Session, item_id: int) -> int:
        """Count checklist tasks attached to an item, archived ones included"""
        return db.query(ChecklistTask).filter(ChecklistTask.item_id == item_id).count()
