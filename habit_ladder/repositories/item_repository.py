"""
Item repository - Data access layer for users and trackable items.
"""
from typing import List, Optional
from sqlalchemy.orm import Session

from habit_ladder.models import TrackableItem, User


class UserRepository:
    """Repository for User data access"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def create(db: Session, user: User) -> User:
        """Create new user"""
        db.add(user)
        db.commit()
        db.refresh(user)
        return user


class ItemRepository:
    """Repository for TrackableItem data access"""

    @staticmethod
    def get_by_id(db: Session, item_id: int) -> Optional[TrackableItem]:
        """Get item by ID"""
        return db.query(TrackableItem).filter(TrackableItem.id == item_id).first()

    @staticmethod
    def get_by_user(
        db: Session,
        user_id: int,
        active_only: bool = False
    ) -> List[TrackableItem]:
        """Get all items owned by a user, oldest first"""
        query = db.query(TrackableItem).filter(TrackableItem.user_id == user_id)
        if active_only:
            query = query.filter(TrackableItem.is_active == True)
        return query.order_by(TrackableItem.created_at, TrackableItem.id).all()

    @staticmethod
    def create(db: Session, item: TrackableItem) -> TrackableItem:
        """Create new item"""
        db.add(item)
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def update(db: Session, item: TrackableItem) -> TrackableItem:
        """Update existing item"""
        db.commit()
        db.refresh(item)
        return item

    @staticmethod
    def delete(db: Session, item: TrackableItem) -> None:
        """Hard-delete an item"""
        db.delete(item)
        db.commit()
