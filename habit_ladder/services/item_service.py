"""
Trackable item service.
Handles habits, goals and activities: creation, edits, archiving and the
"today" view. Point values always follow intensity.
"""
import logging
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session

from habit_ladder.exceptions import (
    ItemNotFoundException, ForbiddenException, UserNotFoundException, ValidationException
)
from habit_ladder.models import TrackableItem
from habit_ladder.repositories.checklist_repository import ChecklistRepository
from habit_ladder.repositories.completion_repository import CompletionRepository
from habit_ladder.repositories.item_repository import ItemRepository, UserRepository
from habit_ladder.repositories.ledger_repository import LedgerRepository
from habit_ladder.schemas import ItemCreate, ItemUpdate, TodayItemResponse
from habit_ladder.services.date_service import DateService

logger = logging.getLogger("habit_ladder.items")


class ItemService:
    """Service for trackable item management"""

    def __init__(self, db: Session):
        self.db = db
        self.item_repo = ItemRepository()
        self.user_repo = UserRepository()
        self.completion_repo = CompletionRepository()
        self.checklist_repo = ChecklistRepository()
        self.ledger_repo = LedgerRepository()
        self.date_service = DateService()

    def get_item(self, user_id: int, item_id: int) -> TrackableItem:
        """Get an item owned by the user"""
        item = self.item_repo.get_by_id(self.db, item_id)
        if not item:
            raise ItemNotFoundException(item_id)
        if item.user_id != user_id:
            raise ForbiddenException(user_id, f"item {item_id}")
        return item

    def get_items(self, user_id: int, active_only: bool = False) -> List[TrackableItem]:
        """Get all items of a user"""
        return self.item_repo.get_by_user(self.db, user_id, active_only)

    def get_today_items(
        self,
        user_id: int,
        today: Optional[date] = None
    ) -> List[TodayItemResponse]:
        """
        Get active items with a flag telling whether each was completed today.

        Archived items are left out.
        """
        today = today or self.date_service.today()
        day_start, day_end = self.date_service.get_day_range(today)
        done_ids = self.completion_repo.get_completed_item_ids(
            self.db, user_id, day_start, day_end
        )

        return [
            TodayItemResponse.model_validate(item).model_copy(
                update={"completed_today": item.id in done_ids}
            )
            for item in self.item_repo.get_by_user(self.db, user_id, active_only=True)
        ]

    def create_item(self, user_id: int, item_data: ItemCreate) -> TrackableItem:
        """
        Create a new item for the user.

        The user's progression ledger is created alongside the first item.
        """
        if not self.user_repo.get_by_id(self.db, user_id):
            raise UserNotFoundException(user_id)

        data = item_data.model_dump()
        intensity = data.pop("intensity")
        item = TrackableItem(user_id=user_id, **data)
        item.apply_intensity(intensity)

        self.ledger_repo.get_or_create(self.db, user_id)
        item = self.item_repo.create(self.db, item)

        logger.info(
            f"User {user_id} created item {item.id} "
            f"({'recurring' if item.is_recurring else 'one-time'}, {item.point_value} pts)"
        )
        return item

    def update_item(self, user_id: int, item_id: int, item_update: ItemUpdate) -> TrackableItem:
        """
        Update an existing item; intensity changes re-derive the point value.

        Raises:
            ValidationException: is_recurring changed on an item that already
                has completions
        """
        item = self.get_item(user_id, item_id)

        update_data = item_update.model_dump(exclude_unset=True)
        recurring = update_data.get("is_recurring")
        if (
            recurring is not None
            and recurring != item.is_recurring
            and self.completion_repo.count_for_item(self.db, item_id) > 0
        ):
            raise ValidationException(
                "is_recurring", "cannot change once the item has completions", recurring
            )
        intensity = update_data.pop("intensity", None)
        for key, value in update_data.items():
            setattr(item, key, value)

        if intensity is not None and intensity != item.intensity:
            item.apply_intensity(intensity)

        return self.item_repo.update(self.db, item)

    def archive_item(self, user_id: int, item_id: int) -> TrackableItem:
        """Soft-disable an item; its completions stay in history"""
        item = self.get_item(user_id, item_id)
        item.is_active = False
        return self.item_repo.update(self.db, item)

    def delete_item(self, user_id: int, item_id: int) -> str:
        """
        Delete an item.

        Items referenced by completions or checklist tasks are archived
        instead of removed.

        Returns:
            "archived" or "deleted"
        """
        item = self.get_item(user_id, item_id)

        if (
            self.completion_repo.count_for_item(self.db, item_id) > 0
            or self.checklist_repo.count_for_item(self.db, item_id) > 0
        ):
            item.is_active = False
            self.item_repo.update(self.db, item)
            logger.info(f"Item {item_id} is still referenced, archived instead of deleted")
            return "archived"

        self.item_repo.delete(self.db, item)
        logger.info(f"Item {item_id} deleted")
        return "deleted"
