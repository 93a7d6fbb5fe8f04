"""
Tests for ItemService.

Tests cover:
1. Point value derived from intensity
2. Ledger creation with the first item
3. Today view flags
4. Delete versus archive
5. Update guards (recurrence lock, null fields)
"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from habit_ladder.exceptions import (
    ItemNotFoundException, ForbiddenException, UserNotFoundException, ValidationException
)
from habit_ladder.models import ChecklistTask, ProgressionLedger, TrackableItem
from habit_ladder.schemas import ItemCreate, ItemUpdate
from habit_ladder.services.item_service import ItemService
from habit_ladder.tests.conftest import add_completion, make_item


class TestCreateItem:
    """Tests for create_item function"""

    @pytest.mark.parametrize("intensity,points", [
        ("easy", 5),
        ("medium", 10),
        ("hard", 20),
    ])
    def test_point_value_follows_intensity(self, db_session, user, intensity, points):
        """Point value is derived from intensity"""
        service = ItemService(db_session)

        item = service.create_item(user.id, ItemCreate(title="Walk", intensity=intensity))

        assert item.point_value == points
        assert item.intensity == intensity

    def test_defaults(self, db_session, user):
        """New items are active recurring medium habits"""
        service = ItemService(db_session)

        item = service.create_item(user.id, ItemCreate(title="Walk"))

        assert item.is_recurring is True
        assert item.is_active is True
        assert item.point_value == 10
        assert item.category == "other"

    def test_goal(self, db_session, user):
        """Goals are created as non-recurring items"""
        service = ItemService(db_session)

        item = service.create_item(
            user.id, ItemCreate(title="Renew passport", is_recurring=False, intensity="hard")
        )

        assert item.is_recurring is False

    def test_creates_ledger_once(self, db_session, user):
        """The first item creates the ledger; later items reuse it"""
        service = ItemService(db_session)

        service.create_item(user.id, ItemCreate(title="Walk"))
        service.create_item(user.id, ItemCreate(title="Read"))

        ledgers = db_session.query(ProgressionLedger).filter(
            ProgressionLedger.user_id == user.id
        ).all()
        assert len(ledgers) == 1
        assert ledgers[0].total_points == 0
        assert ledgers[0].ladder_theme == "classic"

    def test_unknown_user(self, db_session):
        """Items cannot be created for missing users"""
        service = ItemService(db_session)

        with pytest.raises(UserNotFoundException):
            service.create_item(4242, ItemCreate(title="Walk"))


class TestUpdateItem:
    """Tests for update_item function"""

    def test_intensity_change_recomputes_points(self, db_session, user, medium_habit):
        """Changing intensity re-derives the point value"""
        service = ItemService(db_session)

        item = service.update_item(user.id, medium_habit.id, ItemUpdate(intensity="hard"))

        assert item.point_value == 20

    def test_other_fields_keep_points(self, db_session, user, hard_habit):
        """Edits that do not touch intensity keep the point value"""
        service = ItemService(db_session)

        item = service.update_item(
            user.id, hard_habit.id, ItemUpdate(title="Run 10k", category="fitness")
        )

        assert item.title == "Run 10k"
        assert item.category == "fitness"
        assert item.point_value == 20

    def test_foreign_item(self, db_session, other_user, hard_habit):
        """Editing someone else's item is forbidden"""
        service = ItemService(db_session)

        with pytest.raises(ForbiddenException):
            service.update_item(other_user.id, hard_habit.id, ItemUpdate(title="Mine now"))

    def test_recurrence_locked_after_completion(self, db_session, user, easy_goal, yesterday):
        """A completed goal cannot be turned into a habit"""
        add_completion(db_session, user, easy_goal, yesterday)
        service = ItemService(db_session)

        with pytest.raises(ValidationException) as exc_info:
            service.update_item(user.id, easy_goal.id, ItemUpdate(is_recurring=True))

        assert exc_info.value.field == "is_recurring"
        db_session.refresh(easy_goal)
        assert easy_goal.is_recurring is False

    def test_recurrence_change_without_completions(self, db_session, user, easy_goal):
        """Recurrence may change while nothing has been completed"""
        service = ItemService(db_session)

        item = service.update_item(user.id, easy_goal.id, ItemUpdate(is_recurring=True))

        assert item.is_recurring is True

    def test_same_recurrence_after_completion(self, db_session, user, hard_habit, yesterday):
        """Sending the current recurrence value is not a change"""
        add_completion(db_session, user, hard_habit, yesterday)
        service = ItemService(db_session)

        item = service.update_item(
            user.id, hard_habit.id, ItemUpdate(is_recurring=True, title="Run 6k")
        )

        assert item.title == "Run 6k"

    def test_null_required_field_rejected(self):
        """Explicit null for a required column fails validation"""
        with pytest.raises(PydanticValidationError):
            ItemUpdate(title=None)
        with pytest.raises(PydanticValidationError):
            ItemUpdate(is_active=None)

        assert ItemUpdate(description=None).model_dump(exclude_unset=True) == {"description": None}


class TestTodayItems:
    """Tests for get_today_items function"""

    def test_completed_flag(self, db_session, user, hard_habit, medium_habit, today):
        """Only items completed today are flagged"""
        add_completion(db_session, user, hard_habit, today)
        service = ItemService(db_session)

        items = {item.id: item for item in service.get_today_items(user.id, today)}

        assert items[hard_habit.id].completed_today is True
        assert items[medium_habit.id].completed_today is False

    def test_yesterday_does_not_count(self, db_session, user, hard_habit, yesterday):
        """A completion yesterday leaves today's flag unset"""
        add_completion(db_session, user, hard_habit, yesterday)
        service = ItemService(db_session)

        items = service.get_today_items(user.id)

        assert items[0].completed_today is False

    def test_archived_items_hidden(self, db_session, user, hard_habit):
        """Inactive items are left out of the today view"""
        make_item(db_session, user, title="Old habit", is_active=False)
        service = ItemService(db_session)

        items = service.get_today_items(user.id)

        assert [item.id for item in items] == [hard_habit.id]


class TestDeleteItem:
    """Tests for delete_item and archive_item functions"""

    def test_delete_unused_item(self, db_session, user, hard_habit):
        """Items without completions are removed"""
        service = ItemService(db_session)

        outcome = service.delete_item(user.id, hard_habit.id)

        assert outcome == "deleted"
        assert db_session.query(TrackableItem).count() == 0

    def test_delete_item_with_history_archives(self, db_session, user, hard_habit, yesterday):
        """Items with completions are archived instead"""
        add_completion(db_session, user, hard_habit, yesterday)
        service = ItemService(db_session)

        outcome = service.delete_item(user.id, hard_habit.id)

        assert outcome == "archived"
        db_session.refresh(hard_habit)
        assert hard_habit.is_active is False

    def test_delete_item_with_checklist_archives(self, db_session, user, hard_habit):
        """Items with checklist tasks are archived and keep their tasks"""
        db_session.add(ChecklistTask(user_id=user.id, item_id=hard_habit.id, title="Stretch"))
        db_session.commit()
        service = ItemService(db_session)

        outcome = service.delete_item(user.id, hard_habit.id)

        assert outcome == "archived"
        db_session.refresh(hard_habit)
        assert hard_habit.is_active is False
        assert db_session.query(ChecklistTask).filter_by(item_id=hard_habit.id).count() == 1

    def test_archive_item(self, db_session, user, hard_habit):
        """Archiving deactivates the item"""
        service = ItemService(db_session)

        item = service.archive_item(user.id, hard_habit.id)

        assert item.is_active is False

    def test_delete_missing_item(self, db_session, user):
        """Deleting a missing item raises ItemNotFoundException"""
        service = ItemService(db_session)

        with pytest.raises(ItemNotFoundException):
            service.delete_item(user.id, 777)
