"""
Checklist service.
Sub-tasks attached to trackable items, plus the optimistic client-state
reducer used to mirror a checklist while server writes are in flight.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Tuple
from sqlalchemy.orm import Session

from habit_ladder.exceptions import (
    ChecklistTaskNotFoundException, ForbiddenException, ValidationException
)
from habit_ladder.models import ChecklistTask
from habit_ladder.repositories.checklist_repository import ChecklistRepository
from habit_ladder.schemas import ChecklistTaskCreate
from habit_ladder.services.date_service import DateService
from habit_ladder.services.item_service import ItemService

logger = logging.getLogger("habit_ladder.checklist")

ACTION_ADD = "add"
ACTION_UPDATE = "update"
ACTION_DELETE = "delete"
ACTION_SET = "set"


class ChecklistService:
    """Service for checklist task management"""

    def __init__(self, db: Session):
        self.db = db
        self.checklist_repo = ChecklistRepository()
        self.item_service = ItemService(db)
        self.date_service = DateService()

    def get_tasks(
        self,
        user_id: int,
        item_id: Optional[int] = None,
        include_archived: bool = False
    ) -> List[ChecklistTask]:
        """Get a user's checklist tasks"""
        return self.checklist_repo.get_by_user(self.db, user_id, item_id, include_archived)

    def create_task(self, user_id: int, task_data: ChecklistTaskCreate) -> ChecklistTask:
        """Create a task, standalone or under an item the user owns"""
        if task_data.item_id is not None:
            self.item_service.get_item(user_id, task_data.item_id)

        task = ChecklistTask(user_id=user_id, **task_data.model_dump())
        return self.checklist_repo.create(self.db, task)

    def toggle_task(self, user_id: int, task_id: int) -> ChecklistTask:
        """Flip a task between done and open"""
        task = self._get_owned_task(user_id, task_id)
        task.is_completed = not task.is_completed
        return self.checklist_repo.update(self.db, task)

    def archive_task(self, user_id: int, task_id: int) -> ChecklistTask:
        """Archive a task"""
        task = self._get_owned_task(user_id, task_id)
        task.is_archived = True
        task.archived_at = self.date_service.now()
        return self.checklist_repo.update(self.db, task)

    def reset_repetitive_tasks(self, item_id: int, now: Optional[datetime] = None) -> int:
        """
        Reopen completed repetitive tasks of an item and refresh last_shown.

        Returns:
            Number of tasks reopened
        """
        count = self.checklist_repo.reset_repetitive(
            self.db, item_id, now or self.date_service.now()
        )
        self.db.commit()
        return count

    def _get_owned_task(self, user_id: int, task_id: int) -> ChecklistTask:
        task = self.checklist_repo.get_by_id(self.db, task_id)
        if not task:
            raise ChecklistTaskNotFoundException(task_id)
        if task.user_id != user_id:
            raise ForbiddenException(user_id, f"checklist task {task_id}")
        return task


@dataclass(frozen=True)
class ChecklistEntry:
    """Immutable client-side view of one checklist task"""
    id: int
    title: str
    is_completed: bool = False
    is_repetitive: bool = False
    item_id: Optional[int] = None

    @classmethod
    def from_task(cls, task: ChecklistTask) -> "ChecklistEntry":
        return cls(
            id=task.id,
            title=task.title,
            is_completed=bool(task.is_completed),
            is_repetitive=bool(task.is_repetitive),
            item_id=task.item_id
        )


@dataclass(frozen=True)
class ChecklistAction:
    type: str  # add, update, delete, set
    entry: Optional[ChecklistEntry] = None
    entry_id: Optional[int] = None
    entries: Tuple[ChecklistEntry, ...] = ()


def reduce_checklist(
    state: Tuple[ChecklistEntry, ...],
    action: ChecklistAction
) -> Tuple[ChecklistEntry, ...]:
    """
    Pure reducer over an immutable checklist snapshot.

    Args:
        state: Current entries
        action: add / update / delete / set

    Returns:
        New snapshot; the input is never modified
    """
    if action.type == ACTION_ADD:
        return state + (action.entry,)

    if action.type == ACTION_UPDATE:
        return tuple(
            action.entry if entry.id == action.entry.id else entry
            for entry in state
        )

    if action.type == ACTION_DELETE:
        return tuple(entry for entry in state if entry.id != action.entry_id)

    if action.type == ACTION_SET:
        return tuple(action.entries)

    raise ValidationException("action", f"unknown checklist action '{action.type}'", action.type)


class OptimisticChecklist:
    """
    Applies checklist actions locally before the server confirms them.

    When the server write fails the local snapshot is replaced by server
    truth; if fetching truth fails too, the pre-action snapshot is restored.
    The original error is re-raised either way.
    """

    def __init__(self, entries: Iterable[ChecklistEntry] = ()):
        self.state: Tuple[ChecklistEntry, ...] = tuple(entries)

    def dispatch(
        self,
        action: ChecklistAction,
        commit: Callable[[], None],
        fetch_truth: Callable[[], Iterable[ChecklistEntry]]
    ) -> Tuple[ChecklistEntry, ...]:
        """
        Apply an action optimistically and push it to the server.

        Args:
            action: Action to apply
            commit: Performs the server write
            fetch_truth: Loads the authoritative entries

        Returns:
            The snapshot after the action
        """
        previous = self.state
        self.state = reduce_checklist(previous, action)

        try:
            commit()
        except Exception as e:
            logger.warning(f"Checklist '{action.type}' failed, reconciling with server: {e}")
            try:
                truth = tuple(fetch_truth())
            except Exception as fetch_error:
                logger.error(f"Could not load checklist from server: {fetch_error}")
                self.state = previous
            else:
                self.state = reduce_checklist(previous, ChecklistAction(ACTION_SET, entries=truth))
            raise

        return self.state
