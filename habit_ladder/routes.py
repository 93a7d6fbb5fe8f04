"""
HTTP routes for items, completions, progress and checklists.
"""
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from habit_ladder.auth import verify_api_key, get_current_user, require_admin
from habit_ladder.database import get_db
from habit_ladder.exceptions import (
    HabitLadderException,
    ItemNotFoundException,
    LedgerNotFoundException,
    UserNotFoundException,
    ChecklistTaskNotFoundException,
    ForbiddenException,
    AlreadyCompletedException,
    NothingToUndoException,
    ItemInactiveException,
    ValidationException,
)
from habit_ladder.models import User
from habit_ladder.schemas import (
    ItemCreate, ItemUpdate, ItemResponse, TodayItemResponse,
    CompletionCreate, CompletionResponse, CompletionResult, UndoResult,
    LedgerSnapshot, LadderThemeUpdate,
    ChecklistTaskCreate, ChecklistTaskResponse,
)
from habit_ladder.services.checklist_service import ChecklistService
from habit_ladder.services.item_service import ItemService
from habit_ladder.services.progression_service import ProgressionService

router = APIRouter(prefix="/api", dependencies=[Depends(verify_api_key)])

# Checked in order, subclasses before their bases
ERROR_STATUS = (
    (ItemNotFoundException, status.HTTP_404_NOT_FOUND),
    (LedgerNotFoundException, status.HTTP_404_NOT_FOUND),
    (UserNotFoundException, status.HTTP_404_NOT_FOUND),
    (ChecklistTaskNotFoundException, status.HTTP_404_NOT_FOUND),
    (NothingToUndoException, status.HTTP_404_NOT_FOUND),
    (ForbiddenException, status.HTTP_403_FORBIDDEN),
    (AlreadyCompletedException, status.HTTP_409_CONFLICT),
    (ItemInactiveException, status.HTTP_409_CONFLICT),
    (ValidationException, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def to_http_exception(error: HabitLadderException) -> HTTPException:
    """Map a domain exception to its HTTP status"""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


# Items

@router.post("/items", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
def create_item(
    item: ItemCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a habit (recurring) or goal (one-time)"""
    try:
        return ItemService(db).create_item(user.id, item)
    except HabitLadderException as e:
        raise to_http_exception(e)


@router.get("/items", response_model=List[ItemResponse])
def get_items(
    active_only: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get all items of the acting user"""
    return ItemService(db).get_items(user.id, active_only)


@router.get("/items/today", response_model=List[TodayItemResponse])
def get_today_items(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get active items with today's completion flag"""
    return ItemService(db).get_today_items(user.id)


@router.patch("/items/{item_id}", response_model=ItemResponse)
def update_item(
    item_id: int,
    item_update: ItemUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update an item"""
    try:
        return ItemService(db).update_item(user.id, item_id, item_update)
    except HabitLadderException as e:
        raise to_http_exception(e)


@router.delete("/items/{item_id}")
def delete_item(
    item_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an item, or archive it when it has completions"""
    try:
        outcome = ItemService(db).delete_item(user.id, item_id)
    except HabitLadderException as e:
        raise to_http_exception(e)
    return {"id": item_id, "result": outcome}


# Completions

@router.post("/completions", response_model=CompletionResult, status_code=status.HTTP_201_CREATED)
def complete_item(
    payload: CompletionCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Complete an item and apply points, streaks, level and achievements"""
    try:
        return ProgressionService(db).complete_item(
            user.id, payload.item_id, payload.notes, payload.completed_at
        )
    except HabitLadderException as e:
        raise to_http_exception(e)


@router.delete("/completions", response_model=UndoResult)
def undo_completion(
    item_id: int = Query(...),
    on_date: Optional[date] = Query(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Undo the item's completion on a day (default today)"""
    try:
        return ProgressionService(db).undo_completion(user.id, item_id, on_date)
    except HabitLadderException as e:
        raise to_http_exception(e)


@router.get("/completions", response_model=List[CompletionResponse])
def list_completions(
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    item_id: Optional[int] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the acting user's completions, newest first"""
    try:
        return ProgressionService(db).list_completions(user.id, start, end, item_id)
    except HabitLadderException as e:
        raise to_http_exception(e)


# Progress

@router.get("/progress", response_model=LedgerSnapshot)
def get_progress(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the acting user's progression ledger"""
    try:
        return ProgressionService(db).get_ledger(user.id)
    except HabitLadderException as e:
        raise to_http_exception(e)


@router.put("/progress/theme", response_model=LedgerSnapshot)
def update_theme(
    payload: LadderThemeUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Change the ladder theme"""
    try:
        return ProgressionService(db).update_theme(user.id, payload.ladder_theme)
    except HabitLadderException as e:
        raise to_http_exception(e)


@router.post("/progress/reset-weekly", response_model=LedgerSnapshot)
def reset_weekly_points(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Zero the acting user's weekly points"""
    try:
        return ProgressionService(db).reset_weekly_points(user.id)
    except HabitLadderException as e:
        raise to_http_exception(e)


@router.post("/admin/users/{user_id}/reset-progress", response_model=LedgerSnapshot)
def reset_progress(
    user_id: int,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Admin: reset a user's streak counters"""
    try:
        return ProgressionService(db).reset_progress(admin, user_id)
    except HabitLadderException as e:
        raise to_http_exception(e)


# Checklist

@router.get("/checklist", response_model=List[ChecklistTaskResponse])
def get_checklist(
    item_id: Optional[int] = None,
    include_archived: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get checklist tasks, optionally for one item"""
    return ChecklistService(db).get_tasks(user.id, item_id, include_archived)


@router.post("/checklist", response_model=ChecklistTaskResponse, status_code=status.HTTP_201_CREATED)
def create_checklist_task(
    task: ChecklistTaskCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a checklist task"""
    try:
        return ChecklistService(db).create_task(user.id, task)
    except HabitLadderException as e:
        raise to_http_exception(e)


@router.post("/checklist/{task_id}/toggle", response_model=ChecklistTaskResponse)
def toggle_checklist_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Flip a checklist task between done and open"""
    try:
        return ChecklistService(db).toggle_task(user.id, task_id)
    except HabitLadderException as e:
        raise to_http_exception(e)


@router.post("/checklist/{task_id}/archive", response_model=ChecklistTaskResponse)
def archive_checklist_task(
    task_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Archive a checklist task"""
    try:
        return ChecklistService(db).archive_task(user.id, task_id)
    except HabitLadderException as e:
        raise to_http_exception(e)
