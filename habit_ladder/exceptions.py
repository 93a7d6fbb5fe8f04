"""
Custom exceptions for the habit ladder application.
Every exception here is recoverable at the call boundary; the HTTP layer maps
them to 4xx responses.
"""
from datetime import date
from typing import Optional


class HabitLadderException(Exception):
    """Base exception for habit ladder application"""
    pass


class ItemNotFoundException(HabitLadderException):
    """Raised when a trackable item is not found"""
    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f"Item with ID {item_id} not found")


class LedgerNotFoundException(HabitLadderException):
    """Raised when a user has no progression ledger yet"""
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"Progression ledger for user {user_id} not found")


class UserNotFoundException(HabitLadderException):
    """Raised when a user is not found"""
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User with ID {user_id} not found")


class ChecklistTaskNotFoundException(HabitLadderException):
    """Raised when a checklist task is not found"""
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Checklist task with ID {task_id} not found")


class ForbiddenException(HabitLadderException):
    """Raised when a resource does not belong to the acting user"""
    def __init__(self, user_id: int, resource: str):
        self.user_id = user_id
        self.resource = resource
        super().__init__(f"User {user_id} is not allowed to access {resource}")


class AlreadyCompletedException(HabitLadderException):
    """Raised when a one-time item already has its completion"""
    def __init__(self, item_id: int, message: Optional[str] = None):
        self.item_id = item_id
        super().__init__(message or f"Item {item_id} has already been completed")


class AlreadyCompletedTodayException(AlreadyCompletedException):
    """Raised when a recurring item was already completed on that day"""
    def __init__(self, item_id: int, day: date):
        self.day = day
        super().__init__(
            item_id, f"Item {item_id} already completed on {day.isoformat()}"
        )


class NothingToUndoException(HabitLadderException):
    """Raised when undo finds no completion for the requested day"""
    def __init__(self, item_id: int, day: date):
        self.item_id = item_id
        self.day = day
        super().__init__(
            f"No completion of item {item_id} on {day.isoformat()} to undo"
        )


class ItemInactiveException(HabitLadderException):
    """Raised when completing an archived item"""
    def __init__(self, item_id: int):
        self.item_id = item_id
        super().__init__(f"Item {item_id} is archived and cannot be completed")


class ValidationException(HabitLadderException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str, value: Optional[object] = None):
        self.field = field
        self.value = value
        super().__init__(f"Validation error for {field}: {message}")
