from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List

from habit_ladder.constants import (
    INTENSITY_POINTS, ITEM_CATEGORIES, TARGET_FREQUENCIES, LADDER_THEMES
)

INTENSITY_PATTERN = f"^({'|'.join(INTENSITY_POINTS)})$"
CATEGORY_PATTERN = f"^({'|'.join(ITEM_CATEGORIES)})$"
FREQUENCY_PATTERN = f"^({'|'.join(TARGET_FREQUENCIES)})$"
THEME_PATTERN = f"^({'|'.join(LADDER_THEMES)})$"


# Trackable item schemas
class ItemBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    intensity: str = Field(default="medium", pattern=INTENSITY_PATTERN)
    category: str = Field(default="other", pattern=CATEGORY_PATTERN)
    target_frequency: str = Field(default="daily", pattern=FREQUENCY_PATTERN)
    is_recurring: bool = True  # habit; False for one-time goals
    deadline: Optional[datetime] = None

class ItemCreate(ItemBase):
    pass

class ItemUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    intensity: Optional[str] = Field(None, pattern=INTENSITY_PATTERN)
    category: Optional[str] = Field(None, pattern=CATEGORY_PATTERN)
    target_frequency: Optional[str] = Field(None, pattern=FREQUENCY_PATTERN)
    is_recurring: Optional[bool] = None
    is_active: Optional[bool] = None
    deadline: Optional[datetime] = None

    @field_validator(
        "title", "intensity", "category", "target_frequency", "is_recurring", "is_active"
    )
    @classmethod
    def not_null(cls, value):
        # Omit a field to leave it unchanged; these columns cannot be cleared
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

class ItemResponse(ItemBase):
    id: int
    user_id: int
    point_value: int
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TodayItemResponse(ItemResponse):
    completed_today: bool = False


# Completion schemas
class CompletionCreate(BaseModel):
    item_id: int
    notes: Optional[str] = Field(None, max_length=500)
    completed_at: Optional[datetime] = None

class CompletionResponse(BaseModel):
    id: int
    item_id: int
    user_id: int
    completed_at: datetime
    points_awarded: int
    streak_at_completion: int
    notes: Optional[str] = None

    class Config:
        from_attributes = True


# Progression schemas
class AchievementResponse(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    icon: Optional[str] = None
    category: str
    unlocked_at: datetime

class RungResponse(BaseModel):
    level: int
    points_required: int
    title: str
    description: str
    reward: Optional[str] = None

class LedgerSnapshot(BaseModel):
    user_id: int
    total_points: int
    weekly_points: int
    current_level: int
    current_streak: int
    longest_streak: int
    ladder_theme: str
    challenge_start_date: Optional[datetime] = None
    rung: RungResponse
    next_rung: Optional[RungResponse] = None
    progress_to_next: float = 100.0  # percent
    achievements: List[AchievementResponse] = []

class CompletionResult(BaseModel):
    completion: CompletionResponse
    ledger: LedgerSnapshot
    new_achievements: List[AchievementResponse] = []

class UndoResult(BaseModel):
    ledger: LedgerSnapshot
    points_removed: int

class LadderThemeUpdate(BaseModel):
    ladder_theme: str = Field(..., pattern=THEME_PATTERN)


# Checklist schemas
class ChecklistTaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    item_id: Optional[int] = None
    is_repetitive: bool = False

class ChecklistTaskResponse(BaseModel):
    id: int
    user_id: int
    item_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    is_completed: bool
    is_repetitive: bool
    is_archived: bool
    archived_at: Optional[datetime] = None
    last_shown: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
