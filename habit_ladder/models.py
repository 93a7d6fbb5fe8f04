from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, ForeignKey, UniqueConstraint
)
from datetime import datetime

from habit_ladder.database import Base
from habit_ladder.constants import (
    INTENSITY_POINTS, DEFAULT_POINT_VALUE, INTENSITY_MEDIUM,
    DEFAULT_LADDER_THEME, ROLE_USER, ROLE_ADMIN
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=True)
    role = Column(String, default=ROLE_USER)  # user, admin
    created_at = Column(DateTime, default=datetime.now)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class TrackableItem(Base):
    __tablename__ = "trackable_items"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    category = Column(String, default="other")
    target_frequency = Column(String, default="daily")  # daily, weekly, monthly, none

    # Point value is derived from intensity, never set directly
    intensity = Column(String, nullable=False, default=INTENSITY_MEDIUM)  # easy, medium, hard
    point_value = Column(Integer, nullable=False, default=DEFAULT_POINT_VALUE)

    is_recurring = Column(Boolean, default=True)  # habit (daily) vs goal (one-time)
    is_active = Column(Boolean, default=True)     # soft archive
    deadline = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    def apply_intensity(self, intensity: str) -> int:
        """Set intensity and recompute the derived point value"""
        self.intensity = intensity
        self.point_value = INTENSITY_POINTS.get(intensity, DEFAULT_POINT_VALUE)
        return self.point_value


class CompletionEvent(Base):
    __tablename__ = "completion_events"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("trackable_items.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    completed_at = Column(DateTime, nullable=False, index=True)

    # Snapshots, stored so history survives rule changes
    points_awarded = Column(Integer, nullable=False, default=0)
    streak_at_completion = Column(Integer, nullable=False, default=1)

    notes = Column(String, nullable=True)


class ProgressionLedger(Base):
    __tablename__ = "progression_ledgers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, unique=True, index=True)

    total_points = Column(Integer, default=0)
    weekly_points = Column(Integer, default=0)  # reset by the weekly job
    current_level = Column(Integer, default=0)  # always level_for(total_points)

    current_streak = Column(Integer, default=0)
    longest_streak = Column(Integer, default=0)  # high-water mark
    streak_updated_on = Column(Date, nullable=True)  # day current_streak was computed
    streaks_reset_at = Column(DateTime, nullable=True)  # earlier completions no longer count

    challenge_start_date = Column(DateTime, default=datetime.now)
    ladder_theme = Column(String, default=DEFAULT_LADDER_THEME)

    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class UnlockedAchievement(Base):
    __tablename__ = "unlocked_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    achievement_id = Column(String, nullable=False)  # week_warrior, point_collector, ...
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    icon = Column(String, nullable=True)
    category = Column(String, nullable=False)  # streak, points, milestone
    unlocked_at = Column(DateTime, default=datetime.now)


class ChecklistTask(Base):
    __tablename__ = "checklist_tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("trackable_items.id"), nullable=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    is_completed = Column(Boolean, default=False)

    # Repetitive tasks reopen each time their parent item is completed
    is_repetitive = Column(Boolean, default=False)
    last_shown = Column(DateTime, default=datetime.now)

    is_archived = Column(Boolean, default=False)
    archived_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
