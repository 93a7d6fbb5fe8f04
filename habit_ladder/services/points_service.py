"""
Points calculation service.
Converts item point values and streak lengths into awards, and cumulative
points into ladder levels.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from habit_ladder.constants import (
    STREAK_MULTIPLIER_TIERS,
    BASE_MULTIPLIER,
    LEVEL_THRESHOLDS,
    MAX_LEVEL,
    LADDER_RUNGS,
)
from habit_ladder.exceptions import ValidationException


class PointsService:
    """Service for award and level calculation"""

    @staticmethod
    def get_streak_multiplier(streak_length: int) -> Decimal:
        """
        Get the multiplier tier for a streak.

        - streak >= 7: 1.5
        - streak >= 3: 1.2
        - otherwise:   1.0
        """
        for min_streak, multiplier in STREAK_MULTIPLIER_TIERS:
            if streak_length >= min_streak:
                return Decimal(multiplier)
        return Decimal(BASE_MULTIPLIER)

    @staticmethod
    def compute_award(base_points: int, streak_length: int) -> int:
        """
        Calculate points awarded for one completion.

        Formula: Award = round_half_up(BasePoints × StreakMultiplier)

        Args:
            base_points: Item point value (5/10/20 by intensity)
            streak_length: Streak after crediting this completion

        Returns:
            Points awarded
        """
        if base_points < 0:
            raise ValidationException("base_points", "must not be negative", base_points)

        multiplier = PointsService.get_streak_multiplier(streak_length)
        award = (Decimal(base_points) * multiplier).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        return int(award)

    @staticmethod
    def level_for(total_points: int) -> int:
        """
        Derive the level from cumulative points using the threshold table.

        Level is the highest index whose threshold is reached, capped at the
        top of the table.
        """
        for level in range(MAX_LEVEL, -1, -1):
            if total_points >= LEVEL_THRESHOLDS[level]:
                return level
        return 0

    @staticmethod
    def get_rung(level: int) -> dict:
        """Get the named ladder rung for a level"""
        level = max(0, min(level, MAX_LEVEL))
        title, description, reward = LADDER_RUNGS[level]
        return {
            "level": level,
            "points_required": LEVEL_THRESHOLDS[level],
            "title": title,
            "description": description,
            "reward": reward,
        }

    @staticmethod
    def rung_progress(total_points: int) -> dict:
        """
        Describe where a point total sits on the ladder.

        Returns:
            Dictionary with current rung, next rung (None at the top) and
            percent progress towards the next rung
        """
        level = PointsService.level_for(total_points)
        rung = PointsService.get_rung(level)
        next_rung: Optional[dict] = None
        progress = 100.0

        if level < MAX_LEVEL:
            next_rung = PointsService.get_rung(level + 1)
            span = next_rung["points_required"] - rung["points_required"]
            gained = total_points - rung["points_required"]
            progress = round(min(gained / span * 100, 100.0), 2)

        return {
            "rung": rung,
            "next_rung": next_rung,
            "progress_to_next": progress,
        }
