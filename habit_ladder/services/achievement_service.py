"""
Achievement evaluation service.
Decides which achievements a ledger state unlocks. Evaluation is a pure
function of its inputs; persistence is left to the caller.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Tuple

from habit_ladder.constants import (
    ACHIEVEMENT_STREAK,
    ACHIEVEMENT_POINTS,
    ACHIEVEMENT_MILESTONE,
    WEEK_WARRIOR_STREAK,
    MONTH_MASTER_STREAK,
    POINT_COLLECTOR_POINTS,
    LADDER_CLIMBER_LEVEL,
)


@dataclass(frozen=True)
class LedgerState:
    """Ledger values the rules look at"""
    total_points: int
    current_level: int


@dataclass(frozen=True)
class AchievementDefinition:
    id: str
    title: str
    description: str
    icon: str
    category: str
    # (ledger state, latest streak, latest award) -> unlocked?
    condition: Callable[[LedgerState, int, int], bool]


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    icon: str
    category: str
    unlocked_at: datetime


# Evaluation order is table order
ACHIEVEMENT_RULES: Tuple[AchievementDefinition, ...] = (
    AchievementDefinition(
        id="week_warrior",
        title="Week Warrior",
        description="Complete a habit for 7 days straight",
        icon="🔥",
        category=ACHIEVEMENT_STREAK,
        condition=lambda ledger, streak, award: streak == WEEK_WARRIOR_STREAK,
    ),
    AchievementDefinition(
        id="month_master",
        title="Month Master",
        description="Complete a habit for 30 days straight",
        icon="👑",
        category=ACHIEVEMENT_STREAK,
        condition=lambda ledger, streak, award: streak == MONTH_MASTER_STREAK,
    ),
    AchievementDefinition(
        id="point_collector",
        title="Point Collector",
        description="Earn 500 total points",
        icon="💎",
        category=ACHIEVEMENT_POINTS,
        condition=lambda ledger, streak, award: ledger.total_points >= POINT_COLLECTOR_POINTS,
    ),
    AchievementDefinition(
        id="ladder_climber",
        title="Ladder Climber",
        description="Reach level 5",
        icon="🪜",
        category=ACHIEVEMENT_MILESTONE,
        condition=lambda ledger, streak, award: ledger.current_level >= LADDER_CLIMBER_LEVEL,
    ),
)


class AchievementService:
    """Service for achievement unlocking rules"""

    def __init__(self, rules: Iterable[AchievementDefinition] = ACHIEVEMENT_RULES):
        self.rules = tuple(rules)

    def evaluate(
        self,
        ledger: LedgerState,
        latest_streak: int,
        latest_award: int,
        unlocked_ids: Iterable[str],
        now: datetime
    ) -> List[Achievement]:
        """
        Decide which achievements unlock on this event.

        Every rule is checked independently, so one event can unlock several.
        Already unlocked IDs never fire again.

        Args:
            ledger: Ledger state after the event was applied
            latest_streak: Streak credited by the event
            latest_award: Points awarded by the event
            unlocked_ids: Achievement IDs the user already holds
            now: Unlock timestamp

        Returns:
            Newly unlocked achievements in rule-table order
        """
        held = set(unlocked_ids)
        unlocked = []

        for rule in self.rules:
            if rule.id in held:
                continue
            if rule.condition(ledger, latest_streak, latest_award):
                unlocked.append(Achievement(
                    id=rule.id,
                    title=rule.title,
                    description=rule.description,
                    icon=rule.icon,
                    category=rule.category,
                    unlocked_at=now
                ))
                held.add(rule.id)

        return unlocked
