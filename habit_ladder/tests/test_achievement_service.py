"""
Tests for AchievementService.

Tests cover:
1. Each unlock rule
2. No re-unlocking
3. Several unlocks from one event, in table order
"""
from datetime import datetime

from habit_ladder.services.achievement_service import AchievementService, LedgerState

NOW = datetime(2026, 3, 1, 9, 0, 0)


def evaluate(total=0, level=0, streak=1, award=10, unlocked=()):
    service = AchievementService()
    return service.evaluate(
        LedgerState(total_points=total, current_level=level),
        latest_streak=streak,
        latest_award=award,
        unlocked_ids=unlocked,
        now=NOW
    )


class TestRules:
    """Tests for individual unlock rules"""

    def test_nothing_for_fresh_ledger(self):
        """A small first completion unlocks nothing"""
        assert evaluate(total=10) == []

    def test_week_warrior_on_seventh_day(self):
        """Streak of exactly 7 unlocks week_warrior"""
        result = evaluate(total=100, level=1, streak=7)

        assert [a.id for a in result] == ["week_warrior"]
        assert result[0].category == "streak"
        assert result[0].unlocked_at == NOW

    def test_week_warrior_requires_exact_streak(self):
        """Streak of 8 does not unlock week_warrior"""
        assert evaluate(total=100, level=1, streak=8) == []

    def test_month_master_on_thirtieth_day(self):
        """Streak of exactly 30 unlocks month_master"""
        result = evaluate(total=400, level=3, streak=30)

        assert [a.id for a in result] == ["month_master"]

    def test_point_collector(self):
        """500 total points unlocks point_collector"""
        result = evaluate(total=500, level=4)

        assert [a.id for a in result] == ["point_collector"]
        assert result[0].category == "points"
        assert result[0].title == "Point Collector"

    def test_ladder_climber(self):
        """Level 5 unlocks ladder_climber"""
        result = evaluate(total=760, level=5, unlocked=("point_collector",))

        assert [a.id for a in result] == ["ladder_climber"]
        assert result[0].category == "milestone"


class TestUnlockBookkeeping:
    """Tests for duplicate protection and ordering"""

    def test_never_unlocks_twice(self):
        """Held achievements are skipped"""
        result = evaluate(total=600, level=4, unlocked=("point_collector",))

        assert result == []

    def test_multiple_unlocks_in_table_order(self):
        """One event can unlock several, ordered like the rule table"""
        result = evaluate(total=800, level=5, streak=7)

        assert [a.id for a in result] == ["week_warrior", "point_collector", "ladder_climber"]

    def test_does_not_mutate_unlocked_ids(self):
        """Input collection is left untouched"""
        held = {"week_warrior"}
        evaluate(total=600, level=4, streak=7, unlocked=held)

        assert held == {"week_warrior"}
