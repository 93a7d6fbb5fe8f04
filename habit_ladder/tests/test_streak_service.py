"""
Tests for StreakService.

Tests cover:
1. Single-day and consecutive runs
2. Gaps resetting the run
3. Item and user scoping
4. Reset floor and live runs
"""
from datetime import datetime, time, timedelta

from habit_ladder.services.streak_service import StreakService
from habit_ladder.tests.conftest import add_completion, make_item


class TestComputeStreak:
    """Tests for compute_streak function"""

    def test_first_completion_is_one(self, db_session, user, hard_habit, today):
        """No history gives a streak of 1"""
        service = StreakService(db_session)

        assert service.compute_streak(user.id, hard_habit.id, today) == 1

    def test_consecutive_days(self, db_session, user, hard_habit, today):
        """N-1 prior consecutive days make day N a streak of N"""
        for offset in range(1, 10):
            add_completion(db_session, user, hard_habit, today - timedelta(days=offset))

        service = StreakService(db_session)

        assert service.compute_streak(user.id, hard_habit.id, today) == 10

    def test_gap_yesterday_resets_run(self, db_session, user, hard_habit, today):
        """Missing yesterday gives 1 regardless of older history"""
        for offset in range(2, 8):
            add_completion(db_session, user, hard_habit, today - timedelta(days=offset))

        service = StreakService(db_session)

        assert service.compute_streak(user.id, hard_habit.id, today) == 1

    def test_stops_at_first_gap(self, db_session, user, hard_habit, today):
        """Only the run directly behind the reference day counts"""
        # Run of 2 behind today, then a gap, then an older run of 3
        for offset in (1, 2, 4, 5, 6):
            add_completion(db_session, user, hard_habit, today - timedelta(days=offset))

        service = StreakService(db_session)

        assert service.compute_streak(user.id, hard_habit.id, today) == 3

    def test_reference_date_in_past(self, db_session, user, hard_habit, today):
        """Streak is computed relative to the reference date, not today"""
        reference = today - timedelta(days=10)
        add_completion(db_session, user, hard_habit, reference - timedelta(days=1))
        add_completion(db_session, user, hard_habit, reference - timedelta(days=2))

        service = StreakService(db_session)

        assert service.compute_streak(user.id, hard_habit.id, reference) == 3

    def test_other_items_do_not_count(self, db_session, user, hard_habit, medium_habit, today):
        """Streaks are per item"""
        add_completion(db_session, user, medium_habit, today - timedelta(days=1))

        service = StreakService(db_session)

        assert service.compute_streak(user.id, hard_habit.id, today) == 1

    def test_other_users_do_not_count(self, db_session, user, other_user, hard_habit, today):
        """Streaks are per user"""
        add_completion(db_session, other_user, hard_habit, today - timedelta(days=1))

        service = StreakService(db_session)

        assert service.compute_streak(user.id, hard_habit.id, today) == 1

    def test_long_run_has_no_cap(self, db_session, user, today):
        """Walk continues over long histories"""
        habit = make_item(db_session, user, intensity="easy", title="Meditate")
        for offset in range(1, 45):
            add_completion(db_session, user, habit, today - timedelta(days=offset))

        service = StreakService(db_session)

        assert service.compute_streak(user.id, habit.id, today) == 45

    def test_not_before_cuts_the_walk(self, db_session, user, hard_habit, today):
        """Completions earlier than the reset floor are ignored"""
        for offset in (1, 2, 3):
            add_completion(db_session, user, hard_habit, today - timedelta(days=offset))
        floor = datetime.combine(today - timedelta(days=2), time(12, 0))

        service = StreakService(db_session)

        assert service.compute_streak(user.id, hard_habit.id, today, not_before=floor) == 2


class TestLiveStreak:
    """Tests for live_streak function"""

    def test_best_of_latest_per_item(self, db_session, user, hard_habit, medium_habit, today):
        """Each item contributes its latest streak; lapsed items drop out"""
        lapsed = make_item(db_session, user, title="Swim")
        add_completion(db_session, user, lapsed, today - timedelta(days=2), streak=9)
        add_completion(db_session, user, hard_habit, today - timedelta(days=1), streak=3)
        add_completion(db_session, user, medium_habit, today, streak=1)

        service = StreakService(db_session)

        assert service.live_streak(user.id, today) == 3

    def test_latest_completion_wins(self, db_session, user, hard_habit, today):
        """An item's older, longer snapshot does not outrank its latest one"""
        add_completion(db_session, user, hard_habit, today - timedelta(days=1), streak=4)
        add_completion(db_session, user, hard_habit, today, streak=1)

        service = StreakService(db_session)

        assert service.live_streak(user.id, today) == 1

    def test_nothing_live(self, db_session, user, hard_habit, today):
        """Only lapsed runs means no live streak"""
        add_completion(db_session, user, hard_habit, today - timedelta(days=3), streak=2)

        service = StreakService(db_session)

        assert service.live_streak(user.id, today) == 0

    def test_not_before_hides_older_completions(self, db_session, user, hard_habit, today):
        """Completions before the reset floor are not live"""
        add_completion(db_session, user, hard_habit, today - timedelta(days=1), streak=2)

        service = StreakService(db_session)

        assert service.live_streak(user.id, today, not_before=datetime.combine(today, time(0, 0))) == 0
