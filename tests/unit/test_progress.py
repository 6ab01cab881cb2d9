"""Tests for progress and days-remaining figures."""
from datetime import datetime, timedelta, timezone

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _goal(milestones=(), target_date=None):
    from lifegoals.models.goal import Goal, Milestone

    return Goal(
        id="goal123",
        user_id="user123",
        title="Test",
        target_date=target_date,
        milestones=[
            Milestone(title=f"M{i}", target_date=NOW, completed=done)
            for i, done in enumerate(milestones)
        ],
        created_at=NOW,
        updated_at=NOW,
    )


class TestPercent:
    """Tests for whole-percentage rounding."""

    def test_rounds_half_up(self):
        from lifegoals.utils.numbers import percent

        assert percent(1, 8) == 13
        assert percent(1, 3) == 33
        assert percent(2, 3) == 67

    def test_zero_whole(self):
        from lifegoals.utils.numbers import percent

        assert percent(0, 0) == 0


class TestProgressPercentage:
    """Tests for milestone-based progress."""

    def test_no_milestones(self):
        from lifegoals.services.progress import progress_percentage

        assert progress_percentage(_goal()) == 0

    def test_one_of_three(self):
        from lifegoals.services.progress import progress_percentage

        assert progress_percentage(_goal([True, False, False])) == 33

    def test_all_done(self):
        from lifegoals.services.progress import progress_percentage

        assert progress_percentage(_goal([True, True])) == 100


class TestDaysRemaining:
    """Tests for days until the target date."""

    def test_no_target(self):
        from lifegoals.services.progress import days_remaining

        assert days_remaining(_goal(), NOW) is None

    def test_partial_day_rounds_up(self):
        from lifegoals.services.progress import days_remaining

        goal = _goal(target_date=NOW + timedelta(days=2, hours=1))

        assert days_remaining(goal, NOW) == 3

    def test_overdue_is_negative(self):
        from lifegoals.services.progress import days_remaining

        goal = _goal(target_date=NOW - timedelta(days=5))

        assert days_remaining(goal, NOW) == -5


def test_to_view():
    from lifegoals.services.progress import to_view

    view = to_view(_goal([True, False], target_date=NOW + timedelta(days=10)), NOW)

    assert view.id == "goal123"
    assert view.progress == 50
    assert view.days_remaining == 10
    assert view.model_dump(by_alias=True)["id"] == "goal123"
