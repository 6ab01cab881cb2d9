"""Derived figures for goal views."""
import math
from datetime import datetime
from typing import Optional

from lifegoals.models.goal import Goal, GoalView
from lifegoals.utils.numbers import percent


def progress_percentage(goal: Goal) -> int:
    """Share of completed milestones, 0 when the goal has none."""
    completed = sum(1 for m in goal.milestones if m.completed)
    return percent(completed, len(goal.milestones))


def days_remaining(goal: Goal, now: datetime) -> Optional[int]:
    """
    Whole days until the target date, rounded up.

    Negative once the goal is overdue; None without a target date.
    """
    if goal.target_date is None:
        return None
    return math.ceil((goal.target_date - now).total_seconds() / 86400)


def to_view(goal: Goal, now: datetime) -> GoalView:
    """Attach progress and days remaining to a goal."""
    return GoalView(
        **goal.model_dump(),
        progress=progress_percentage(goal),
        days_remaining=days_remaining(goal, now),
    )
