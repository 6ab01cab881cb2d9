"""Notification service - upcoming-work notices derived from active goals.

Notices are never stored. Each poll rebuilds the full list from the
current goals, so read marks last only until the next poll.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from lifegoals.config import settings
from lifegoals.models.goal import Goal, GoalStatus
from lifegoals.models.notification import Notification, NotificationType
from lifegoals.services.goal_service import GOALS, GoalService
from lifegoals.store import DocumentStore

logger = logging.getLogger(__name__)


def build_notifications(
    goals: list[Goal],
    now: datetime,
    window: timedelta = timedelta(days=7),
) -> list[Notification]:
    """
    Derive notices for a set of active goals, newest date first.

    - every incomplete milestone due before the end of the window
      (overdue ones included)
    - every goal whose latest reflection is older than the window, or
      that has none
    - every goal whose target date falls before the end of the window
    """
    horizon = now + window
    notices: list[Notification] = []

    for goal in goals:
        for milestone in goal.milestones:
            if not milestone.completed and milestone.target_date <= horizon:
                notices.append(
                    Notification(
                        id=f"milestone-{milestone.id}",
                        type=NotificationType.MILESTONE,
                        title="Upcoming Milestone",
                        message=(
                            f'"{milestone.title}" for goal "{goal.title}" is due on '
                            f"{milestone.target_date:%Y-%m-%d}"
                        ),
                        date=milestone.target_date,
                    )
                )

    for goal in goals:
        last = goal.reflections[-1] if goal.reflections else None
        if last is None or last.date + window < now:
            notices.append(
                Notification(
                    id=f"review-{goal.id}",
                    type=NotificationType.REVIEW,
                    title="Review Needed",
                    message=f'It\'s time for a weekly review of your goal "{goal.title}"',
                    date=now,
                )
            )

    for goal in goals:
        if goal.target_date is not None and goal.target_date <= horizon:
            notices.append(
                Notification(
                    id=f"goal-{goal.id}",
                    type=NotificationType.GOAL,
                    title="Goal Deadline Approaching",
                    message=f'Your goal "{goal.title}" is due on {goal.target_date:%Y-%m-%d}',
                    date=goal.target_date,
                )
            )

    return sorted(notices, key=lambda n: n.date, reverse=True)


class NotificationService:
    """Keeps the latest notice snapshot for every user with active goals."""

    def __init__(self, window_days: int = 7):
        self.window = timedelta(days=window_days)
        self.snapshot: dict[str, list[Notification]] = {}

    async def compute(
        self,
        store: DocumentStore,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> list[Notification]:
        """Rebuild one user's notices from their active goals."""
        now = now or datetime.now(timezone.utc)
        goals = await GoalService(store).list_goals(user_id, status=GoalStatus.ACTIVE.value)
        notices = build_notifications(goals, now, self.window)
        self.snapshot[user_id] = notices
        return notices

    async def poll(self, store: DocumentStore, now: Optional[datetime] = None) -> int:
        """
        Recompute every user's notices, replacing the previous snapshot.

        Returns:
            Number of users refreshed
        """
        now = now or datetime.now(timezone.utc)
        user_ids = await store.distinct(GOALS, "user_id", {"status": GoalStatus.ACTIVE.value})

        fresh: dict[str, list[Notification]] = {}
        for user_id in user_ids:
            goals = await GoalService(store).list_goals(
                user_id, status=GoalStatus.ACTIVE.value
            )
            fresh[user_id] = build_notifications(goals, now, self.window)

        self.snapshot = fresh
        logger.debug("Notification poll refreshed %d users", len(fresh))
        return len(fresh)

    async def list_for_user(
        self,
        store: DocumentStore,
        user_id: str,
    ) -> list[Notification]:
        """Latest notices for a user, computed now if no poll has covered them."""
        if user_id in self.snapshot:
            return self.snapshot[user_id]
        return await self.compute(store, user_id)

    def mark_read(self, user_id: str, notification_id: str) -> Notification:
        """
        Mark a notice read until the next poll replaces it.

        Raises:
            ValueError: If the notice is not in the current snapshot
        """
        for notice in self.snapshot.get(user_id, []):
            if notice.id == notification_id:
                notice.read = True
                return notice
        raise ValueError("Notification not found")


notifications = NotificationService(window_days=settings.notification_window_days)


def get_notification_service() -> NotificationService:
    """Dependency to get the shared notification service."""
    return notifications
