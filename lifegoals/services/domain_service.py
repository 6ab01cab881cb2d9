"""Domain service - per life-domain summaries."""
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel

from lifegoals.models.goal import Domain, Goal, GoalStatus, GoalView
from lifegoals.models.user import DomainReview
from lifegoals.services.goal_service import GoalService
from lifegoals.services.progress import to_view


class DomainStats(BaseModel):
    """Counts shown on a domain card."""

    domain: Domain
    total_goals: int = 0
    active_goals: int = 0
    completed_goals: int = 0
    upcoming_milestones: int = 0
    review: DomainReview = DomainReview()


class DomainDetail(BaseModel):
    """One domain's goals with their progress."""

    domain: Domain
    goals: list[GoalView]


def domain_stats(
    domain: Domain,
    goals: list[Goal],
    now: datetime,
    review: Optional[DomainReview] = None,
) -> DomainStats:
    """
    Summarize one domain's goals.

    Upcoming milestones are incomplete ones due after now and within a
    week.
    """
    horizon = now + timedelta(days=7)
    return DomainStats(
        domain=domain,
        total_goals=len(goals),
        active_goals=sum(1 for g in goals if g.status == GoalStatus.ACTIVE.value),
        completed_goals=sum(1 for g in goals if g.status == GoalStatus.COMPLETED.value),
        upcoming_milestones=sum(
            1
            for g in goals
            for m in g.milestones
            if not m.completed and now < m.target_date <= horizon
        ),
        review=review or DomainReview(),
    )


class DomainService:
    """Service for domain overview and detail views."""

    def __init__(self, goals: GoalService):
        self.goals = goals

    async def overview(
        self,
        user_id: str,
        reviews: dict[str, DomainReview],
        now: Optional[datetime] = None,
    ) -> list[DomainStats]:
        """Stats for all seven domains, in their fixed order."""
        now = now or datetime.now(timezone.utc)
        goals = await self.goals.list_goals(user_id)
        return [
            domain_stats(
                domain,
                [g for g in goals if g.domain == domain.value],
                now,
                reviews.get(domain.value),
            )
            for domain in Domain
        ]

    async def detail(
        self,
        user_id: str,
        domain: Domain,
        now: Optional[datetime] = None,
    ) -> DomainDetail:
        """A domain's goals, newest first, with progress figures."""
        now = now or datetime.now(timezone.utc)
        goals = await self.goals.list_goals(user_id, domain=Domain(domain).value)
        return DomainDetail(domain=domain, goals=[to_view(g, now) for g in goals])
