"""Turn a conversation draft into a goal ready to be stored."""
from datetime import datetime, timezone
from typing import Optional

from lifegoals.models.extraction import ExtractedGoal, ExtractedMetric
from lifegoals.models.goal import (
    Domain,
    GoalCreate,
    GoalStatus,
    Metric,
    MetricType,
    MetricValue,
    Milestone,
    MilestoneFrequency,
    Routine,
    RoutineFrequency,
)

DEFAULT_METRIC_TARGET = 100


def _metric_target(metric: ExtractedMetric, kind: str) -> MetricValue:
    if metric.target is not None:
        return metric.target
    return True if kind == MetricType.BOOLEAN.value else DEFAULT_METRIC_TARGET


def assemble_goal(draft: ExtractedGoal, now: Optional[datetime] = None) -> GoalCreate:
    """
    Fill defaults and assign identifiers for a drafted goal.

    Missing text fields become empty strings, a missing domain becomes
    ``personal`` and every nested entity gets a fresh ID and clean
    progress state. Milestones without a date fall back to the goal's
    target date, or ``now`` when the goal has none.
    """
    now = now or datetime.now(timezone.utc)
    fallback_date = draft.target_date or now

    metrics = []
    for m in draft.metrics or []:
        kind = m.type or MetricType.NUMBER.value
        metrics.append(
            Metric(
                name=m.name,
                type=kind,
                target=_metric_target(m, kind),
                current=False if kind == MetricType.BOOLEAN.value else 0,
                unit=m.unit or "",
                frequency=m.frequency or "daily",
                history=[],
            )
        )

    return GoalCreate(
        title=draft.title or "",
        description=draft.description or "",
        domain=draft.domain or Domain.PERSONAL,
        status=GoalStatus.ACTIVE,
        target_date=draft.target_date,
        milestones=[
            Milestone(
                title=m.title,
                description=m.description or "",
                target_date=m.target_date or fallback_date,
                completed=False,
                frequency=m.frequency or MilestoneFrequency.ONCE,
            )
            for m in draft.milestones or []
        ],
        metrics=metrics,
        weekly_actions=list(draft.weekly_actions or []),
        daily_habits=list(draft.daily_habits or []),
        routines=[
            Routine(
                name=r.name,
                description=r.description or "",
                frequency=r.frequency or RoutineFrequency.DAILY,
                steps=list(r.steps),
            )
            for r in draft.routines or []
        ],
        resources=list(draft.resources or []),
        obstacles=list(draft.obstacles or []),
        success_criteria=list(draft.success_criteria or []),
        reflections=[],
    )
