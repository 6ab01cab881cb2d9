"""Guided goal creation: a fixed twelve-question interview.

Each answer fills one part of the goal. The flow only moves forward; the
single exception is a rejected answer (unknown domain, unreadable
timeframe), which repeats the current question with a hint.
"""
import calendar
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from lifegoals.models.conversation import Message, Role
from lifegoals.models.goal import (
    Domain,
    GoalCreate,
    Metric,
    MetricFrequency,
    MetricType,
    Milestone,
    MilestoneFrequency,
    Routine,
    RoutineFrequency,
)
from lifegoals.utils.numbers import percent

QUESTIONS = [
    "What area of your life would you like to focus on? (work, health, financial, family, personal growth, community, or home)",
    "Great! Now, what specific goal would you like to achieve in this area? Be as specific as possible.",
    "Why is this goal important to you? This will help create a meaningful description.",
    "When would you like to achieve this goal by? (e.g., 3 months, 6 months, 1 year)",
    "Let's break this down into milestones. What are 2-3 key checkpoints on the way to your goal?",
    "How will you measure progress? Let's create some metrics. (e.g., frequency, quantity, yes/no achievements)",
    "What weekly actions will help you make progress? List 2-3 specific actions.",
    "What daily habits would support this goal? List 1-2 key habits to develop.",
    "Let's create a routine to support this goal. What steps would be involved?",
    "What resources will you need to achieve this goal?",
    "What potential obstacles might you face?",
    "Finally, how will you know you've succeeded? List 2-3 specific success criteria.",
]

GREETING = (
    "Hi! I'm here to help you create a meaningful goal. Let's start with the basics. "
    "What area of your life would you like to focus on? (e.g., work, health, financial, "
    "family, personal growth, community, or home)"
)
DOMAIN_HINT = (
    "Please choose one of the following domains: work, health, financial, family, "
    "personal, community, or home."
)
TIMEFRAME_HINT = (
    "I couldn't understand that timeframe. Please specify in months or years "
    "(e.g., '3 months' or '1 year')."
)
DEFAULT_METRIC_TARGET = 100
ROUTINE_DESCRIPTION = "Daily routine to support goal progress"

_FIRST_NUMBER = re.compile(r"\d+")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

# Steps whose answer is stored as a plain list of strings
_LIST_STEPS = {
    7: "weekly_actions",
    8: "daily_habits",
    10: "resources",
    11: "obstacles",
    12: "success_criteria",
}


def split_answer(text: str) -> list[str]:
    """Split a comma-separated answer into trimmed, non-blank items."""
    return [part.strip() for part in text.split(",") if part.strip()]


def add_months(moment: datetime, months: int) -> datetime:
    """
    Shift a datetime by whole calendar months, clamping the day.

    Raises:
        ValueError: If the result falls outside the supported year range
        OverflowError: If the month count is absurdly large
    """
    total = moment.month - 1 + months
    year = moment.year + total // 12
    month = total % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def parse_timeframe(phrase: str, now: datetime) -> datetime:
    """
    Turn a phrase like "6 months" or "in 2 years" into a target date.

    Uses the first number in the phrase; "month" phrases default to 3,
    "year" phrases to 1, and anything else means three months out.

    Examples:
        >>> parse_timeframe("6 months", datetime(2024, 1, 15))
        datetime.datetime(2024, 7, 15, 0, 0)
        >>> parse_timeframe("a year", datetime(2024, 1, 15))
        datetime.datetime(2025, 1, 15, 0, 0)
    """
    lowered = phrase.lower()
    match = _FIRST_NUMBER.search(lowered)
    if "month" in lowered:
        return add_months(now, int(match.group()) if match else 3)
    if "year" in lowered:
        return add_months(now, 12 * (int(match.group()) if match else 1))
    return add_months(now, 3)


def milestone_date(target_date: datetime, now: datetime) -> datetime:
    """Place a milestone halfway between now and the goal's target date."""
    return now + (target_date - now) * 0.5


def parse_metric(segment: str) -> Metric:
    """
    Parse a ``name:target`` metric answer.

    The target is the leading integer after the colon, or 100 when there
    is none.
    """
    name, _, target_text = segment.partition(":")
    match = _LEADING_INT.match(target_text)
    return Metric(
        name=name.strip(),
        type=MetricType.NUMBER,
        target=int(match.group(1)) if match else DEFAULT_METRIC_TARGET,
        current=0,
        unit="",
        frequency=MetricFrequency.DAILY,
        history=[],
    )


@dataclass
class StepOutcome:
    """What happened to one answer."""

    advanced: bool
    hint: Optional[str] = None


class GuidedGoalFlow:
    """State of one guided interview: step, partial goal and transcript."""

    total_steps = len(QUESTIONS)

    def __init__(self):
        self.step = 1
        self.complete = False
        self.goal = GoalCreate(title="")
        self.messages: list[Message] = [Message(role=Role.ASSISTANT, content=GREETING)]
        self.answers: list[tuple[str, str]] = []

    @property
    def prompt(self) -> str:
        """The question currently being asked."""
        return QUESTIONS[self.step - 1]

    @property
    def percent_complete(self) -> int:
        return percent(self.step, self.total_steps)

    def say(self, content: str) -> None:
        """Append an assistant message to the transcript."""
        self.messages.append(Message(role=Role.ASSISTANT, content=content))

    def answer(self, text: str, now: Optional[datetime] = None) -> StepOutcome:
        """
        Apply the user's answer to the current step.

        A rejected answer leaves the step and the goal untouched and adds
        the hint to the transcript. An accepted answer on the last step
        marks the flow complete.

        Raises:
            ValueError: If the flow is already complete
        """
        if self.complete:
            raise ValueError("Guided flow already complete")

        now = now or datetime.now(timezone.utc)
        self.messages.append(Message(role=Role.USER, content=text))

        hint = self._apply(self.step, text, now)
        if hint is not None:
            self.say(hint)
            return StepOutcome(advanced=False, hint=hint)

        self.answers.append((self.prompt, text))
        if self.step == self.total_steps:
            self.complete = True
        else:
            self.step += 1
        return StepOutcome(advanced=True)

    def _apply(self, step: int, text: str, now: datetime) -> Optional[str]:
        """Store one answer. Returns a hint when the answer is rejected."""
        goal = self.goal

        if step == 1:
            choice = text.strip().lower()
            if choice not in {domain.value for domain in Domain}:
                return DOMAIN_HINT
            goal.domain = choice
        elif step == 2:
            goal.title = text
        elif step == 3:
            goal.description = text
        elif step == 4:
            try:
                goal.target_date = parse_timeframe(text, now)
            except (ValueError, OverflowError):
                return TIMEFRAME_HINT
        elif step == 5:
            goal.milestones = [
                Milestone(
                    title=title,
                    description="",
                    target_date=milestone_date(goal.target_date, now),
                    completed=False,
                    frequency=MilestoneFrequency.ONCE,
                )
                for title in split_answer(text)
            ]
        elif step == 6:
            goal.metrics = [parse_metric(segment) for segment in split_answer(text)]
        elif step == 9:
            goal.routines = [
                Routine(
                    name=f"{goal.title} Routine",
                    description=ROUTINE_DESCRIPTION,
                    frequency=RoutineFrequency.DAILY,
                    steps=split_answer(text),
                )
            ]
        else:
            setattr(goal, _LIST_STEPS[step], split_answer(text))
        return None
