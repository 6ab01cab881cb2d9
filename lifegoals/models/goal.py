"""Goal model definitions."""
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

from lifegoals.models.ids import new_id
from lifegoals.models.reflection import Reflection

# Metric targets and samples are numeric for number/rating metrics and
# boolean for yes/no metrics.
MetricValue = Union[bool, int, float]


class Domain(str, Enum):
    """Life areas a goal can belong to."""

    FINANCIAL = "financial"
    HEALTH = "health"
    FAMILY = "family"
    PERSONAL = "personal"
    COMMUNITY = "community"
    HOME = "home"
    WORK = "work"


class GoalStatus(str, Enum):
    """Goal lifecycle states."""

    ACTIVE = "active"
    COMPLETED = "completed"
    PAUSED = "paused"


class MilestoneFrequency(str, Enum):
    """How often a milestone recurs."""

    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class MetricType(str, Enum):
    """Kinds of values a metric tracks."""

    NUMBER = "number"
    BOOLEAN = "boolean"
    RATING = "rating"


class MetricFrequency(str, Enum):
    """How often a metric is updated."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class RoutineFrequency(str, Enum):
    """Routine cadences."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class Milestone(BaseModel):
    """A dated checkpoint within a goal."""

    id: str = Field(default_factory=new_id)
    title: str
    description: str = ""
    target_date: datetime
    completed: bool = False
    completed_date: Optional[datetime] = None
    frequency: MilestoneFrequency = MilestoneFrequency.ONCE

    model_config = {"use_enum_values": True}


class MetricSample(BaseModel):
    """One recorded metric value."""

    date: datetime
    value: MetricValue


class Metric(BaseModel):
    """A measurable indicator with a target and an append-only history."""

    id: str = Field(default_factory=new_id)
    name: str
    type: MetricType = MetricType.NUMBER
    target: MetricValue = 100
    current: MetricValue = 0
    unit: str = ""
    frequency: Optional[MetricFrequency] = None
    history: list[MetricSample] = Field(default_factory=list)

    model_config = {"use_enum_values": True}


class Routine(BaseModel):
    """A named, ordered set of repeatable steps."""

    id: str = Field(default_factory=new_id)
    name: str
    description: str = ""
    frequency: RoutineFrequency = RoutineFrequency.DAILY
    steps: list[str] = Field(default_factory=list)
    last_completed: Optional[datetime] = None
    next_due: Optional[datetime] = None

    model_config = {"use_enum_values": True}


class GoalBase(BaseModel):
    """Base goal fields."""

    title: str
    description: str = ""
    domain: Domain = Domain.PERSONAL
    status: GoalStatus = GoalStatus.ACTIVE
    target_date: Optional[datetime] = None
    milestones: list[Milestone] = Field(default_factory=list)
    metrics: list[Metric] = Field(default_factory=list)
    weekly_actions: list[str] = Field(default_factory=list)
    daily_habits: list[str] = Field(default_factory=list)
    routines: list[Routine] = Field(default_factory=list)
    resources: list[str] = Field(default_factory=list)
    obstacles: list[str] = Field(default_factory=list)
    success_criteria: list[str] = Field(default_factory=list)
    reflections: list[Reflection] = Field(default_factory=list)

    model_config = {"use_enum_values": True}


class GoalCreate(GoalBase):
    """Goal creation model."""

    pass


class GoalUpdate(BaseModel):
    """Goal update model - all fields optional.

    Metrics and reflections are left out on purpose: their histories only
    grow through the dedicated endpoints.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    domain: Optional[Domain] = None
    status: Optional[GoalStatus] = None
    target_date: Optional[datetime] = None
    milestones: Optional[list[Milestone]] = None
    weekly_actions: Optional[list[str]] = None
    daily_habits: Optional[list[str]] = None
    routines: Optional[list[Routine]] = None
    resources: Optional[list[str]] = None
    obstacles: Optional[list[str]] = None
    success_criteria: Optional[list[str]] = None

    model_config = {"use_enum_values": True}


class Goal(GoalBase):
    """Full goal model with database fields."""

    id: str = Field(alias="_id", serialization_alias="id")
    user_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True, "use_enum_values": True}


class GoalView(Goal):
    """Goal with the derived figures shown in list and detail views."""

    progress: int
    days_remaining: Optional[int] = None


class StatusUpdate(BaseModel):
    """Request body for changing a goal's status."""

    status: GoalStatus


class MilestoneToggle(BaseModel):
    """Request body for checking or unchecking a milestone."""

    completed: bool


class MetricValueUpdate(BaseModel):
    """Request body for recording a new metric value."""

    value: MetricValue
