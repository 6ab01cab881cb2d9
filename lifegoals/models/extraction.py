"""Structured goal fields pulled out of a conversation.

Every field is optional: the extraction prompt asks for the full goal
shape, but the model returns whatever the conversation supports so far.
Values that do not fit a known tag, date or number format are dropped
to ``None`` instead of failing the whole extraction; structural
mismatches (a list where an object is expected, a milestone without a
title) still fail validation.
"""
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import AliasGenerator, BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from lifegoals.models.goal import (
    Domain,
    MetricFrequency,
    MetricType,
    MetricValue,
    MilestoneFrequency,
    RoutineFrequency,
)


def _lenient_enum(enum_cls: type[Enum], value: Any) -> Any:
    if value is None or isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return None
    return None


def _lenient_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


_LEADING_NUMBER = re.compile(r"\s*(-?\d+(?:\.\d+)?)")


def _lenient_target(value: Any) -> Optional[MetricValue]:
    """Keep numbers and booleans; read the leading number of a phrase like ``30 minutes``."""
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "false"):
            return text == "true"
        match = _LEADING_NUMBER.match(text)
        if match:
            number = match.group(1)
            return float(number) if "." in number else int(number)
    return None


class _Extracted(BaseModel):
    model_config = {
        "alias_generator": AliasGenerator(validation_alias=to_camel),
        "populate_by_name": True,
        "use_enum_values": True,
    }


class ExtractedMilestone(_Extracted):
    title: str
    description: Optional[str] = None
    target_date: Optional[datetime] = None
    frequency: Optional[MilestoneFrequency] = None

    @field_validator("target_date", mode="before")
    @classmethod
    def _date(cls, value):
        return _lenient_datetime(value)

    @field_validator("frequency", mode="before")
    @classmethod
    def _frequency(cls, value):
        return _lenient_enum(MilestoneFrequency, value)


class ExtractedMetric(_Extracted):
    name: str
    type: Optional[MetricType] = None
    target: Optional[MetricValue] = None
    unit: Optional[str] = None
    frequency: Optional[MetricFrequency] = None

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value):
        return _lenient_enum(MetricType, value)

    @field_validator("target", mode="before")
    @classmethod
    def _target(cls, value):
        return _lenient_target(value)

    @field_validator("frequency", mode="before")
    @classmethod
    def _frequency(cls, value):
        return _lenient_enum(MetricFrequency, value)


class ExtractedRoutine(_Extracted):
    name: str
    description: Optional[str] = None
    frequency: Optional[RoutineFrequency] = None
    steps: list[str] = Field(default_factory=list)

    @field_validator("frequency", mode="before")
    @classmethod
    def _frequency(cls, value):
        return _lenient_enum(RoutineFrequency, value)


class ExtractedGoal(_Extracted):
    """A partial goal: the accumulated draft of a conversation."""

    title: Optional[str] = None
    description: Optional[str] = None
    domain: Optional[Domain] = None
    target_date: Optional[datetime] = None
    milestones: Optional[list[ExtractedMilestone]] = None
    metrics: Optional[list[ExtractedMetric]] = None
    weekly_actions: Optional[list[str]] = None
    daily_habits: Optional[list[str]] = None
    routines: Optional[list[ExtractedRoutine]] = None
    resources: Optional[list[str]] = None
    obstacles: Optional[list[str]] = None
    success_criteria: Optional[list[str]] = None

    @field_validator("domain", mode="before")
    @classmethod
    def _domain(cls, value):
        return _lenient_enum(Domain, value)

    @field_validator("target_date", mode="before")
    @classmethod
    def _date(cls, value):
        return _lenient_datetime(value)


SCALAR_FIELDS = ("title", "description", "domain", "target_date")
COLLECTION_FIELDS = (
    "milestones",
    "metrics",
    "weekly_actions",
    "daily_habits",
    "routines",
    "resources",
    "obstacles",
    "success_criteria",
)
