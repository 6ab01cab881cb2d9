"""Reflection model definitions."""
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field

from lifegoals.models.ids import new_id


class ReflectionType(str, Enum):
    """Review periods a reflection can cover."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class ReflectionCreate(BaseModel):
    """Reflection creation model."""

    type: ReflectionType = ReflectionType.WEEKLY
    progress: str = ""
    challenges: str = ""
    insights: str = ""
    next_steps: str = ""
    satisfaction: int = Field(default=5, ge=1, le=10)

    model_config = {"use_enum_values": True}


class Reflection(ReflectionCreate):
    """A periodic retrospective entry."""

    id: str = Field(default_factory=new_id)
    user_id: str
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
