"""Notification model definitions."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class NotificationType(str, Enum):
    """Notice categories derived from the active goals."""

    MILESTONE = "milestone"
    REVIEW = "review"
    GOAL = "goal"


class Notification(BaseModel):
    """An upcoming-work notice. Never stored; rebuilt on every poll."""

    id: str
    type: NotificationType
    title: str
    message: str
    date: datetime
    read: bool = False

    model_config = {"use_enum_values": True}
