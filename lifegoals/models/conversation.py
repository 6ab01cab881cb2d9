"""Conversation and flow-session model definitions."""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from lifegoals.models.extraction import ExtractedGoal
from lifegoals.models.goal import Goal


class Role(str, Enum):
    """Who wrote a conversation message."""

    ASSISTANT = "assistant"
    USER = "user"


class Message(BaseModel):
    """One line of a goal-creation conversation."""

    role: Role
    content: str

    model_config = {"use_enum_values": True}


class AnswerRequest(BaseModel):
    """A user answer or chat message."""

    content: str = Field(min_length=1)


class TranscriptImport(BaseModel):
    """A pasted transcript, one message per line, assistant first."""

    transcript: str


class GuidedSessionState(BaseModel):
    """Where a guided questionnaire stands."""

    session_id: str
    step: int
    total_steps: int
    percent_complete: int
    prompt: str
    messages: list[Message]
    complete: bool = False
    goal: Optional[Goal] = None


class GuidedAnswerResult(GuidedSessionState):
    """State after an answer, plus whether it moved the flow forward."""

    advanced: bool
    reply: str


class SuggestionsResponse(BaseModel):
    """Candidate answers for the current guided question."""

    suggestions: list[str]


class ConversationState(BaseModel):
    """Where a freeform conversation stands."""

    session_id: str
    messages: list[Message]
    draft: ExtractedGoal
    complete: bool
    review: bool
