"""Freeform goal creation: an open chat distilled into a goal draft.

Every user turn makes two independent completion calls, one for the
assistant's next reply and one that re-extracts goal fields from the
whole transcript. Extraction results are folded into a running draft
field by field; the conversation is complete once the draft has a title,
a description and a domain.
"""
import json
import logging
from typing import Optional

from openai import OpenAIError
from pydantic import ValidationError

from lifegoals.completion import CompletionClient
from lifegoals.models.conversation import Message, Role
from lifegoals.models.extraction import (
    COLLECTION_FIELDS,
    SCALAR_FIELDS,
    ExtractedGoal,
)

logger = logging.getLogger(__name__)

GREETING = (
    "Hi! I'm here to help you create a meaningful goal. What's on your mind? "
    "What would you like to achieve?"
)
TROUBLE_MESSAGE = "I'm having trouble understanding. Could you rephrase that?"

REQUIRED_FIELDS = ("title", "description", "domain")


def parse_extraction(raw: str) -> Optional[ExtractedGoal]:
    """
    Parse the extraction call's text into a typed draft.

    Returns:
        The extracted fields, or None if the text is not a JSON object
        matching the goal shape
    """
    try:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return ExtractedGoal.model_validate(data)
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        logger.error("Error parsing extracted data: %s", e)
        return None


def merge_extraction(draft: ExtractedGoal, extracted: ExtractedGoal) -> ExtractedGoal:
    """
    Fold a fresh extraction into the accumulated draft.

    Scalar fields replace the draft's value when present. Collections
    replace the draft's collection only when non-empty; contents are
    never concatenated.
    """
    merged = draft.model_copy(deep=True)
    for field in SCALAR_FIELDS:
        value = getattr(extracted, field)
        if value is not None:
            setattr(merged, field, value)
    for field in COLLECTION_FIELDS:
        value = getattr(extracted, field)
        if value is not None and len(value) > 0:
            setattr(merged, field, value)
    return merged


def is_complete(draft: ExtractedGoal) -> bool:
    """True once title, description and domain are all present and non-blank."""
    for field in REQUIRED_FIELDS:
        value = getattr(draft, field)
        if value is None or not str(value).strip():
            return False
    return True


def parse_transcript(transcript: str) -> list[Message]:
    """
    Split a pasted transcript into alternating messages.

    Blank lines are skipped; the first remaining line is the assistant's,
    the second the user's, and so on.
    """
    lines = [line.strip() for line in transcript.splitlines()]
    lines = [line for line in lines if line]
    return [
        Message(role=Role.ASSISTANT if i % 2 == 0 else Role.USER, content=line)
        for i, line in enumerate(lines)
    ]


class ConversationFlow:
    """State of one freeform conversation."""

    def __init__(self):
        self.messages: list[Message] = [Message(role=Role.ASSISTANT, content=GREETING)]
        self.draft = ExtractedGoal()
        self.review = False

    @property
    def complete(self) -> bool:
        return is_complete(self.draft)

    def say(self, content: str) -> None:
        self.messages.append(Message(role=Role.ASSISTANT, content=content))

    def apply_extraction(self, raw: str) -> bool:
        """Merge a raw extraction response. Returns False if it was skipped."""
        extracted = parse_extraction(raw)
        if extracted is None:
            return False
        self.draft = merge_extraction(self.draft, extracted)
        return True

    async def send(self, text: str, completion: CompletionClient) -> None:
        """
        Handle one user turn.

        API failures add an apology to the transcript and leave the draft
        as it was; nothing is retried.
        """
        self.messages.append(Message(role=Role.USER, content=text))
        try:
            reply = await completion.reply(self.messages)
            raw = await completion.extract(self.messages)
        except OpenAIError:
            logger.exception("Error processing conversation")
            self.say(TROUBLE_MESSAGE)
            return

        self.apply_extraction(raw)
        if reply:
            self.say(reply)
        if self.complete:
            self.review = True

    async def import_transcript(self, transcript: str, completion: CompletionClient) -> None:
        """
        Replace the conversation with a pasted transcript and extract once.

        The flow moves to review afterwards whether or not extraction
        produced a complete draft.

        Raises:
            ValueError: If the transcript has no non-blank lines
        """
        messages = parse_transcript(transcript)
        if not messages:
            raise ValueError("Transcript is empty")

        self.messages = messages
        try:
            raw = await completion.extract(self.messages)
        except OpenAIError:
            logger.exception("Error processing transcript")
        else:
            self.apply_extraction(raw)
        self.review = True

    def override(self, changes: ExtractedGoal) -> None:
        """Apply manual edits from the review screen; only fields sent are changed."""
        for field in changes.model_fields_set:
            setattr(self.draft, field, getattr(changes, field))
