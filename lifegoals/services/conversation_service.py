"""Conversation service - runs freeform goal chats for a user."""
import logging

from lifegoals.completion import CompletionClient
from lifegoals.flows.assembly import assemble_goal
from lifegoals.flows.freeform import ConversationFlow
from lifegoals.models.conversation import ConversationState
from lifegoals.models.extraction import ExtractedGoal
from lifegoals.models.goal import Goal
from lifegoals.services.goal_service import GoalService
from lifegoals.sessions import FlowSessions

logger = logging.getLogger(__name__)


class ConversationService:
    """Drives freeform conversations and saves the reviewed draft."""

    def __init__(
        self,
        sessions: FlowSessions,
        completion: CompletionClient,
        goals: GoalService,
    ):
        self.sessions = sessions
        self.completion = completion
        self.goals = goals

    def _state(self, session_id: str, flow: ConversationFlow) -> ConversationState:
        return ConversationState(
            session_id=session_id,
            messages=flow.messages,
            draft=flow.draft,
            complete=flow.complete,
            review=flow.review,
        )

    def start(self, user_id: str) -> ConversationState:
        """Open a new conversation with the assistant's greeting."""
        flow = ConversationFlow()
        session_id = self.sessions.start(user_id, flow)
        return self._state(session_id, flow)

    def get_state(self, user_id: str, session_id: str) -> ConversationState:
        """
        Raises:
            ValueError: If session not found
        """
        flow = self.sessions.get(user_id, session_id, ConversationFlow)
        return self._state(session_id, flow)

    async def send(self, user_id: str, session_id: str, text: str) -> ConversationState:
        """
        Send a user message and fold in what the assistant extracts.

        Raises:
            ValueError: If session not found
        """
        flow = self.sessions.get(user_id, session_id, ConversationFlow)
        await flow.send(text, self.completion)
        return self._state(session_id, flow)

    async def import_transcript(
        self,
        user_id: str,
        session_id: str,
        transcript: str,
    ) -> ConversationState:
        """
        Replace the conversation with a pasted transcript and go to review.

        Raises:
            ValueError: If session not found or the transcript is empty
        """
        flow = self.sessions.get(user_id, session_id, ConversationFlow)
        await flow.import_transcript(transcript, self.completion)
        return self._state(session_id, flow)

    def override(
        self,
        user_id: str,
        session_id: str,
        changes: ExtractedGoal,
    ) -> ConversationState:
        """
        Apply manual edits to the draft.

        Raises:
            ValueError: If session not found
        """
        flow = self.sessions.get(user_id, session_id, ConversationFlow)
        flow.override(changes)
        return self._state(session_id, flow)

    async def save(self, user_id: str, session_id: str) -> Goal:
        """
        Create the goal from the draft and close the session.

        The session is closed before the insert, so an overlapping save of
        the same session fails instead of creating a second goal. A failed
        insert reopens it.

        Raises:
            ValueError: If session not found
        """
        flow = self.sessions.get(user_id, session_id, ConversationFlow)
        goal_create = assemble_goal(flow.draft)
        self.sessions.end(user_id, session_id)
        try:
            goal = await self.goals.create_goal(user_id, goal_create)
        except Exception:
            self.sessions.restore(user_id, session_id, flow)
            raise
        logger.info("Conversation %s created goal %s", session_id, goal.id)
        return goal

    def cancel(self, user_id: str, session_id: str) -> None:
        """
        Raises:
            ValueError: If session not found
        """
        self.sessions.get(user_id, session_id, ConversationFlow)
        self.sessions.end(user_id, session_id)
