"""Guided flow service - runs guided interviews for a user."""
import logging
from typing import Optional

from lifegoals.completion import CompletionClient
from lifegoals.flows.guided import GuidedGoalFlow
from lifegoals.models.conversation import GuidedAnswerResult, GuidedSessionState
from lifegoals.models.goal import Goal
from lifegoals.services.goal_service import GoalService
from lifegoals.sessions import FlowSessions

logger = logging.getLogger(__name__)

CREATED_MESSAGE = "Your goal has been created."


class GuidedFlowService:
    """Drives guided interviews and saves the goal they produce."""

    def __init__(
        self,
        sessions: FlowSessions,
        completion: CompletionClient,
        goals: GoalService,
    ):
        self.sessions = sessions
        self.completion = completion
        self.goals = goals

    def _state_fields(self, session_id: str, flow: GuidedGoalFlow) -> dict:
        return {
            "session_id": session_id,
            "step": flow.step,
            "total_steps": flow.total_steps,
            "percent_complete": flow.percent_complete,
            "prompt": flow.prompt,
            "messages": flow.messages,
            "complete": flow.complete,
        }

    def _result(
        self,
        session_id: str,
        flow: GuidedGoalFlow,
        advanced: bool,
        reply: str,
        goal: Optional[Goal] = None,
    ) -> GuidedAnswerResult:
        return GuidedAnswerResult(
            **self._state_fields(session_id, flow),
            goal=goal,
            advanced=advanced,
            reply=reply,
        )

    def start(self, user_id: str) -> GuidedSessionState:
        """Open a new interview at the first question."""
        flow = GuidedGoalFlow()
        session_id = self.sessions.start(user_id, flow)
        return GuidedSessionState(**self._state_fields(session_id, flow))

    def get_state(self, user_id: str, session_id: str) -> GuidedSessionState:
        """
        Raises:
            ValueError: If session not found
        """
        flow = self.sessions.get(user_id, session_id, GuidedGoalFlow)
        return GuidedSessionState(**self._state_fields(session_id, flow))

    async def answer(self, user_id: str, session_id: str, text: str) -> GuidedAnswerResult:
        """
        Submit an answer to the current question.

        A rejected answer returns the hint and the same question. The
        final answer creates the goal and closes the session. If that save
        fails the session stays open, and the next answer retries it.

        Raises:
            ValueError: If session not found
        """
        flow = self.sessions.get(user_id, session_id, GuidedGoalFlow)
        if flow.complete:
            return await self._save(user_id, session_id, flow)

        question = flow.prompt
        outcome = flow.answer(text)

        if not outcome.advanced:
            return self._result(session_id, flow, advanced=False, reply=outcome.hint)

        if flow.complete:
            return await self._save(user_id, session_id, flow)

        reply = await self.completion.acknowledge(text, question, flow.messages[:-1])
        flow.say(reply)
        return self._result(session_id, flow, advanced=True, reply=reply)

    async def _save(
        self, user_id: str, session_id: str, flow: GuidedGoalFlow
    ) -> GuidedAnswerResult:
        # Closed before the insert so a repeated final answer cannot save twice.
        self.sessions.end(user_id, session_id)
        try:
            goal = await self.goals.create_goal(user_id, flow.goal)
        except Exception:
            self.sessions.restore(user_id, session_id, flow)
            raise
        logger.info("Guided flow %s created goal %s", session_id, goal.id)
        return self._result(session_id, flow, advanced=True, reply=CREATED_MESSAGE, goal=goal)

    async def suggest(self, user_id: str, session_id: str) -> list[str]:
        """
        Get candidate answers for the current question without advancing.

        Raises:
            ValueError: If session not found
        """
        flow = self.sessions.get(user_id, session_id, GuidedGoalFlow)
        return await self.completion.suggest(flow.prompt, flow.answers)

    def cancel(self, user_id: str, session_id: str) -> None:
        """
        Raises:
            ValueError: If session not found
        """
        self.sessions.get(user_id, session_id, GuidedGoalFlow)
        self.sessions.end(user_id, session_id)
