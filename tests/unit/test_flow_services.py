"""Tests for the services that save goals produced by the creation flows."""
import asyncio

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from pymongo.errors import PyMongoError

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

ANSWERS = [
    "health",
    "Run a marathon",
    "I want to prove to myself I can do it",
    "6 months",
    "Run 10k, Run half marathon",
    "Weekly km:30",
    "Three runs",
    "Stretch",
    "Warm up, Run, Cool down",
    "Running shoes",
    "Injury",
    "Finish the race",
]


def _saved_goal(title="Run a marathon"):
    from lifegoals.models.goal import Goal

    return Goal.model_validate(
        {
            "_id": "goal123",
            "user_id": "user123",
            "title": title,
            "created_at": NOW,
            "updated_at": NOW,
        }
    )


def _completion():
    completion = AsyncMock()
    completion.acknowledge.return_value = "Got it."
    return completion


@pytest.mark.asyncio
class TestGuidedFlowServiceSave:
    """Tests for the guided interview's final save."""

    async def _answer_all_but_last(self, service):
        state = service.start("user123")
        for text in ANSWERS[:-1]:
            result = await service.answer("user123", state.session_id, text)
            assert result.advanced
        return state.session_id

    async def test_final_answer_creates_goal_and_closes_session(self):
        from lifegoals.services.guided_service import GuidedFlowService
        from lifegoals.sessions import FlowSessions

        sessions = FlowSessions()
        goals = AsyncMock()
        goals.create_goal.return_value = _saved_goal()
        service = GuidedFlowService(sessions, _completion(), goals)
        session_id = await self._answer_all_but_last(service)

        result = await service.answer("user123", session_id, ANSWERS[-1])

        assert result.goal.id == "goal123"
        assert result.complete is True
        assert len(sessions) == 0
        user_id, goal_create = goals.create_goal.call_args[0]
        assert user_id == "user123"
        assert goal_create.title == "Run a marathon"

    async def test_failed_save_can_be_retried(self):
        """Test that a storage error leaves the finished interview open for another try."""
        from lifegoals.services.guided_service import GuidedFlowService
        from lifegoals.sessions import FlowSessions

        sessions = FlowSessions()
        goals = AsyncMock()
        goals.create_goal.side_effect = [PyMongoError("connection lost"), _saved_goal()]
        service = GuidedFlowService(sessions, _completion(), goals)
        session_id = await self._answer_all_but_last(service)

        with pytest.raises(PyMongoError):
            await service.answer("user123", session_id, ANSWERS[-1])

        state = service.get_state("user123", session_id)
        assert state.complete is True

        result = await service.answer("user123", session_id, ANSWERS[-1])

        assert result.goal.id == "goal123"
        assert goals.create_goal.call_count == 2
        first, second = (c.args[1] for c in goals.create_goal.call_args_list)
        assert first.success_criteria == second.success_criteria == ["Finish the race"]
        assert len(sessions) == 0

    async def test_overlapping_final_answers_save_once(self):
        from lifegoals.services.guided_service import GuidedFlowService
        from lifegoals.sessions import FlowSessions

        async def create_goal(user_id, goal_create):
            await asyncio.sleep(0)
            return _saved_goal()

        goals = AsyncMock()
        goals.create_goal.side_effect = create_goal
        service = GuidedFlowService(FlowSessions(), _completion(), goals)
        session_id = await self._answer_all_but_last(service)

        results = await asyncio.gather(
            service.answer("user123", session_id, ANSWERS[-1]),
            service.answer("user123", session_id, ANSWERS[-1]),
            return_exceptions=True,
        )

        assert goals.create_goal.call_count == 1
        assert sum(isinstance(r, ValueError) for r in results) == 1


@pytest.mark.asyncio
class TestConversationServiceSave:
    """Tests for saving a reviewed freeform draft."""

    def _service_with_draft(self, goals):
        from lifegoals.models.extraction import ExtractedGoal
        from lifegoals.services.conversation_service import ConversationService
        from lifegoals.sessions import FlowSessions

        sessions = FlowSessions()
        service = ConversationService(sessions, _completion(), goals)
        state = service.start("user123")
        service.override(
            "user123",
            state.session_id,
            ExtractedGoal(title="Learn Spanish", domain="personal"),
        )
        return service, sessions, state.session_id

    async def test_save_creates_goal_and_closes_session(self):
        goals = AsyncMock()
        goals.create_goal.return_value = _saved_goal("Learn Spanish")
        service, sessions, session_id = self._service_with_draft(goals)

        goal = await service.save("user123", session_id)

        assert goal.title == "Learn Spanish"
        assert len(sessions) == 0

    async def test_double_save_creates_one_goal(self):
        """Test that two overlapping saves of one session persist a single goal."""

        async def create_goal(user_id, goal_create):
            await asyncio.sleep(0)
            return _saved_goal(goal_create.title)

        goals = AsyncMock()
        goals.create_goal.side_effect = create_goal
        service, _, session_id = self._service_with_draft(goals)

        results = await asyncio.gather(
            service.save("user123", session_id),
            service.save("user123", session_id),
            return_exceptions=True,
        )

        assert goals.create_goal.call_count == 1
        assert sum(isinstance(r, ValueError) for r in results) == 1
        assert sum(getattr(r, "title", None) == "Learn Spanish" for r in results) == 1

    async def test_failed_save_keeps_session(self):
        goals = AsyncMock()
        goals.create_goal.side_effect = PyMongoError("connection lost")
        service, sessions, session_id = self._service_with_draft(goals)

        with pytest.raises(PyMongoError):
            await service.save("user123", session_id)

        state = service.get_state("user123", session_id)
        assert state.draft.title == "Learn Spanish"
        assert len(sessions) == 1
