"""Goal service - business logic for goal management."""
import logging
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from pymongo.errors import PyMongoError

from lifegoals.models.goal import (
    Goal,
    GoalCreate,
    GoalStatus,
    GoalUpdate,
    MetricSample,
    MetricValue,
)
from lifegoals.models.reflection import Reflection, ReflectionCreate
from lifegoals.store import DocumentStore

logger = logging.getLogger(__name__)

GOALS = "goals"


class GoalService:
    """Service for handling goal operations."""

    def __init__(self, store: DocumentStore):
        """Initialize service with the document store."""
        self.store = store

    def _doc_to_goal(self, doc: dict) -> Goal:
        """Convert database document to Goal model."""
        return Goal.model_validate(doc)

    async def create_goal(
        self,
        user_id: str,
        goal_create: GoalCreate,
    ) -> Goal:
        """
        Create a new goal with all of its nested collections.

        Args:
            user_id: User ID who owns the goal
            goal_create: Goal creation data

        Returns:
            Created goal object
        """
        now = datetime.now(timezone.utc)
        goal_doc = {
            **goal_create.model_dump(),
            "user_id": user_id,
            "created_at": now,
            "updated_at": now,
        }

        goal_id = await self.store.create(GOALS, goal_doc)
        logger.info("Created goal %s for user %s", goal_id, user_id)

        goal_doc["_id"] = goal_id
        return self._doc_to_goal(goal_doc)

    async def list_goals(
        self,
        user_id: str,
        domain: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Goal]:
        """
        List goals for a user, newest first.

        Args:
            user_id: User ID
            domain: Optional domain filter
            status: Optional status filter (active, completed, paused)

        Returns:
            List of goals
        """
        docs = await self.store.query(
            GOALS,
            self._filters(user_id, domain, status),
            order_by="created_at",
            descending=True,
        )
        return [self._doc_to_goal(doc) for doc in docs]

    async def watch_goals(
        self,
        user_id: str,
        domain: Optional[str] = None,
        status: Optional[str] = None,
    ) -> AsyncIterator[list[Goal]]:
        """
        Yield the user's goal list now and after every change to it.

        Only changes to the user's own goals wake the subscriber. Delete
        events carry no document, so every delete triggers a re-query.
        """
        async for docs in self.store.subscribe(
            GOALS,
            self._filters(user_id, domain, status),
            order_by="created_at",
            descending=True,
            pipeline=self._change_pipeline(user_id),
        ):
            yield [self._doc_to_goal(doc) for doc in docs]

    async def get_goal(self, user_id: str, goal_id: str) -> Goal:
        """
        Get a single goal owned by the user.

        Raises:
            ValueError: If goal not found
        """
        doc = await self.store.get(GOALS, goal_id)
        if not doc or doc.get("user_id") != user_id:
            raise ValueError("Goal not found")
        return self._doc_to_goal(doc)

    async def update_goal(
        self,
        user_id: str,
        goal_id: str,
        goal_update: GoalUpdate,
    ) -> Goal:
        """
        Update the given goal fields.

        Only fields present in the update are written.

        Raises:
            ValueError: If goal not found
        """
        await self.get_goal(user_id, goal_id)
        return await self._write(goal_id, goal_update.model_dump(exclude_none=True))

    async def set_status(self, user_id: str, goal_id: str, status: GoalStatus) -> Goal:
        """Change a goal's lifecycle status."""
        await self.get_goal(user_id, goal_id)
        return await self._write(goal_id, {"status": GoalStatus(status).value})

    async def toggle_milestone(
        self,
        user_id: str,
        goal_id: str,
        milestone_id: str,
        completed: bool,
        now: Optional[datetime] = None,
    ) -> Goal:
        """
        Check or uncheck a milestone.

        Checking stamps the completion date; unchecking clears it.

        Raises:
            ValueError: If goal or milestone not found
        """
        now = now or datetime.now(timezone.utc)
        goal = await self.get_goal(user_id, goal_id)
        if not any(m.id == milestone_id for m in goal.milestones):
            raise ValueError("Milestone not found")

        return await self._modify(
            goal_id,
            {
                "$set": {
                    "milestones.$.completed": completed,
                    "milestones.$.completed_date": now if completed else None,
                    "updated_at": now,
                }
            },
            match={"milestones": {"$elemMatch": {"id": milestone_id}}},
            missing="Milestone not found",
        )

    async def record_metric_value(
        self,
        user_id: str,
        goal_id: str,
        metric_id: str,
        value: MetricValue,
        now: Optional[datetime] = None,
    ) -> Goal:
        """
        Set a metric's current value and append it to the history.

        The sample is pushed onto the stored history, so history entries
        are never removed, even when updates overlap.

        Raises:
            ValueError: If goal or metric not found
        """
        now = now or datetime.now(timezone.utc)
        goal = await self.get_goal(user_id, goal_id)
        if not any(m.id == metric_id for m in goal.metrics):
            raise ValueError("Metric not found")

        sample = MetricSample(date=now, value=value)
        return await self._modify(
            goal_id,
            {
                "$set": {"metrics.$.current": value, "updated_at": now},
                "$push": {"metrics.$.history": sample.model_dump()},
            },
            match={"metrics": {"$elemMatch": {"id": metric_id}}},
            missing="Metric not found",
        )

    async def add_reflection(
        self,
        user_id: str,
        goal_id: str,
        reflection: ReflectionCreate,
        now: Optional[datetime] = None,
    ) -> Goal:
        """
        Append a reflection to a goal.

        Raises:
            ValueError: If goal not found
        """
        now = now or datetime.now(timezone.utc)
        await self.get_goal(user_id, goal_id)

        entry = Reflection(**reflection.model_dump(), user_id=user_id, date=now)
        return await self._modify(
            goal_id,
            {"$push": {"reflections": entry.model_dump()}, "$set": {"updated_at": now}},
        )

    async def delete_goal(self, user_id: str, goal_id: str) -> dict:
        """
        Delete a goal permanently.

        Raises:
            ValueError: If goal not found
        """
        await self.get_goal(user_id, goal_id)
        deleted = await self.store.delete(GOALS, goal_id)
        return {"deleted_count": int(deleted)}

    def _filters(
        self,
        user_id: str,
        domain: Optional[str],
        status: Optional[str],
    ) -> dict:
        query = {"user_id": user_id}
        if domain:
            query["domain"] = domain
        if status:
            query["status"] = status
        return query

    def _change_pipeline(self, user_id: str) -> list[dict]:
        return [
            {
                "$match": {
                    "$or": [
                        {"fullDocument.user_id": user_id},
                        {"operationType": "delete"},
                    ]
                }
            }
        ]

    async def _write(
        self,
        goal_id: str,
        fields: dict,
        now: Optional[datetime] = None,
    ) -> Goal:
        """Write fields plus ``updated_at``; no version check, last write wins."""
        fields = {**fields, "updated_at": now or datetime.now(timezone.utc)}
        try:
            doc = await self.store.update(GOALS, goal_id, fields)
        except PyMongoError:
            logger.exception("Error updating goal %s", goal_id)
            raise
        if doc is None:
            raise ValueError("Goal not found")
        return self._doc_to_goal(doc)

    async def _modify(
        self,
        goal_id: str,
        operations: dict,
        match: Optional[dict] = None,
        missing: str = "Goal not found",
    ) -> Goal:
        """Apply update operators in one write; nested entries are addressed in place."""
        try:
            doc = await self.store.modify(GOALS, goal_id, operations, match=match)
        except PyMongoError:
            logger.exception("Error updating goal %s", goal_id)
            raise
        if doc is None:
            raise ValueError(missing)
        return self._doc_to_goal(doc)
