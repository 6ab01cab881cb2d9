"""Review service - the standalone weekly review journal."""
from datetime import datetime, timezone

from lifegoals.models.reflection import Reflection, ReflectionCreate
from lifegoals.store import DocumentStore

REFLECTIONS = "reflections"


class ReviewService:
    """Stores weekly reviews that are not attached to a particular goal."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def create_review(self, user_id: str, review: ReflectionCreate) -> Reflection:
        """Record a review dated now."""
        reflection = Reflection(
            **review.model_dump(),
            user_id=user_id,
            date=datetime.now(timezone.utc),
        )
        await self.store.create(REFLECTIONS, reflection.model_dump())
        return reflection

    async def list_reviews(self, user_id: str) -> list[Reflection]:
        """A user's reviews, newest first."""
        docs = await self.store.query(
            REFLECTIONS,
            {"user_id": user_id},
            order_by="date",
            descending=True,
        )
        return [
            Reflection.model_validate({k: v for k, v in doc.items() if k != "_id"})
            for doc in docs
        ]
