"""Review router - weekly review journal."""
from fastapi import APIRouter, Depends, status

from lifegoals.database import get_store
from lifegoals.models.reflection import Reflection, ReflectionCreate
from lifegoals.routers.auth import get_current_user_id
from lifegoals.services.review_service import ReviewService
from lifegoals.store import DocumentStore


router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=Reflection, status_code=status.HTTP_201_CREATED)
async def create_review(
    review: ReflectionCreate,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """Record a weekly review."""
    return await ReviewService(store).create_review(user_id, review)


@router.get("", response_model=list[Reflection])
async def list_reviews(
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """The user's reviews, newest first."""
    return await ReviewService(store).list_reviews(user_id)
