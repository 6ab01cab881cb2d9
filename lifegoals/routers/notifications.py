"""Notification router - upcoming milestones, reviews and deadlines."""
from fastapi import APIRouter, Depends, HTTPException

from lifegoals.database import get_store
from lifegoals.models.notification import Notification
from lifegoals.routers.auth import get_current_user_id
from lifegoals.services.notification_service import (
    NotificationService,
    get_notification_service,
)
from lifegoals.store import DocumentStore


router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[Notification])
async def list_notifications(
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
    service: NotificationService = Depends(get_notification_service),
):
    """
    Latest notices for the authenticated user, newest date first.

    - Rebuilt from active goals on every poll; nothing is stored
    """
    return await service.list_for_user(store, user_id)


@router.post("/{notification_id}/read", response_model=Notification)
async def mark_notification_read(
    notification_id: str,
    user_id: str = Depends(get_current_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    """
    Mark a notice read.

    - The mark lasts until the next poll rebuilds the list
    """
    try:
        return service.mark_read(user_id, notification_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
