"""Goal router - API endpoints for goal management."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from pymongo.errors import PyMongoError

from lifegoals.database import get_store
from lifegoals.models.goal import (
    Domain,
    Goal,
    GoalCreate,
    GoalStatus,
    GoalUpdate,
    GoalView,
    MetricValueUpdate,
    MilestoneToggle,
    StatusUpdate,
)
from lifegoals.models.reflection import ReflectionCreate
from lifegoals.routers.auth import claims_from_token, get_current_user_id
from lifegoals.services.goal_service import GoalService
from lifegoals.services.progress import to_view
from lifegoals.store import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/goals", tags=["goals"])


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.post("", response_model=Goal, status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal: GoalCreate,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    Create a new goal from a complete form submission.

    - Requires authentication
    - Nested milestones, metrics and routines get generated IDs
    """
    service = GoalService(store)
    return await service.create_goal(user_id=user_id, goal_create=goal)


@router.get("", response_model=list[GoalView])
async def list_goals(
    domain: Optional[Domain] = Query(None, description="Filter by life domain"),
    status: Optional[GoalStatus] = Query(None, description="Filter by status"),
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    List goals for the authenticated user, newest first.

    - Each goal carries its progress percentage and days remaining
    """
    service = GoalService(store)
    goals = await service.list_goals(
        user_id=user_id,
        domain=domain.value if domain else None,
        status=status.value if status else None,
    )
    now = _now()
    return [to_view(goal, now) for goal in goals]


@router.websocket("/live")
async def live_goals(
    websocket: WebSocket,
    token: str = Query(...),
    store: DocumentStore = Depends(get_store),
):
    """
    Push the user's goal list on connect and after every change.

    - Authenticates with the access token in the ``token`` query parameter
    """
    try:
        claims = await claims_from_token(token, store)
    except HTTPException:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    pusher = asyncio.create_task(_push_goals(websocket, GoalService(store), claims["sub"]))
    try:
        # Client messages are ignored; reading only notices the disconnect.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("Live goal subscriber disconnected")
    finally:
        pusher.cancel()


async def _push_goals(websocket: WebSocket, service: GoalService, user_id: str):
    """Send the goal list on every change until cancelled."""
    try:
        async for goals in service.watch_goals(user_id):
            now = _now()
            await websocket.send_json(
                [to_view(goal, now).model_dump(mode="json", by_alias=True) for goal in goals]
            )
    except PyMongoError:
        logger.exception("Live goal stream failed for user %s", user_id)
        await websocket.close(code=1011)


@router.get("/{goal_id}", response_model=GoalView)
async def get_goal(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    Get a single goal.

    - Returns 404 if goal not found
    """
    service = GoalService(store)
    try:
        goal = await service.get_goal(user_id=user_id, goal_id=goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_view(goal, _now())


@router.patch("/{goal_id}", response_model=GoalView)
async def update_goal(
    goal_id: str,
    goal_update: GoalUpdate,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    Update goal fields.

    - Only the fields sent are written
    - Returns 404 if goal not found
    """
    service = GoalService(store)
    try:
        goal = await service.update_goal(
            user_id=user_id,
            goal_id=goal_id,
            goal_update=goal_update,
        )
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_view(goal, _now())


@router.put("/{goal_id}/status", response_model=GoalView)
async def set_status(
    goal_id: str,
    body: StatusUpdate,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """Change a goal's status (active, completed, paused)."""
    service = GoalService(store)
    try:
        goal = await service.set_status(user_id, goal_id, body.status)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_view(goal, _now())


@router.post("/{goal_id}/milestones/{milestone_id}/toggle", response_model=GoalView)
async def toggle_milestone(
    goal_id: str,
    milestone_id: str,
    body: MilestoneToggle,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    Check or uncheck a milestone.

    - Returns 404 if goal or milestone not found
    """
    service = GoalService(store)
    try:
        goal = await service.toggle_milestone(user_id, goal_id, milestone_id, body.completed)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_view(goal, _now())


@router.post("/{goal_id}/metrics/{metric_id}/values", response_model=GoalView)
async def record_metric_value(
    goal_id: str,
    metric_id: str,
    body: MetricValueUpdate,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    Record a new metric value.

    - Sets the current value and appends to the metric's history
    - Returns 404 if goal or metric not found
    """
    service = GoalService(store)
    try:
        goal = await service.record_metric_value(user_id, goal_id, metric_id, body.value)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_view(goal, _now())


@router.post(
    "/{goal_id}/reflections",
    response_model=GoalView,
    status_code=status.HTTP_201_CREATED,
)
async def add_reflection(
    goal_id: str,
    reflection: ReflectionCreate,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    Append a reflection to a goal.

    - Returns 404 if goal not found
    """
    service = GoalService(store)
    try:
        goal = await service.add_reflection(user_id, goal_id, reflection)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return to_view(goal, _now())


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    Delete a goal.

    - Returns 404 if goal not found
    """
    service = GoalService(store)
    try:
        return await service.delete_goal(user_id=user_id, goal_id=goal_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
