"""Domain router - overview and detail per life domain."""
from fastapi import APIRouter, Depends, HTTPException

from lifegoals.database import get_store
from lifegoals.models.goal import Domain
from lifegoals.routers.auth import get_current_user_id
from lifegoals.services.auth_service import AuthService
from lifegoals.services.domain_service import DomainDetail, DomainService, DomainStats
from lifegoals.services.goal_service import GoalService
from lifegoals.store import DocumentStore


router = APIRouter(prefix="/domains", tags=["domains"])


@router.get("", response_model=list[DomainStats])
async def domain_overview(
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    Goal counts, upcoming milestones and review dates for every domain.

    - Requires authentication
    """
    try:
        user = await AuthService(store).get_user_by_id(user_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    service = DomainService(GoalService(store))
    return await service.overview(user_id, user.domains)


@router.get("/{domain}", response_model=DomainDetail)
async def domain_detail(
    domain: Domain,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    A domain's goals with progress.

    - Requires authentication
    """
    service = DomainService(GoalService(store))
    return await service.detail(user_id, domain)
