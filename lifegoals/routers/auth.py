"""Auth router - API endpoints for authentication."""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import BaseModel

from lifegoals.database import get_store
from lifegoals.models.goal import Domain
from lifegoals.models.user import DomainReview, User, UserCreate
from lifegoals.services.auth_service import AuthService
from lifegoals.store import DocumentStore
from lifegoals.utils.auth import decode_access_token


router = APIRouter(prefix="/auth", tags=["auth"])
security = HTTPBearer(auto_error=False)


class LoginRequest(BaseModel):
    """Login request model."""

    email: str
    password: str


class TokenResponse(BaseModel):
    """Token response model."""

    access_token: str
    token_type: str = "bearer"


@router.post("/register", response_model=User, status_code=status.HTTP_201_CREATED)
async def register(user: UserCreate, store: DocumentStore = Depends(get_store)):
    """
    Register a new user.

    - Creates the profile with review tracking for every domain
    - Returns 400 if the email is already registered
    """
    service = AuthService(store)
    try:
        return await service.register_user(
            email=user.email,
            password=user.password,
            name=user.name,
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.post("/login", response_model=TokenResponse)
async def login(login_req: LoginRequest, store: DocumentStore = Depends(get_store)):
    """
    Login user and return access token.

    - Returns 401 if credentials are invalid
    """
    service = AuthService(store)
    try:
        token = await service.login(
            email=login_req.email,
            password=login_req.password,
        )
        return TokenResponse(access_token=token)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
        )


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    store: DocumentStore = Depends(get_store),
) -> dict:
    """
    Dependency to get the verified claims of the bearer token.

    Raises:
        HTTPException: If the token is missing, invalid or signed out (401)
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return await claims_from_token(credentials.credentials, store)


async def claims_from_token(token: str, store: DocumentStore) -> dict:
    """Verify a raw token, including the sign-out check."""
    try:
        claims = decode_access_token(token)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
        )

    if claims.get("jti") and await AuthService(store).is_revoked(claims["jti"]):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
        )
    return claims


async def get_current_user_id(claims: dict = Depends(get_token_claims)) -> str:
    """Dependency to get current user ID from JWT token."""
    return claims["sub"]


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    claims: dict = Depends(get_token_claims),
    store: DocumentStore = Depends(get_store),
):
    """
    Sign out by revoking the current token.

    - Requires authentication
    - The same token is rejected afterwards
    """
    await AuthService(store).logout(
        token_id=claims.get("jti", ""),
        expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
    )


@router.get("/me", response_model=User)
async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    Get current authenticated user.

    - Returns 404 if the user no longer exists
    """
    service = AuthService(store)
    try:
        return await service.get_user_by_id(user_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )


@router.patch("/me/domains/{domain}", response_model=User)
async def update_domain_review(
    domain: Domain,
    review: DomainReview,
    user_id: str = Depends(get_current_user_id),
    store: DocumentStore = Depends(get_store),
):
    """
    Set when a life domain was last reviewed and is next due.

    - Requires authentication
    """
    service = AuthService(store)
    try:
        return await service.update_domain_review(user_id, domain, review)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        )
