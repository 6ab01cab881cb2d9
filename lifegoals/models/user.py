"""User model definitions."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from lifegoals.models.goal import Domain


class DomainReview(BaseModel):
    """When a life domain was last reviewed and is next due for review."""

    last_review: Optional[datetime] = None
    next_review: Optional[datetime] = None


def empty_domain_reviews() -> dict[str, DomainReview]:
    """Review tracking for a new profile: every domain, nothing scheduled."""
    return {domain.value: DomainReview() for domain in Domain}


class UserBase(BaseModel):
    """Base user fields."""

    email: EmailStr
    name: str


class UserCreate(UserBase):
    """User creation model with password."""

    password: str


class User(UserBase):
    """User model without password (for API responses)."""

    id: str = Field(alias="_id", serialization_alias="id")
    domains: dict[str, DomainReview] = Field(default_factory=empty_domain_reviews)
    created_at: datetime
    updated_at: datetime

    model_config = {"populate_by_name": True}


class UserInDB(User):
    """User model with hashed password (for database storage)."""

    hashed_password: str
