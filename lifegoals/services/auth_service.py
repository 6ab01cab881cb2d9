"""Authentication service - business logic for user auth."""
import logging
from datetime import datetime, timezone

from lifegoals.models.goal import Domain
from lifegoals.models.user import DomainReview, User, empty_domain_reviews
from lifegoals.store import DocumentStore
from lifegoals.utils.auth import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

USERS = "users"
REVOKED_TOKENS = "revoked_tokens"


class AuthService:
    """Service for handling user authentication."""

    def __init__(self, store: DocumentStore):
        """Initialize service with the document store."""
        self.store = store

    def _doc_to_user(self, doc: dict) -> User:
        return User(
            _id=doc["_id"],
            email=doc["email"],
            name=doc["name"],
            domains=doc.get("domains") or empty_domain_reviews(),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def register_user(self, email: str, password: str, name: str) -> User:
        """
        Register a new user and create their profile.

        The profile starts with review tracking for every life domain,
        nothing reviewed or scheduled yet.

        Args:
            email: User email address
            password: Plain text password
            name: Display name

        Returns:
            User object (without password)

        Raises:
            ValueError: If email is already registered
        """
        existing = await self.store.find_one(USERS, {"email": email})
        if existing:
            raise ValueError("Email already registered")

        now = datetime.now(timezone.utc)
        user_doc = {
            "email": email,
            "hashed_password": hash_password(password),
            "name": name,
            "domains": {
                domain: review.model_dump()
                for domain, review in empty_domain_reviews().items()
            },
            "created_at": now,
            "updated_at": now,
        }

        user_id = await self.store.create(USERS, user_doc)
        logger.info("Registered user %s", user_id)

        user_doc["_id"] = user_id
        return self._doc_to_user(user_doc)

    async def login(self, email: str, password: str) -> str:
        """
        Login user and return JWT token.

        Raises:
            ValueError: If credentials are invalid
        """
        user_doc = await self.store.find_one(USERS, {"email": email})
        if not user_doc:
            raise ValueError("Invalid email or password")

        if not verify_password(password, user_doc["hashed_password"]):
            raise ValueError("Invalid email or password")

        return create_access_token(user_id=str(user_doc["_id"]))

    async def logout(self, token_id: str, expires_at: datetime) -> None:
        """Revoke a token so it is rejected from now on."""
        await self.store.create(
            REVOKED_TOKENS,
            {"jti": token_id, "expires_at": expires_at},
        )

    async def is_revoked(self, token_id: str) -> bool:
        """Check whether a token has been signed out."""
        return await self.store.find_one(REVOKED_TOKENS, {"jti": token_id}) is not None

    async def get_user_by_id(self, user_id: str) -> User:
        """
        Get user by ID.

        Raises:
            ValueError: If user not found or the ID is malformed
        """
        user_doc = await self.store.get(USERS, user_id)
        if not user_doc:
            raise ValueError("User not found")
        return self._doc_to_user(user_doc)

    async def update_domain_review(
        self,
        user_id: str,
        domain: Domain,
        review: DomainReview,
    ) -> User:
        """
        Set when a life domain was last reviewed and is next due.

        Raises:
            ValueError: If user not found
        """
        user = await self.get_user_by_id(user_id)
        domains = {key: value.model_dump() for key, value in user.domains.items()}
        domains[Domain(domain).value] = review.model_dump()

        user_doc = await self.store.update(
            USERS,
            user_id,
            {"domains": domains, "updated_at": datetime.now(timezone.utc)},
        )
        if not user_doc:
            raise ValueError("User not found")
        return self._doc_to_user(user_doc)
