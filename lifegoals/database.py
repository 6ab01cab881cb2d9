"""MongoDB database connection using Motor (async driver)."""
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from lifegoals.config import settings
from lifegoals.services.auth_service import REVOKED_TOKENS
from lifegoals.store import DocumentStore

logger = logging.getLogger(__name__)


class Database:
    """MongoDB database connection manager."""

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None

    async def connect(self) -> None:
        """Connect to MongoDB."""
        self.client = AsyncIOMotorClient(settings.mongodb_url, tz_aware=True)
        self.db = self.client[settings.mongodb_db_name]
        logger.info("Connected to MongoDB: %s", settings.mongodb_db_name)
        await self.create_indexes()

    async def create_indexes(self) -> None:
        """Create the indexes the services rely on."""
        revoked = self.db[REVOKED_TOKENS]
        # Each revocation record is deleted when its token expires
        await revoked.create_index("expires_at", expireAfterSeconds=0)
        await revoked.create_index("jti")
        logger.info("Database indexes ensured")

    async def disconnect(self) -> None:
        """Disconnect from MongoDB."""
        if self.client is not None:
            self.client.close()
            logger.info("Disconnected from MongoDB")


# Connection holder, populated by the application lifespan
database = Database()


async def get_database() -> AsyncIOMotorDatabase:
    """Dependency to get database instance."""
    if database.db is None:
        raise RuntimeError("Database not connected")
    return database.db


async def get_store() -> DocumentStore:
    """Dependency to get the document store wrapping the database."""
    return DocumentStore(await get_database())
