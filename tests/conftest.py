"""Pytest configuration and fixtures."""
import json
import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

os.environ.setdefault("JWT_SECRET", "test-secret-key")

from lifegoals.completion import get_completion_client
from lifegoals.main import app
from lifegoals.models.conversation import Message


class StubCompletion:
    """Stands in for the completion client with canned responses."""

    def __init__(self):
        self.replies: list[str] = []
        self.extractions: list[str] = []
        self.reply_calls: list[list[Message]] = []
        self.extract_calls: list[list[Message]] = []
        self.error: Exception | None = None

    def queue_extraction(self, data: dict) -> None:
        self.extractions.append(json.dumps(data))

    async def reply(self, messages):
        self.reply_calls.append(list(messages))
        if self.error:
            raise self.error
        return self.replies.pop(0) if self.replies else "Tell me more."

    async def extract(self, messages):
        self.extract_calls.append(list(messages))
        if self.error:
            raise self.error
        return self.extractions.pop(0) if self.extractions else "{}"

    async def acknowledge(self, answer, question, messages):
        return "Got it."

    async def suggest(self, question, previous, count=3):
        return [f"Idea {i + 1}" for i in range(count)]


@pytest.fixture
def completion_stub():
    """A fresh stub completion client."""
    return StubCompletion()


@pytest_asyncio.fixture
async def app_client(completion_stub):
    """
    Create a test client over an in-memory database.

    This fixture:
    - Points the database holder at a mongomock database
    - Swaps the completion client for a stub
    - Yields an async HTTP client for testing
    - Restores the originals afterwards
    """
    test_client = AsyncMongoMockClient()
    test_db = test_client["life_goals_test"]

    from lifegoals.database import database
    from lifegoals.services.notification_service import notifications
    from lifegoals.sessions import flow_sessions

    original_db = database.db
    database.db = test_db
    app.dependency_overrides[get_completion_client] = lambda: completion_stub

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client

    app.dependency_overrides.clear()
    database.db = original_db
    notifications.snapshot.clear()
    flow_sessions._sessions.clear()


@pytest_asyncio.fixture
async def auth_headers(app_client):
    """Register and log in a user; return bearer headers."""
    await app_client.post(
        "/auth/register",
        json={
            "email": "owner@example.com",
            "password": "password123",
            "name": "Goal Owner",
        },
    )
    response = await app_client.post(
        "/auth/login",
        json={"email": "owner@example.com", "password": "password123"},
    )
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}
