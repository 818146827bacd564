import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from tapago.db.memory import InMemoryDocumentStore
from tapago.db.session import get_store
from tapago.main import app
from tapago.models.user import User
from tapago.services.debt_service import DebtService
from tapago.services.friend_service import FriendService
from tapago.services.user_service import UserService


@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Fresh in-memory document store per test."""
    return InMemoryDocumentStore()


@pytest.fixture
def debt_service(store) -> DebtService:
    return DebtService(store, retry_base_delay=0, require_friendship=False)


@pytest.fixture
def friend_service(store) -> FriendService:
    return FriendService(store, retry_base_delay=0)


@pytest.fixture
def user_service(store) -> UserService:
    return UserService(store)


@pytest.fixture
def make_user(store):
    """Insert a user document directly, bypassing registration."""
    async def _make_user(user_id: str, username: str, **fields) -> User:
        user = User(id=user_id, username=username, email=f"{username}@example.com", **fields)
        await store.insert("users", user.id, user.to_document())
        return user
    return _make_user


@pytest_asyncio.fixture
async def alice(make_user) -> User:
    return await make_user("alice-id", "alice")


@pytest_asyncio.fixture
async def bob(make_user) -> User:
    return await make_user("bob-id", "bob")


@pytest_asyncio.fixture
async def carol(make_user) -> User:
    return await make_user("carol-id", "carol")


@pytest.fixture
def client(store):
    """FastAPI test client backed by the in-memory store (no lifespan, no MongoDB)."""
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register a user through the API and return (auth headers, user json)."""
    def _register(username: str, password: str = "SecurePassword123"):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": password
            }
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return {"Authorization": f"Bearer {data['access_token']}"}, data["user"]
    return _register
