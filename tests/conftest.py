from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from pathlib import Path
import sys
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

SERVICE_ROOT = Path(__file__).resolve().parents[1]
if str(SERVICE_ROOT) not in sys.path:
    sys.path.insert(0, str(SERVICE_ROOT))

from flame_api.main import app
from flame_api.db import close_mongo_connection, connect_to_mongo
from flame_api.config import get_settings
from flame_api.integrations.cloudinary import get_object_storage
from flame_api.models.upload import StoredObject


class FakeStorage:
    """In-memory stand-in for the Cloudinary object store."""

    def __init__(self) -> None:
        self.objects: Dict[str, bytes] = {}
        self.puts: List[str] = []
        self.deletes: List[str] = []
        self.fail_on_put: Optional[int] = None

    async def put(self, data: bytes, *, mime: str, folder: str, public_id: str) -> StoredObject:
        if self.fail_on_put is not None and len(self.puts) + 1 == self.fail_on_put:
            raise RuntimeError("storage unavailable")
        key = f"{folder}/{public_id}"
        self.objects[key] = data
        self.puts.append(key)
        return StoredObject(url=f"https://cdn.test/{key}", key=key)

    async def delete(self, key: str) -> bool:
        self.deletes.append(key)
        self.objects.pop(key, None)
        return True


@pytest.fixture(autouse=True)
def _env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONGO_URI", "mongodb://localhost:27017/test")
    monkeypatch.setenv("MONGO_DB_NAME", "flame-test")
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    get_settings.cache_clear()  # type: ignore[attr-defined]


@pytest_asyncio.fixture
async def mongo_client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncMongoMockClient]:
    client = AsyncMongoMockClient()

    def _client_factory(*_args, **_kwargs) -> AsyncMongoMockClient:
        return client

    monkeypatch.setattr("flame_api.db.AsyncIOMotorClient", _client_factory)
    yield client
    client.close()


@pytest.fixture
def storage() -> Iterator[FakeStorage]:
    fake = FakeStorage()
    app.dependency_overrides[get_object_storage] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_object_storage, None)


@pytest_asyncio.fixture
async def api_client(mongo_client: AsyncMongoMockClient, storage: FakeStorage) -> AsyncIterator[AsyncClient]:
    await connect_to_mongo()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    await close_mongo_connection()


RegisterFn = Callable[..., Awaitable[Dict[str, Any]]]


@pytest.fixture
def register_user(api_client: AsyncClient) -> RegisterFn:
    """Register an account and return its user, tokens and auth headers."""

    async def _register(
        email: str,
        *,
        name: str = "Tester",
        age: int = 25,
        password: str = "secret123",
    ) -> Dict[str, Any]:
        response = await api_client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "name": name, "age": age},
        )
        assert response.status_code == 201, response.text
        payload = response.json()
        session = payload["session"]
        return {
            "id": payload["user"]["id"],
            "email": payload["user"]["email"],
            "access_token": session["access_token"],
            "refresh_token": session["refresh_token"],
            "headers": {"Authorization": f"Bearer {session['access_token']}"},
        }

    return _register
