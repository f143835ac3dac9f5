import json
import os
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from teamboard.core import db as db_module
from teamboard.core.presence import PresenceTracker
from teamboard.core.pubsub import RoomRouter
from teamboard.core.security import hash_password
from teamboard.main import app
from teamboard.models.user import User


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL


class MockWebSocket:
    """Stands in for a live connection registered with the RoomRouter."""

    def __init__(self, fail: bool = False):
        self.sent_texts = []
        self.fail = fail

    async def send_text(self, text: str):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent_texts.append(text)

    def events(self, name: str | None = None) -> list[dict]:
        frames = [json.loads(t) for t in self.sent_texts]
        if name is None:
            return frames
        return [f for f in frames if f["type"] == name]


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


def _reset_realtime() -> None:
    app.state.rooms = RoomRouter()
    app.state.presence = PresenceTracker(app.state.rooms)


@pytest_asyncio.fixture
async def db():
    """
    Fresh database without an HTTP client (service-level tests).
    """
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest_asyncio.fixture
async def client():
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB
    and fresh realtime state.
    """
    await _init_test_db()
    _reset_realtime()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client
    await Tortoise.close_connections()


@pytest.fixture
def rooms(client):
    """The app's RoomRouter (reset by the client fixture)."""
    return app.state.rooms


@pytest.fixture
def listener(rooms):
    """
    Factory registering a mock connection, optionally joined to rooms.
    """

    def _listen(*room_names: str) -> MockWebSocket:
        ws = MockWebSocket()
        sid = rooms.connect(ws)
        for room in room_names:
            rooms.join(sid, room)
        return ws

    return _listen


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create users directly.
    """

    async def _create_user(password: str = "UserPass!23") -> tuple[User, str]:
        user = await User.create(
            username=f"user_{uuid.uuid4().hex[:6]}",
            password_hash=hash_password(password),
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(username: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"username": username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["token"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers


@pytest_asyncio.fixture
async def logged_in(create_user, auth_header_factory):
    """
    Factory returning (user, headers) for a fresh logged-in user.
    """

    async def _logged_in() -> tuple[User, dict[str, str]]:
        user, password = await create_user()
        return user, await auth_header_factory(user.username, password)

    return _logged_in
