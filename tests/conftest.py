"""
Shared fixtures: a fresh SQLite database per test, the real app behind an
httpx ASGI client, and a stand-in for the completion API.
"""

from typing import Optional

import httpx
import pytest
from sqlalchemy import func, select

from helpai.core.config import get_settings
from helpai.core.database import close_db, get_session_factory, init_db
from helpai.core.flags import get_flags
from helpai.factory import create_app
from helpai.services import llm


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("DOWNLOADS_DIR", str(tmp_path / "downloads"))
    monkeypatch.setenv("SESSION_SECRET", "test-secret")
    monkeypatch.setenv("TOGETHER_AI_API_KEY", "env-together-key")
    monkeypatch.setenv("SERPER_API_KEY", "")
    monkeypatch.setenv("STABILITY_API_KEY", "env-stability-key")
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "")
    monkeypatch.setenv("DISCORD_CLIENT_ID", "")
    monkeypatch.setenv("DISCORD_CLIENT_SECRET", "")
    get_settings.cache_clear()
    get_flags.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
    get_flags.cache_clear()


@pytest.fixture
async def app(settings):
    await close_db()
    application = create_app()
    await init_db()
    yield application
    await close_db()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
async def db(app):
    async with get_session_factory()() as session:
        yield session


class FakeCompletion:
    """Records every message list sent to the completion API."""

    def __init__(self, reply: str = "Hi there! How can I help?"):
        self.reply = reply
        self.calls: list[dict] = []
        self.error: Optional[Exception] = None

    async def __call__(self, messages, *, api_key, settings, **kwargs):
        self.calls.append({"messages": messages, "api_key": api_key})
        if self.error is not None:
            raise self.error
        return self.reply

    @property
    def last_messages(self) -> list[dict]:
        return self.calls[-1]["messages"]


@pytest.fixture
def completion(monkeypatch):
    fake = FakeCompletion()
    monkeypatch.setattr(llm, "complete", fake)
    return fake


async def register(client, username="alice", email="alice@x.com", password="secret1") -> dict:
    """Register a user and return auth headers for it."""
    resp = await client.post(
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )
    assert resp.status_code == 201, resp.text
    token = resp.cookies.get(get_settings().session_cookie_name)
    assert token
    # Tests authenticate explicitly through headers
    client.cookies.clear()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def alice(client) -> dict:
    return await register(client)


@pytest.fixture
async def bob(client) -> dict:
    return await register(client, username="bob", email="bob@x.com", password="hunter22")


async def count_rows(model) -> int:
    async with get_session_factory()() as session:
        result = await session.execute(select(func.count()).select_from(model))
        return result.scalar_one()
