"""
Pytest fixtures for Growth Lab tests.
"""

import os
import tempfile
import uuid
from datetime import date
from typing import AsyncGenerator, Dict, List, Optional

# File-based SQLite so every connection in a test shares one database.
# Must be set before growthlab modules read settings.
_tmp = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_tmp.close()
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_tmp.name}"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only-0123456789"
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""
os.environ["STORAGE_URL"] = ""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from growthlab.config import get_settings

get_settings.cache_clear()

from growthlab.database import create_engine_for_url, create_session_maker, get_db
from growthlab.kernel.errors import StorageError
from growthlab.kernel.identity.jwt import JWTManager
from growthlab.kernel.models import (
    Base,
    Client,
    ClientFunnel,
    Collaborator,
    CollaboratorRole,
)
from growthlab.integrations.notifier import WebhookNotifier


# Fixed "today" for lifecycle tests
TODAY = date(2026, 3, 10)


class FakeStorage:
    """In-memory object storage; flip `fail` to simulate an outage."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.uploads: List[Dict] = []

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        if self.fail:
            raise StorageError("Storage unavailable")
        self.uploads.append({"path": path, "size": len(data), "content_type": content_type})
        return f"https://storage.test/object/public/laboratorio-testes/{path}"


class RecordingNotifier(WebhookNotifier):
    """Notifier that records events instead of posting them."""

    def __init__(self):
        super().__init__(url="")
        self.events: List[tuple] = []

    async def notify(self, event: str, payload: dict, request_id: Optional[str] = None) -> bool:
        self.events.append((event, payload))
        return True


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a fresh SQLite database per test."""
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'lab.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return create_session_maker(db_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_maker() as session:
        yield session
        await session.rollback()


async def _make_collaborator(
    session: AsyncSession,
    name: str,
    role: CollaboratorRole,
) -> Collaborator:
    collaborator = Collaborator(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        name=name,
        role=role,
        is_active=True,
    )
    session.add(collaborator)
    await session.commit()
    return collaborator


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> Collaborator:
    return await _make_collaborator(db_session, "Ana Admin", CollaboratorRole.ADMIN)


@pytest_asyncio.fixture
async def manager(db_session: AsyncSession) -> Collaborator:
    """U1 - owns experiments in most tests."""
    return await _make_collaborator(db_session, "Uma Manager", CollaboratorRole.MANAGER)


@pytest_asyncio.fixture
async def other_manager(db_session: AsyncSession) -> Collaborator:
    """U2 - can edit only what it owns."""
    return await _make_collaborator(db_session, "Ugo Manager", CollaboratorRole.MANAGER)


@pytest_asyncio.fixture
async def viewer(db_session: AsyncSession) -> Collaborator:
    return await _make_collaborator(db_session, "Vera Viewer", CollaboratorRole.VIEWER)


@pytest_asyncio.fixture
async def client_account(db_session: AsyncSession) -> Client:
    """C1 with two funnels."""
    account = Client(id=uuid.uuid4(), name="Acme Corp")
    db_session.add(account)
    await db_session.flush()
    db_session.add_all([
        ClientFunnel(id=uuid.uuid4(), client_id=account.id, label="Webinar"),
        ClientFunnel(id=uuid.uuid4(), client_id=account.id, label="Lead Magnet"),
    ])
    await db_session.commit()
    return account


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


def draft_for(owner: Collaborator, client: Optional[Client] = None, **overrides) -> dict:
    """A valid creation payload."""
    data = {
        "name": "Headline A/B",
        "owner_id": owner.id,
        "experiment_type": "copy",
        "channel": "paid_social",
        "client_id": client.id if client else None,
        "funnel": "Webinar",
        "hypothesis": "A benefit-led headline lifts CTR",
        "target_metric": "ctr",
        "target_value": 2.5,
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_draft():
    return draft_for


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def controller_for(db_session: AsyncSession):
    """Build a LifecycleController for an actor with a fixed clock."""
    from growthlab.orchestration import LifecycleController

    def _controller(actor: Collaborator) -> "LifecycleController":
        return LifecycleController(db_session, actor, today=lambda: TODAY)

    return _controller


@pytest.fixture
def jwt_manager() -> JWTManager:
    """JWT manager sharing the application secret."""
    return JWTManager()


@pytest.fixture
def auth_headers_for(jwt_manager: JWTManager):
    """Build bearer headers for a collaborator."""

    def _headers(collaborator: Collaborator) -> dict:
        token, _ = jwt_manager.create_access_token(user_id=collaborator.user_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def api_client(
    session_maker,
    storage: FakeStorage,
    notifier: RecordingNotifier,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app, bound to the per-test database."""
    from growthlab.api.deps import get_notifier, get_storage
    from growthlab.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
