"""Root conftest — shared test configuration and app fixtures.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - db_manager is replaced by a manager bound to the test engine
    - Session and captcha stores are emptied around every test
    - The static root is a tmp dir holding the default avatar
"""

import os

# Fast bcrypt and no external database during tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("HTTPS__CAPTCHA", "false")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession, create_async_engine, async_sessionmaker,
)

import forum.infrastructure.database as db_module  # noqa: E402
import forum.models  # noqa: E402,F401
from forum.config import Settings  # noqa: E402
from forum.db.base import Base  # noqa: E402
from forum.infrastructure.captcha import get_captcha_store  # noqa: E402
from forum.infrastructure.database import DatabaseSessionManager  # noqa: E402
from forum.infrastructure.sessions import get_session_store  # noqa: E402
from forum.main import create_app  # noqa: E402

AVATAR_BYTES = b"\x89PNG\r\n\x1a\n" + b"default-avatar" * 64


@pytest.fixture(autouse=True)
def clean_stores():
    get_session_store().clear()
    yield
    get_session_store().clear()
    get_captcha_store()._solutions.clear()


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fake_db_manager(test_engine, test_session_factory, monkeypatch):
    """Handlers reach the DB through db_manager; point it at the test engine."""
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = test_session_factory
    monkeypatch.setattr(db_module, "db_manager", manager)
    return manager


@pytest.fixture
def avatar_bytes():
    return AVATAR_BYTES


@pytest.fixture
def static_root(tmp_path):
    (tmp_path / "assets").mkdir()
    (tmp_path / "assets" / "avatar.png").write_bytes(AVATAR_BYTES)
    (tmp_path / "data" / "avatar").mkdir(parents=True)
    return tmp_path


@pytest.fixture
def test_settings(static_root):
    return Settings(
        static_root=static_root,
        web_root=static_root / "no-frontend",
        database_url="sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
async def client(test_settings, fake_db_manager):
    """Test client over the full app; lifespan is not run."""
    app = create_app(test_settings)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c
