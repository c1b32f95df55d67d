import uuid
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.dialects.sqlite import base as sqlite_base
from sqlalchemy.orm import sessionmaker

import app.models  # noqa: F401 (register models with Base.metadata)
from app.core.config import settings
from app.core.database import Base, get_db
from app.main import app as fastapi_app

# ---------------------------------------------------------------------------
# SQLite compatibility for PostgreSQL-specific types (JSONB, UUID)
# ---------------------------------------------------------------------------
sqlite_base.SQLiteTypeCompiler.visit_JSONB = lambda self, type_, **kw: self.visit_JSON(type_, **kw)

# In-memory SQLite for tests, no PostgreSQL dependency needed
TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def make_token(owner_id: str, *, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Sign a bearer token the way the identity provider would."""
    payload = {"sub": owner_id, "exp": datetime.now(UTC) + expires_in}
    return jwt.encode(payload, settings.AUTH_TOKEN_SECRET, algorithm=settings.AUTH_TOKEN_ALGORITHM)


def auth_header(owner_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(owner_id)}"}


@pytest.fixture(autouse=True)
def setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    """Provide a test database session."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def owner_id() -> str:
    return f"owner-{uuid.uuid4().hex[:12]}"


@pytest.fixture
def owner_headers(owner_id) -> dict:
    return auth_header(owner_id)


@pytest.fixture
def other_owner_id() -> str:
    return f"owner-{uuid.uuid4().hex[:12]}"


@pytest.fixture
def other_headers(other_owner_id) -> dict:
    return auth_header(other_owner_id)


@pytest.fixture
def client(db):
    """TestClient with overridden DB dependency."""

    def _override_get_db():
        try:
            yield db
        finally:
            pass

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()
