import os

# Settings are cached on first use, so the environment is prepared before
# anything under app/ is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-secret")
os.environ.setdefault("ADMIN_EMAILS", '["editor@example.com"]')

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from app.core.sql import SessionExecutor
from app.database import create_db_and_tables, enable_sqlite_foreign_keys
from app.models import category as _category_models  # noqa: F401
from app.models import post as _post_models  # noqa: F401


class RecordingExecutor:
    """
    Wraps a real executor, records every statement and can be told to
    fail on statements matching `fail_when`.
    """

    def __init__(self, inner, fail_when=None):
        self.inner = inner
        self.fail_when = fail_when
        self.statements: list[tuple[str, list]] = []

    @property
    def supports_returning(self) -> bool:
        return self.inner.supports_returning

    def execute(self, sql, params=None):
        self.statements.append((sql, list(params or [])))
        if self.fail_when is not None and self.fail_when(sql):
            raise OperationalError(sql, params, Exception("connection lost"))
        return self.inner.execute(sql, params)


class FakeStorage:
    base_url = "https://cdn.example.com/storage/v1/object/public/assets/"

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []

    def upload(self, key: str, file_bytes: bytes, content_type: str) -> str:
        self.objects[key] = (file_bytes, content_type)
        return self.base_url + key

    def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.objects.pop(key, None)

    def key_from_url(self, url: str) -> str | None:
        if not url.startswith(self.base_url):
            return None
        return url[len(self.base_url) :] or None


class Clock:
    """Deterministic epoch-ms clock; each call advances by one ms."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.value = start

    def __call__(self) -> int:
        self.value += 1
        return self.value


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def executor(session):
    return SessionExecutor(session)


@pytest.fixture
def recorder(executor):
    return RecordingExecutor(executor)


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(session, storage):
    from app.core.auth import require_admin
    from app.core.storage_utils import get_storage
    from app.database import get_session
    from app.main import app

    def _session_override():
        yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[require_admin] = lambda: {"sub": "admin-1", "role": "admin"}
    app.dependency_overrides[get_storage] = lambda: storage

    # No context manager: the lifespan would touch the module-level engine.
    yield TestClient(app)

    app.dependency_overrides.clear()
