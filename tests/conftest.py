import os

# settings and the engine are read at import time
os.environ.setdefault("POSTGRES_DSN", "sqlite://")
os.environ.setdefault("S3_ENDPOINT", "")

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.datastructures import UploadFile

from giftshop.api.deps import get_db, get_storage
from giftshop.core.config import Settings, get_settings
from giftshop.core.errors import BucketNotFoundError, StorageError
from giftshop.db.session import Base
import giftshop.db.models  # noqa
from giftshop.main import app

SECRET = "test-secret"
ADMIN_ID = "admin-user"


class FakeStorage:
    """In-memory ObjectStorage. Buckets in ``missing`` do not exist, buckets in ``broken`` error out."""

    def __init__(self, missing=(), broken=(), public=True):
        self.missing = set(missing)
        self.broken = set(broken)
        self.public = public
        self.attempts = []
        self.objects = {}

    def upload(self, bucket, path, data, content_type):
        self.attempts.append(bucket)
        if bucket in self.missing:
            raise BucketNotFoundError(bucket)
        if bucket in self.broken:
            raise StorageError("InternalError: backend exploded")
        self.objects[(bucket, path)] = (data, content_type)
        return path

    def get_public_url(self, bucket, path):
        if not self.public:
            return None
        return f"http://storage.test/{bucket}/{path}"


class UnreadableUpload(UploadFile):
    """Upload whose body must not be touched."""

    async def read(self, size=-1):
        raise AssertionError("upload body was read")


def make_token(user_id, secret=SECRET, **claims):
    payload = {
        "sub": user_id,
        "email": f"{user_id}@example.com",
        "role": "authenticated",
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        "user_metadata": {"full_name": "Test User"},
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def settings():
    return Settings(
        JWT_SECRET=SECRET,
        JWT_ALGORITHM="HS256",
        ADMIN_USER_ID=ADMIN_ID,
        PREVIEW_MODE=False,
        PREVIEW_FALLBACK=True,
        S3_BUCKETS="user-uploads,public,avatars",
        AUTH_BASE="http://auth.test/auth/v1",
    )


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def client(session_factory, settings, storage):
    def _db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user_id, **claims):
        return {"Authorization": f"Bearer {make_token(user_id, **claims)}"}
    return _headers
