"""
Shared fixtures: fake object store, configured/unconfigured signing services,
and small FastAPI apps mounting the routers under test.
"""
import os

# Console-only logging and no stray .env values during tests
os.environ["LOG_FILE"] = ""
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from botocore.exceptions import ClientError
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import config
from auth.dependencies import get_db_session, get_signing_service
from database.models import Base
from storage.s3_client import StorageConfig
from storage.signing import SigningService


CONFIGURED = StorageConfig(
    endpoint_url="https://s3.us-west-004.backblazeb2.com",
    region_name="us-west-004",
    access_key_id="test-key-id",
    secret_access_key="test-application-key",
    bucket="media-bucket",
    public_url_base="https://f004.backblazeb2.com/file/media-bucket",
)

UNCONFIGURED = StorageConfig()


class FakeS3Client:
    """
    Stand-in for storage.s3_client.S3Client.

    Records calls; can be told to fail signing or uploads with a ClientError.
    """

    def __init__(self, fail_presign=False, fail_put=False):
        self.fail_presign = fail_presign
        self.fail_put = fail_put
        self.presign_calls = []
        self.put_calls = []

    def get_presigned_url(self, s3_key, expiration=3600):
        self.presign_calls.append({"key": s3_key, "expiration": expiration})
        if self.fail_presign:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "GetObject")
        return f"https://signed.example/{s3_key}?X-Amz-Expires={expiration}"

    def put_object(self, s3_key, body, content_type, cache_control=None):
        self.put_calls.append({
            "key": s3_key,
            "body": body,
            "content_type": content_type,
            "cache_control": cache_control,
        })
        if self.fail_put:
            raise ClientError({"Error": {"Code": "InternalError", "Message": "boom"}}, "PutObject")
        return s3_key

    def get_public_url(self, s3_key):
        return f"https://f004.backblazeb2.com/file/media-bucket/{s3_key}"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def signing_service(fake_s3):
    return SigningService(CONFIGURED, client=fake_s3)


@pytest.fixture
def unconfigured_signing_service():
    return SigningService(UNCONFIGURED)


@pytest.fixture
def db_session():
    """In-memory SQLite session with all tables created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def make_client(*routers, signing_service=None, db_session=None) -> TestClient:
    """Mount routers on a bare app and override storage/database dependencies."""
    app = FastAPI()
    for router in routers:
        app.include_router(router)
    if signing_service is not None:
        app.dependency_overrides[get_signing_service] = lambda: signing_service
    if db_session is not None:
        def _db():
            yield db_session
        app.dependency_overrides[get_db_session] = _db
    return TestClient(app)


@pytest.fixture
def upload_key(monkeypatch):
    """Require a known admin key for uploads and branding updates."""
    monkeypatch.setattr(config, "ALLOW_PUBLIC_UPLOADS", False)
    monkeypatch.setattr(config, "UPLOAD_API_KEY", "s3cret-admin-key")
    return "s3cret-admin-key"


@pytest.fixture
def client_factory():
    return make_client


@pytest.fixture
def storage_config():
    return CONFIGURED


@pytest.fixture
def failing_s3():
    return FakeS3Client(fail_presign=True, fail_put=True)
