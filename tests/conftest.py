import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# database.py connects at import time, so the environment must be in place first
_BOOT_DIR = Path(tempfile.mkdtemp(prefix="stream-haven-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_BOOT_DIR / 'boot.db'}"
os.environ["MEDIA_ROOT"] = str(_BOOT_DIR / "media")
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["AUTO_SYNC_ENABLED"] = "false"
os.environ["SERVER_ADDRESS"] = "http://testserver"
os.environ["CLIENT_ADDRESS"] = "http://client.test"

from app import app  # noqa: E402
from database import Base, get_db  # noqa: E402
from models.database.user import User  # noqa: E402
from services.auth import create_access_token, hash_password  # noqa: E402
from services.avatar_storage import AvatarService, get_avatar_service  # noqa: E402
from services.avatar_storage.drivers import LocalAvatarStorage  # noqa: E402
from services.catalog.client import UpstreamClient, get_upstream_client  # noqa: E402
from services.federated import get_identity_provider  # noqa: E402
from services.library.manager import new_folder  # noqa: E402
from services.notifications import Mailer, get_mailer  # noqa: E402
from services.sync.app import get_sync_client  # noqa: E402
from shared.exceptions import UpstreamError  # noqa: E402
from shared.rate_limit import rate_limiter  # noqa: E402
from shared.utils import utcnow  # noqa: E402


class RecordingMailer(Mailer):
    """Mailer that records messages instead of talking to SMTP."""

    def __init__(self) -> None:
        super().__init__(host="smtp.test", port=587, user="noreply@test", password="secret")
        self.sent: list[dict[str, str]] = []

    def send(self, to: str, subject: str, html: str, text: str) -> bool:
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return True


class FakeUpstream(UpstreamClient):
    """Upstream client answering from a path -> payload table.

    Query strings are ignored when matching; a payload that is an exception
    instance is raised instead of returned.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        super().__init__(base_url="http://upstream.test", api_key="test-key", timeout=5, cache_ttl=60)
        self.responses: dict[str, Any] = responses or {}
        self.requests: list[str] = []

    async def get(self, path: str, params: dict[str, Any] | None = None, use_cache: bool = False) -> dict[str, Any]:
        full_path = self.build_path(path, params)
        self.requests.append(full_path)
        payload = self.responses.get(full_path.split("?")[0])
        if payload is None:
            raise UpstreamError(f"HTTP error! Status: 404 for {full_path}", status=404)
        if isinstance(payload, Exception):
            raise payload
        return payload


@pytest.fixture
def session_factory(tmp_path: Path) -> Generator[sessionmaker, None, None]:
    """Fresh SQLite database per test."""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture
def db(session_factory: sessionmaker) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def avatar_service(tmp_path: Path) -> AvatarService:
    return AvatarService(LocalAvatarStorage(root=tmp_path / "media", public_url="http://testserver/static"))


@pytest.fixture(autouse=True)
def test_environment(
    session_factory: sessionmaker,
    mailer: RecordingMailer,
    upstream: FakeUpstream,
    avatar_service: AvatarService,
) -> Generator[None, None, None]:
    """Dependency overrides and a clean rate-limit window per test."""

    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_upstream_client] = lambda: upstream
    app.dependency_overrides[get_sync_client] = lambda: upstream
    app.dependency_overrides[get_avatar_service] = lambda: avatar_service
    rate_limiter.reset()

    try:
        yield
    finally:
        app.dependency_overrides.clear()
        rate_limiter.reset()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    """Insert a user directly, verified by default."""

    def _make_user(
        username: str = "viewer",
        email: str = "viewer@example.com",
        password: str = "password123",
        verified: bool = True,
        role: str = "User",
        blocked: bool = False,
        **fields: Any,
    ) -> User:
        fields.setdefault("folders", [new_folder("Liked"), new_folder("Watchlater")])
        fields.setdefault("history", [])
        fields.setdefault("created_at", None if verified else utcnow())
        user = User(
            username=username,
            email=email,
            password=hash_password(password),
            is_verified=verified,
            role=role,
            is_blocked=blocked,
            **fields,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _auth_headers(user: User, days: int = 1) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, days)}"}

    return _auth_headers


@pytest.fixture
def identity_provider_override():
    """Install a stand-in identity provider for the Google routes."""

    def _install(provider: Any) -> None:
        app.dependency_overrides[get_identity_provider] = lambda: provider

    return _install
