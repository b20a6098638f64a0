"""Shared fixtures: a throwaway SQLite file, a proof directory and some families."""

import os
import tempfile

_tmp = tempfile.mkdtemp(prefix="ftm-tests-")
os.environ["FTM_DATABASE_URL"] = f"sqlite:///{_tmp}/test.db"
os.environ["FTM_PROOF_UPLOAD_DIR"] = os.path.join(_tmp, "proofs")
os.environ["FTM_SECRET_KEY"] = "test-secret"
os.environ["FTM_PUBLIC_BASE_URL"] = "http://testserver"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.db.base import Base  # noqa: E402
from app.db.session import SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import UserRole  # noqa: E402
from app.services.family_service import ensure_profile  # noqa: E402
from app.services.security import create_access_token  # noqa: E402
from app.services.user_service import create_user  # noqa: E402

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def make_user(db):
    """Create a user and run the first-login bootstrap for them."""

    def _make(email: str, role: UserRole = UserRole.PARENT, family_code: str | None = None):
        user = create_user(db, email=email, password=PASSWORD, role=role, requested_family_code=family_code)
        ensure_profile(db, user)
        return user

    return _make


def auth(user) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def parent(make_user):
    return make_user("mom@example.com")


@pytest.fixture
def child(make_user, parent):
    return make_user("kid@example.com", role=UserRole.CHILD, family_code=parent.family_id)


@pytest.fixture
def other_parent(make_user):
    return make_user("neighbour@example.com")


@pytest.fixture
def headers():
    return auth
