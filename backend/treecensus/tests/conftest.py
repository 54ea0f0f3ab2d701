import os
os.environ["TESTING"] = "1"
os.environ.setdefault("SECRET_KEY", "test-secret")
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
from pathlib import Path
import shutil

import uuid

sys.path.append(str(Path(__file__).resolve().parents[2]))

from treecensus.main import app
from treecensus.database import Base, get_db
from treecensus.data.loaders import seed_reference_data

SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False, "timeout": 30},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base.metadata.drop_all(bind=engine)
Base.metadata.create_all(bind=engine)

_seed_session = TestingSessionLocal()
seed_reference_data(_seed_session)
_seed_session.close()


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def upload_dir(tmp_path):
    d = tmp_path / "uploads"
    d.mkdir()
    os.environ["UPLOAD_DIR"] = str(d)
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture(autouse=True)
def open_roles(monkeypatch):
    monkeypatch.delenv("ENFORCE_ROLES", raising=False)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def unique_species(prefix: str = "species") -> str:
    """Species names unique per test so shared-database assertions stay exact."""

    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def tree_payload(**overrides):
    payload = {
        "species": "은행나무",
        "condition": "excellent",
        "latitude": "37.5",
        "longitude": "127.0",
    }
    payload.update(overrides)
    return payload


def create_tree(client, **overrides):
    resp = client.post("/api/trees", data=tree_payload(**overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


def login(client, email: str | None = None, password: str = "secret"):
    """
    Sign in through the cookie flow, creating the account on first use.
    Returns the normalized email, which is also the new user's id.
    """

    normalized_email = email or f"user-{uuid.uuid4()}@example.com"
    resp = client.post("/api/login", json={"email": normalized_email, "password": password})
    assert resp.status_code == 200, f"Login failed for {normalized_email}: {resp.text}"
    return normalized_email


def make_user_with_role(client, role: str, password: str = "secret") -> str:
    """Create an account via the admin route and sign in as it."""

    email = f"{role}-{uuid.uuid4().hex[:8]}@example.com"
    resp = client.post(
        "/api/admin/users",
        json={"id": email, "email": email, "role": role, "password": password},
    )
    assert resp.status_code == 201, resp.text
    login(client, email, password)
    return email
