import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from user_service import api
from user_service.auth import create_access_token, hash_password
from user_service.database import Base, get_db
from user_service.models.user import User, generate_id

PASSWORD = "password1"


@pytest.fixture
def session_local():
    """Provide an isolated in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(session_local, monkeypatch):
    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    monkeypatch.setattr(api.limiter, "enabled", False)
    api.app.dependency_overrides[get_db] = override_get_db
    yield TestClient(api.app)
    api.app.dependency_overrides.clear()


def _user_data(role: str = "user") -> dict:
    return {
        "id": generate_id(),
        "first_name": "First",
        "last_name": "Last",
        "email": f"{role}_{uuid.uuid4().hex[:8]}@mail.com",
        "role": role,
        "is_email_verified": False,
        "is_account_active": True,
    }


@pytest.fixture
def user_one():
    return _user_data()


@pytest.fixture
def user_two():
    return _user_data()


@pytest.fixture
def admin():
    return _user_data("admin")


@pytest.fixture
def insert_users(session_local):
    """Persist fixture users with the shared hashed password."""
    hashed = hash_password(PASSWORD)

    def _insert(*users: dict) -> None:
        session = session_local()
        session.add_all([User(**user, password=hashed) for user in users])
        session.commit()
        session.close()

    return _insert


@pytest.fixture
def fetch_user(session_local):
    def _fetch(user_id: str):
        session = session_local()
        try:
            return session.get(User, user_id)
        finally:
            session.close()

    return _fetch


@pytest.fixture
def user_one_token(user_one):
    return create_access_token(user_one["id"])


@pytest.fixture
def admin_token(admin):
    return create_access_token(admin["id"])