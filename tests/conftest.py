import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
SERVICE_ROOT = os.path.dirname(CURRENT_DIR)
if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

from fastapi.testclient import TestClient

from research_service.config import Settings
from research_service.domain.entities import Identity
from research_service.infrastructure.db import Database
from research_service.infrastructure.models import DiscussionORM, UserORM
from research_service.infrastructure.security import InvalidTokenError
from research_service.main import create_app

STUDENT = Identity(uid="uid-student", email="student@uni.edu", name="Sam Student")
PROFESSOR = Identity(uid="uid-professor", email="prof@uni.edu", name="Pat Professor")
ADMIN = Identity(uid="uid-admin", email="admin@uni.edu", name="Ada Admin")
STRANGER = Identity(uid="uid-stranger", email="stranger@uni.edu", name="Never Logged In")


class StubVerifier:
    """Token verifier that knows a fixed set of tokens."""

    def __init__(self, tokens: dict[str, Identity]):
        self.tokens = tokens
        self.calls: list[str] = []

    def verify(self, token: str) -> Identity:
        self.calls.append(token)
        try:
            return self.tokens[token]
        except KeyError:
            raise InvalidTokenError("unknown token")


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def verifier():
    return StubVerifier({
        "student-token": STUDENT,
        "professor-token": PROFESSOR,
        "admin-token": ADMIN,
        "stranger-token": STRANGER,
        "no-email-token": Identity(uid="uid-phone", email=None, name="Phone User"),
    })


@pytest.fixture
def settings():
    return Settings(DATABASE_URL="sqlite://", FIREBASE_PROJECT_ID="test-project", LOG_LEVEL="WARNING")


@pytest.fixture
def database(settings):
    return Database(settings.DATABASE_URL)


@pytest.fixture
def app(settings, database, verifier):
    return create_app(settings=settings, database=database, verifier=verifier)


@pytest.fixture
def client(app):
    # lifespan creates the schema on the in-memory database
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session(client, database):
    db = database.new_session()
    try:
        yield db
    finally:
        db.close()


def add_user(db, identity: Identity, role: str = "student", **fields) -> str:
    row = UserORM(
        firebase_uid=identity.uid,
        full_name=identity.name,
        email=identity.email,
        role=role,
        **fields,
    )
    db.add(row); db.commit()
    return row.id


def add_discussion(db, title: str, content: str, created_by_id: str | None = None) -> str:
    row = DiscussionORM(title=title, content=content, created_by_id=created_by_id)
    db.add(row); db.commit()
    return row.id


@pytest.fixture
def registered(db_session):
    """Student, professor and admin accounts as stored after their first login."""
    return {
        "student": add_user(db_session, STUDENT, "student", university="MIT"),
        "professor": add_user(
            db_session, PROFESSOR, "professor",
            university="MIT", research_interests=["robotics"], citations=120,
        ),
        "admin": add_user(db_session, ADMIN, "admin"),
    }
