from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from youvote import crud, mailer
from youvote.database.connection import ensure_indexes, get_db
from youvote.main import app
from youvote.security import create_access_token


@pytest.fixture
def db():
    database = mongomock.MongoClient().youvote_test
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def outbox(monkeypatch):
    """Capture outgoing mail instead of talking to SMTP"""
    sent = []

    def fake_send_mail(to_addr, subject, body):
        sent.append({"to": to_addr, "subject": subject, "body": body})
        return True

    monkeypatch.setattr(mailer, "send_mail", fake_send_mail)
    return sent


def auth_headers(user: dict) -> dict:
    token = create_access_token({
        "sub": str(user["_id"]),
        "email": user["email"],
        "role": user.get("role", "voter"),
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin(db):
    return crud.create_user(db, "Grace", "Admin", "grace@university.ac.ke", role="admin", email_verified=True)


@pytest.fixture
def voter(db):
    return crud.create_user(db, "Brian", "Voter", "brian@students.university.ac.ke", email_verified=True)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def voter_headers(voter):
    return auth_headers(voter)


@pytest.fixture
def ongoing_election(db, admin):
    now = datetime.now(timezone.utc)
    return crud.create_election(db, {
        "title": "Student Council Election",
        "description": "Council 2025",
        "election_type": ["Student"],
        "start_date": now - timedelta(days=1),
        "end_date": now + timedelta(days=1),
    }, created_by=str(admin["_id"]))
