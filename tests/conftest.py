import json
import os

os.environ.setdefault("SCHOOLFANTA_SECRET", "test-secret")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.common.auth import hash_password
from app.common.email import EmailSender, get_email_sender
from app.main import create_app
from app.persistence import session as db_session
from app.persistence.models import Base, RealPlayer, User
from app.seed.loader import load_yaml
from app.seed.seeder import seed_catalog

from helpers import PASSWORD, signup_and_login

# bcrypt at cost 12 is slow; hash once for every fixture user
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, autocommit=False)()
    yield session
    session.close()


@pytest.fixture
def catalog(db):
    seed_catalog(db, load_yaml("schools.yaml"))
    db.commit()
    return db.query(RealPlayer).all()


@pytest.fixture
def user(db):
    user = User(email="mario@example.com", password_hash=_PASSWORD_HASH, name="Mario")
    db.add(user)
    db.commit()
    return user


class MailRecorder:
    def __init__(self, status_code=200):
        self.status_code = status_code
        self.sent = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.sent.append(json.loads(request.content))
        return httpx.Response(self.status_code, json={"id": f"email-{len(self.sent)}"})

    def sender(self) -> EmailSender:
        return EmailSender(api_key="re_test", transport=httpx.MockTransport(self))


@pytest.fixture
def mail():
    return MailRecorder()


@pytest.fixture
def client(mail):
    app = create_app(database_url="sqlite://")
    app.dependency_overrides[get_email_sender] = mail.sender

    with TestClient(app) as test_client:
        db = db_session.SessionLocal()
        try:
            seed_catalog(db, load_yaml("schools.yaml"))
            db.commit()
        finally:
            db.close()
        yield test_client


@pytest.fixture
def app_db(client):
    db = db_session.SessionLocal()
    yield db
    db.close()


@pytest.fixture
def auth_headers(client):
    return signup_and_login(client)
