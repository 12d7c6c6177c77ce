from datetime import datetime, timedelta, timezone

import pytest

from app.persistence.models import OAuthAccount, User, VerificationToken

from helpers import PASSWORD, signup_and_login


def _signup(client, **overrides):
    payload = {"email": "anna@example.com", "password": PASSWORD, "first_name": "Anna", "last_name": "Verdi"}
    payload.update(overrides)
    return client.post("/auth/signup", json=payload)


def test_signup_creates_user_and_sends_verification(client, app_db, mail):
    resp = _signup(client, email="  Anna@Example.COM ")
    assert resp.status_code == 201
    assert resp.json() == {"ok": True}

    user = app_db.query(User).filter(User.email == "anna@example.com").one()
    assert user.name == "Anna Verdi"
    assert user.password_hash and user.password_hash != PASSWORD
    assert (user.budget, user.has_team, user.email_verified) == (100, False, None)

    assert len(mail.sent) == 1
    assert mail.sent[0]["to"] == ["anna@example.com"]
    token = app_db.query(VerificationToken).filter_by(identifier="anna@example.com").one().token
    assert token in mail.sent[0]["text"]


@pytest.mark.parametrize("email", ["nope", "a@b", "a b@c.it", ""])
def test_signup_rejects_bad_email(client, email):
    resp = _signup(client, email=email)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid email"


@pytest.mark.parametrize("password", ["Short1A", "alllower1", "ALLUPPER1", "NoDigitsHere"])
def test_signup_rejects_weak_password(client, password):
    resp = _signup(client, password=password)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Weak password"


def test_signup_duplicate_email(client):
    assert _signup(client).status_code == 201
    assert _signup(client, email="ANNA@example.com").status_code == 409


def test_login_rejects_wrong_password(client):
    _signup(client)
    resp = client.post("/auth/login", json={"email": "anna@example.com", "password": "Wrong1234"})
    assert resp.status_code == 401


def test_login_rejects_passwordless_account(client, app_db):
    app_db.add(User(email="oauth@example.com"))
    app_db.commit()
    resp = client.post("/auth/login", json={"email": "oauth@example.com", "password": PASSWORD})
    assert resp.status_code == 401


def test_providers_without_google(client, monkeypatch):
    monkeypatch.delenv("GOOGLE_CLIENT_ID", raising=False)
    assert list(client.get("/auth/providers").json()) == ["credentials"]


def test_providers_with_google(client, monkeypatch):
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "id")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "secret")
    assert set(client.get("/auth/providers").json()) == {"credentials", "google"}


@pytest.fixture
def idp(monkeypatch):
    monkeypatch.setenv("SCHOOLFANTA_IDP_SECRET", "bridge-secret")
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "id")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "secret")
    return {"X-Identity-Secret": "bridge-secret"}


def test_federated_callback_requires_secret(client, idp):
    body = {"provider_account_id": "g-1", "email": "sara@example.com"}
    assert client.post("/auth/callback/google", json=body).status_code == 403
    resp = client.post("/auth/callback/google", json=body, headers={"X-Identity-Secret": "wrong"})
    assert resp.status_code == 403


def test_federated_callback_creates_and_reuses_user(client, app_db, idp):
    body = {"provider_account_id": "g-1", "email": "Sara@example.com", "name": "Sara"}

    first = client.post("/auth/callback/google", json=body, headers=idp)
    assert first.status_code == 200
    second = client.post("/auth/callback/google", json={**body, "name": "Sara R."}, headers=idp)
    assert second.status_code == 200

    users = app_db.query(User).filter(User.email == "sara@example.com").all()
    assert len(users) == 1
    assert users[0].name == "Sara R."
    assert users[0].email_verified is not None
    assert users[0].password_hash is None
    assert app_db.query(OAuthAccount).count() == 1

    me = client.get("/me", headers={"Authorization": f"Bearer {second.json()['access_token']}"}).json()
    assert me["has_google_account"] is True
    assert me["has_password"] is False


def test_federated_callback_links_existing_email(client, app_db, idp):
    signup_and_login(client, email="luca@example.com")

    resp = client.post(
        "/auth/callback/google",
        json={"provider_account_id": "g-7", "email": "luca@example.com"},
        headers=idp,
    )

    assert resp.status_code == 200
    assert app_db.query(User).count() == 1
    link = app_db.query(OAuthAccount).one()
    assert link.user.email == "luca@example.com"


def test_verify_email_marks_user_and_sends_welcome(client, app_db, mail):
    _signup(client)
    token = app_db.query(VerificationToken).one().token

    resp = client.get("/auth/verify-email", params={"token": token, "email": "anna@example.com"})

    assert resp.status_code == 200
    app_db.expire_all()
    assert app_db.query(User).one().email_verified is not None
    assert app_db.query(VerificationToken).count() == 0
    assert mail.sent[-1]["subject"].startswith("Welcome")


def test_verify_email_errors(client, app_db):
    _signup(client)
    assert client.get("/auth/verify-email").status_code == 400
    assert client.get("/auth/verify-email", params={"token": "x", "email": "anna@example.com"}).status_code == 404

    record = app_db.query(VerificationToken).one()
    record.expires = datetime.now(timezone.utc) - timedelta(minutes=1)
    token = record.token
    app_db.commit()

    resp = client.get("/auth/verify-email", params={"token": token, "email": "anna@example.com"})
    assert resp.status_code == 410
    app_db.expire_all()
    assert app_db.query(VerificationToken).count() == 0


def test_resend_verification_replaces_token(client, app_db, mail, auth_headers):
    old = app_db.query(VerificationToken).one().token

    resp = client.post("/auth/resend-verification", headers=auth_headers)

    assert resp.status_code == 200
    app_db.expire_all()
    tokens = app_db.query(VerificationToken).all()
    assert len(tokens) == 1 and tokens[0].token != old
    assert tokens[0].token in mail.sent[-1]["text"]


def test_resend_verification_when_already_verified(client, app_db, auth_headers):
    user = app_db.query(User).one()
    user.email_verified = datetime.now(timezone.utc)
    app_db.commit()

    assert client.post("/auth/resend-verification", headers=auth_headers).status_code == 400


def test_resend_verification_send_failure(client, mail, auth_headers):
    mail.status_code = 500
    assert client.post("/auth/resend-verification", headers=auth_headers).status_code == 500
