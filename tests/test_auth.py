"""
Tests for session tokens, password hashing and the sign-up/sign-in/sign-out flow
"""

from datetime import datetime, timedelta, timezone
import uuid

import pytest
from jose import jwt
from sqlmodel import select

from saas_starter.core.auth import (
    create_session_token,
    hash_password,
    verify_password,
    verify_session_token,
)
from saas_starter.core.config import get_settings
from saas_starter.core.errors import InvalidToken
from saas_starter.models import ActivityLog, ActivityType, Team, TeamMember, TeamRole, User

from tests.conftest import PASSWORD


class TestSessionToken:
    def test_round_trip_carries_user_id(self):
        user_id = uuid.uuid4()
        payload = verify_session_token(create_session_token(user_id))

        assert payload.user_id == user_id
        assert payload.expires > datetime.now(timezone.utc) + timedelta(hours=23)

    def test_expired_token_rejected(self):
        token = create_session_token(uuid.uuid4(), expires_delta=timedelta(seconds=-5))

        with pytest.raises(InvalidToken):
            verify_session_token(token)

    def test_foreign_secret_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "some-other-secret",
            algorithm=get_settings().JWT_ALGORITHM,
        )

        with pytest.raises(InvalidToken):
            verify_session_token(token)

    def test_tampered_token_rejected(self):
        token = create_session_token(uuid.uuid4())
        header, body, signature = token.split(".")
        tampered = ".".join([header, body, signature[::-1]])

        with pytest.raises(InvalidToken):
            verify_session_token(tampered)

    def test_payload_without_subject_rejected(self):
        token = jwt.encode(
            {"exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            get_settings().AUTH_SECRET,
            algorithm=get_settings().JWT_ALGORITHM,
        )

        with pytest.raises(InvalidToken):
            verify_session_token(token)


def test_password_hashing():
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


class TestSignUp:
    def test_creates_owned_team(self, client, db):
        response = client.post(
            "/api/auth/sign-up",
            json={"email": "alice@acme.io", "password": PASSWORD},
        )

        assert response.status_code == 200
        assert response.json() == {"redirect": "/dashboard"}
        assert "session=" in response.headers["set-cookie"]

        user = db.exec(select(User).where(User.email == "alice@acme.io")).one()
        membership = db.exec(select(TeamMember).where(TeamMember.user_id == user.id)).one()
        team = db.get(Team, membership.team_id)
        assert team.name == "alice@acme.io's Team"
        assert membership.role == TeamRole.OWNER

        actions = {log.action for log in db.exec(select(ActivityLog)).all()}
        assert actions == {ActivityType.CREATE_TEAM, ActivityType.SIGN_UP}

    def test_invalid_input_reports_fields(self, client):
        response = client.post("/api/auth/sign-up", json={"email": "not-an-email", "password": "short"})

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "validation_error"
        assert set(body["fields"]) == {"email", "password"}

    def test_duplicate_email_rejected(self, client, owner):
        response = client.post(
            "/api/auth/sign-up",
            json={"email": owner.email, "password": PASSWORD},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Failed to create user. Please try again."

    def test_with_price_redirects_to_checkout(self, client, stripe_service):
        response = client.post(
            "/api/auth/sign-up",
            json={"email": "alice@acme.io", "password": PASSWORD, "price_id": "price_base"},
        )

        assert response.status_code == 200
        assert response.json()["redirect"].startswith("https://checkout.stripe.com/")
        assert stripe_service.checkout_calls[0]["price_id"] == "price_base"


class TestSignIn:
    def test_success_sets_cookie_and_logs(self, client, db, owner):
        response = client.post(
            "/api/auth/sign-in",
            json={"email": owner.email, "password": PASSWORD},
        )

        assert response.status_code == 200
        assert response.json() == {"redirect": "/dashboard"}
        token = client.cookies.get("session")
        assert verify_session_token(token).user_id == owner.id

        log = db.exec(select(ActivityLog).where(ActivityLog.user_id == owner.id)).one()
        assert log.action == ActivityType.SIGN_IN

    @pytest.mark.parametrize("email,password", [
        ("owner@acme.io", "wrong-password"),
        ("nobody@acme.io", PASSWORD),
    ])
    def test_bad_credentials(self, client, owner, email, password):
        response = client.post("/api/auth/sign-in", json={"email": email, "password": password})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid email or password. Please try again.",
            "code": "error",
        }
        assert "set-cookie" not in response.headers

    def test_user_without_team_signs_in_without_log(self, client, db, make_user):
        user = make_user("loner@acme.io")

        response = client.post("/api/auth/sign-in", json={"email": user.email, "password": PASSWORD})

        assert response.status_code == 200
        assert db.exec(select(ActivityLog)).all() == []


class TestSignOut:
    def test_clears_cookie_and_logs(self, client, db, owner, login):
        login(owner.email)

        response = client.post("/api/auth/sign-out")

        assert response.status_code == 200
        assert response.json() == {"redirect": "/sign-in"}
        assert "Max-Age=0" in response.headers["set-cookie"]

        actions = [log.action for log in db.exec(select(ActivityLog)).all()]
        assert ActivityType.SIGN_OUT in actions

    def test_requires_session(self, client):
        response = client.post("/api/auth/sign-out")

        assert response.status_code == 401
        assert response.json()["code"] == "unauthenticated"


class TestRequestBody:
    def test_non_object_body(self, client):
        response = client.post("/api/auth/sign-in", json=["owner@acme.io"])

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "validation_error"
        assert body["error"] == "Request body must be a JSON object"
        assert "__root__" in body["fields"]

    def test_malformed_json(self, client):
        response = client.post(
            "/api/auth/sign-in",
            content="{bad",
            headers={"content-type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["code"] == "validation_error"

    def test_empty_body_reports_missing_fields(self, client):
        response = client.post("/api/auth/sign-up")

        assert response.status_code == 422
        assert set(response.json()["fields"]) == {"email", "password"}


def test_sign_up_race_on_email(client, db, owner, monkeypatch):
    # Both requests passed the existence check before either committed
    monkeypatch.setattr(
        "saas_starter.services.team_service.get_user_by_email", lambda session, email: None
    )

    response = client.post("/api/auth/sign-up", json={"email": owner.email, "password": PASSWORD})

    assert response.status_code == 400
    assert response.json()["error"] == "Failed to create user. Please try again."
    assert len(db.exec(select(User).where(User.email == owner.email)).all()) == 1
    assert len(db.exec(select(Team)).all()) == 1
