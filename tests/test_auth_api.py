"""API tests for signup, login, refresh and logout."""

import pytest

from app.models.auth import RefreshToken
from app.services.security import create_access_token

pytestmark = pytest.mark.api


def _signup(client, **overrides):
    body = {"email": "olga@example.com", "password": "secret123", "phone": "+70000000000"}
    body.update(overrides)
    return client.post("/auth/signup", json=body)


def _login(client, email="olga@example.com", password="secret123"):
    return client.post("/auth/token", data={"username": email, "password": password})


def test_signup_creates_parent_with_family(client):
    res = _signup(client)
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["email"] == "olga@example.com"
    assert body["role"] == "parent"
    assert body["phone"] == "+70000000000"
    assert body["verified"] is True
    assert len(body["family_id"]) == 8


def test_signup_with_family_code_joins(client, parent):
    res = _signup(client, email="boy@example.com", role="child", family_code=parent.family_id.lower())
    assert res.status_code == 200, res.text
    assert res.json()["family_id"] == parent.family_id
    assert res.json()["role"] == "child"


def test_signup_accepts_kinship_roles(client):
    res = _signup(client, role="guardian")
    assert res.json()["role"] == "guardian"


@pytest.mark.parametrize(
    "overrides",
    [
        {"email": "not-an-email"},
        {"password": "123"},
        {"role": "grandmaster"},
    ],
)
def test_signup_validates_input(client, overrides):
    assert _signup(client, **overrides).status_code == 422


def test_duplicate_email_rejected(client):
    _signup(client)
    res = _signup(client)
    assert res.status_code == 400
    assert res.json()["detail"] == "Email already registered"


def test_login_returns_tokens(client):
    _signup(client)
    res = _login(client)
    assert res.status_code == 200
    body = res.json()
    assert body["token_type"] == "bearer"
    assert body["refresh_token"]

    me = client.get("/users/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "olga@example.com"


def test_login_wrong_password(client):
    _signup(client)
    res = _login(client, password="wrong-password")
    assert res.status_code == 401
    assert res.json()["detail"] == "Incorrect credentials"


def test_refresh_issues_new_access_token(client):
    _signup(client)
    refresh_token = _login(client).json()["refresh_token"]
    res = client.post("/auth/refresh", params={"refresh_token": refresh_token})
    assert res.status_code == 200
    assert res.json()["refresh_token"] == refresh_token


def test_logout_revokes_refresh_tokens(client, db):
    _signup(client)
    tokens = _login(client).json()
    res = client.post("/auth/logout", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert res.status_code == 204
    assert db.query(RefreshToken).filter(RefreshToken.is_revoked.is_(False)).count() == 0

    res = client.post("/auth/refresh", params={"refresh_token": tokens["refresh_token"]})
    assert res.status_code == 401


def test_protected_routes_need_valid_token(client, parent):
    assert client.get("/users/me").status_code == 401
    bad = client.get("/users/me", headers={"Authorization": "Bearer nonsense"})
    assert bad.status_code == 401
    expired = create_access_token(parent.id, minutes=-1)
    res = client.get("/users/me", headers={"Authorization": f"Bearer {expired}"})
    assert res.status_code == 401
