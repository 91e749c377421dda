import uuid
from datetime import datetime, timedelta, timezone

import jwt

from user_service import api
from user_service.auth import create_access_token, create_refresh_token
from user_service.config import settings

from conftest import PASSWORD


def _register_payload():
    return {
        "firstName": "Sam",
        "lastName": "Lee",
        "email": f"user_{uuid.uuid4().hex}@mail.com",
        "password": "secret123",
    }


def test_register_and_login(client, fetch_user):
    payload = _register_payload()
    resp = client.post("/v1/auth/register", json=payload)
    assert resp.status_code == 201
    data = resp.json()
    assert data["user"]["role"] == "user"
    assert "password" not in data["user"]
    assert "access_token" in data["tokens"] and "refresh_token" in data["tokens"]
    assert fetch_user(data["user"]["id"]).password != payload["password"]

    resp = client.post(
        "/v1/auth/login", json={"email": payload["email"], "password": payload["password"]}
    )
    assert resp.status_code == 200
    tokens = resp.json()["tokens"]
    assert tokens["token_type"] == "bearer"

    resp = client.get(
        f"/v1/users/{data['user']['id']}",
        headers={"Authorization": f"Bearer {tokens['access_token']}"},
    )
    assert resp.status_code == 200


def test_register_cannot_choose_role(client):
    payload = {**_register_payload(), "role": "admin"}
    resp = client.post("/v1/auth/register", json=payload)
    assert resp.status_code == 400


def test_register_duplicate_email(client, insert_users, user_one):
    insert_users(user_one)
    payload = {**_register_payload(), "email": user_one["email"]}

    resp = client.post("/v1/auth/register", json=payload)
    assert resp.status_code == 400


def test_login_wrong_password(client, insert_users, user_one):
    insert_users(user_one)

    resp = client.post("/v1/auth/login", json={"email": user_one["email"], "password": "wrong123"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Incorrect email or password"


def test_login_fixture_user(client, insert_users, user_one):
    insert_users(user_one)

    resp = client.post("/v1/auth/login", json={"email": user_one["email"], "password": PASSWORD})
    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == user_one["id"]


def test_inactive_account(client, insert_users, user_one, user_one_token):
    user_one["is_account_active"] = False
    insert_users(user_one)

    resp = client.post("/v1/auth/login", json={"email": user_one["email"], "password": PASSWORD})
    assert resp.status_code == 401

    resp = client.get(
        f"/v1/users/{user_one['id']}", headers={"Authorization": f"Bearer {user_one_token}"}
    )
    assert resp.status_code == 401


def test_refresh_token_is_not_an_access_token(client, insert_users, user_one):
    insert_users(user_one)
    token = create_refresh_token(user_one["id"])

    resp = client.get(f"/v1/users/{user_one['id']}", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_expired_token(client, insert_users, user_one):
    insert_users(user_one)
    token = jwt.encode(
        {
            "sub": user_one["id"],
            "type": "access",
            "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
        },
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )

    resp = client.get(f"/v1/users/{user_one['id']}", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_token_signed_with_other_secret(client, insert_users, user_one):
    insert_users(user_one)
    token = jwt.encode(
        {"sub": user_one["id"], "type": "access"}, "another-secret", algorithm="HS256"
    )

    resp = client.get(f"/v1/users/{user_one['id']}", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_login_is_rate_limited(client, monkeypatch):
    monkeypatch.setattr(api.limiter, "enabled", True)
    api.limiter.reset()
    body = {"email": "nobody@mail.com", "password": "whatever1"}

    statuses = [client.post("/v1/auth/login", json=body).status_code for _ in range(6)]
    api.limiter.reset()

    assert statuses[:5] == [401] * 5
    assert statuses[5] == 429


def test_access_token_claims(user_one):
    token = create_access_token(user_one["id"])
    claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])

    assert claims["sub"] == user_one["id"]
    assert claims["type"] == "access"
    assert claims["exp"] - claims["iat"] == settings.access_token_expire_minutes * 60
    assert claims["iat"] <= datetime.now(timezone.utc).timestamp()
