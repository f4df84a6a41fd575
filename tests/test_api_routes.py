"""
tests/test_api_routes.py -- Integration tests for the /api/v1/auth routes.

Covers:
  - register -> 201 with user_id; duplicate -> 409 user_exists
  - login -> 200 token signed for the requested app; no-store header
  - wrong password and unknown email -> identical 401 bodies
  - unknown app -> 400 invalid_app_id
  - is-admin passthrough and 404 for unknown users
  - request validation -> 422 validation_error, passwords capped at 72 bytes
  - health reports the database component
"""

from __future__ import annotations

from auth.tokens import decode_token


def _register(client, email, password="secret"):
    return client.post("/api/v1/auth/register", json={"email": email, "password": password})


def test_register_returns_201_and_id(api_client):
    client, _ = api_client
    resp = _register(client, "route-register@x.com")
    assert resp.status_code == 201
    assert isinstance(resp.json()["user_id"], int)


def test_register_duplicate_is_409(api_client):
    client, _ = api_client
    _register(client, "route-dup@x.com")
    resp = _register(client, "route-dup@x.com", "another")
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "user_exists"


def test_login_returns_token_for_app(api_client, app_one, app_two):
    client, _ = api_client
    uid = _register(client, "route-login@x.com").json()["user_id"]
    resp = client.post(
        "/api/v1/auth/login",
        json={"email": "route-login@x.com", "password": "secret", "app_id": app_one.id},
    )
    assert resp.status_code == 200
    assert resp.headers["Cache-Control"] == "no-store"
    token = resp.json()["token"]
    claims = decode_token(token, app_one.secret)
    assert claims["uid"] == uid
    assert claims["app_id"] == app_one.id
    assert decode_token(token, app_two.secret) is None


def test_bad_password_and_unknown_email_look_identical(api_client, app_one):
    client, _ = api_client
    _register(client, "route-creds@x.com")
    wrong = client.post(
        "/api/v1/auth/login",
        json={"email": "route-creds@x.com", "password": "WRONG", "app_id": app_one.id},
    )
    unknown = client.post(
        "/api/v1/auth/login",
        json={"email": "route-never@x.com", "password": "anything", "app_id": app_one.id},
    )
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()
    assert wrong.json()["error"]["code"] == "invalid_credentials"


def test_login_unknown_app_is_400(api_client):
    client, _ = api_client
    _register(client, "route-app@x.com")
    resp = client.post(
        "/api/v1/auth/login",
        json={"email": "route-app@x.com", "password": "secret", "app_id": 999999},
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_app_id"


def test_is_admin_passthrough(api_client):
    client, storage = api_client
    uid = _register(client, "route-admin@x.com").json()["user_id"]
    assert client.get(f"/api/v1/auth/users/{uid}/is-admin").json() == {"is_admin": False}
    storage.set_admin(uid, True)
    assert client.get(f"/api/v1/auth/users/{uid}/is-admin").json() == {"is_admin": True}


def test_is_admin_unknown_user_is_404(api_client):
    client, _ = api_client
    resp = client.get("/api/v1/auth/users/987654/is-admin")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "user_not_found"


def test_validation_errors_are_422(api_client):
    client, _ = api_client
    cases = [
        ("/api/v1/auth/register", {"email": "", "password": "x"}),
        ("/api/v1/auth/register", {"email": "a@x.com", "password": ""}),
        ("/api/v1/auth/login", {"email": "a@x.com", "password": "x", "app_id": 0}),
        ("/api/v1/auth/login", {"email": "a@x.com", "password": "x"}),
        ("/api/v1/auth/register", {"email": "a@x.com", "password": "x" * 73}),
        ("/api/v1/auth/login", {"email": "a@x.com", "password": "x" * 72 + "A", "app_id": 1}),
    ]
    for path, body in cases:
        resp = client.post(path, json=body)
        assert resp.status_code == 422, (path, body)
        assert resp.json()["error"]["code"] == "validation_error"
    assert client.get("/api/v1/auth/users/0/is-admin").status_code == 422


def test_password_limit_counts_utf8_bytes(api_client):
    client, _ = api_client
    # 37 characters, 74 bytes
    resp = _register(client, "route-bytes@x.com", "\u00e9" * 37)
    assert resp.status_code == 422
    assert "72 bytes" in resp.json()["error"]["detail"]
    assert _register(client, "route-bytes@x.com", "\u00e9" * 36).status_code == 201


def test_health_reports_database(api_client):
    client, _ = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["components"]["database"] == "ok"
