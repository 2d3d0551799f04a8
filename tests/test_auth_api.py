"""HTTP-level tests of the auth blueprint through the Flask test client."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest


BASE = "/api/v1/auth"


def _claims(token):
    return jwt.decode(token, options={"verify_signature": False})


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _register(client, email="a@x.com", password="secret1", **extra):
    return client.post(f"{BASE}/register", json={"email": email, "password": password, **extra})


def _login(client, email="a@x.com", password="secret1"):
    return client.post(f"{BASE}/login", json={"email": email, "password": password})


def _refresh_cookie(response):
    return [h for h in response.headers.getlist("Set-Cookie") if h.startswith("refreshToken=")]


class TestEndToEnd:

    def test_register_login_me_refresh(self, client):
        resp = _register(client)
        assert resp.status_code == 201
        assert resp.get_json()["data"]["email"] == "a@x.com"

        resp = _login(client)
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        access, refresh = data["access_token"], data["refresh_token"]
        assert data["token_type"] == "bearer"
        assert access and refresh

        cookie = _refresh_cookie(resp)
        assert cookie and "HttpOnly" in cookie[0]

        resp = client.get(f"{BASE}/me", headers=_bearer(access))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["role"] == "user"

        resp = client.post(f"{BASE}/refresh", json={"refresh_token": refresh})
        assert resp.status_code == 200
        new_access = resp.get_json()["data"]["access_token"]
        assert _claims(new_access)["exp"] > _claims(access)["exp"]

    def test_refresh_from_cookie(self, client):
        _register(client)
        _login(client)

        resp = client.post(f"{BASE}/refresh")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["access_token"]

    def test_logout_revokes_access_and_refresh(self, client, app):
        _register(client)
        data = _login(client).get_json()["data"]

        resp = client.post(f"{BASE}/logout", headers=_bearer(data["access_token"]),
                           json={"refresh_token": data["refresh_token"]})
        assert resp.status_code == 200
        assert any(c.startswith("refreshToken=;") for c in resp.headers.getlist("Set-Cookie"))

        resp = client.get(f"{BASE}/me", headers=_bearer(data["access_token"]))
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Token has been revoked"

        resp = app.test_client().post(f"{BASE}/refresh", json={"refresh_token": data["refresh_token"]})
        assert resp.status_code == 401

        # second logout with the same tokens is fine
        resp = client.post(f"{BASE}/logout", headers=_bearer(data["access_token"]),
                           json={"refresh_token": data["refresh_token"]})
        assert resp.status_code == 200

    def test_logout_accepts_body_tokens_and_nothing(self, client):
        _register(client)
        data = _login(client).get_json()["data"]

        resp = client.post(f"{BASE}/logout", json={"accessToken": data["access_token"]})
        assert resp.status_code == 200
        assert client.get(f"{BASE}/me", headers=_bearer(data["access_token"])).status_code == 401

        assert client.post(f"{BASE}/logout").status_code == 200


class TestFailures:

    def test_bad_password_and_unknown_user_look_the_same(self, client):
        _register(client)
        bad = _login(client, password="wrong-one")
        unknown = _login(client, email="nobody@x.com")

        assert bad.status_code == unknown.status_code == 401
        assert bad.get_json() == unknown.get_json()
        assert bad.get_json()["error"] == "UNAUTHORIZED"

    def test_register_validation(self, client):
        resp = _register(client, email="not-an-email", password="123")
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "VALIDATION_ERROR"
        assert set(body["details"]) == {"email", "password"}

    def test_register_duplicate(self, client):
        _register(client)
        resp = _register(client, email="A@X.com")
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "CONFLICT"

    def test_refresh_requires_token(self, app):
        resp = app.test_client().post(f"{BASE}/refresh", json={})
        assert resp.status_code == 400

    def test_refresh_with_unknown_token(self, client):
        resp = client.post(f"{BASE}/refresh", json={"refresh_token": "nope"})
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid refresh token"

    def test_me_without_token(self, client):
        assert client.get(f"{BASE}/me").status_code == 401

    def test_me_with_expired_token(self, client, services, monkeypatch):
        _register(client)
        monkeypatch.setattr(services.session.codec, "clock",
                            lambda: datetime.now(timezone.utc) - timedelta(hours=2))
        access = _login(client).get_json()["data"]["access_token"]

        resp = client.get(f"{BASE}/me", headers=_bearer(access))
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Token expired"

    def test_me_for_deleted_account(self, client):
        from models import storage
        from models.user import User

        _register(client)
        access = _login(client).get_json()["data"]["access_token"]
        user = storage.get_session().query(User).filter_by(email="a@x.com").one()
        storage.delete(user)
        storage.save()

        assert client.get(f"{BASE}/me", headers=_bearer(access)).status_code == 404


class TestGoogleLogin:

    def test_google_login(self, client, verifier):
        verifier.register("google-token", "g-1", "gina@x.com", name="Gina", picture="http://pic")

        resp = client.post(f"{BASE}/google", json={"id_token": "google-token"})

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["user"]["email"] == "gina@x.com"
        assert data["user"]["has_password"] is False
        assert data["refresh_token"]
        assert client.get(f"{BASE}/me", headers=_bearer(data["access_token"])).status_code == 200

    def test_google_login_requires_token(self, client):
        assert client.post(f"{BASE}/google", json={}).status_code == 400

    def test_google_login_rejected(self, client):
        resp = client.post(f"{BASE}/google", json={"token": "forged"})
        assert resp.status_code == 401

    def test_google_links_registered_account(self, client, verifier):
        user_id = _register(client).get_json()["data"]["id"]
        verifier.register("google-token", "g-1", "a@x.com")

        resp = client.post(f"{BASE}/google", json={"token": "google-token"})

        assert resp.get_json()["data"]["user"]["id"] == user_id
        # password login still works after linking
        assert _login(client).status_code == 200


class TestAdmin:

    def test_admin_can_revoke_sessions(self, app, client):
        target_id = _register(client).get_json()["data"]["id"]
        target = _login(client).get_json()["data"]
        _register(client, email="admin@example.com")
        admin = _login(client, email="admin@example.com").get_json()["data"]
        assert admin["user"]["role"] == "admin"

        resp = client.post(f"{BASE}/users/{target_id}/revoke", headers=_bearer(admin["access_token"]))

        assert resp.status_code == 200
        assert resp.get_json()["data"]["revoked"] == 1
        # fresh client: the shared cookie jar now holds the admin's refresh token
        resp = app.test_client().post(f"{BASE}/refresh", json={"refresh_token": target["refresh_token"]})
        assert resp.status_code == 401

    def test_non_admin_is_forbidden(self, client):
        user_id = _register(client).get_json()["data"]["id"]
        access = _login(client).get_json()["data"]["access_token"]

        resp = client.post(f"{BASE}/users/{user_id}/revoke", headers=_bearer(access))
        assert resp.status_code == 403

    def test_unknown_target(self, client):
        _register(client, email="admin@example.com")
        access = _login(client, email="admin@example.com").get_json()["data"]["access_token"]

        resp = client.post(f"{BASE}/users/missing/revoke", headers=_bearer(access))
        assert resp.status_code == 404


class TestRateLimit:

    @pytest.fixture
    def limited_client(self, make_app):
        return make_app(RATE_LIMIT_REQUESTS=3).test_client()

    def test_fourth_request_is_rejected(self, limited_client):
        for _ in range(3):
            assert limited_client.post(f"{BASE}/refresh", json={"refresh_token": "x"}).status_code == 401

        resp = limited_client.post(f"{BASE}/refresh", json={"refresh_token": "x"})
        assert resp.status_code == 429
        assert resp.get_json()["error"] == "RATE_LIMITED"
        assert int(resp.headers["Retry-After"]) >= 1

    def test_limit_is_per_address(self, limited_client):
        for _ in range(3):
            limited_client.post(f"{BASE}/refresh", json={"refresh_token": "x"})

        resp = limited_client.post(f"{BASE}/refresh", json={"refresh_token": "x"},
                                   environ_base={"REMOTE_ADDR": "10.9.9.9"})
        assert resp.status_code == 401

    def test_preflight_is_not_counted(self, limited_client):
        for _ in range(5):
            resp = limited_client.options(f"{BASE}/refresh", headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            })
            assert resp.status_code == 200

        assert limited_client.post(f"{BASE}/refresh", json={"refresh_token": "x"}).status_code == 401

    def test_health_is_not_limited(self, limited_client):
        for _ in range(5):
            assert limited_client.get("/api/v1/health").status_code == 200


def test_health(client):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json()["database"] == "ok"
