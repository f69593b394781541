"""
Identity middleware + token service tests.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from servicedesk.services.token_service import ALGORITHM, decode_access_token, generate_access_token


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _forge(app, **claims):
    payload = {
        "sub": "1",
        "role": "student",
        "type": "access",
        "iat": datetime.now(timezone.utc),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    payload.update(claims)
    return jwt.encode(payload, app.config["SECRET_KEY"], algorithm=ALGORITHM)


class TestTokenService:
    def test_round_trip_claims(self, student):
        payload = decode_access_token(generate_access_token(student.id, "student"))
        assert payload["user_id"] == student.id
        assert payload["sub"] == str(student.id)
        assert payload["role"] == "student"

    def test_unknown_role_refused(self):
        with pytest.raises(ValueError):
            generate_access_token(1, "superuser")

    def test_wrong_type(self, app):
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token(_forge(app, type="refresh"))

    def test_non_numeric_subject(self, app):
        with pytest.raises(jwt.InvalidTokenError):
            decode_access_token(_forge(app, sub="asha"))


class TestIdentityMiddleware:
    def test_health_is_public(self, client):
        assert client.get("/api/health").status_code == 200
        assert client.get("/api/health/live").get_json()["checks"]["database"]["status"] == "ok"

    def test_banner_is_public(self, client):
        data = client.get("/").get_json()
        assert data["message"] == "University Service Request Management System API"
        assert data["status"] == "Running"

    def test_missing_header(self, client):
        res = client.get("/api/requests")
        assert res.status_code == 401
        assert res.get_json()["code"] == "ERR_UNAUTHENTICATED"

    def test_non_bearer_scheme(self, client):
        res = client.get("/api/requests", headers={"Authorization": "Basic YTpi"})
        assert res.get_json()["message"] == "Not authorized, no token"

    def test_garbage_token(self, client):
        res = client.get("/api/requests", headers=_bearer("not.a.jwt"))
        assert res.status_code == 401
        assert res.get_json()["message"] == "Not authorized, token failed"

    def test_wrong_signature(self, client):
        token = jwt.encode({"sub": "1", "role": "admin", "type": "access"},
                           "some-other-secret-that-is-long-enough!!", algorithm=ALGORITHM)
        assert client.get("/api/requests", headers=_bearer(token)).status_code == 401

    def test_expired_token(self, app, client):
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = _forge(app, iat=past, exp=past + timedelta(minutes=1))
        res = client.get("/api/requests", headers=_bearer(token))
        assert res.status_code == 401
        assert res.get_json()["message"] == "Not authorized, token expired"

    def test_valid_token(self, client, student, auth_headers):
        assert client.get("/api/requests", headers=auth_headers(student)).status_code == 200

    def test_request_id_header(self, client, student, auth_headers):
        res = client.get("/api/requests", headers=auth_headers(student))
        assert res.headers.get("X-Request-ID")
