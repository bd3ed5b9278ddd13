import pytest

from config import TestingConfig
from tests.conftest import make_app, registration_payload


class RateLimitedConfig(TestingConfig):
    RATELIMIT_ENABLED = True
    RATELIMIT_APPLICATION = "5 per minute"


class SmallBodyConfig(TestingConfig):
    MAX_CONTENT_LENGTH = 1024


@pytest.fixture
def limited_client():
    app = make_app(RateLimitedConfig)
    with app.app_context():
        yield app.test_client()


class TestRateLimit:
    def test_login_attempts_beyond_the_limit_get_429(self, limited_client):
        for _ in range(5):
            response = limited_client.post("/api/auth/login", json={"login": "admin", "password": "wrong"})
            assert response.status_code == 401

        response = limited_client.post("/api/auth/login", json={"login": "admin", "password": "wrong"})

        assert response.status_code == 429
        assert response.get_json() == {
            "success": False,
            "message": "Too many requests from this IP, please try again later.",
        }

    def test_limit_is_shared_across_api_routes(self, limited_client):
        for _ in range(5):
            limited_client.get("/api/health")
        assert limited_client.post("/api/auth/login", json={}).status_code == 429

    def test_disabled_in_tests_by_default(self, client):
        for _ in range(10):
            assert client.get("/api/health").status_code == 200


class TestCors:
    def test_client_origin_is_allowed_with_credentials(self, app, client):
        origin = app.config["CLIENT_URL"]
        response = client.get("/api/health", headers={"Origin": origin})

        assert response.headers["Access-Control-Allow-Origin"] == origin
        assert response.headers["Access-Control-Allow-Credentials"] == "true"

    def test_other_origins_are_not_allowed(self, client):
        response = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in response.headers


class TestSecurityHeaders:
    def test_headers_are_set(self, client):
        response = client.get("/api/health")
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
        assert "default-src 'self'" in response.headers["Content-Security-Policy"]


class TestBodyLimit:
    def test_default_limit_is_ten_megabytes(self, app):
        assert app.config["MAX_CONTENT_LENGTH"] == 10 * 1024 * 1024

    def test_oversized_body_is_rejected(self):
        app = make_app(SmallBodyConfig)
        with app.app_context():
            client = app.test_client()
            response = client.post("/api/auth/register",
                                   json=registration_payload("amy", bio="x" * 4096))

        assert response.status_code == 413
        assert response.get_json()["success"] is False
