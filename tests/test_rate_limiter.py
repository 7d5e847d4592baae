"""Tests for the in-memory rate limiter."""

from barbershop import config
from barbershop.rate_limiter import check_rate_limit, reset_rate_limits


class TestCheckRateLimit:
    """Fixed-window counting."""

    def setup_method(self):
        reset_rate_limits()

    def test_allows_up_to_limit(self):
        assert check_rate_limit("test:a", 2, 60)[0] is True
        assert check_rate_limit("test:a", 2, 60)[0] is True
        allowed, count, ttl = check_rate_limit("test:a", 2, 60)
        assert allowed is False
        assert count == 2
        assert 0 < ttl <= 60

    def test_keys_are_independent(self):
        check_rate_limit("test:a", 1, 60)
        assert check_rate_limit("test:b", 1, 60)[0] is True

    def test_reset_clears_counters(self):
        check_rate_limit("test:a", 1, 60)
        reset_rate_limits()
        assert check_rate_limit("test:a", 1, 60)[0] is True


class TestLoginRateLimit:
    """Login attempts per client IP."""

    def _attempt(self, client, ip="10.0.0.1"):
        return client.post(
            "/auth/login",
            data={"username": "nobody@barbershop.test", "password": "wrong"},
            headers={"X-Forwarded-For": ip},
        )

    def test_blocks_after_limit(self, client):
        for _ in range(config.LOGIN_RATE_LIMIT):
            assert self._attempt(client).status_code == 401

        response = self._attempt(client)
        assert response.status_code == 429
        assert "Retry-After" in response.headers

    def test_other_ip_not_blocked(self, client):
        for _ in range(config.LOGIN_RATE_LIMIT + 1):
            self._attempt(client)
        assert self._attempt(client, ip="10.0.0.2").status_code == 401

    def test_disabled(self, client, monkeypatch):
        monkeypatch.setattr(config, "RATE_LIMIT_ENABLED", False)
        for _ in range(config.LOGIN_RATE_LIMIT + 2):
            assert self._attempt(client).status_code == 401


class TestGlobalRateLimit:
    def test_global_limit_returns_429(self, client, monkeypatch):
        monkeypatch.setattr(config, "RATE_LIMIT_REQUESTS", 3)
        for _ in range(3):
            assert client.get("/services").status_code == 200
        response = client.get("/services")
        assert response.status_code == 429
        assert response.json()["detail"] == "Too many requests. Please try again later."

    def test_health_is_exempt(self, client, monkeypatch):
        monkeypatch.setattr(config, "RATE_LIMIT_REQUESTS", 1)
        for _ in range(3):
            assert client.get("/health").status_code == 200
