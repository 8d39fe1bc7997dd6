"""Tests for the token bucket and the rate limiting middleware."""

from diagramhub.core.config import settings
from diagramhub.middleware.request_context import TokenBucketLimiter, rate_limiter
from tests.conftest import auth_headers


class TestTokenBucketLimiter:

    def test_disabled_when_rate_is_zero(self):
        limiter = TokenBucketLimiter()
        for _ in range(1000):
            assert limiter.check("k", 0) == (True, 0.0)
        assert len(limiter) == 0

    def test_burst_up_to_rate_then_blocked(self):
        limiter = TokenBucketLimiter()
        results = [limiter.check("k", 3, now=100.0)[0] for _ in range(4)]
        assert results == [True, True, True, False]

    def test_retry_after(self):
        limiter = TokenBucketLimiter()
        for _ in range(60):
            limiter.check("k", 60, now=0.0)
        allowed, retry_after = limiter.check("k", 60, now=0.0)
        assert not allowed
        assert retry_after == 1.0

    def test_refills_over_time(self):
        limiter = TokenBucketLimiter()
        limiter.check("k", 1, now=0.0)
        assert limiter.check("k", 1, now=30.0)[0] is False
        assert limiter.check("k", 1, now=61.0)[0] is True

    def test_keys_are_independent(self):
        limiter = TokenBucketLimiter()
        limiter.check("a", 1, now=0.0)
        assert limiter.check("a", 1, now=0.0)[0] is False
        assert limiter.check("b", 1, now=0.0)[0] is True

    def test_idle_buckets_are_evicted(self):
        limiter = TokenBucketLimiter(evict_every=2, evict_age=10.0)
        limiter.check("old", 5, now=0.0)
        limiter.check("new", 5, now=100.0)
        assert len(limiter) == 1

    def test_reset(self):
        limiter = TokenBucketLimiter()
        limiter.check("k", 1, now=0.0)
        limiter.reset()
        assert len(limiter) == 0
        assert limiter.check("k", 1, now=0.0)[0] is True


class TestRateLimitMiddleware:

    def test_429_after_budget(self, client, alice, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 2)
        rate_limiter.reset()

        statuses = [client.get("/api/workspaces", headers=auth_headers(alice)).status_code for _ in range(3)]
        assert statuses == [200, 200, 429]

        resp = client.get("/api/workspaces", headers=auth_headers(alice))
        assert resp.json()["error"] == "RATE_LIMITED"
        assert int(resp.headers["Retry-After"]) >= 1

    def test_health_is_exempt(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 1)
        rate_limiter.reset()
        assert all(client.get("/health").status_code == 200 for _ in range(5))

    def test_forwarded_clients_have_separate_budgets(self, client, alice, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 1)
        rate_limiter.reset()
        first = dict(auth_headers(alice), **{"X-Forwarded-For": "10.0.0.1"})
        second = dict(auth_headers(alice), **{"X-Forwarded-For": "10.0.0.2"})
        assert client.get("/api/workspaces", headers=first).status_code == 200
        assert client.get("/api/workspaces", headers=first).status_code == 429
        assert client.get("/api/workspaces", headers=second).status_code == 200
