import asyncio

import pytest
import redis
from fastapi import HTTPException
from starlette.requests import Request

from homeservices import rate_limiter
from homeservices.rate_limiter import RateLimiter, client_ip


class CountingRedis:
    def __init__(self, initial=None, ttl=-2):
        self.values = dict(initial or {})
        self.remaining = ttl
        self.writes = []

    def get(self, key):
        return self.values.get(key)

    def ttl(self, key):
        return self.remaining if key in self.values else -2

    def set(self, key, value, ex=None):
        self.values[key] = str(value)
        self.writes.append((key, value, ex))


class BrokenRedis:
    def get(self, key):
        raise redis.ConnectionError("down")

    def ttl(self, key):
        raise redis.ConnectionError("down")

    def set(self, key, value, ex=None):
        raise redis.ConnectionError("down")


def _request(headers=None, peer=("10.0.0.7", 5555)):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/auth/otp/send",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": peer,
    }
    return Request(scope)


def test_allows_up_to_limit():
    limiter = RateLimiter(3, 600, key_prefix="otp_send")
    store = CountingRedis()

    results = [limiter.hit("1.2.3.4", store)[0] for _ in range(4)]
    assert results == [True, True, True, False]
    assert store.writes[0] == ("otp_send:1.2.3.4", 1, 600)


def test_counts_are_per_identity():
    limiter = RateLimiter(1, 600, key_prefix="otp_send")
    store = CountingRedis()
    assert limiter.hit("1.1.1.1", store)[0] is True
    assert limiter.hit("2.2.2.2", store)[0] is True
    assert limiter.hit("1.1.1.1", store)[0] is False


def test_resumes_from_redis_count():
    limiter = RateLimiter(5, 600, key_prefix="otp_send")
    store = CountingRedis({"otp_send:1.2.3.4": "5"}, ttl=120)
    allowed, count, retry_after = limiter.hit("1.2.3.4", store)
    assert allowed is False
    assert count == 5
    assert 0 < retry_after <= 120


def test_counts_locally_when_redis_errors():
    limiter = RateLimiter(2, 600, key_prefix="otp_send")
    assert limiter.hit("1.2.3.4", BrokenRedis())[0] is True
    assert limiter.hit("1.2.3.4", BrokenRedis())[0] is True
    assert limiter.hit("1.2.3.4", BrokenRedis())[0] is False


def test_client_ip_ignores_forwarded_header_without_trusted_proxy():
    assert client_ip(_request({"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})) == "10.0.0.7"
    assert client_ip(_request()) == "10.0.0.7"


def test_client_ip_reads_hop_appended_by_trusted_proxy(monkeypatch):
    monkeypatch.setattr(rate_limiter, "TRUSTED_PROXY_COUNT", 1)
    # Leftmost entry is whatever the caller sent, the proxy appended the real peer
    assert client_ip(_request({"X-Forwarded-For": "203.0.113.9, 198.51.100.4"})) == "198.51.100.4"
    assert client_ip(_request()) == "10.0.0.7"

    monkeypatch.setattr(rate_limiter, "TRUSTED_PROXY_COUNT", 2)
    assert client_ip(_request({"X-Forwarded-For": "1.1.1.1, 203.0.113.9, 10.0.0.1"})) == "203.0.113.9"
    assert client_ip(_request({"X-Forwarded-For": "203.0.113.9"})) == "203.0.113.9"


def test_rotating_forwarded_header_does_not_reset_limit(monkeypatch):
    store = CountingRedis()
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: store)
    limiter = RateLimiter(2, 600, key_prefix="otp_send")

    asyncio.run(limiter(_request({"X-Forwarded-For": "192.0.2.1"})))
    asyncio.run(limiter(_request({"X-Forwarded-For": "192.0.2.2"})))
    with pytest.raises(HTTPException) as exc:
        asyncio.run(limiter(_request({"X-Forwarded-For": "192.0.2.3"})))
    assert exc.value.status_code == 429


def test_dependency_raises_429(monkeypatch):
    store = CountingRedis()
    monkeypatch.setattr(rate_limiter, "get_redis_client", lambda: store)
    limiter = RateLimiter(1, 600, key_prefix="otp_send")

    asyncio.run(limiter(_request()))
    with pytest.raises(HTTPException) as exc:
        asyncio.run(limiter(_request()))
    assert exc.value.status_code == 429
    assert exc.value.headers["Retry-After"] == str(exc.value.detail["retry_after"])


def test_dependency_fails_closed_without_redis(monkeypatch):
    def unavailable():
        raise redis.ConnectionError("refused")

    monkeypatch.setattr(rate_limiter, "get_redis_client", unavailable)
    with pytest.raises(HTTPException) as exc:
        asyncio.run(RateLimiter(5, 600, key_prefix="otp_send")(_request()))
    assert exc.value.status_code == 503
