import threading
from datetime import datetime, timezone

from pesapal_checkout import AccessToken, AccessTokenCache
from pesapal_checkout.core.tokens import parse_expiry


def test_parse_expiry_handles_seven_fraction_digits():
    expected = datetime(2021, 8, 26, 12, 29, 30, 517770, tzinfo=timezone.utc).timestamp()

    assert parse_expiry("2021-08-26T12:29:30.5177702Z") == expected


def test_parse_expiry_rejects_garbage():
    assert parse_expiry("next tuesday") is None
    assert parse_expiry(None) is None


def test_access_token_requires_token_field():
    assert AccessToken.from_response({"token": "", "status": "500"}) is None
    assert AccessToken.from_response(None) is None
    assert AccessToken.from_response({"token": "abc"}).expires_at is None


class Clock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_cache_refreshes_within_skew_of_expiry():
    clock = Clock()
    cache = AccessTokenCache(skew_seconds=30, clock=clock)
    issued = []

    def fetch():
        issued.append(len(issued))
        return AccessToken(token=f"tok-{len(issued)}", expires_at=clock.now + 300, raw={})

    assert cache.get(fetch).token == "tok-1"
    clock.now += 200
    assert cache.get(fetch).token == "tok-1"
    clock.now += 80
    assert cache.get(fetch).token == "tok-2"
    assert len(issued) == 2


def test_cache_uses_default_ttl_without_expiry():
    clock = Clock()
    cache = AccessTokenCache(skew_seconds=0, default_ttl_seconds=60, clock=clock)
    tokens = iter(["a", "b"])

    def fetch():
        return AccessToken(token=next(tokens), expires_at=None, raw={})

    assert cache.get(fetch).token == "a"
    clock.now += 59
    assert cache.get(fetch).token == "a"
    clock.now += 2
    assert cache.get(fetch).token == "b"


def test_concurrent_callers_share_one_refresh():
    cache = AccessTokenCache()
    release = threading.Event()
    calls = []

    def fetch():
        calls.append(1)
        release.wait(timeout=5)
        return AccessToken(token="shared", expires_at=None, raw={})

    results = []
    threads = [threading.Thread(target=lambda: results.append(cache.get(fetch).token)) for _ in range(5)]
    for thread in threads:
        thread.start()
    release.set()
    for thread in threads:
        thread.join(timeout=5)

    assert results == ["shared"] * 5
    assert len(calls) == 1
