"""
Access tokens returned by ``Auth/RequestToken`` and an optional reuse cache.
"""

from __future__ import annotations

import re
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

__all__ = [
    "AccessToken",
    "AccessTokenCache",
    "parse_expiry",
]

_EXPIRY = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})(?:\.(?P<fraction>\d+))?(?P<zone>Z|[+-]\d{2}:\d{2})?$"
)


def parse_expiry(value: Any) -> Optional[float]:
    """
    Turn Pesapal's ``expiryDate`` into a POSIX timestamp.

    The provider sends up to seven fractional digits, which
    :meth:`datetime.fromisoformat` rejects on older interpreters, so the
    fraction is truncated to microseconds first. Naive values are UTC.
    """
    if not isinstance(value, str):
        return None
    match = _EXPIRY.match(value.strip())
    if match is None:
        return None
    text = match.group("base")
    fraction = match.group("fraction")
    if fraction:
        text += "." + fraction[:6].ljust(6, "0")
    zone = match.group("zone")
    if zone and zone != "Z":
        text += zone
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


@dataclass(frozen=True)
class AccessToken:
    token: str
    expires_at: Optional[float]
    raw: Dict[str, Any]

    @classmethod
    def from_response(cls, payload: Any) -> Optional["AccessToken"]:
        if not isinstance(payload, dict) or not payload.get("token"):
            return None
        return cls(
            token=str(payload["token"]),
            expires_at=parse_expiry(payload.get("expiryDate")),
            raw=payload,
        )


class AccessTokenCache:
    """
    Keeps the last token until shortly before it expires.

    Concurrent callers that find the cache empty or stale share one refresh:
    the fetch runs under a lock and late arrivals reuse its result.
    """

    def __init__(
        self,
        *,
        skew_seconds: float = 30.0,
        default_ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.skew_seconds = skew_seconds
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._token: Optional[AccessToken] = None
        self._valid_until = 0.0

    def _fresh(self) -> Optional[AccessToken]:
        if self._token is not None and self._clock() < self._valid_until:
            return self._token
        return None

    def get(self, fetch: Callable[[], AccessToken]) -> AccessToken:
        token = self._fresh()
        if token is not None:
            return token

        with self._lock:
            token = self._fresh()
            if token is not None:
                return token
            token = fetch()
            now = self._clock()
            expires_at = token.expires_at
            if expires_at is None:
                expires_at = now + self.default_ttl_seconds
            self._token = token
            self._valid_until = expires_at - self.skew_seconds
            return token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None
            self._valid_until = 0.0
