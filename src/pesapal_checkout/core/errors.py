"""
Exception hierarchy shared by the client, the callback log and the handlers.

Each error carries ``status_code``, the HTTP-style classification used when a
failure crosses the caller-facing boundary: 400 for bad input, 5xx for
configuration and upstream failures.
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "PesapalError",
    "InputError",
    "PesapalAPIError",
]


class PesapalError(Exception):
    """Base class for every error raised by this package."""

    status_code = 500


class InputError(PesapalError, ValueError):
    """A required identifier or field is missing or malformed."""

    status_code = 400


class PesapalAPIError(PesapalError):
    """
    The provider could not be reached or answered with a failure.

    ``upstream_status`` is the provider's HTTP status (``None`` for transport
    failures) and ``payload`` the decoded response body, if any.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        upstream_status: Optional[int] = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.payload = payload
