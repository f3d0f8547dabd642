"""
HTTP client for the Pesapal v3 API.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Optional, TypeVar

import requests

from .config import PesapalConfig
from .errors import InputError, PesapalAPIError
from .payloads import (
    OrderRequest,
    build_cancel_payload,
    build_ipn_registration,
    build_order_payload,
)
from .tokens import AccessToken, AccessTokenCache

__all__ = [
    "PesapalClient",
    "decode_json",
    "extract_error",
    "parse_json",
]

T = TypeVar("T")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def decode_json(text: str) -> Any:
    """
    Strict :func:`json.loads`: ``NaN`` and ``Infinity`` are rejected.

    Raises ``ValueError`` (or ``TypeError`` for non-text input).
    """
    return json.loads(text, parse_constant=_reject_constant)


def parse_json(text: str) -> Any:
    """Decode ``text`` as JSON, returning ``None`` when it is not valid JSON."""
    try:
        return decode_json(text)
    except (TypeError, ValueError):
        return None


def extract_error(payload: Any) -> Optional[str]:
    """
    Pull a human-readable message out of a Pesapal error body.

    Checked in order: ``error`` as a string, ``error.message`` or
    ``error.code`` when ``error`` is an object, then a top-level ``message``.
    """
    if not isinstance(payload, dict):
        return None

    error_field = payload.get("error")
    if isinstance(error_field, str) and error_field:
        return error_field
    if isinstance(error_field, dict):
        nested = error_field.get("message") or error_field.get("code")
        if nested:
            return str(nested)

    message = payload.get("message")
    if isinstance(message, str) and message:
        return message

    return None


def _headers(token: Optional[str] = None) -> Dict[str, str]:
    headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _request_json(
    session: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float,
    token: Optional[str] = None,
    body: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, str]] = None,
) -> Any:
    logging.info("Sending %s request to %s", method, url)
    try:
        response = session.request(
            method,
            url,
            headers=_headers(token),
            json=body,
            params=params,
            timeout=timeout,
        )
    except requests.RequestException as exc:
        raise PesapalAPIError(f"Pesapal request to {url} failed: {exc}") from exc

    text = response.text
    payload = parse_json(text)
    if not 200 <= response.status_code < 300:
        message = extract_error(payload) or text or response.reason
        logging.warning(
            "Pesapal responded to %s with %s: %s", url, response.status_code, message
        )
        raise PesapalAPIError(
            f"Pesapal request failed ({response.status_code}): {message}",
            upstream_status=response.status_code,
            payload=payload,
        )
    return payload


class PesapalClient:
    """
    Token-gated wrapper around the Pesapal endpoints.

    Every privileged call first obtains an access token. Without a
    ``token_cache`` that means one ``Auth/RequestToken`` round trip per call;
    pass an :class:`AccessTokenCache` (or set ``PESAPAL_CACHE_TOKENS``) to reuse
    tokens until they near expiry.
    """

    def __init__(
        self,
        config: PesapalConfig,
        *,
        session: Optional[requests.Session] = None,
        token_cache: Optional[AccessTokenCache] = None,
        strict_dates: bool = False,
    ) -> None:
        self.config = config
        self.session = session or requests.Session()
        if token_cache is None and config.cache_tokens:
            token_cache = AccessTokenCache()
        self.token_cache = token_cache
        self.strict_dates = strict_dates

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        return _request_json(
            self.session,
            method,
            self.config.endpoint(path),
            timeout=self.config.timeout_seconds,
            **kwargs,
        )

    def request_access_token(self) -> Any:
        """Exchange the consumer key and secret for a token payload."""
        return self._request("POST", "Auth/RequestToken", body=self.config.credentials())

    def _fetch_token(self) -> AccessToken:
        payload = self.request_access_token()
        token = AccessToken.from_response(payload)
        if token is None:
            raise PesapalAPIError(
                "Pesapal did not return an access token", payload=payload
            )
        return token

    def access_token(self) -> AccessToken:
        if self.token_cache is None:
            return self._fetch_token()
        return self.token_cache.get(self._fetch_token)

    def with_token(self, operation: Callable[[str], T]) -> T:
        token = self.access_token()
        try:
            return operation(token.token)
        except PesapalAPIError as exc:
            if exc.upstream_status == 401 and self.token_cache is not None:
                self.token_cache.invalidate()
            raise

    def register_ipn(self, url: str, ipn_notification_type: Optional[str] = None) -> Any:
        body = build_ipn_registration(url, ipn_notification_type)
        return self.with_token(
            lambda token: self._request("POST", "URLSetup/RegisterIPN", token=token, body=body)
        )

    def list_ipns(self) -> Any:
        return self.with_token(
            lambda token: self._request("GET", "URLSetup/GetIpnList", token=token)
        )

    def submit_order(self, order: OrderRequest | Dict[str, Any]) -> Any:
        if not isinstance(order, OrderRequest):
            order = OrderRequest.from_mapping(order)
        body = build_order_payload(order, strict_dates=self.strict_dates)
        return self.with_token(
            lambda token: self._request(
                "POST", "Transactions/SubmitOrderRequest", token=token, body=body
            )
        )

    def get_transaction_status(self, order_tracking_id: str) -> Any:
        if not order_tracking_id:
            raise InputError("OrderTrackingId is required")
        params = {"orderTrackingId": order_tracking_id}
        return self.with_token(
            lambda token: self._request(
                "GET", "Transactions/GetTransactionStatus", token=token, params=params
            )
        )

    def cancel_order(self, order_tracking_id: str) -> Any:
        body = build_cancel_payload(order_tracking_id)
        return self.with_token(
            lambda token: self._request(
                "POST", "Transactions/CancelOrder", token=token, body=body
            )
        )
