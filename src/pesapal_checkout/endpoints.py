"""
Request handlers for exposing the client over HTTP.

The handlers are framework-agnostic: each takes already-decoded request data
and returns an :class:`EndpointResponse` whose ``status`` and JSON-ready
``body`` can be handed to whichever web framework hosts them. Failures become
``{"error": message}`` with the status carried by the raised
:class:`~pesapal_checkout.core.errors.PesapalError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from .core.client import PesapalClient
from .core.errors import PesapalError
from .core.ipn_log import IpnLog

__all__ = [
    "EndpointResponse",
    "cancel_order",
    "ipn_history",
    "list_ipns",
    "record_ipn",
    "register_ipn",
    "request_token",
    "submit_order",
    "transaction_status",
]


@dataclass(frozen=True)
class EndpointResponse:
    status: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _error(message: str, status: int) -> EndpointResponse:
    return EndpointResponse(status=status, body={"error": message})


def _run(action: Callable[[], Any]) -> EndpointResponse:
    try:
        return EndpointResponse(status=200, body=action())
    except PesapalError as exc:
        logging.error("Pesapal operation failed: %s", exc)
        return _error(str(exc), exc.status_code)
    except OSError as exc:
        logging.error("Callback log unavailable: %s", exc)
        return _error(str(exc), 500)


def request_token(client: PesapalClient) -> EndpointResponse:
    return _run(client.request_access_token)


def register_ipn(client: PesapalClient, body: Optional[Mapping[str, Any]]) -> EndpointResponse:
    body = body or {}
    return _run(lambda: client.register_ipn(body.get("url") or "", body.get("ipnNotificationType")))


def list_ipns(client: PesapalClient) -> EndpointResponse:
    return _run(client.list_ipns)


def submit_order(client: PesapalClient, body: Optional[Mapping[str, Any]]) -> EndpointResponse:
    return _run(lambda: client.submit_order({} if body is None else body))


def transaction_status(client: PesapalClient, params: Optional[Mapping[str, Any]]) -> EndpointResponse:
    order_tracking_id = (params or {}).get("orderTrackingId")
    if not order_tracking_id:
        return _error("orderTrackingId query parameter is required", 400)
    return _run(lambda: client.get_transaction_status(order_tracking_id))


def cancel_order(client: PesapalClient, body: Optional[Mapping[str, Any]]) -> EndpointResponse:
    body = body or {}
    order_tracking_id = body.get("orderTrackingId") or body.get("order_tracking_id")
    if not order_tracking_id:
        return _error("orderTrackingId is required", 400)
    return _run(lambda: client.cancel_order(order_tracking_id))


def record_ipn(log: IpnLog, raw: Union[str, bytes]) -> EndpointResponse:
    """Store an inbound callback body verbatim and echo the stored entry."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return _run(lambda: log.append(raw).to_dict())


def ipn_history(log: IpnLog) -> EndpointResponse:
    return _run(lambda: [entry.to_dict() for entry in log.read()])
