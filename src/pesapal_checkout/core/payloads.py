"""
Value objects and the JSON bodies sent to the Pesapal API.

Callers describe orders with camelCase mappings (the shape a checkout form
posts); the builders here turn them into the snake_case wire format.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .errors import InputError

__all__ = [
    "BillingAddress",
    "OrderRequest",
    "SubscriptionDetails",
    "SubscriptionFrequency",
    "build_billing_address",
    "build_cancel_payload",
    "build_ipn_registration",
    "build_order_payload",
    "build_subscription_details",
    "format_date_for_pesapal",
]

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

IPN_NOTIFICATION_TYPES = ("POST", "GET")


class SubscriptionFrequency(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"

    @classmethod
    def parse(cls, value: Any) -> "SubscriptionFrequency":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            allowed = ", ".join(member.value for member in cls)
            raise InputError(
                f"Unsupported subscription frequency '{value}' (expected one of {allowed})"
            ) from exc


def format_date_for_pesapal(value: str, *, strict: bool = False) -> str:
    """
    Convert ``YYYY-MM-DD`` to the ``DD-MM-YYYY`` form Pesapal expects.

    Anything else is returned unchanged unless ``strict`` is set, in which case
    an :class:`InputError` is raised.
    """
    match = _ISO_DATE.match(value or "")
    if match is None:
        if strict:
            raise InputError(f"Expected a YYYY-MM-DD date, got '{value}'")
        return value
    year, month, day = match.groups()
    return f"{day}-{month}-{year}"


def _require_mapping(values: Any, name: str) -> Mapping[str, Any]:
    if not isinstance(values, Mapping):
        raise InputError(f"{name} must be an object")
    return values


def _text(values: Mapping[str, Any], key: str) -> str:
    value = values.get(key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class BillingAddress:
    email_address: str
    phone_number: str
    country_code: str
    first_name: str
    last_name: str
    middle_name: str = ""
    line_1: str = ""
    line_2: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    zip_code: str = ""

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "BillingAddress":
        values = _require_mapping(values, "billingAddress")
        return cls(
            email_address=_text(values, "emailAddress"),
            phone_number=_text(values, "phoneNumber"),
            country_code=_text(values, "countryCode"),
            first_name=_text(values, "firstName"),
            middle_name=_text(values, "middleName"),
            last_name=_text(values, "lastName"),
            line_1=_text(values, "line1"),
            line_2=_text(values, "line2"),
            city=_text(values, "city"),
            state=_text(values, "state"),
            postal_code=_text(values, "postalCode"),
            zip_code=_text(values, "zipCode"),
        )


@dataclass(frozen=True)
class SubscriptionDetails:
    start_date: str
    end_date: str
    frequency: SubscriptionFrequency = SubscriptionFrequency.MONTHLY

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "SubscriptionDetails":
        values = _require_mapping(values, "subscriptionDetails")
        return cls(
            start_date=_text(values, "startDate"),
            end_date=_text(values, "endDate"),
            frequency=SubscriptionFrequency.parse(values.get("frequency") or "MONTHLY"),
        )


@dataclass(frozen=True)
class OrderRequest:
    merchant_reference: str
    currency: str
    amount: float
    description: str
    callback_url: str
    notification_id: str
    billing_address: BillingAddress
    branch: str = ""
    account_number: str = ""
    subscription_details: Optional[SubscriptionDetails] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "OrderRequest":
        """Build an order from the camelCase shape posted by a checkout form."""
        values = _require_mapping(values, "order")
        subscription = values.get("subscriptionDetails")
        return cls(
            merchant_reference=_text(values, "merchantReference"),
            currency=_text(values, "currency"),
            amount=values.get("amount"),
            description=_text(values, "description"),
            callback_url=_text(values, "callbackUrl"),
            notification_id=_text(values, "notificationId"),
            billing_address=BillingAddress.from_mapping(values.get("billingAddress") or {}),
            branch=_text(values, "branch"),
            account_number=_text(values, "accountNumber"),
            subscription_details=(
                SubscriptionDetails.from_mapping(subscription) if subscription else None
            ),
        )


def build_billing_address(address: BillingAddress) -> Dict[str, str]:
    return {
        "email_address": address.email_address,
        "phone_number": address.phone_number,
        "country_code": address.country_code,
        "first_name": address.first_name,
        "middle_name": address.middle_name or "",
        "last_name": address.last_name,
        "line_1": address.line_1 or "",
        "line_2": address.line_2 or "",
        "city": address.city or "",
        "state": address.state or "",
        "postal_code": address.postal_code or "",
        "zip_code": address.zip_code or "",
    }


def build_subscription_details(
    details: SubscriptionDetails,
    *,
    strict_dates: bool = False,
) -> Dict[str, str]:
    return {
        "start_date": format_date_for_pesapal(details.start_date, strict=strict_dates),
        "end_date": format_date_for_pesapal(details.end_date, strict=strict_dates),
        "frequency": SubscriptionFrequency.parse(details.frequency).value,
    }


def build_order_payload(
    order: OrderRequest,
    *,
    strict_dates: bool = False,
) -> Dict[str, Any]:
    """
    Build the body for ``Transactions/SubmitOrderRequest``.

    ``account_number`` and ``subscription_details`` are only present when the
    order carries them.
    """
    body: Dict[str, Any] = {
        "id": order.merchant_reference,
        "currency": order.currency,
        "amount": order.amount,
        "description": order.description,
        "callback_url": order.callback_url,
        "notification_id": order.notification_id,
        "branch": order.branch or "",
        "billing_address": build_billing_address(order.billing_address),
    }

    if order.account_number:
        body["account_number"] = order.account_number

    if order.subscription_details is not None:
        body["subscription_details"] = build_subscription_details(
            order.subscription_details, strict_dates=strict_dates
        )

    return body


def build_ipn_registration(url: str, ipn_notification_type: Optional[str] = None) -> Dict[str, str]:
    if not url:
        raise InputError("An IPN URL is required")
    notification_type = (ipn_notification_type or "POST").upper()
    if notification_type not in IPN_NOTIFICATION_TYPES:
        raise InputError(
            f"ipn_notification_type must be GET or POST, got '{ipn_notification_type}'"
        )
    return {"url": url, "ipn_notification_type": notification_type}


def build_cancel_payload(order_tracking_id: str) -> Dict[str, str]:
    if not order_tracking_id:
        raise InputError("order_tracking_id is required")
    return {"order_tracking_id": order_tracking_id}
