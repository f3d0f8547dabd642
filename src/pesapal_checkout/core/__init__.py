"""
Core primitives for talking to Pesapal and recording its callbacks.
"""

from .client import PesapalClient, extract_error, parse_json
from .config import (
    API_BASE_URLS,
    ConfigError,
    PesapalConfig,
    PesapalParameters,
    load_pesapal_config,
)
from .environment import CheckoutEnvironment, build_environment, load_env_file
from .errors import InputError, PesapalAPIError, PesapalError
from .ipn_log import IpnLog, IpnLogEntry
from .payloads import (
    BillingAddress,
    OrderRequest,
    SubscriptionDetails,
    SubscriptionFrequency,
    build_billing_address,
    build_cancel_payload,
    build_ipn_registration,
    build_order_payload,
    build_subscription_details,
    format_date_for_pesapal,
)
from .tokens import AccessToken, AccessTokenCache, parse_expiry

__all__ = [
    "API_BASE_URLS",
    "AccessToken",
    "AccessTokenCache",
    "BillingAddress",
    "CheckoutEnvironment",
    "ConfigError",
    "InputError",
    "IpnLog",
    "IpnLogEntry",
    "OrderRequest",
    "PesapalAPIError",
    "PesapalClient",
    "PesapalConfig",
    "PesapalError",
    "PesapalParameters",
    "SubscriptionDetails",
    "SubscriptionFrequency",
    "build_billing_address",
    "build_cancel_payload",
    "build_environment",
    "build_ipn_registration",
    "build_order_payload",
    "build_subscription_details",
    "extract_error",
    "format_date_for_pesapal",
    "load_env_file",
    "load_pesapal_config",
    "parse_expiry",
    "parse_json",
]
