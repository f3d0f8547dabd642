"""
Public facade for the Pesapal hosted-checkout helper package.

The most useful pieces are re-exported here so integrators can
``from pesapal_checkout import ...`` without navigating the package.
"""

from .api import create_ipn_log, create_pesapal_client, submit_order
from .core import (
    API_BASE_URLS,
    AccessToken,
    AccessTokenCache,
    BillingAddress,
    CheckoutEnvironment,
    ConfigError,
    InputError,
    IpnLog,
    IpnLogEntry,
    OrderRequest,
    PesapalAPIError,
    PesapalClient,
    PesapalConfig,
    PesapalError,
    PesapalParameters,
    SubscriptionDetails,
    SubscriptionFrequency,
    build_environment,
    build_order_payload,
    format_date_for_pesapal,
    load_env_file,
    load_pesapal_config,
)
from .endpoints import EndpointResponse

__all__ = (
    "API_BASE_URLS",
    "AccessToken",
    "AccessTokenCache",
    "BillingAddress",
    "CheckoutEnvironment",
    "ConfigError",
    "EndpointResponse",
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
    "build_environment",
    "build_order_payload",
    "create_ipn_log",
    "create_pesapal_client",
    "format_date_for_pesapal",
    "load_env_file",
    "load_pesapal_config",
    "submit_order",
)
