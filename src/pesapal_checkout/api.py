"""
Public, high-level helpers for the Pesapal hosted checkout.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import requests

from .core.client import PesapalClient
from .core.config import PesapalConfig, PesapalParameters, load_pesapal_config
from .core.ipn_log import IpnLog
from .core.payloads import OrderRequest
from .core.tokens import AccessTokenCache

__all__ = [
    "create_ipn_log",
    "create_pesapal_client",
    "submit_order",
]


def create_pesapal_client(
    *,
    config: Optional[PesapalConfig] = None,
    session: Optional[requests.Session] = None,
    token_cache: Optional[AccessTokenCache] = None,
    strict_dates: bool = False,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[PesapalParameters] = None,
    environment: Optional[str] = None,
    consumer_key: Optional[str] = None,
    consumer_secret: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout_seconds: Optional[float | int | str] = None,
    cache_tokens: Optional[bool | str] = None,
) -> PesapalClient:
    """
    Construct a :class:`PesapalClient`.

    Callers can either supply a ready-made :class:`PesapalConfig` or let the
    helper assemble one from environment data.
    """
    if config is not None:
        extras = (
            overrides,
            base,
            parameters,
            environment,
            consumer_key,
            consumer_secret,
            base_url,
            timeout_seconds,
            cache_tokens,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built PesapalConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_pesapal_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            environment=environment,
            consumer_key=consumer_key,
            consumer_secret=consumer_secret,
            base_url=base_url,
            timeout_seconds=timeout_seconds,
            cache_tokens=cache_tokens,
        )
    return PesapalClient(
        cfg,
        session=session,
        token_cache=token_cache,
        strict_dates=strict_dates,
    )


def create_ipn_log(config: Optional[PesapalConfig] = None, *, path: Optional[str] = None) -> IpnLog:
    """Open the callback log named by ``path`` or, failing that, by ``config``."""
    if path is None and config is not None:
        path = config.ipn_log_path
    return IpnLog(path) if path is not None else IpnLog()


def submit_order(
    order: OrderRequest | Dict[str, Any],
    *,
    config: Optional[PesapalConfig] = None,
    session: Optional[requests.Session] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    strict_dates: bool = False,
) -> Any:
    """
    One-shot helper: build a client from the environment and submit ``order``.
    """
    client = create_pesapal_client(
        config=config,
        session=session,
        env_file=env_file,
        overrides=overrides,
        strict_dates=strict_dates,
    )
    return client.submit_order(order)
