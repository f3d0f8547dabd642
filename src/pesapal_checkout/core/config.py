"""
Configuration objects and helpers for the Pesapal client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .environment import build_environment
from .errors import PesapalError

__all__ = [
    "API_BASE_URLS",
    "ConfigError",
    "PesapalConfig",
    "PesapalParameters",
    "load_pesapal_config",
]

API_BASE_URLS = {
    "sandbox": "https://cybqa.pesapal.com/pesapalv3/api",
    "live": "https://pay.pesapal.com/v3/api",
}

DEFAULT_IPN_LOG_PATH = "data/pesapal-ipn-log.json"

_PARAMETER_TO_ENV_KEY = {
    "environment": "PESAPAL_ENVIRONMENT",
    "consumer_key": "PESAPAL_CONSUMER_KEY",
    "consumer_secret": "PESAPAL_CONSUMER_SECRET",
    "base_url": "PESAPAL_BASE_URL",
    "timeout_seconds": "PESAPAL_TIMEOUT_SECONDS",
    "cache_tokens": "PESAPAL_CACHE_TOKENS",
    "ipn_log_path": "PESAPAL_IPN_LOG_PATH",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"", "0", "false", "no", "off"}


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigError(PesapalError):
    """Raised when the supplied configuration is missing or invalid."""

    status_code = 500


@dataclass(frozen=True)
class PesapalParameters:
    """
    Explicit parameter bundle for constructing :class:`PesapalConfig`.

    Callers can either instantiate this helper or pass the individual keyword
    arguments directly to :func:`load_pesapal_config`.
    """

    environment: Optional[str] = None
    consumer_key: Optional[str] = None
    consumer_secret: Optional[str] = None
    base_url: Optional[str] = None
    timeout_seconds: Optional[float | int | str] = None
    cache_tokens: Optional[bool | str] = None
    ipn_log_path: Optional[str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _collect_parameter_overrides(
    parameters: Optional[PesapalParameters],
    explicit: Mapping[str, Any],
) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if parameters is not None:
        overrides.update(parameters.as_overrides())

    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:
            raise TypeError(f"Unknown Pesapal parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


def _require(values: Mapping[str, str], name: str) -> str:
    value = (values.get(name) or "").strip()
    if not value:
        raise ConfigError(f"{name} is not defined. Update your .env file.")
    return value


def _parse_environment(raw: Optional[str]) -> str:
    environment = (raw or "sandbox").strip().lower() or "sandbox"
    if environment not in API_BASE_URLS:
        raise ConfigError(f"Unsupported PESAPAL_ENVIRONMENT: {environment}")
    return environment


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError as exc:
        raise ConfigError(
            f"PESAPAL_TIMEOUT_SECONDS must be a number, got '{raw}'"
        ) from exc
    if timeout <= 0:
        raise ConfigError("PESAPAL_TIMEOUT_SECONDS must be greater than zero")
    return timeout


def _parse_flag(raw: str, name: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean flag, got '{raw}'")


@dataclass(frozen=True)
class PesapalConfig:
    consumer_key: str
    consumer_secret: str
    environment: str = "sandbox"
    base_url: str = API_BASE_URLS["sandbox"]
    timeout_seconds: float = 30.0
    cache_tokens: bool = False
    ipn_log_path: str = DEFAULT_IPN_LOG_PATH

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks.
        return (
            f"PesapalConfig(environment={self.environment!r}, "
            f"base_url={self.base_url!r}, consumer_key={self.consumer_key!r})"
        )

    def endpoint(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def credentials(self) -> Dict[str, str]:
        return {
            "consumer_key": self.consumer_key,
            "consumer_secret": self.consumer_secret,
        }

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "PesapalConfig":
        environment = _parse_environment(values.get("PESAPAL_ENVIRONMENT"))
        consumer_key = _require(values, "PESAPAL_CONSUMER_KEY")
        consumer_secret = _require(values, "PESAPAL_CONSUMER_SECRET")

        base_url = (values.get("PESAPAL_BASE_URL") or "").strip()
        if not base_url:
            base_url = API_BASE_URLS[environment]

        return cls(
            consumer_key=consumer_key,
            consumer_secret=consumer_secret,
            environment=environment,
            base_url=base_url.rstrip("/"),
            timeout_seconds=_parse_timeout(
                (values.get("PESAPAL_TIMEOUT_SECONDS") or "").strip() or "30"
            ),
            cache_tokens=_parse_flag(
                values.get("PESAPAL_CACHE_TOKENS") or "false", "PESAPAL_CACHE_TOKENS"
            ),
            ipn_log_path=values.get("PESAPAL_IPN_LOG_PATH") or DEFAULT_IPN_LOG_PATH,
        )

    @classmethod
    def from_env(
        cls,
        *,
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
        ipn_log_path: Optional[str] = None,
    ) -> "PesapalConfig":
        parameter_overrides = _collect_parameter_overrides(
            parameters,
            {
                "environment": environment,
                "consumer_key": consumer_key,
                "consumer_secret": consumer_secret,
                "base_url": base_url,
                "timeout_seconds": timeout_seconds,
                "cache_tokens": cache_tokens,
                "ipn_log_path": ipn_log_path,
            },
        )
        merged_overrides = dict(overrides or {})
        merged_overrides.update(parameter_overrides)

        resolved = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        return cls.from_mapping(resolved.variables)


def load_pesapal_config(
    *,
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
    ipn_log_path: Optional[str] = None,
) -> PesapalConfig:
    """
    Convenience wrapper that mirrors :meth:`PesapalConfig.from_env`.

    The configuration can be provided entirely through environment variables,
    a ``.env`` file, direct keyword arguments, or any combination of the three.
    """
    return PesapalConfig.from_env(
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
        ipn_log_path=ipn_log_path,
    )
