"""
Where ``PESAPAL_*`` settings come from.

A checkout run usually keeps its consumer key and secret in a ``.env`` file
next to the project, while CI or a shell session exports some of them
directly. Exported values take precedence over the file; explicit overrides
(``--set`` on the CLI, keyword arguments on the API) beat both.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, MutableMapping, Optional, Tuple

_QUOTES = ("'", '"')


def _assignments(text: str) -> Iterator[Tuple[str, str]]:
    # Accepts ``KEY=value``, ``export KEY=value`` and quoted values; skips the rest.
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] in _QUOTES and value[-1] == value[0]:
            value = value[1:-1]
        yield key.strip(), value


def read_env_file(path: Optional[str]) -> Dict[str, str]:
    """Settings from a ``.env`` file; a missing file (or ``None``) yields nothing."""
    if path is None:
        return {}
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    return dict(_assignments(text))


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Export the settings in ``path`` into ``environ`` (default :data:`os.environ`).

    Keys that are already set keep their value, so a ``PESAPAL_CONSUMER_KEY``
    exported in the shell is never replaced by the file's copy.
    """
    target: MutableMapping[str, str] = os.environ if environ is None else environ
    for key, value in read_env_file(path).items():
        target.setdefault(key, value)
    return dict(target)


@dataclass(frozen=True)
class CheckoutEnvironment:
    """The merged variables a :class:`~pesapal_checkout.core.config.PesapalConfig` is read from."""

    variables: Mapping[str, str]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> CheckoutEnvironment:
    """
    Merge the sources, from lowest to highest precedence: ``env_file``,
    ``base`` (the process environment unless given), ``overrides``.
    """
    variables = read_env_file(env_file)
    variables.update(os.environ if base is None else base)
    variables.update(overrides or {})
    return CheckoutEnvironment(variables=variables)
