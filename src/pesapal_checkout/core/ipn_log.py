"""
File-backed, append-only log of inbound Pesapal IPN callbacks.

The store is a single JSON array of ``{"receivedAt", "raw", "parsed"}``
objects. ``raw`` is the body exactly as received; ``parsed`` is present only
when that body was valid JSON.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Union

from .client import decode_json, parse_json
from .config import DEFAULT_IPN_LOG_PATH

__all__ = [
    "IpnLog",
    "IpnLogEntry",
]

_MISSING = object()

_LOCKS: Dict[str, threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _LOCKS_GUARD:
        return _LOCKS.setdefault(key, threading.Lock())


def _utc_timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class IpnLogEntry:
    received_at: str
    raw: str
    parsed: Any = field(default=_MISSING)

    @property
    def has_parsed(self) -> bool:
        return self.parsed is not _MISSING

    @classmethod
    def from_raw(cls, raw: str, *, received_at: str | None = None) -> "IpnLogEntry":
        received_at = received_at or _utc_timestamp()
        try:
            parsed = decode_json(raw)
        except (TypeError, ValueError):
            return cls(received_at=received_at, raw=raw)
        return cls(received_at=received_at, raw=raw, parsed=parsed)

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "IpnLogEntry":
        parsed = values["parsed"] if "parsed" in values else _MISSING
        return cls(
            received_at=str(values.get("receivedAt", "")),
            raw=str(values.get("raw", "")),
            parsed=parsed,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"receivedAt": self.received_at, "raw": self.raw}
        if self.has_parsed:
            data["parsed"] = self.parsed
        return data


class IpnLog:
    """
    Append-only callback history stored as one JSON file.

    Appends rewrite the whole file through a temporary file and
    :func:`os.replace`, serialised by a per-path lock, so callbacks delivered
    concurrently to one process are never lost. Separate processes sharing the
    file are not coordinated.
    """

    def __init__(self, path: Union[str, os.PathLike] = DEFAULT_IPN_LOG_PATH) -> None:
        self.path = Path(path)
        self._lock = _lock_for(self.path)

    def _ensure_file(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_text("[]", encoding="utf-8")

    def _load(self) -> List[Any]:
        self._ensure_file()
        contents = parse_json(self.path.read_text(encoding="utf-8"))
        if not isinstance(contents, list):
            return []
        return contents

    def _write(self, items: List[Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def append(self, raw: str) -> IpnLogEntry:
        entry = IpnLogEntry.from_raw(raw)
        with self._lock:
            items = self._load()
            items.append(entry.to_dict())
            self._write(items)
        logging.info(
            "Stored IPN callback received at %s (%d entries)", entry.received_at, len(items)
        )
        return entry

    def read(self) -> List[IpnLogEntry]:
        """Every stored entry, oldest first."""
        with self._lock:
            items = self._load()
        # Unrecognised items stay on disk but are not entries.
        return [IpnLogEntry.from_dict(item) for item in items if isinstance(item, dict)]

    def read_latest_first(self) -> List[IpnLogEntry]:
        return list(reversed(self.read()))
